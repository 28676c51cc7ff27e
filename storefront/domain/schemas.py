# storefront/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict
from typing import List
from decimal import Decimal
from datetime import date, datetime


class ProductOut(BaseModel):
    """Produkt z aktualnym stanem magazynu."""

    id: int
    name: str
    price: Decimal
    stock_quantity: int

    model_config = ConfigDict(from_attributes=True)


class CartItemIn(BaseModel):
    """Dodanie produktu do koszyka. Walidacja quantity w serwisie (komunikat per pole)."""

    product_id: int
    quantity: int = 1


class CartItemUpdate(BaseModel):
    quantity: int


class CartItemOut(BaseModel):
    id: int
    product_id: int
    product_name: str
    product_price: Decimal
    quantity: int
    subtotal: Decimal
    stock_quantity: int


class CartOut(BaseModel):
    id: int
    user_id: int
    items: List[CartItemOut]
    total: Decimal


class CartMutationOut(BaseModel):
    message: str
    cart: CartOut


class SaleOut(BaseModel):
    id: int
    product_id: int
    quantity: int
    price: Decimal
    total: Decimal
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SaleSummary(BaseModel):
    """Wynik checkoutu - trwale zapisane sprzedaze."""

    sales: List[SaleOut]
    items_count: int
    total: Decimal


class CheckoutOut(BaseModel):
    message: str
    summary: SaleSummary


class ProductSalesLine(BaseModel):
    product_id: int
    product_name: str
    quantity_sold: int
    revenue: Decimal


class ReportSummary(BaseModel):
    report_date: date
    lines: List[ProductSalesLine] = Field(default_factory=list)
    total_revenue: Decimal = Decimal("0.00")
    total_items_sold: int = 0
    product_count: int = 0
    sent: bool = False


class CheckoutResult(BaseModel):
    """Wynik checkoutu + lista produktow do powiadomienia po commit."""

    summary: SaleSummary
    low_stock_product_ids: List[int] = Field(default_factory=list)
