# storefront/repos/sale_repo.py
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from storefront.data.models.sale import SaleModel


class SaleRepo:
    def __init__(self, db: Session):
        self.db = db

    def add_sale(self, sale: SaleModel) -> SaleModel:
        self.db.add(sale)
        self.db.flush()
        return sale

    def get_sales_between(self, start: datetime, end: datetime) -> list[SaleModel]:
        """Sprzedaz z przedzialu [start, end), w kolejnosci zapisu."""
        return list(
            self.db.execute(
                select(SaleModel)
                .options(joinedload(SaleModel.product))
                .where(SaleModel.created_at >= start, SaleModel.created_at < end)
                .order_by(SaleModel.id)
            ).scalars().all()
        )
