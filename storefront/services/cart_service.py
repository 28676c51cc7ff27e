from decimal import Decimal
from sqlalchemy.orm import Session
from storefront.data.models.cart import CartModel
from storefront.data.models.cart_item import CartItemModel
from storefront.domain.errors import AuthorizationError, NotFoundError, StockError, ValidationError
from storefront.domain.schemas import CartOut, CartItemOut
from storefront.repos.cart_repo import CartRepo
from storefront.repos.product_repo import ProductRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

CENT = Decimal("0.01")


class CartService:
    """
    Prosta implementacja cqrs dla domeny cart
    commands (add, update, remove) modyfikuja stan
    query (get) tylko odczyt + leniwe utworzenie koszyka
    """

    def __init__(self, db: Session):
        self.repo = CartRepo(db)
        self.products = ProductRepo(db)

    #query - odczyt
    def get_cart(self, user_id: int) -> CartOut:
        cart = self._cart_for(user_id)
        return self._to_view(cart)

    #commands
    def add_item(self, user_id: int, product_id: int, quantity: int = 1) -> tuple[CartOut, str]:
        product = self.products.get_product(product_id)
        if not product:
            raise ValidationError("product_id", "The selected product id is invalid.")

        if quantity < 1:
            raise ValidationError("quantity", "The quantity field must be at least 1.")

        if product.stock_quantity == 0:
            raise StockError("product_id", "This product is out of stock.")

        if quantity > product.stock_quantity:
            raise StockError(
                "product_id",
                f"Cannot add {quantity} items. Only {product.stock_quantity} available in stock.",
            )

        cart = self._cart_for(user_id)

        # Sprawdz czy produkt juz jest w koszyku
        existing_item = self.repo.get_cart_item(cart.id, product.id)

        if existing_item:
            new_quantity = existing_item.quantity + quantity

            if new_quantity > product.stock_quantity:
                raise StockError(
                    "product_id",
                    f"Cannot add more items. Only {product.stock_quantity} available in stock.",
                )

            logger.info(
                f"Produkt {product_id} juz jest w koszyku {cart.id}, zwiekszam ilosc "
                f"z {existing_item.quantity} do {new_quantity}"
            )
            existing_item.quantity = new_quantity
            self.repo.add_cart_item(existing_item)
            message = "Product quantity updated in cart."
        else:
            logger.info(f"Dodaje nowy produkt {product_id} do koszyka {cart.id}")
            self.repo.add_cart_item(
                CartItemModel(
                    cart_id=cart.id,
                    product_id=product.id,
                    quantity=quantity,
                )
            )
            message = "Product added to cart successfully."

        self.repo.commit()

        return self._to_view(cart), message

    def update_item(self, user_id: int, item_id: int, quantity: int) -> CartOut:
        item = self._owned_item(user_id, item_id)

        if quantity < 1:
            raise ValidationError("quantity", "The quantity field must be at least 1.")

        product = item.product
        if quantity > product.stock_quantity:
            raise StockError(
                "quantity",
                f"Cannot set quantity to {quantity}. Only {product.stock_quantity} available in stock.",
            )

        item.quantity = quantity
        self.repo.add_cart_item(item)
        self.repo.commit()

        logger.info(f"Pozycja {item_id} koszyka {item.cart_id} ma teraz ilosc {quantity}")

        return self._to_view(item.cart)

    def remove_item(self, user_id: int, item_id: int) -> CartOut:
        item = self._owned_item(user_id, item_id)
        cart = item.cart

        self.repo.delete_cart_item(item)
        self.repo.commit()

        logger.info(f"Pozycja {item_id} usunieta z koszyka {cart.id}")

        return self._to_view(cart)

    def _cart_for(self, user_id: int) -> CartModel:
        cart = self.repo.get_cart_by_user(user_id)
        if cart:
            return cart

        cart = self.repo.get_or_create_cart(user_id)
        if cart is None:
            # insert odrzucony przez FK, uzytkownik nie istnieje
            raise ValidationError("user_id", "The selected user id is invalid.")

        self.repo.commit()
        logger.info(f"Utworzono nowy koszyk {cart.id} dla uzytkownika {user_id}")
        return cart

    def _owned_item(self, user_id: int, item_id: int) -> CartItemModel:
        item = self.repo.get_item(item_id)
        if not item:
            raise NotFoundError("Cart item not found")

        if item.cart.user_id != user_id:
            logger.warning(f"Uzytkownik {user_id} probowal zmienic cudza pozycje koszyka {item_id}")
            raise AuthorizationError("Forbidden")

        return item

    def _to_view(self, cart: CartModel) -> CartOut:
        items = []
        for i in self.repo.get_cart_items(cart.id):
            subtotal = (i.product.price * i.quantity).quantize(CENT)
            items.append(
                CartItemOut(
                    id=i.id,
                    product_id=i.product_id,
                    product_name=i.product.name,
                    product_price=i.product.price,
                    quantity=i.quantity,
                    subtotal=subtotal,
                    stock_quantity=i.product.stock_quantity,
                )
            )

        total = sum((i.subtotal for i in items), Decimal("0.00"))

        return CartOut(id=cart.id, user_id=cart.user_id, items=items, total=total)
