# storefront/services/checkout_service.py
import uuid
from decimal import Decimal

from redis.exceptions import RedisError
from sqlalchemy.orm import Session

from storefront.data.models.cart_item import CartItemModel
from storefront.data.models.sale import SaleModel
from storefront.domain.errors import CheckoutInProgressError, EmptyCartError, InsufficientStockError
from storefront.domain.schemas import CheckoutResult, SaleOut, SaleSummary
from storefront.repos.cart_repo import CartRepo
from storefront.repos.product_repo import ProductRepo
from storefront.repos.sale_repo import SaleRepo
from storefront.services.lock_service import LockService
from storefront.utils.settings import CHECKOUT_LOCK_TTL_SECONDS, LOW_STOCK_THRESHOLD
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

CENT = Decimal("0.01")


def insufficient_stock_message(item: CartItemModel) -> str:
    product = item.product
    return (
        f"Insufficient stock for {product.name}. Only {product.stock_quantity} available, "
        f"but {item.quantity} requested."
    )


class CheckoutService:
    """
    Zamiana koszyka na sprzedaz.

    1. Walidacja: koszyk niepusty, kazda pozycja <= stan magazynu
    2. Jedna transakcja: atomowy decrement stanu, zapis Sale, czyszczenie koszyka
    3. Zwraca liste produktow z niskim stanem - wywolujacy kolejkuje powiadomienia po commit
    """

    def __init__(
        self,
        db: Session,
        lock_service: LockService,
        low_stock_threshold: int = LOW_STOCK_THRESHOLD,
        lock_ttl: int = CHECKOUT_LOCK_TTL_SECONDS,
    ):
        self.db = db
        self.carts = CartRepo(db)
        self.products = ProductRepo(db)
        self.sales = SaleRepo(db)
        self.lock_service = lock_service
        self.low_stock_threshold = low_stock_threshold
        self.lock_ttl = lock_ttl

    def checkout(self, user_id: int) -> CheckoutResult:
        cart = self.carts.get_cart_by_user(user_id)
        if not cart:
            raise EmptyCartError()

        # Redis lock - drugi checkout tego samego koszyka (podwojny submit) odpada od razu
        token = uuid.uuid4().hex
        try:
            locked = self.lock_service.acquire_checkout_lock(cart.id, token, self.lock_ttl)
        except RedisError as e:
            # przed overselling chroni warunkowy UPDATE, lock jest tylko dodatkiem
            logger.warning(f"Checkout lock unavailable for cart {cart.id}, continuing without it: {e}")
            return self._checkout(user_id, cart.id)

        if not locked:
            raise CheckoutInProgressError(f"Checkout of cart {cart.id} is already in progress")

        try:
            return self._checkout(user_id, cart.id)
        finally:
            try:
                self.lock_service.release_checkout_lock(cart.id, token)
            except RedisError as e:
                # lock i tak wygasnie po TTL
                logger.warning(f"Failed to release checkout lock for cart {cart.id}: {e}")

    def _checkout(self, user_id: int, cart_id: int) -> CheckoutResult:
        items = self.carts.get_cart_items(cart_id)
        if not items:
            raise EmptyCartError()

        stock_errors = [insufficient_stock_message(i) for i in items if i.quantity > i.product.stock_quantity]
        if stock_errors:
            logger.warning(f"Checkout koszyka {cart_id} odrzucony: {len(stock_errors)} pozycji bez pokrycia")
            raise InsufficientStockError(stock_errors)

        low_stock_product_ids = []
        sales = []

        try:
            # stala kolejnosc blokad wierszy (product_id), dwa checkouty nie zakleszcza sie
            for item in sorted(items, key=lambda i: i.product_id):
                product = item.product

                # UPDATE ... WHERE stock_quantity >= qty, bez osobnego read-then-write
                if not self.products.decrement_stock(product.id, item.quantity):
                    self.products.refresh(product)
                    raise InsufficientStockError([insufficient_stock_message(item)])

                self.products.refresh(product)

                if product.stock_quantity <= self.low_stock_threshold:
                    low_stock_product_ids.append(product.id)

                sales.append(
                    self.sales.add_sale(
                        SaleModel(
                            user_id=user_id,
                            product_id=product.id,
                            quantity=item.quantity,
                            price=product.price,
                            total=(product.price * item.quantity).quantize(CENT),
                        )
                    )
                )

            self.carts.clear_cart_items(cart_id)
            self.db.commit()

        except Exception as e:
            logger.error(f"Checkout koszyka {cart_id} wycofany: {e}")
            self.db.rollback()
            raise

        summary = SaleSummary(
            sales=[SaleOut.model_validate(s) for s in sales],
            items_count=sum(s.quantity for s in sales),
            total=sum((s.total for s in sales), Decimal("0.00")),
        )

        logger.info(
            f"Checkout koszyka {cart_id} uzytkownika {user_id}: {len(sales)} sprzedazy, "
            f"total {summary.total}, niski stan: {low_stock_product_ids}"
        )

        return CheckoutResult(summary=summary, low_stock_product_ids=low_stock_product_ids)
