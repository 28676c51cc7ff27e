from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from storefront.data.database import Base
from storefront.data.models import CartItemModel, CartModel, ProductModel, SaleModel, UserModel
from storefront.domain.errors import CheckoutInProgressError, EmptyCartError, InsufficientStockError
from storefront.repos.product_repo import ProductRepo
from storefront.services.cart_service import CartService
from storefront.services.checkout_service import CheckoutService

from tests.conftest import UnavailableLockService


def stock_of(db, product):
    db.expire_all()
    return db.get(ProductModel, product.id).stock_quantity


class TestCheckout:
    def test_checkout_records_sale_and_decrements_stock(self, db, user, lock_service, make_product, make_cart_item):
        product = make_product(price="50.00", stock_quantity=10)
        make_cart_item(user, product, quantity=2)

        result = CheckoutService(db, lock_service).checkout(user.id)

        sale = db.query(SaleModel).one()
        assert sale.user_id == user.id
        assert sale.quantity == 2
        assert sale.price == Decimal("50.00")
        assert sale.total == Decimal("100.00")
        assert stock_of(db, product) == 8
        assert db.query(CartItemModel).count() == 0

        assert result.summary.items_count == 2
        assert result.summary.total == Decimal("100.00")
        assert result.low_stock_product_ids == []

    def test_multiple_products(self, db, user, lock_service, make_product, make_cart_item):
        first = make_product(name="First", price="30.00", stock_quantity=10)
        second = make_product(name="Second", price="20.00", stock_quantity=10)
        make_cart_item(user, first, quantity=2)
        make_cart_item(user, second, quantity=3)

        result = CheckoutService(db, lock_service).checkout(user.id)

        sales = db.query(SaleModel).order_by(SaleModel.id).all()
        assert [(s.product_id, s.quantity, s.total) for s in sales] == [
            (first.id, 2, Decimal("60.00")),
            (second.id, 3, Decimal("60.00")),
        ]
        assert stock_of(db, first) == 8
        assert stock_of(db, second) == 7
        assert result.summary.total == Decimal("120.00")
        assert CartService(db).get_cart(user.id).items == []

    def test_sale_keeps_price_at_checkout_time(self, db, user, lock_service, make_product, make_cart_item):
        product = make_product(price="10.00", stock_quantity=10)
        make_cart_item(user, product, quantity=3)

        CheckoutService(db, lock_service).checkout(user.id)

        product = db.get(ProductModel, product.id)
        product.price = Decimal("99.00")
        db.commit()

        db.expire_all()
        sale = db.query(SaleModel).one()
        assert sale.price == Decimal("10.00")
        assert sale.total == sale.price * sale.quantity

    def test_empty_cart(self, db, user, lock_service):
        with pytest.raises(EmptyCartError) as exc:
            CheckoutService(db, lock_service).checkout(user.id)

        assert exc.value.errors == {"cart": "Your cart is empty. Please add items before checkout."}

    def test_existing_cart_without_items(self, db, user, lock_service):
        CartService(db).get_cart(user.id)

        with pytest.raises(EmptyCartError):
            CheckoutService(db, lock_service).checkout(user.id)

        assert lock_service.locks == {}

    def test_insufficient_stock_is_all_or_nothing(self, db, user, lock_service, make_product, make_cart_item):
        plenty = make_product(name="Plenty", stock_quantity=10)
        scarce = make_product(name="Scarce", stock_quantity=5)
        make_cart_item(user, plenty, quantity=2)
        make_cart_item(user, scarce, quantity=10)

        with pytest.raises(InsufficientStockError) as exc:
            CheckoutService(db, lock_service).checkout(user.id)

        assert exc.value.field == "stock"
        assert exc.value.message == "Insufficient stock for Scarce. Only 5 available, but 10 requested."
        assert db.query(SaleModel).count() == 0
        assert stock_of(db, plenty) == 10
        assert stock_of(db, scarce) == 5
        assert db.query(CartItemModel).count() == 2

    def test_stock_messages_are_aggregated(self, db, user, lock_service, make_product, make_cart_item):
        make_cart_item(user, make_product(name="A", stock_quantity=1), quantity=2)
        make_cart_item(user, make_product(name="B", stock_quantity=0), quantity=1)

        with pytest.raises(InsufficientStockError) as exc:
            CheckoutService(db, lock_service).checkout(user.id)

        assert exc.value.messages == [
            "Insufficient stock for A. Only 1 available, but 2 requested.",
            "Insufficient stock for B. Only 0 available, but 1 requested.",
        ]

    def test_low_stock_products_are_collected(self, db, user, lock_service, make_product, make_cart_item):
        low = make_product(name="Low", stock_quantity=6)
        fine = make_product(name="Fine", stock_quantity=20)
        make_cart_item(user, low, quantity=1)
        make_cart_item(user, fine, quantity=1)

        result = CheckoutService(db, lock_service).checkout(user.id)

        assert result.low_stock_product_ids == [low.id]

    def test_custom_threshold(self, db, user, lock_service, make_product, make_cart_item):
        product = make_product(stock_quantity=20)
        make_cart_item(user, product, quantity=5)

        result = CheckoutService(db, lock_service, low_stock_threshold=15).checkout(user.id)

        assert result.low_stock_product_ids == [product.id]

    def test_checkout_in_progress_is_rejected(self, db, user, lock_service, make_product, make_cart_item):
        item = make_cart_item(user, make_product(stock_quantity=10), quantity=1)
        lock_service.acquire_checkout_lock(item.cart_id, "other-request", 30)

        with pytest.raises(CheckoutInProgressError):
            CheckoutService(db, lock_service).checkout(user.id)

        assert db.query(SaleModel).count() == 0

    def test_lock_is_released_after_failure(self, db, user, lock_service, make_product, make_cart_item):
        make_cart_item(user, make_product(stock_quantity=1), quantity=2)

        with pytest.raises(InsufficientStockError):
            CheckoutService(db, lock_service).checkout(user.id)

        assert lock_service.locks == {}

    def test_checkout_proceeds_when_lock_store_is_down(self, db, user, make_product, make_cart_item):
        product = make_product(stock_quantity=10)
        make_cart_item(user, product, quantity=2)

        result = CheckoutService(db, UnavailableLockService()).checkout(user.id)

        assert result.summary.items_count == 2
        assert stock_of(db, product) == 8
        assert db.query(SaleModel).count() == 1

    def test_stock_is_decremented_in_product_id_order(self, db, user, lock_service, make_product, make_cart_item, monkeypatch):
        first = make_product(name="First")
        second = make_product(name="Second")
        make_cart_item(user, second, quantity=1)
        make_cart_item(user, first, quantity=1)

        decremented = []
        original = ProductRepo.decrement_stock

        def recording(self, product_id, quantity):
            decremented.append(product_id)
            return original(self, product_id, quantity)

        monkeypatch.setattr(ProductRepo, "decrement_stock", recording)

        CheckoutService(db, lock_service).checkout(user.id)

        assert decremented == [first.id, second.id]


class TestConcurrentCheckouts:
    """Stock 5, two buyers asking for 3 each: exactly one sale, stock never negative."""

    def test_second_checkout_fails_on_precondition(self, db, make_user, lock_service, make_product, make_cart_item):
        alice, bob = make_user(name="Alice"), make_user(name="Bob")
        product = make_product(stock_quantity=5)
        make_cart_item(alice, product, quantity=3)
        make_cart_item(bob, product, quantity=3)

        CheckoutService(db, lock_service).checkout(alice.id)

        with pytest.raises(InsufficientStockError):
            CheckoutService(db, lock_service).checkout(bob.id)

        assert stock_of(db, product) == 2
        assert db.query(SaleModel).count() == 1

    def test_stale_read_is_stopped_by_conditional_decrement(self, tmp_path, lock_service):
        # two sessions on two connections; bob's session has read stock=5 before alice commits
        engine = create_engine(f"sqlite:///{tmp_path / 'race.db'}")
        Base.metadata.create_all(bind=engine)
        Session = sessionmaker(autocommit=False, autoflush=False, bind=engine)

        with Session() as setup:
            setup.add_all([UserModel(id=1, name="Alice"), UserModel(id=2, name="Bob")])
            setup.add(ProductModel(id=1, name="Widget", price=Decimal("10.00"), stock_quantity=5))
            setup.add_all([CartModel(id=1, user_id=1), CartModel(id=2, user_id=2)])
            setup.flush()
            setup.add_all([
                CartItemModel(cart_id=1, product_id=1, quantity=3),
                CartItemModel(cart_id=2, product_id=1, quantity=3),
            ])
            setup.commit()

        alice_db, bob_db = Session(), Session()
        try:
            assert bob_db.get(ProductModel, 1).stock_quantity == 5

            CheckoutService(alice_db, lock_service).checkout(1)

            with pytest.raises(InsufficientStockError) as exc:
                CheckoutService(bob_db, lock_service).checkout(2)

            assert "Only 2 available, but 3 requested." in exc.value.message
        finally:
            alice_db.close()
            bob_db.close()

        with Session() as check:
            assert check.get(ProductModel, 1).stock_quantity == 2
            assert check.query(SaleModel).count() == 1
            assert check.query(SaleModel).one().user_id == 1
            assert check.query(CartItemModel).filter_by(cart_id=2).one().quantity == 3

        engine.dispose()
