"""Shared pytest fixtures for storefront tests."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("CELERY_BROKER_URL", "memory://")
os.environ.setdefault("CELERY_RESULT_BACKEND", "cache+memory://")

from decimal import Decimal

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from storefront.data.database import Base
from storefront.data.models import CartItemModel, CartModel, ProductModel, SaleModel, UserModel
from storefront.domain.errors import DeliveryError


class FakeMailClient:
    """Records sent messages; fails the first `fail_times` sends."""

    def __init__(self, fail_times: int = 0):
        self.sent = []
        self.attempts = 0
        self.fail_times = fail_times

    def send(self, to: str, subject: str, html: str) -> None:
        self.attempts += 1
        if self.attempts <= self.fail_times:
            raise DeliveryError("mail transport unavailable")
        self.sent.append({"to": to, "subject": subject, "html": html})


class FakeLockService:
    def __init__(self):
        self.locks = {}

    def acquire_checkout_lock(self, cart_id: int, token: str, ttl: int) -> bool:
        if cart_id in self.locks:
            return False
        self.locks[cart_id] = token
        return True

    def release_checkout_lock(self, cart_id: int, token: str) -> bool:
        if self.locks.get(cart_id) == token:
            del self.locks[cart_id]
            return True
        return False


class UnavailableLockService:
    """Lock store that is down: every call fails like an unreachable Redis."""

    def acquire_checkout_lock(self, cart_id: int, token: str, ttl: int) -> bool:
        raise RedisConnectionError("Connection refused")

    def release_checkout_lock(self, cart_id: int, token: str) -> bool:
        raise RedisConnectionError("Connection refused")


class RecordingNotifications:
    def __init__(self):
        self.dispatched = []

    def dispatch_low_stock(self, product_ids, threshold=5):
        self.dispatched.extend((pid, threshold) for pid in product_ids)
        return len(product_ids)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def fk_db():
    """Session on a database that enforces foreign keys, as Postgres does."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def enable_foreign_keys(dbapi_connection, connection_record):
        dbapi_connection.execute("PRAGMA foreign_keys=ON")

    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db):
    def _make(user_id=None, name="Test User"):
        user = UserModel(id=user_id, name=name)
        db.add(user)
        db.commit()
        return user

    return _make


@pytest.fixture
def user(make_user):
    return make_user(name="Customer")


@pytest.fixture
def other_user(make_user):
    return make_user(name="Other Customer")


@pytest.fixture
def make_product(db):
    def _make(name="Test Product", price="50.00", stock_quantity=10):
        product = ProductModel(name=name, price=Decimal(price), stock_quantity=stock_quantity)
        db.add(product)
        db.commit()
        return product

    return _make


@pytest.fixture
def make_cart_item(db):
    """Put a line straight into a user's cart, bypassing stock validation."""

    def _make(user, product, quantity=1):
        cart = db.query(CartModel).filter_by(user_id=user.id).one_or_none()
        if cart is None:
            cart = CartModel(user_id=user.id)
            db.add(cart)
            db.flush()
        item = CartItemModel(cart_id=cart.id, product_id=product.id, quantity=quantity)
        db.add(item)
        db.commit()
        return item

    return _make


@pytest.fixture
def make_sale(db):
    def _make(user, product, quantity, total, created_at, price=None):
        sale = SaleModel(
            user_id=user.id,
            product_id=product.id,
            quantity=quantity,
            price=Decimal(price) if price is not None else product.price,
            total=Decimal(total),
            created_at=created_at,
        )
        db.add(sale)
        db.commit()
        return sale

    return _make


@pytest.fixture
def mail():
    return FakeMailClient()


@pytest.fixture
def lock_service():
    return FakeLockService()


@pytest.fixture
def notifications():
    return RecordingNotifications()


def build_client(db, lock_service, notifications):
    from fastapi.testclient import TestClient

    from storefront.api.dependencies import get_lock_service, get_notification_service
    from storefront.data.database import get_db
    from storefront.main import create_app

    app = create_app()

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_lock_service] = lambda: lock_service
    app.dependency_overrides[get_notification_service] = lambda: notifications

    return TestClient(app)


@pytest.fixture
def client(db, lock_service, notifications):
    return build_client(db, lock_service, notifications)
