# storefront/data/seed.py
from decimal import Decimal

from storefront.data.database import SessionLocal
from storefront.data.models import ProductModel, UserModel
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

USERS = [
    {"id": 1, "name": "Demo Customer", "email": "customer@example.com"},
    {"id": 2, "name": "Second Customer", "email": "second@example.com"},
]

PRODUCTS = [
    {"name": "Keyboard", "price": Decimal("199.99"), "stock_quantity": 25},
    {"name": "Mouse", "price": Decimal("49.50"), "stock_quantity": 40},
    {"name": "Monitor", "price": Decimal("899.00"), "stock_quantity": 7},
    {"name": "USB-C Cable", "price": Decimal("12.90"), "stock_quantity": 100},
]


def seed(session_factory=SessionLocal) -> bool:
    db = session_factory()
    try:
        # not forcing: only seed if empty
        if db.query(ProductModel).first():
            logger.info("Database already seeded, skipping")
            return False

        for u in USERS:
            db.merge(UserModel(**u))
        db.add_all(ProductModel(**p) for p in PRODUCTS)
        db.commit()

        logger.info(f"Seeded {len(USERS)} users and {len(PRODUCTS)} products")
        return True
    finally:
        db.close()
