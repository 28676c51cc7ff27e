# storefront/services/low_stock.py
from sqlalchemy.orm import Session

from storefront.data.models.product import ProductModel
from storefront.repos.product_repo import ProductRepo
from storefront.services import emails
from storefront.services.mail_client import MailClient
from storefront.utils.retry import delivery_retry
from storefront.utils.settings import LOW_STOCK_THRESHOLD
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class LowStockNotifier:
    """
    Sprawdza aktualny stan produktu i wysyla jeden alert do admina gdy stan <= threshold.
    Idempotentne - po uzupelnieniu magazynu ponowne wywolanie nic nie robi.
    """

    def __init__(self, db: Session, mail_client: MailClient, admin_email: str):
        self.products = ProductRepo(db)
        self.mail_client = mail_client
        self.admin_email = admin_email

    def check_low_stock(self, product_id: int, threshold: int = LOW_STOCK_THRESHOLD) -> bool:
        product = self.products.get_product(product_id)

        if not product:
            logger.warning(f"Product {product_id} no longer exists, skipping low stock check")
            return False

        # stan mogl sie zmienic od zakolejkowania
        self.products.refresh(product)

        if product.stock_quantity > threshold:
            logger.info(
                f"Product {product_id} stock {product.stock_quantity} above threshold {threshold}, no alert"
            )
            return False

        self._send_alert(product, threshold)

        logger.info(f"Low stock alert for product {product_id} ({product.stock_quantity} left) sent to {self.admin_email}")
        return True

    @delivery_retry()
    def _send_alert(self, product: ProductModel, threshold: int) -> None:
        subject, html = emails.low_stock_alert(product, threshold)
        self.mail_client.send(self.admin_email, subject, html)
