# storefront/services/notification_service.py
from storefront.celery_worker import celery_app
from storefront.data.database import SessionLocal
from storefront.domain.errors import DeliveryError
from storefront.services.low_stock import LowStockNotifier
from storefront.services.mail_client import MailClient
from storefront.utils.settings import ADMIN_EMAIL, LOW_STOCK_THRESHOLD
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Kolejkowanie powiadomien po commit checkoutu.
    Uzywa Celery do asynchronicznego przetwarzania.
    """

    @staticmethod
    def notify_low_stock(product_id: int, threshold: int = LOW_STOCK_THRESHOLD):
        check_low_stock_task.delay(product_id, threshold)

    def dispatch_low_stock(self, product_ids: list[int], threshold: int = LOW_STOCK_THRESHOLD) -> int:
        """
        Fire-and-forget: blad kolejki nie cofa sprzedazy, tylko log.
        Zwraca liczbe zakolejkowanych zadan.
        """
        queued = 0
        for product_id in product_ids:
            try:
                self.notify_low_stock(product_id, threshold)
                queued += 1
            except Exception as e:
                logger.error(f"Failed to enqueue low stock check for product {product_id}: {e}")
        return queued


@celery_app.task(name="storefront.services.notification_service.check_low_stock_task")
def check_low_stock_task(product_id: int, threshold: int = LOW_STOCK_THRESHOLD):
    """
    Celery task - sprawdza stan i wysyla alert mailem.
    Po wyczerpaniu prob (retry w LowStockNotifier) blad jest logowany i porzucany.
    """
    db = SessionLocal()
    try:
        notifier = LowStockNotifier(db, MailClient(), ADMIN_EMAIL)
        sent = notifier.check_low_stock(product_id, threshold)
    except DeliveryError as e:
        logger.error(f"[LOW STOCK] Alert for product {product_id} dropped after retries: {e}")
        return {"product_id": product_id, "status": "failed"}
    finally:
        db.close()

    return {"product_id": product_id, "status": "sent" if sent else "skipped"}
