# storefront/tasks/daily_report.py
from storefront.celery_worker import celery_app
from storefront.data.database import SessionLocal
from storefront.services.mail_client import MailClient
from storefront.services.report_service import ReportService, parse_report_date
from storefront.utils.settings import ADMIN_EMAIL
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


@celery_app.task(name="storefront.tasks.daily_report.send_daily_sales_report_task")
def send_daily_sales_report_task(report_date: str | None = None):
    # bez autoretry - ponowne uruchomienie wysyla maila drugi raz
    logger.info("Daily sales report task started")

    day = parse_report_date(report_date) if report_date else None

    db = SessionLocal()
    try:
        summary = ReportService(db, MailClient(), ADMIN_EMAIL).generate_daily_report(day)
    finally:
        db.close()

    return summary.model_dump(mode="json")
