# storefront/celery_worker.py
from celery import Celery
from celery.schedules import crontab

from storefront.utils.settings import (
    CELERY_BROKER_URL,
    CELERY_RESULT_BACKEND,
    DAILY_REPORT_HOUR,
    DAILY_REPORT_MINUTE,
)

celery_app = Celery(
    "storefront",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# WAZNE: explicite importuj taski, zeby Celery je zarejestrowal
celery_app.conf.imports = (
    "storefront.tasks.daily_report",
    "storefront.services.notification_service",
)

celery_app.conf.beat_schedule = {
    "send-daily-sales-report": {
        "task": "storefront.tasks.daily_report.send_daily_sales_report_task",
        "schedule": crontab(hour=DAILY_REPORT_HOUR, minute=DAILY_REPORT_MINUTE),
    },
}

celery_app.conf.timezone = "UTC"
