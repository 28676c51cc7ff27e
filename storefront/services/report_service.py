# storefront/services/report_service.py
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal

from sqlalchemy.orm import Session

from storefront.data.models.sale import SaleModel
from storefront.domain.errors import ValidationError
from storefront.domain.schemas import ProductSalesLine, ReportSummary
from storefront.repos.sale_repo import SaleRepo
from storefront.services import emails
from storefront.services.mail_client import MailClient
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def yesterday(now: datetime | None = None) -> date:
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).date() - timedelta(days=1)


def parse_report_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValidationError("date", f"Invalid date {value!r}, expected YYYY-MM-DD.")


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """Pelna doba w UTC jako [start, start + 1 dzien)."""
    start = datetime.combine(day, time.min, tzinfo=timezone.utc)
    return start, start + timedelta(days=1)


def aggregate_sales(day: date, sales: list[SaleModel]) -> ReportSummary:
    """
    Grupowanie po produkcie (kolejnosc wystapienia), sortowanie po przychodzie malejaco.
    sorted() jest stabilne, wiec remisy zostaja w kolejnosci wystapienia.
    """
    lines: dict[int, ProductSalesLine] = {}

    for sale in sales:
        line = lines.get(sale.product_id)
        if line is None:
            line = lines[sale.product_id] = ProductSalesLine(
                product_id=sale.product_id,
                product_name=sale.product.name,
                quantity_sold=0,
                revenue=Decimal("0.00"),
            )
        line.quantity_sold += sale.quantity
        line.revenue += sale.total

    ranked = sorted(lines.values(), key=lambda line: line.revenue, reverse=True)

    return ReportSummary(
        report_date=day,
        lines=ranked,
        total_revenue=sum((line.revenue for line in ranked), Decimal("0.00")),
        total_items_sold=sum(line.quantity_sold for line in ranked),
        product_count=len(ranked),
    )


class ReportService:
    """
    Dzienny raport sprzedazy wysylany do admina.
    Blad wysylki leci do wywolujacego (komenda/task konczy sie bledem), bez retry.
    """

    def __init__(self, db: Session, mail_client: MailClient, admin_email: str):
        self.sales = SaleRepo(db)
        self.mail_client = mail_client
        self.admin_email = admin_email

    def generate_daily_report(self, report_date: date | None = None) -> ReportSummary:
        report_date = report_date or yesterday()
        start, end = day_bounds(report_date)

        logger.info(f"Generating sales report for: {report_date.isoformat()}")

        sales = self.sales.get_sales_between(start, end)

        if not sales:
            logger.warning("No sales found for the specified date.")
            return ReportSummary(report_date=report_date)

        summary = aggregate_sales(report_date, sales)

        subject, html = emails.daily_sales_report(summary)
        self.mail_client.send(self.admin_email, subject, html)
        summary.sent = True

        logger.info(
            f"Daily sales report sent to {self.admin_email}: revenue {summary.total_revenue}, "
            f"items {summary.total_items_sold}, products {summary.product_count}"
        )

        return summary
