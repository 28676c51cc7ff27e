"""Storefront CLI - console commands run by operators and the scheduler.

Commands:
  storefront sales-daily-report [--date=YYYY-MM-DD]   - send the daily sales report
  storefront init-db                                   - create database tables
  storefront seed                                      - seed demo users and products
"""

from __future__ import annotations

import argparse
import sys

from storefront.data.database import SessionLocal
from storefront.domain.errors import DeliveryError, ValidationError
from storefront.services.mail_client import MailClient
from storefront.services.report_service import ReportService, parse_report_date, yesterday
from storefront.utils.settings import ADMIN_EMAIL


def cmd_daily_report(args: argparse.Namespace) -> int:
    """Generate and send daily sales report to admin."""
    report_date = parse_report_date(args.date) if args.date else yesterday()
    print(f"Generating sales report for: {report_date.isoformat()}")

    db = SessionLocal()
    try:
        service = ReportService(db, MailClient(), ADMIN_EMAIL)
        summary = service.generate_daily_report(report_date)
    except DeliveryError as e:
        print(f"Failed to send daily sales report: {e}", file=sys.stderr)
        return 1
    finally:
        db.close()

    if not summary.sent:
        print("No sales found for the specified date.")
        return 0

    print(f"Daily sales report sent successfully to {ADMIN_EMAIL}")
    print(f"Total Revenue: ${summary.total_revenue:,.2f}")
    print(f"Total Items Sold: {summary.total_items_sold}")
    print(f"Products Sold: {summary.product_count}")
    return 0


def cmd_init_db(args: argparse.Namespace) -> int:
    from storefront.main import init_db

    init_db()
    return 0


def cmd_seed(args: argparse.Namespace) -> int:
    from storefront.data.seed import seed

    print("Seeded demo data." if seed() else "Database already seeded.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="storefront", description="Storefront console commands")
    sub = parser.add_subparsers(dest="command", required=True)

    report = sub.add_parser("sales-daily-report", help="Generate and send daily sales report to admin")
    report.add_argument(
        "--date",
        default=None,
        help="The date to generate report for (YYYY-MM-DD, defaults to yesterday in UTC)",
    )
    report.set_defaults(func=cmd_daily_report)

    init = sub.add_parser("init-db", help="Create database tables")
    init.set_defaults(func=cmd_init_db)

    seed = sub.add_parser("seed", help="Seed demo users and products")
    seed.set_defaults(func=cmd_seed)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        return args.func(args)
    except ValidationError as e:
        parser.error(e.message)


if __name__ == "__main__":
    sys.exit(main())
