# main.py
import argparse
import asyncio
import logging
import sys
from datetime import date
from pathlib import Path
from typing import Optional, Tuple
from storefront.app import Storefront
from storefront.config import setup_logging
from storefront.errors import DomainError
from storefront.services.report_service import REPORT_PERIODS, period_window
from storefront.utils.formatters import format_price

def get_argparser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Storefront maintenance commands")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("migrate", help="Apply pending database migrations")

    report = subparsers.add_parser("report", help="Print a sales summary")
    window = report.add_mutually_exclusive_group()
    window.add_argument("--period", choices=REPORT_PERIODS, help="Window ending today")
    window.add_argument("--start", type=date.fromisoformat, help="First day, YYYY-MM-DD")
    report.add_argument("--end", type=date.fromisoformat, help="Last day, YYYY-MM-DD")
    report.add_argument("--output", type=Path, help="Also write an Excel workbook here")

    create_code = subparsers.add_parser("create-code", help="Create an active discount code")
    create_code.add_argument("code")
    create_code.add_argument("percentage", type=int)

    return parser

def report_window(args: argparse.Namespace, today: date) -> Tuple[Optional[date], Optional[date]]:
    if args.period:
        return period_window(args.period, today)
    return args.start, args.end

async def run(args: argparse.Namespace) -> None:
    logger = logging.getLogger(__name__)
    storefront = await Storefront.connect(run_migrations=args.command != "migrate")
    try:
        if args.command == "migrate":
            applied = await storefront.database.migrate()
            if applied:
                for name in applied:
                    print(f"Applied {name}")
            else:
                logger.info("Migrations are up to date")

        elif args.command == "report":
            start, end = report_window(args, storefront.reports.today())
            summary = await storefront.reports.summary(start, end)
            print(f"Purchases: {summary['total_purchases']}")
            print(f"Completed: {summary['completed']}  Failed: {summary['failed']}  "
                  f"Pending: {summary['pending']}")
            print(f"Revenue: {format_price(summary['revenue'])}")
            print(f"Unique buyers: {summary['unique_buyers']}")
            for product in summary['top_products']:
                print(f"  {product['title']}: {product['sales']} sales, "
                      f"{format_price(product['revenue'])}")

            if args.output:
                args.output.write_bytes(await storefront.reports.export_excel(start, end))
                logger.info(f"Report written to {args.output}")

        elif args.command == "create-code":
            code = await storefront.discounts.create_code(args.code, args.percentage)
            print(f"{code.code}: {code.discount_percentage}%")
    finally:
        await storefront.close()

def main() -> int:
    parser = get_argparser()
    args = parser.parse_args()
    if args.command == "report" and args.period and args.end:
        parser.error("--end cannot be combined with --period")

    # Setup logging
    setup_logging()
    logger = logging.getLogger(__name__)

    try:
        asyncio.run(run(args))
    except DomainError as e:
        logger.error(str(e))
        return 1
    except Exception as e:
        logger.error(f"Error running {args.command}: {e}", exc_info=True)
        return 2
    return 0

if __name__ == "__main__":
    sys.exit(main())
