# storefront/services/report_service.py
import io
import logging
from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple
import pytz
from ..config import Config
from ..models.purchase import PaymentStatus, Purchase
from ..stores.interfaces import PRODUCTS, RecordStore
from ..utils.formatters import format_datetime
from .purchase_service import PurchaseService

logger = logging.getLogger(__name__)

REPORT_PERIODS = ("daily", "weekly", "monthly")

def period_window(period: str, today: date) -> Tuple[date, date]:
    """Inclusive local date range of a named report period"""
    if period == "daily":
        return today, today
    if period == "weekly":
        return today - timedelta(days=6), today
    if period == "monthly":
        return today.replace(day=1), today
    raise ValueError(f"Unknown report period: {period}")

class ReportService:
    """Sales reports"""

    def __init__(self, store: RecordStore):
        self.store = store
        self.purchase_service = PurchaseService(store)
        self.tz = pytz.timezone(Config.TIMEZONE)

    def _local_date(self, moment: datetime) -> date:
        if moment.tzinfo is None:
            moment = pytz.utc.localize(moment)
        return moment.astimezone(self.tz).date()

    def today(self) -> date:
        return datetime.now(self.tz).date()

    async def summary_for_period(self, period: str) -> Dict[str, Any]:
        """Summary for the daily, weekly or monthly window ending today"""
        return await self.summary(*period_window(period, self.today()))

    async def _purchases_between(self, start: Optional[date], end: Optional[date]) -> List[Purchase]:
        purchases = await self.purchase_service.list_all()
        return [
            p for p in purchases
            if (start is None or self._local_date(p.created_at) >= start)
            and (end is None or self._local_date(p.created_at) <= end)
        ]

    async def _product_titles(self) -> Dict[str, str]:
        return {row["id"]: row["title"] for row in await self.store.query(PRODUCTS)}

    async def summary(self, start: Optional[date] = None, end: Optional[date] = None) -> Dict[str, Any]:
        """Totals for purchases created between start and end (inclusive, local dates)"""
        purchases = await self._purchases_between(start, end)
        titles = await self._product_titles()

        by_status = defaultdict(int)
        for purchase in purchases:
            by_status[purchase.payment_status] += 1

        completed = [p for p in purchases if p.payment_status == PaymentStatus.COMPLETED]
        per_product: Dict[str, Dict[str, Any]] = {}
        for purchase in completed:
            stats = per_product.setdefault(purchase.product_id, {
                "product_id": purchase.product_id,
                "title": titles.get(purchase.product_id),
                "sales": 0,
                "revenue": 0,
            })
            stats["sales"] += 1
            stats["revenue"] += purchase.final_price

        top_products = sorted(per_product.values(), key=lambda s: s["revenue"], reverse=True)[:5]

        return {
            "period": {
                "start": start.strftime("%Y-%m-%d") if start else None,
                "end": end.strftime("%Y-%m-%d") if end else None
            },
            "total_purchases": len(purchases),
            "completed": by_status[PaymentStatus.COMPLETED],
            "failed": by_status[PaymentStatus.FAILED],
            "pending": by_status[PaymentStatus.PENDING],
            "revenue": PurchaseService.revenue(purchases),
            "discounted_purchases": sum(1 for p in completed if p.discount_code),
            "unique_buyers": len({p.customer_email.lower() for p in completed}),
            "top_products": top_products,
        }

    async def export_excel(self, start: Optional[date] = None, end: Optional[date] = None) -> bytes:
        """Workbook with a summary sheet and one row per purchase"""
        import pandas as pd

        report = await self.summary(start, end)
        purchases = await self._purchases_between(start, end)
        titles = await self._product_titles()

        output = io.BytesIO()
        with pd.ExcelWriter(output, engine='xlsxwriter') as writer:
            summary_data = {
                'Metric': ['Purchases', 'Completed', 'Failed', 'Pending', 'Revenue', 'Unique buyers'],
                'Value': [
                    report['total_purchases'],
                    report['completed'],
                    report['failed'],
                    report['pending'],
                    report['revenue'],
                    report['unique_buyers']
                ]
            }
            pd.DataFrame(summary_data).to_excel(writer, sheet_name='Summary', index=False)

            rows = [{
                'Purchase': p.id,
                'Product': titles.get(p.product_id),
                'Customer': p.customer_name,
                'Email': p.customer_email,
                'Original price': p.original_price,
                'Final price': p.final_price,
                'Discount code': p.discount_code,
                'Method': p.payment_method.value,
                'Status': p.payment_status.value,
                'Paid at': format_datetime(p.payment_date) if p.payment_date else None,
                'Created at': format_datetime(p.created_at),
            } for p in purchases]
            columns = ['Purchase', 'Product', 'Customer', 'Email', 'Original price', 'Final price',
                       'Discount code', 'Method', 'Status', 'Paid at', 'Created at']
            pd.DataFrame(rows, columns=columns).to_excel(writer, sheet_name='Purchases', index=False)

            pd.DataFrame(report['top_products'], columns=['product_id', 'title', 'sales', 'revenue']).to_excel(
                writer, sheet_name='Top products', index=False
            )

        logger.info(f"Sales workbook exported with {len(purchases)} purchases")
        return output.getvalue()
