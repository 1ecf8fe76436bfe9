# storefront/services/purchase_service.py
import logging
from datetime import datetime, timezone
from typing import Iterable, List, Optional
from ..errors import InvalidTransitionError, NotFoundError, ValidationError
from ..models.purchase import CustomerInfo, PaymentMethod, PaymentStatus, Purchase
from ..stores.interfaces import PRODUCTS, PURCHASES, RecordStore

logger = logging.getLogger(__name__)

class PurchaseService:
    """Purchase ledger, the single source of truth for order state"""

    def __init__(self, store: RecordStore):
        self.store = store

    async def create(self, product_id: str, customer: CustomerInfo, original_price: int,
                     final_price: int, discount_code: Optional[str],
                     payment_method: PaymentMethod) -> Purchase:
        """Record a pending purchase with prices frozen at this instant"""
        if original_price < 0:
            raise ValidationError("original_price cannot be negative")
        if final_price < 0:
            raise ValidationError("final_price cannot be negative")
        if final_price > original_price:
            raise ValidationError("final_price cannot exceed original_price")

        try:
            await self.store.get(PRODUCTS, product_id)
        except NotFoundError as e:
            raise ValidationError(f"Product {product_id} does not exist") from e

        record = await self.store.insert(PURCHASES, {
            "product_id": product_id,
            "customer_name": customer.name,
            "customer_email": customer.email,
            "customer_phone": customer.phone,
            "customer_address": customer.address,
            "original_price": original_price,
            "final_price": final_price,
            "discount_code": discount_code,
            "payment_method": PaymentMethod(payment_method).value,
            "payment_status": PaymentStatus.PENDING.value,
            "payment_date": None,
        })
        purchase = Purchase.model_validate(record)
        logger.info(
            f"Purchase {purchase.id} created for product {product_id} "
            f"at {final_price} ({purchase.payment_method.value})"
        )
        return purchase

    async def get(self, purchase_id: str) -> Purchase:
        return Purchase.model_validate(await self.store.get(PURCHASES, purchase_id))

    async def finalize(self, purchase_id: str, outcome: PaymentStatus) -> Purchase:
        """Move a pending purchase to completed or failed, exactly once"""
        outcome = PaymentStatus(outcome)
        if not outcome.is_terminal:
            raise ValidationError("Purchases can only be finalized as completed or failed")

        patch = {
            "payment_status": outcome.value,
            "payment_date": datetime.now(timezone.utc) if outcome == PaymentStatus.COMPLETED else None,
        }
        # compare-and-set so a concurrent finalize cannot win twice
        record = await self.store.update(
            PURCHASES, purchase_id, patch,
            conditions={"payment_status": PaymentStatus.PENDING.value},
        )
        if record is None:
            current = await self.get(purchase_id)
            logger.warning(
                f"Rejected finalize of purchase {purchase_id}: "
                f"already {current.payment_status.value}"
            )
            raise InvalidTransitionError(purchase_id, current.payment_status.value, outcome.value)

        purchase = Purchase.model_validate(record)
        logger.info(f"Purchase {purchase_id} finalized as {outcome.value}")
        return purchase

    async def list_by_product(self, product_id: str) -> List[Purchase]:
        """Purchases of one product, newest first"""
        rows = await self.store.query(
            PURCHASES, {"product_id": product_id}, order_by="created_at", descending=True
        )
        return [Purchase.model_validate(row) for row in rows]

    async def list_all(self) -> List[Purchase]:
        """Every purchase, newest first"""
        rows = await self.store.query(PURCHASES, order_by="created_at", descending=True)
        return [Purchase.model_validate(row) for row in rows]

    async def count_for_product(self, product_id: str) -> int:
        return await self.store.count(PURCHASES, {"product_id": product_id})

    @staticmethod
    def revenue(purchases: Iterable[Purchase]) -> int:
        """Sum of final prices over completed purchases"""
        return sum(p.final_price for p in purchases if p.payment_status == PaymentStatus.COMPLETED)
