# storefront/services/discount_service.py
import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional
from ..errors import InvalidCodeError, ValidationError
from ..models.discount import DiscountCode, DiscountCodeInput, PricePreview
from ..stores.interfaces import DISCOUNT_CODES, PRODUCTS, RecordStore
from ..utils.validation import parse_input

logger = logging.getLogger(__name__)

def normalize_code(code: str) -> str:
    """Codes are stored uppercase without surrounding whitespace"""
    return code.strip().upper()

def calculate_discounted_price(price: int, percentage: int) -> int:
    """price * (1 - percentage/100), rounded half up to a whole unit"""
    if price < 0:
        raise ValueError("price cannot be negative")
    if not 0 <= percentage <= 100:
        raise ValueError("percentage must be between 0 and 100")

    discounted = (Decimal(price) * Decimal(100 - percentage) / Decimal(100)).quantize(
        Decimal(1), rounding=ROUND_HALF_UP
    )
    return max(0, min(price, int(discounted)))

class DiscountService:
    """Discount code lookup, pricing and administration"""

    def __init__(self, store: RecordStore):
        self.store = store

    async def resolve(self, code: str) -> DiscountCode:
        """Find a code by exact (normalized) match, active or not"""
        normalized = normalize_code(code or "")
        if not normalized:
            raise InvalidCodeError(code)

        rows = await self.store.query(DISCOUNT_CODES, {"code": normalized})
        if not rows:
            logger.info(f"Discount code {normalized} not found")
            raise InvalidCodeError(normalized)
        return DiscountCode.model_validate(rows[0])

    async def preview(self, product_id: str, code: str) -> PricePreview:
        """Price shown to the buyer; inactive codes are reported as invalid"""
        discount = await self.resolve(code)
        if not discount.active:
            raise InvalidCodeError(discount.code)

        product = await self.store.get(PRODUCTS, product_id)
        return PricePreview(
            product_id=product_id,
            code=discount.code,
            discount_percentage=discount.discount_percentage,
            original_price=product["price"],
            discounted_price=calculate_discounted_price(
                product["price"], discount.discount_percentage
            ),
        )

    async def create_code(self, code: str, discount_percentage: int) -> DiscountCode:
        """Create a new active code"""
        data = parse_input(
            DiscountCodeInput,
            {"code": code, "discount_percentage": discount_percentage},
            "Invalid discount code",
        )

        if await self.store.count(DISCOUNT_CODES, {"code": data.code}):
            raise ValidationError(f"Discount code {data.code} already exists")

        record = await self.store.insert(DISCOUNT_CODES, {
            "code": data.code,
            "discount_percentage": data.discount_percentage,
            "active": True,
        })
        logger.info(f"Discount code {data.code} created ({data.discount_percentage}%)")
        return DiscountCode.model_validate(record)

    async def get_code(self, code_id: str) -> DiscountCode:
        return DiscountCode.model_validate(await self.store.get(DISCOUNT_CODES, code_id))

    async def set_active(self, code_id: str, active: bool) -> DiscountCode:
        """Activate or deactivate a code"""
        record = await self.store.update(DISCOUNT_CODES, code_id, {"active": active})
        logger.info(f"Discount code {record['code']} {'activated' if active else 'deactivated'}")
        return DiscountCode.model_validate(record)

    async def toggle_active(self, code_id: str) -> DiscountCode:
        current = await self.get_code(code_id)
        return await self.set_active(code_id, not current.active)

    async def list_codes(self, active: Optional[bool] = None) -> List[DiscountCode]:
        """All codes, newest first"""
        filters: Dict[str, Any] = {} if active is None else {"active": active}
        rows = await self.store.query(
            DISCOUNT_CODES, filters, order_by="created_at", descending=True
        )
        return [DiscountCode.model_validate(row) for row in rows]
