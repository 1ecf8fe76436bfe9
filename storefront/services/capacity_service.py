# storefront/services/capacity_service.py
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional
from ..errors import CapacityExceededError
from ..stores.interfaces import PURCHASES, RecordStore

logger = logging.getLogger(__name__)

class CapacityService:
    """Seat accounting for event products.

    Every purchase of the product holds a seat, whatever its payment status.
    Abandoned pending purchases are never released.
    """

    def __init__(self, store: RecordStore):
        self.store = store

    async def remaining(self, product_id: str, capacity: Optional[int]) -> Optional[int]:
        """Seats left, or None when the event has no capacity limit"""
        if capacity is None:
            return None

        taken = await self.store.count(PURCHASES, {"product_id": product_id})
        return max(0, capacity - taken)

    @asynccontextmanager
    async def seat(self, product_id: str, capacity: Optional[int]) -> AsyncIterator[Optional[int]]:
        """Hold the product lock while a purchase is created for the checked seat.

        Yields the remaining seats before the new purchase; raises
        CapacityExceededError when none are left.
        """
        async with self.store.product_lock(product_id):
            remaining = await self.remaining(product_id, capacity)
            if remaining is not None and remaining <= 0:
                logger.info(f"Event {product_id} is full ({capacity} seats)")
                raise CapacityExceededError(product_id, capacity)
            yield remaining
