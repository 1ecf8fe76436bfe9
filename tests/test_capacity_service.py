"""Tests for event seat accounting."""

import pytest

from storefront.errors import CapacityExceededError
from storefront.models import CustomerInfo, PaymentMethod, PaymentStatus


@pytest.fixture
def reserve(storefront):
    """Create a purchase for a product, finalized to the given status."""

    async def _reserve(product_id, status=PaymentStatus.PENDING):
        purchase = await storefront.purchases.create(
            product_id, CustomerInfo(name="Guest", email="guest@example.com"),
            1000, 1000, None, PaymentMethod.CASH,
        )
        if status != PaymentStatus.PENDING:
            await storefront.purchases.finalize(purchase.id, status)
        return purchase

    return _reserve


class TestRemaining:
    """Tests for CapacityService.remaining"""

    async def test_unlimited_capacity(self, storefront, make_event, reserve):
        entry = await make_event(capacity=None)
        await reserve(entry.product.id)
        assert await storefront.capacity.remaining(entry.product.id, None) is None

    async def test_every_status_holds_a_seat(self, storefront, make_event, reserve):
        entry = await make_event(capacity=3)
        await reserve(entry.product.id, PaymentStatus.PENDING)
        await reserve(entry.product.id, PaymentStatus.COMPLETED)
        assert await storefront.capacity.remaining(entry.product.id, 3) == 1

        await reserve(entry.product.id, PaymentStatus.FAILED)
        assert await storefront.capacity.remaining(entry.product.id, 3) == 0

    async def test_never_negative(self, storefront, make_event, reserve):
        entry = await make_event(capacity=5)
        for _ in range(4):
            await reserve(entry.product.id)
        assert await storefront.capacity.remaining(entry.product.id, 2) == 0

    async def test_other_products_do_not_count(self, storefront, make_event, reserve):
        entry = await make_event(capacity=2)
        other = await make_event(capacity=2, title="Wheel throwing")
        await reserve(other.product.id)
        assert await storefront.capacity.remaining(entry.product.id, 2) == 2


class TestSeat:
    """Tests for CapacityService.seat"""

    async def test_yields_remaining_seats(self, storefront, make_event):
        entry = await make_event(capacity=2)
        async with storefront.capacity.seat(entry.product.id, 2) as remaining:
            assert remaining == 2

    async def test_full_event_raises(self, storefront, make_event, reserve):
        entry = await make_event(capacity=1)
        await reserve(entry.product.id)

        with pytest.raises(CapacityExceededError) as exc_info:
            async with storefront.capacity.seat(entry.product.id, 1):
                pass
        assert exc_info.value.capacity == 1

    async def test_catalog_reports_sold_out(self, storefront, make_event, reserve):
        entry = await make_event(capacity=1)
        assert not entry.is_sold_out
        await reserve(entry.product.id)

        entry = await storefront.products.get_product(entry.product.id)
        assert entry.remaining_capacity == 0
        assert entry.is_sold_out
