"""Tests for the purchase ledger."""

import pytest

from storefront.errors import InvalidTransitionError, NotFoundError, ValidationError
from storefront.models import CustomerInfo, PaymentMethod, PaymentStatus


@pytest.fixture
def customer():
    return CustomerInfo(name="Ana Rojas", email="ana@example.com", phone="+56912345678")


@pytest.fixture
def create_purchase(storefront, customer):
    async def _create(product_id, original_price=9000, final_price=9000, discount_code=None,
                      payment_method=PaymentMethod.CARD):
        return await storefront.purchases.create(
            product_id, customer, original_price, final_price, discount_code, payment_method
        )
    return _create


class TestCreate:
    """Tests for PurchaseService.create"""

    async def test_creates_pending_purchase(self, make_digital, create_purchase):
        entry = await make_digital(price=9000)

        purchase = await create_purchase(entry.product.id, 9000, 8100, "SAVE10")

        assert purchase.payment_status == PaymentStatus.PENDING
        assert purchase.payment_date is None
        assert purchase.original_price == 9000
        assert purchase.final_price == 8100
        assert purchase.discount_code == "SAVE10"
        assert purchase.discount_amount == 900
        assert purchase.customer_email == "ana@example.com"

    async def test_final_price_above_original_is_rejected(self, make_digital, create_purchase, store):
        entry = await make_digital(price=9000)
        with pytest.raises(ValidationError):
            await create_purchase(entry.product.id, 9000, 9001)
        assert await store.count("purchases") == 0

    async def test_negative_final_price_is_rejected(self, make_digital, create_purchase):
        entry = await make_digital(price=9000)
        with pytest.raises(ValidationError):
            await create_purchase(entry.product.id, 9000, -1)

    async def test_unknown_product_is_rejected(self, create_purchase, store):
        with pytest.raises(ValidationError):
            await create_purchase("no-such-product")
        assert await store.count("purchases") == 0


class TestFinalize:
    """Tests for PurchaseService.finalize"""

    async def test_completed_sets_payment_date(self, storefront, make_digital, create_purchase):
        entry = await make_digital()
        purchase = await create_purchase(entry.product.id, 5000, 5000)

        finalized = await storefront.purchases.finalize(purchase.id, PaymentStatus.COMPLETED)

        assert finalized.payment_status == PaymentStatus.COMPLETED
        assert finalized.payment_date is not None
        assert finalized.is_completed

    async def test_failed_leaves_payment_date_empty(self, storefront, make_digital, create_purchase):
        entry = await make_digital()
        purchase = await create_purchase(entry.product.id, 5000, 5000)

        finalized = await storefront.purchases.finalize(purchase.id, PaymentStatus.FAILED)

        assert finalized.payment_status == PaymentStatus.FAILED
        assert finalized.payment_date is None

    @pytest.mark.parametrize("first, second", [
        (PaymentStatus.COMPLETED, PaymentStatus.FAILED),
        (PaymentStatus.COMPLETED, PaymentStatus.COMPLETED),
        (PaymentStatus.FAILED, PaymentStatus.COMPLETED),
    ])
    async def test_second_finalize_is_rejected(self, storefront, make_digital, create_purchase,
                                               first, second):
        """The first outcome sticks."""
        entry = await make_digital()
        purchase = await create_purchase(entry.product.id, 5000, 5000)
        await storefront.purchases.finalize(purchase.id, first)

        with pytest.raises(InvalidTransitionError) as exc_info:
            await storefront.purchases.finalize(purchase.id, second)

        assert exc_info.value.current == first.value
        stored = await storefront.purchases.get(purchase.id)
        assert stored.payment_status == first

    async def test_pending_is_not_an_outcome(self, storefront, make_digital, create_purchase):
        entry = await make_digital()
        purchase = await create_purchase(entry.product.id, 5000, 5000)
        with pytest.raises(ValidationError):
            await storefront.purchases.finalize(purchase.id, PaymentStatus.PENDING)

    async def test_missing_purchase(self, storefront):
        with pytest.raises(NotFoundError):
            await storefront.purchases.finalize("missing", PaymentStatus.COMPLETED)


class TestListing:
    """Tests for purchase listings and revenue"""

    async def test_lists_newest_first(self, storefront, make_digital, create_purchase):
        guide = await make_digital(title="Sourdough guide")
        other = await make_digital(title="Pasta guide")
        first = await create_purchase(guide.product.id, 5000, 5000)
        second = await create_purchase(other.product.id, 5000, 5000)
        third = await create_purchase(guide.product.id, 5000, 4500)

        all_purchases = await storefront.purchases.list_all()
        assert [p.id for p in all_purchases] == [third.id, second.id, first.id]

        by_product = await storefront.purchases.list_by_product(guide.product.id)
        assert [p.id for p in by_product] == [third.id, first.id]
        assert await storefront.purchases.count_for_product(guide.product.id) == 2

    async def test_revenue_counts_completed_only(self, storefront, make_digital, create_purchase):
        entry = await make_digital()
        paid = await create_purchase(entry.product.id, 5000, 4500)
        declined = await create_purchase(entry.product.id, 5000, 5000)
        await create_purchase(entry.product.id, 5000, 5000)
        await storefront.purchases.finalize(paid.id, PaymentStatus.COMPLETED)
        await storefront.purchases.finalize(declined.id, PaymentStatus.FAILED)

        purchases = await storefront.purchases.list_all()
        assert storefront.purchases.revenue(purchases) == 4500
