"""Pytest configuration and shared fixtures."""

from datetime import datetime, timezone

import pytest

from storefront.app import Storefront
from storefront.models import AuthContext, PaymentMethod
from storefront.services.file_service import LocalBlobStore
from storefront.stores import MemoryRecordStore

EVENT_DATE = datetime(2030, 3, 14, 19, 0, tzinfo=timezone.utc)


@pytest.fixture
def store() -> MemoryRecordStore:
    return MemoryRecordStore()


@pytest.fixture
def blobs(tmp_path) -> LocalBlobStore:
    return LocalBlobStore(
        root=tmp_path / "uploads",
        public_url="http://files.test",
        max_size=1024 * 1024,
    )


@pytest.fixture
def storefront(store, blobs) -> Storefront:
    return Storefront(store, blobs)


@pytest.fixture
def admin() -> AuthContext:
    return AuthContext.authenticated("seller-1")


@pytest.fixture
def anonymous() -> AuthContext:
    return AuthContext.anonymous()


@pytest.fixture
def make_event(storefront):
    """Factory for event products."""

    async def _make(price=9000, capacity=None, title="Intro to pottery", **details):
        data = {
            "title": title,
            "description": "Hands-on evening class",
            "price": price,
            "event_date": EVENT_DATE,
            "duration_minutes": 90,
            "capacity": capacity,
            "location": "Av. Italia 1234",
        }
        data.update(details)
        return await storefront.products.create_event(data)

    return _make


@pytest.fixture
def make_digital(storefront):
    """Factory for digital content products with a small stored file."""

    async def _make(price=5000, title="Sourdough guide", file_name="guide.pdf",
                    content=b"%PDF-1.4 sourdough"):
        data = {"title": title, "description": "Printable guide", "price": price}
        return await storefront.products.create_digital_content(data, file_name, content)

    return _make


@pytest.fixture
def make_code(storefront):
    """Factory for discount codes, optionally deactivated."""

    async def _make(code="SAVE10", percentage=10, active=True):
        discount = await storefront.discounts.create_code(code, percentage)
        if not active:
            discount = await storefront.discounts.set_active(discount.id, False)
        return discount

    return _make


@pytest.fixture
def buyer():
    return {
        "buyer_name": "Ana Rojas",
        "buyer_email": "ana@example.com",
        "buyer_phone": "+56912345678",
        "buyer_address": "Calle Larga 55",
    }


@pytest.fixture
def checkout_request(buyer):
    """Builds a checkout request for a catalog entry."""

    def _build(entry, payment_method=PaymentMethod.CARD, **overrides):
        data = {
            "product_id": entry.product.id,
            "product_type": entry.product.type,
            "payment_method": payment_method,
            **buyer,
        }
        data.update(overrides)
        return data

    return _build
