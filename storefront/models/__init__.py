# storefront/models/__init__.py
from .base import TimeStampedModel
from .product import (
    ProductType,
    Product,
    EventDetails,
    DigitalContentDetails,
    CatalogEntry,
    EventInput,
    DigitalContentInput,
)
from .discount import DiscountCode, DiscountCodeInput, PricePreview
from .purchase import (
    PaymentStatus,
    PaymentMethod,
    PaymentVerdict,
    Purchase,
    CustomerInfo,
)
from .checkout import CheckoutRequest, CheckoutResult
from .admin import (
    AuthContext,
    ClientRegistration,
    RegistrationResult,
    PurchaseListing,
    PurchaseSummary,
    ProductPurchases,
)

__all__ = [
    'TimeStampedModel',
    'ProductType',
    'Product',
    'EventDetails',
    'DigitalContentDetails',
    'CatalogEntry',
    'EventInput',
    'DigitalContentInput',
    'DiscountCode',
    'DiscountCodeInput',
    'PricePreview',
    'PaymentStatus',
    'PaymentMethod',
    'PaymentVerdict',
    'Purchase',
    'CustomerInfo',
    'CheckoutRequest',
    'CheckoutResult',
    'AuthContext',
    'ClientRegistration',
    'RegistrationResult',
    'PurchaseListing',
    'PurchaseSummary',
    'ProductPurchases',
]
