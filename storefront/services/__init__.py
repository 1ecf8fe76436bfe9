# storefront/services/__init__.py
from .discount_service import DiscountService, calculate_discounted_price, normalize_code
from .capacity_service import CapacityService
from .purchase_service import PurchaseService
from .payment_service import PaymentSimulator, simulate_payment
from .file_service import BlobStore, LocalBlobStore
from .product_service import ProductService
from .checkout_service import CheckoutService
from .download_service import DownloadService
from .report_service import ReportService
from .admin_service import AdminService

__all__ = [
    'DiscountService',
    'calculate_discounted_price',
    'normalize_code',
    'CapacityService',
    'PurchaseService',
    'PaymentSimulator',
    'simulate_payment',
    'BlobStore',
    'LocalBlobStore',
    'ProductService',
    'CheckoutService',
    'DownloadService',
    'ReportService',
    'AdminService'
]
