# storefront/services/admin_service.py
import logging
from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Union
from urllib.parse import urlencode
from ..config import Config
from ..errors import AuthenticationRequiredError
from ..models.admin import (
    AuthContext,
    ClientRegistration,
    ProductPurchases,
    PurchaseListing,
    PurchaseSummary,
    RegistrationResult,
)
from ..models.discount import DiscountCode
from ..models.product import CatalogEntry, Product, ProductType
from ..models.purchase import CustomerInfo, PaymentMethod, PaymentStatus, Purchase
from ..stores.interfaces import PRODUCTS, RecordStore
from ..utils.validation import parse_input
from .capacity_service import CapacityService
from .discount_service import DiscountService
from .file_service import BlobStore, ProgressCallback
from .product_service import ProductService
from .purchase_service import PurchaseService
from .report_service import ReportService

logger = logging.getLogger(__name__)

def build_payment_link(product: Product, purchase: Purchase, base_url: Optional[str] = None) -> str:
    """Link sent to an offline client to pay for a registration"""
    query = urlencode({
        "productId": product.id,
        "productType": product.type.value,
        "originalPrice": product.price,
        "purchaseId": purchase.id,
    })
    return f"{(base_url or Config.BASE_URL).rstrip('/')}/payment?{query}"

def summarize(purchases: List[Purchase]) -> PurchaseSummary:
    summary = PurchaseSummary(total=len(purchases))
    for purchase in purchases:
        if purchase.payment_status == PaymentStatus.COMPLETED:
            summary.completed += 1
        elif purchase.payment_status == PaymentStatus.FAILED:
            summary.failed += 1
        else:
            summary.pending += 1
    summary.revenue = PurchaseService.revenue(purchases)
    return summary

class AdminService:
    """Seller operations, every one gated on an authenticated context"""

    def __init__(self, store: RecordStore, blobs: Optional[BlobStore] = None):
        self.store = store
        self.product_service = ProductService(store, blobs)
        self.purchase_service = PurchaseService(store)
        self.capacity_service = CapacityService(store)
        self.discount_service = DiscountService(store)
        self.report_service = ReportService(store)

    @staticmethod
    def _require(auth: AuthContext) -> None:
        if auth is None or not auth.is_authenticated:
            raise AuthenticationRequiredError()

    # --- clients and purchases ---------------------------------------------

    async def register_client(self, auth: AuthContext, product_id: str,
                              data: Union[ClientRegistration, Mapping[str, Any]]) -> RegistrationResult:
        """Register an offline client as a pending cash purchase at full price"""
        self._require(auth)
        client = parse_input(ClientRegistration, data, "Invalid client")
        product = await self.product_service.get_product_record(product_id)

        customer = CustomerInfo(
            name=client.name,
            email=client.email,
            phone=client.phone,
            address=client.address,
        )

        remaining = None
        if product.type == ProductType.EVENT:
            event = await self.product_service.get_event_details(product.id)
            async with self.capacity_service.seat(product.id, event.capacity) as remaining:
                purchase = await self._create_registration(product, customer)
            if remaining is not None:
                remaining -= 1
        else:
            purchase = await self._create_registration(product, customer)

        logger.info(f"Admin {auth.user_id} registered {client.email} for product {product.id}")
        return RegistrationResult(
            purchase=purchase,
            payment_link=build_payment_link(product, purchase),
            remaining_capacity=remaining,
        )

    async def _create_registration(self, product: Product, customer: CustomerInfo) -> Purchase:
        return await self.purchase_service.create(
            product_id=product.id,
            customer=customer,
            original_price=product.price,
            final_price=product.price,
            discount_code=None,
            payment_method=PaymentMethod.CASH,
        )

    async def list_purchases(self, auth: AuthContext) -> List[PurchaseListing]:
        """All purchases, newest first, with their product titles"""
        self._require(auth)
        purchases = await self.purchase_service.list_all()
        products: Dict[str, Dict[str, Any]] = {
            row["id"]: row for row in await self.store.query(PRODUCTS)
        }

        listings = []
        for purchase in purchases:
            product = products.get(purchase.product_id)
            listings.append(PurchaseListing(
                purchase=purchase,
                product_title=product["title"] if product else None,
                product_type=product["type"] if product else None,
            ))
        return listings

    async def product_purchases(self, auth: AuthContext, product_id: str) -> ProductPurchases:
        """One product with its purchases and totals"""
        self._require(auth)
        entry = await self.product_service.get_product(product_id)
        purchases = await self.purchase_service.list_by_product(product_id)
        return ProductPurchases(entry=entry, purchases=purchases, summary=summarize(purchases))

    # --- products ----------------------------------------------------------

    async def list_products(self, auth: AuthContext,
                            product_type: Optional[ProductType] = None) -> List[CatalogEntry]:
        self._require(auth)
        return await self.product_service.list_catalog(product_type)

    async def get_product(self, auth: AuthContext, product_id: str) -> CatalogEntry:
        self._require(auth)
        return await self.product_service.get_product(product_id)

    async def create_event(self, auth: AuthContext, data: Mapping[str, Any]) -> CatalogEntry:
        self._require(auth)
        return await self.product_service.create_event(data)

    async def update_event(self, auth: AuthContext, product_id: str,
                           data: Mapping[str, Any]) -> CatalogEntry:
        self._require(auth)
        return await self.product_service.update_event(product_id, data)

    async def create_digital_content(self, auth: AuthContext, data: Mapping[str, Any],
                                     file_name: str, content: bytes,
                                     progress: Optional[ProgressCallback] = None) -> CatalogEntry:
        self._require(auth)
        return await self.product_service.create_digital_content(data, file_name, content, progress)

    async def update_digital_content(self, auth: AuthContext, product_id: str,
                                     data: Mapping[str, Any], file_name: Optional[str] = None,
                                     content: Optional[bytes] = None,
                                     progress: Optional[ProgressCallback] = None) -> CatalogEntry:
        self._require(auth)
        return await self.product_service.update_digital_content(
            product_id, data, file_name, content, progress
        )

    async def delete_product(self, auth: AuthContext, product_id: str) -> int:
        self._require(auth)
        return await self.product_service.delete_product(product_id)

    # --- discount codes ----------------------------------------------------

    async def list_discount_codes(self, auth: AuthContext) -> List[DiscountCode]:
        self._require(auth)
        return await self.discount_service.list_codes()

    async def create_discount_code(self, auth: AuthContext, code: str,
                                   discount_percentage: int) -> DiscountCode:
        self._require(auth)
        return await self.discount_service.create_code(code, discount_percentage)

    async def toggle_discount_code(self, auth: AuthContext, code_id: str) -> DiscountCode:
        self._require(auth)
        return await self.discount_service.toggle_active(code_id)

    # --- reports -----------------------------------------------------------

    async def sales_summary(self, auth: AuthContext, start: Optional[date] = None,
                            end: Optional[date] = None) -> Dict[str, Any]:
        self._require(auth)
        return await self.report_service.summary(start, end)

    async def export_sales(self, auth: AuthContext, start: Optional[date] = None,
                           end: Optional[date] = None) -> bytes:
        self._require(auth)
        return await self.report_service.export_excel(start, end)
