# storefront/services/download_service.py
import logging
from typing import Tuple
from ..config import Config
from ..errors import ValidationError
from ..models.product import ProductType
from ..models.purchase import PaymentStatus, Purchase
from ..stores.interfaces import RecordStore
from ..utils.security import generate_download_token, verify_download_token
from .file_service import BlobStore
from .product_service import ProductService
from .purchase_service import PurchaseService

logger = logging.getLogger(__name__)

class DownloadService:
    """Delivery of digital content to buyers with a completed purchase"""

    def __init__(self, store: RecordStore, blobs: BlobStore):
        self.blobs = blobs
        self.product_service = ProductService(store, blobs)
        self.purchase_service = PurchaseService(store)

    async def _downloadable(self, purchase_id: str) -> Purchase:
        purchase = await self.purchase_service.get(purchase_id)
        if purchase.payment_status != PaymentStatus.COMPLETED:
            raise ValidationError("Purchase has not been paid")

        product = await self.product_service.get_product_record(purchase.product_id)
        if product.type != ProductType.DIGITAL_CONTENT:
            raise ValidationError("Purchase is not for downloadable content")
        return purchase

    async def issue_token(self, purchase_id: str) -> str:
        """Download token for a completed digital content purchase"""
        await self._downloadable(purchase_id)
        return generate_download_token(purchase_id)

    def verify_token(self, token: str):
        return verify_download_token(token, max_age=Config.DOWNLOAD_TOKEN_TTL)

    async def fetch(self, token: str) -> Tuple[str, bytes]:
        """File name and content for a valid token"""
        purchase_id = self.verify_token(token)
        if purchase_id is None:
            raise ValidationError("Download link is invalid or has expired")

        purchase = await self._downloadable(purchase_id)
        details = await self.product_service.get_digital_content_details(purchase.product_id)
        content = await self.blobs.download(
            self.product_service.bucket, self.blobs.key_from_url(details.file_url)
        )
        logger.info(f"Purchase {purchase_id} downloaded {details.file_name}")
        return details.file_name, content
