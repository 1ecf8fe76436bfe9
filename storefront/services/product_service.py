# storefront/services/product_service.py
import logging
import secrets
from datetime import datetime, timezone
from pathlib import PurePosixPath
from typing import Any, Dict, List, Mapping, Optional, Union
from ..config import Config
from ..errors import NotFoundError, ValidationError
from ..models.product import (
    CatalogEntry,
    DigitalContentDetails,
    DigitalContentInput,
    EventDetails,
    EventInput,
    Product,
    ProductType,
)
from ..stores.interfaces import (
    DIGITAL_CONTENT_DETAILS,
    EVENT_DETAILS,
    PRODUCTS,
    PURCHASES,
    RecordStore,
)
from ..utils.validation import parse_input
from .capacity_service import CapacityService
from .file_service import BlobStore, ProgressCallback

logger = logging.getLogger(__name__)

class ProductService:
    """Catalog reads and product authoring"""

    def __init__(self, store: RecordStore, blobs: Optional[BlobStore] = None):
        self.store = store
        self.blobs = blobs
        self.capacity_service = CapacityService(store)
        self.bucket = Config.DIGITAL_CONTENT_BUCKET

    # --- reads -------------------------------------------------------------

    async def get_product_record(self, product_id: str) -> Product:
        return Product.model_validate(await self.store.get(PRODUCTS, product_id))

    async def get_event_details(self, product_id: str) -> EventDetails:
        rows = await self.store.query(EVENT_DETAILS, {"product_id": product_id})
        if not rows:
            raise NotFoundError(EVENT_DETAILS, product_id)
        return EventDetails.model_validate(rows[0])

    async def get_digital_content_details(self, product_id: str) -> DigitalContentDetails:
        rows = await self.store.query(DIGITAL_CONTENT_DETAILS, {"product_id": product_id})
        if not rows:
            raise NotFoundError(DIGITAL_CONTENT_DETAILS, product_id)
        return DigitalContentDetails.model_validate(rows[0])

    async def _entry(self, product: Product) -> CatalogEntry:
        entry = CatalogEntry(product=product)
        if product.type == ProductType.EVENT:
            entry.event = await self.get_event_details(product.id)
            entry.remaining_capacity = await self.capacity_service.remaining(
                product.id, entry.event.capacity
            )
        else:
            entry.digital_content = await self.get_digital_content_details(product.id)
        return entry

    async def get_product(self, product_id: str) -> CatalogEntry:
        """Product with its details and, for events, the seats left"""
        return await self._entry(await self.get_product_record(product_id))

    async def list_catalog(self, product_type: Optional[ProductType] = None) -> List[CatalogEntry]:
        """Catalog, newest first"""
        filters = {"type": ProductType(product_type).value} if product_type else None
        rows = await self.store.query(PRODUCTS, filters, order_by="created_at", descending=True)

        entries = []
        for row in rows:
            try:
                entries.append(await self._entry(Product.model_validate(row)))
            except NotFoundError:
                # product saved without its details row
                logger.warning(f"Product {row['id']} has no details, skipped from catalog")
        return entries

    # --- authoring ---------------------------------------------------------

    @staticmethod
    def _event_record(data: EventInput) -> Dict[str, Any]:
        return {
            "event_date": data.event_date,
            "duration_minutes": data.duration_minutes,
            "capacity": data.capacity,
            "location": data.location,
            "meeting_url": str(data.meeting_url) if data.meeting_url else None,
        }

    async def create_event(self, data: Union[EventInput, Mapping[str, Any]]) -> CatalogEntry:
        """Create an event product and its details"""
        data = parse_input(EventInput, data, "Invalid event")

        product = await self.store.insert(PRODUCTS, {
            "type": ProductType.EVENT.value,
            "title": data.title,
            "description": data.description,
            "price": data.price,
        })
        try:
            await self.store.insert(EVENT_DETAILS, {
                "product_id": product["id"],
                **self._event_record(data),
            })
        except Exception:
            await self.store.delete(PRODUCTS, product["id"])
            raise

        logger.info(f"Event {product['id']} created: {data.title}")
        return await self.get_product(product["id"])

    def _require_blobs(self) -> BlobStore:
        if self.blobs is None:
            raise RuntimeError("ProductService was created without a blob store")
        return self.blobs

    @staticmethod
    def _blob_key(product_id: str, file_name: str) -> str:
        extension = PurePosixPath(file_name).suffix.lower()
        return f"{product_id}-{secrets.token_hex(6)}{extension}"

    async def create_digital_content(self, data: Union[DigitalContentInput, Mapping[str, Any]],
                                     file_name: str, content: bytes,
                                     progress: Optional[ProgressCallback] = None) -> CatalogEntry:
        """Create a digital content product and upload its file"""
        data = parse_input(DigitalContentInput, data, "Invalid digital content")
        if not file_name or not content:
            raise ValidationError("A file is required for digital content")
        blobs = self._require_blobs()

        product = await self.store.insert(PRODUCTS, {
            "type": ProductType.DIGITAL_CONTENT.value,
            "title": data.title,
            "description": data.description,
            "price": data.price,
        })
        key = self._blob_key(product["id"], file_name)
        try:
            file_url = await blobs.upload(self.bucket, key, content, progress)
            try:
                await self.store.insert(DIGITAL_CONTENT_DETAILS, {
                    "product_id": product["id"],
                    "file_name": file_name,
                    "file_url": file_url,
                })
            except Exception:
                await blobs.remove(self.bucket, key)
                raise
        except Exception:
            await self.store.delete(PRODUCTS, product["id"])
            raise

        logger.info(f"Digital content {product['id']} created: {data.title}")
        return await self.get_product(product["id"])

    async def _update_product(self, product_id: str, expected_type: ProductType,
                              data: Union[EventInput, DigitalContentInput]) -> Product:
        product = await self.get_product_record(product_id)
        if product.type != expected_type:
            raise ValidationError(f"Product {product_id} is not of type {expected_type.value}")

        record = await self.store.update(PRODUCTS, product_id, {
            "title": data.title,
            "description": data.description,
            "price": data.price,
            "updated_at": datetime.now(timezone.utc),
        })
        return Product.model_validate(record)

    async def update_event(self, product_id: str,
                           data: Union[EventInput, Mapping[str, Any]]) -> CatalogEntry:
        """Edit an event and its details"""
        data = parse_input(EventInput, data, "Invalid event")
        await self._update_product(product_id, ProductType.EVENT, data)

        details = await self.get_event_details(product_id)
        await self.store.update(EVENT_DETAILS, details.id, self._event_record(data))

        remaining = await self.capacity_service.remaining(product_id, data.capacity)
        if remaining == 0:
            logger.warning(f"Event {product_id} capacity set to {data.capacity}, no seats left")
        logger.info(f"Event {product_id} updated")
        return await self.get_product(product_id)

    async def update_digital_content(self, product_id: str,
                                     data: Union[DigitalContentInput, Mapping[str, Any]],
                                     file_name: Optional[str] = None,
                                     content: Optional[bytes] = None,
                                     progress: Optional[ProgressCallback] = None) -> CatalogEntry:
        """Edit digital content, optionally replacing its file"""
        data = parse_input(DigitalContentInput, data, "Invalid digital content")
        await self._update_product(product_id, ProductType.DIGITAL_CONTENT, data)

        if content:
            if not file_name:
                raise ValidationError("A file name is required when replacing the file")
            blobs = self._require_blobs()
            details = await self.get_digital_content_details(product_id)

            key = self._blob_key(product_id, file_name)
            file_url = await blobs.upload(self.bucket, key, content, progress)
            try:
                await self.store.update(DIGITAL_CONTENT_DETAILS, details.id, {
                    "file_name": file_name,
                    "file_url": file_url,
                })
            except Exception:
                await blobs.remove(self.bucket, key)
                raise
            await blobs.remove(self.bucket, blobs.key_from_url(details.file_url))

        logger.info(f"Digital content {product_id} updated")
        return await self.get_product(product_id)

    async def delete_product(self, product_id: str) -> int:
        """Delete a product with its details and purchases.

        Returns the number of purchases removed with it.
        """
        product = await self.get_product_record(product_id)

        purchases = await self.store.query(PURCHASES, {"product_id": product_id})
        for purchase in purchases:
            await self.store.delete(PURCHASES, purchase["id"])

        details_collection = (
            EVENT_DETAILS if product.type == ProductType.EVENT else DIGITAL_CONTENT_DETAILS
        )
        for details in await self.store.query(details_collection, {"product_id": product_id}):
            await self.store.delete(details_collection, details["id"])
            if product.type == ProductType.DIGITAL_CONTENT and self.blobs is not None:
                await self.blobs.remove(self.bucket, self.blobs.key_from_url(details["file_url"]))

        await self.store.delete(PRODUCTS, product_id)
        if purchases:
            logger.warning(f"Product {product_id} deleted with {len(purchases)} purchases")
        else:
            logger.info(f"Product {product_id} deleted")
        return len(purchases)
