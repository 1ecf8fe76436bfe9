# storefront/stores/interfaces.py
from abc import ABC, abstractmethod
from typing import Any, AsyncContextManager, Dict, List, Optional

PRODUCTS = "products"
EVENT_DETAILS = "event_details"
DIGITAL_CONTENT_DETAILS = "digital_content_details"
PURCHASES = "purchases"
DISCOUNT_CODES = "discount_codes"

COLLECTIONS = (
    PRODUCTS,
    EVENT_DETAILS,
    DIGITAL_CONTENT_DETAILS,
    PURCHASES,
    DISCOUNT_CODES,
)

class RecordStore(ABC):
    """Record storage over named collections, exchanging plain dict records.

    Every method raises StoreUnavailableError when the backend cannot be
    reached, and NotFoundError for a missing id where noted.
    """

    @abstractmethod
    async def insert(self, collection: str, record: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a record and return it with its id and created_at."""
        ...

    @abstractmethod
    async def get(self, collection: str, record_id: str) -> Dict[str, Any]:
        """Return a record by id, raising NotFoundError if it does not exist."""
        ...

    @abstractmethod
    async def query(
        self,
        collection: str,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[Dict[str, Any]]:
        """Return records whose fields equal every value in filters."""
        ...

    @abstractmethod
    async def update(
        self,
        collection: str,
        record_id: str,
        patch: Dict[str, Any],
        conditions: Optional[Dict[str, Any]] = None,
    ) -> Optional[Dict[str, Any]]:
        """Apply patch and return the updated record.

        When conditions are given the update is applied atomically only if the
        stored record matches them; otherwise None is returned and nothing
        changes. Raises NotFoundError if the id does not exist.
        """
        ...

    @abstractmethod
    async def delete(self, collection: str, record_id: str) -> bool:
        """Delete a record, returning False if it did not exist."""
        ...

    @abstractmethod
    async def count(self, collection: str, filters: Optional[Dict[str, Any]] = None) -> int:
        """Count records whose fields equal every value in filters."""
        ...

    @abstractmethod
    def product_lock(self, product_id: str) -> AsyncContextManager[None]:
        """Serialize work scoped to one product (capacity check and create)."""
        ...

    async def close(self) -> None:
        """Release backend resources."""
        return None
