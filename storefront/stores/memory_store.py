# storefront/stores/memory_store.py
import asyncio
import copy
import logging
import uuid
from collections import defaultdict
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Dict, List, Optional
from ..errors import NotFoundError, ValidationError
from .interfaces import COLLECTIONS, DISCOUNT_CODES, PRODUCTS, RecordStore

logger = logging.getLogger(__name__)

# field that must stay unique per collection
UNIQUE_FIELDS = {
    DISCOUNT_CODES: "code",
}

class MemoryRecordStore(RecordStore):
    """Dict-backed record store for tests and local runs, locks are per process"""

    def __init__(self) -> None:
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {
            name: {} for name in COLLECTIONS
        }
        self._locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    def _table(self, collection: str) -> Dict[str, Dict[str, Any]]:
        if collection not in self._collections:
            raise ValueError(f"Unknown collection: {collection}")
        return self._collections[collection]

    @staticmethod
    async def _round_trip() -> None:
        # give other tasks a chance to run, as a network call would
        await asyncio.sleep(0)

    @staticmethod
    def _matches(record: Dict[str, Any], filters: Optional[Dict[str, Any]]) -> bool:
        if not filters:
            return True
        return all(record.get(key) == value for key, value in filters.items())

    async def insert(self, collection: str, record: Dict[str, Any]) -> Dict[str, Any]:
        table = self._table(collection)
        await self._round_trip()

        unique_field = UNIQUE_FIELDS.get(collection)
        if unique_field and any(
            row.get(unique_field) == record.get(unique_field) for row in table.values()
        ):
            raise ValidationError(f"{unique_field} already exists")

        stored = copy.deepcopy(record)
        stored.setdefault("id", str(uuid.uuid4()))
        stored.setdefault("created_at", datetime.now(timezone.utc))
        table[stored["id"]] = stored
        logger.debug(f"Inserted {stored['id']} into {collection}")
        return copy.deepcopy(stored)

    async def get(self, collection: str, record_id: str) -> Dict[str, Any]:
        table = self._table(collection)
        await self._round_trip()
        record = table.get(record_id)
        if record is None:
            raise NotFoundError(collection, record_id)
        return copy.deepcopy(record)

    async def query(
        self,
        collection: str,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[Dict[str, Any]]:
        table = self._table(collection)
        await self._round_trip()
        rows = [row for row in table.values() if self._matches(row, filters)]
        if order_by:
            # ties keep insertion order relative to the requested direction
            if descending:
                rows.reverse()
            rows = sorted(rows, key=lambda row: row[order_by], reverse=descending)
        return [copy.deepcopy(row) for row in rows]

    async def update(
        self,
        collection: str,
        record_id: str,
        patch: Dict[str, Any],
        conditions: Optional[Dict[str, Any]] = None,
    ) -> Optional[Dict[str, Any]]:
        table = self._table(collection)
        await self._round_trip()
        record = table.get(record_id)
        if record is None:
            raise NotFoundError(collection, record_id)
        if not self._matches(record, conditions):
            return None
        record.update(copy.deepcopy(patch))
        return copy.deepcopy(record)

    async def delete(self, collection: str, record_id: str) -> bool:
        table = self._table(collection)
        await self._round_trip()
        removed = table.pop(record_id, None) is not None
        if collection == PRODUCTS:
            lock = self._locks.get(record_id)
            if lock is not None and not lock.locked():
                del self._locks[record_id]
        return removed

    async def count(self, collection: str, filters: Optional[Dict[str, Any]] = None) -> int:
        table = self._table(collection)
        await self._round_trip()
        return sum(1 for row in table.values() if self._matches(row, filters))

    @asynccontextmanager
    async def product_lock(self, product_id: str) -> AsyncIterator[None]:
        async with self._locks[product_id]:
            yield
