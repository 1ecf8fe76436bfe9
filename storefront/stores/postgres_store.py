# storefront/stores/postgres_store.py
import asyncpg
import logging
import re
import uuid
from contextlib import asynccontextmanager
from contextvars import ContextVar
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence, Tuple
from ..database.database import Database
from ..errors import NotFoundError, StoreUnavailableError, ValidationError
from .interfaces import COLLECTIONS, RecordStore

logger = logging.getLogger(__name__)

IDENTIFIER = re.compile(r"^[a-z_][a-z0-9_]*$")

# failures of the backend itself, as opposed to rejected data
UNAVAILABLE_ERRORS = (
    asyncpg.PostgresConnectionError,
    asyncpg.InterfaceError,
    asyncpg.InsufficientResourcesError,
    OSError,
)

# connection holding the product lock of the current task
_lock_connection: ContextVar[Optional[asyncpg.Connection]] = ContextVar("lock_connection", default=None)

def _identifier(name: str) -> str:
    if not IDENTIFIER.match(name):
        raise ValueError(f"Invalid identifier: {name}")
    return name

def _table(collection: str) -> str:
    if collection not in COLLECTIONS:
        raise ValueError(f"Unknown collection: {collection}")
    return collection

def _is_uuid(value: str) -> bool:
    try:
        uuid.UUID(str(value))
    except ValueError:
        return False
    return True

def build_where(filters: Optional[Dict[str, Any]], start: int = 1) -> Tuple[str, List[Any]]:
    """Render equality filters as a WHERE clause with positional params."""
    if not filters:
        return "", []

    parts = []
    params: List[Any] = []
    for column, value in filters.items():
        if value is None:
            parts.append(f"{_identifier(column)} IS NULL")
            continue
        params.append(value)
        parts.append(f"{_identifier(column)} = ${start + len(params) - 1}")
    return " WHERE " + " AND ".join(parts), params

def build_assignments(patch: Dict[str, Any], start: int = 1) -> Tuple[str, List[Any]]:
    """Render a SET clause with positional params."""
    columns = list(patch)
    clause = ", ".join(
        f"{_identifier(column)} = ${start + index}" for index, column in enumerate(columns)
    )
    return clause, [patch[column] for column in columns]

def _to_record(row: Optional[asyncpg.Record]) -> Optional[Dict[str, Any]]:
    if row is None:
        return None
    return {
        key: str(value) if isinstance(value, uuid.UUID) else value
        for key, value in dict(row).items()
    }

class PostgresRecordStore(RecordStore):
    """RecordStore backed by the Database connection pool.

    Inside product_lock every operation of the task runs on the connection
    that holds the lock, in its transaction.
    """

    def __init__(self, db: Database) -> None:
        self.db = db

    @asynccontextmanager
    async def _connection(self) -> AsyncIterator[asyncpg.Connection]:
        conn = _lock_connection.get()
        if conn is not None:
            yield conn
            return
        async with self.db.pool.acquire() as conn:
            yield conn

    @asynccontextmanager
    async def _guard(self, operation: str) -> AsyncIterator[None]:
        try:
            yield
        except asyncpg.UniqueViolationError as e:
            raise ValidationError("Record already exists", [{"detail": e.detail}]) from e
        except asyncpg.ForeignKeyViolationError as e:
            raise ValidationError("Referenced record does not exist", [{"detail": e.detail}]) from e
        except asyncpg.CheckViolationError as e:
            raise ValidationError("Record violates a constraint", [{"detail": e.detail}]) from e
        except asyncpg.DataError as e:
            raise ValidationError(f"Invalid value during {operation}") from e
        except UNAVAILABLE_ERRORS as e:
            logger.error(f"Database error during {operation}: {e}")
            raise StoreUnavailableError(operation) from e

    async def _fetch(self, operation: str, query: str, params: Sequence[Any]) -> List[Dict[str, Any]]:
        async with self._guard(operation):
            async with self._connection() as conn:
                rows = await conn.fetch(query, *params)
        return [_to_record(row) for row in rows]

    async def _fetchrow(self, operation: str, query: str, params: Sequence[Any]) -> Optional[Dict[str, Any]]:
        async with self._guard(operation):
            async with self._connection() as conn:
                row = await conn.fetchrow(query, *params)
        return _to_record(row)

    async def insert(self, collection: str, record: Dict[str, Any]) -> Dict[str, Any]:
        table = _table(collection)
        columns = [_identifier(column) for column in record]
        placeholders = ", ".join(f"${index}" for index in range(1, len(columns) + 1))
        query = f"""
            INSERT INTO {table} ({', '.join(columns)})
            VALUES ({placeholders})
            RETURNING *
        """
        return await self._fetchrow(f"insert into {table}", query, list(record.values()))

    async def get(self, collection: str, record_id: str) -> Dict[str, Any]:
        table = _table(collection)
        if not _is_uuid(record_id):
            raise NotFoundError(collection, record_id)

        record = await self._fetchrow(
            f"get from {table}",
            f"SELECT * FROM {table} WHERE id = $1",
            [record_id],
        )
        if record is None:
            raise NotFoundError(collection, record_id)
        return record

    async def query(
        self,
        collection: str,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[Dict[str, Any]]:
        table = _table(collection)
        where, params = build_where(filters)
        query = f"SELECT * FROM {table}{where}"
        if order_by:
            query += f" ORDER BY {_identifier(order_by)} {'DESC' if descending else 'ASC'}"
        return await self._fetch(f"query {table}", query, params)

    async def update(
        self,
        collection: str,
        record_id: str,
        patch: Dict[str, Any],
        conditions: Optional[Dict[str, Any]] = None,
    ) -> Optional[Dict[str, Any]]:
        table = _table(collection)
        if not _is_uuid(record_id):
            raise NotFoundError(collection, record_id)

        assignments, params = build_assignments(patch)
        where, where_params = build_where({"id": record_id, **(conditions or {})}, start=len(params) + 1)
        query = f"UPDATE {table} SET {assignments}{where} RETURNING *"
        record = await self._fetchrow(f"update {table}", query, params + where_params)
        if record is not None:
            return record

        # tell a missing row apart from a failed condition
        await self.get(collection, record_id)
        return None

    async def delete(self, collection: str, record_id: str) -> bool:
        table = _table(collection)
        if not _is_uuid(record_id):
            return False

        async with self._guard(f"delete from {table}"):
            async with self._connection() as conn:
                result = await conn.execute(f"DELETE FROM {table} WHERE id = $1", record_id)
        return result == "DELETE 1"

    async def count(self, collection: str, filters: Optional[Dict[str, Any]] = None) -> int:
        table = _table(collection)
        where, params = build_where(filters)
        async with self._guard(f"count {table}"):
            async with self._connection() as conn:
                return await conn.fetchval(f"SELECT COUNT(*) FROM {table}{where}", *params)

    @asynccontextmanager
    async def product_lock(self, product_id: str) -> AsyncIterator[None]:
        if _lock_connection.get() is not None:
            raise RuntimeError("product_lock does not nest")

        # transaction scoped advisory lock, released on commit or rollback
        async with self._guard("product lock"):
            async with self.db.pool.acquire() as conn:
                async with conn.transaction():
                    await conn.execute("SELECT pg_advisory_xact_lock(hashtext($1))", product_id)
                    token = _lock_connection.set(conn)
                    try:
                        yield
                    finally:
                        _lock_connection.reset(token)

    async def close(self) -> None:
        await self.db.close()
