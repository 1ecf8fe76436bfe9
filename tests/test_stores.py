"""Tests for the record stores."""

import asyncio
import re
import uuid
from collections import defaultdict
from contextlib import asynccontextmanager

import pytest

from storefront.errors import CapacityExceededError, NotFoundError, ValidationError
from storefront.services.capacity_service import CapacityService
from storefront.stores.postgres_store import PostgresRecordStore, _identifier, build_assignments, build_where


class TestMemoryRecordStore:
    """Tests for MemoryRecordStore"""

    async def test_insert_assigns_id_and_timestamp(self, store):
        record = await store.insert("discount_codes", {"code": "SAVE10", "discount_percentage": 10})
        assert record["id"]
        assert record["created_at"] is not None
        assert await store.get("discount_codes", record["id"]) == record

    async def test_records_are_copies(self, store):
        record = await store.insert("products", {"title": "Guide", "price": 100})
        record["price"] = 0
        assert (await store.get("products", record["id"]))["price"] == 100

    async def test_missing_record(self, store):
        with pytest.raises(NotFoundError) as exc_info:
            await store.get("products", "missing")
        assert exc_info.value.collection == "products"
        with pytest.raises(NotFoundError):
            await store.update("products", "missing", {"price": 1})
        assert await store.delete("products", "missing") is False

    async def test_unique_discount_code(self, store):
        await store.insert("discount_codes", {"code": "SAVE10"})
        with pytest.raises(ValidationError):
            await store.insert("discount_codes", {"code": "SAVE10"})

    async def test_conditional_update(self, store):
        record = await store.insert("purchases", {"payment_status": "pending"})

        updated = await store.update(
            "purchases", record["id"], {"payment_status": "completed"},
            conditions={"payment_status": "pending"},
        )
        assert updated["payment_status"] == "completed"

        rejected = await store.update(
            "purchases", record["id"], {"payment_status": "failed"},
            conditions={"payment_status": "pending"},
        )
        assert rejected is None
        assert (await store.get("purchases", record["id"]))["payment_status"] == "completed"

    async def test_query_filters_and_orders(self, store):
        for price in (300, 100, 200):
            await store.insert("products", {"type": "event", "price": price})
        await store.insert("products", {"type": "digital_content", "price": 50})

        rows = await store.query("products", {"type": "event"}, order_by="price")
        assert [r["price"] for r in rows] == [100, 200, 300]
        assert await store.count("products", {"type": "event"}) == 3
        assert await store.count("products") == 4

    async def test_unknown_collection(self, store):
        with pytest.raises(ValueError):
            await store.insert("users", {})

    async def test_product_lock_serializes(self, store):
        order = []

        async def worker(name):
            async with store.product_lock("p1"):
                order.append(f"{name}-in")
                await asyncio.sleep(0)
                order.append(f"{name}-out")

        await asyncio.gather(worker("a"), worker("b"))
        assert order == ["a-in", "a-out", "b-in", "b-out"]

    async def test_deleting_a_product_drops_its_lock(self, store):
        product = await store.insert("products", {"type": "event", "price": 100})
        async with store.product_lock(product["id"]):
            pass
        assert product["id"] in store._locks

        assert await store.delete("products", product["id"]) is True
        assert product["id"] not in store._locks

    async def test_held_lock_survives_delete(self, store):
        product = await store.insert("products", {"type": "event", "price": 100})
        async with store.product_lock(product["id"]):
            await store.delete("products", product["id"])
            assert store._locks[product["id"]].locked()


class TestSqlBuilders:
    """Tests for the PostgreSQL query helpers"""

    def test_build_where(self):
        clause, params = build_where({"product_id": "p1", "discount_code": None})
        assert clause == " WHERE product_id = $1 AND discount_code IS NULL"
        assert params == ["p1"]

    def test_build_where_offset(self):
        clause, params = build_where({"id": "p1", "payment_status": "pending"}, start=3)
        assert clause == " WHERE id = $3 AND payment_status = $4"
        assert params == ["p1", "pending"]

    def test_build_where_empty(self):
        assert build_where(None) == ("", [])

    def test_build_assignments(self):
        clause, params = build_assignments({"payment_status": "completed", "payment_date": None})
        assert clause == "payment_status = $1, payment_date = $2"
        assert params == ["completed", None]

    @pytest.mark.parametrize("name", ["price; DROP TABLE products", "Price", "1price", ""])
    def test_rejects_unsafe_identifiers(self, name):
        with pytest.raises(ValueError):
            _identifier(name)


class FakeConnection:
    """asyncpg connection stand-in over FakeDatabase rows"""

    def __init__(self, db):
        self.db = db
        self.held = []

    @asynccontextmanager
    async def transaction(self):
        try:
            yield
        finally:
            for lock in self.held:
                lock.release()
            self.held.clear()

    def _log(self, query, args):
        self.db.queries.append((self, " ".join(query.split()), list(args)))

    async def execute(self, query, *args):
        await asyncio.sleep(0)
        self._log(query, args)
        if "pg_advisory_xact_lock" in query:
            lock = self.db.advisory_locks[args[0]]
            await lock.acquire()
            self.held.append(lock)
        return "SELECT 1"

    async def fetchval(self, query, *args):
        await asyncio.sleep(0)
        self._log(query, args)
        return sum(1 for row in self.db.rows if row.get("product_id") == args[0])

    async def fetchrow(self, query, *args):
        await asyncio.sleep(0)
        self._log(query, args)
        if query.strip().startswith("INSERT"):
            columns = [c.strip() for c in re.search(r"\(([^)]*)\)", query).group(1).split(",")]
            row = {"id": str(uuid.uuid4()), **dict(zip(columns, args))}
            self.db.rows.append(row)
            return row
        return self.db.results.pop(0)


class FakePool:
    def __init__(self, db, size):
        self.db = db
        self.slots = asyncio.Semaphore(size)

    @asynccontextmanager
    async def acquire(self):
        async with self.slots:
            yield FakeConnection(self.db)


class FakeDatabase:
    """Database with a bounded pool, enough for PostgresRecordStore"""

    def __init__(self, pool_size=2):
        self.pool = FakePool(self, pool_size)
        self.rows = []
        self.results = []
        self.queries = []
        self.advisory_locks = defaultdict(asyncio.Lock)


class TestPostgresRecordStore:
    """Tests for PostgresRecordStore against a bounded fake pool"""

    async def test_concurrent_seats_do_not_exhaust_the_pool(self):
        db = FakeDatabase(pool_size=2)
        store = PostgresRecordStore(db)
        product_id = str(uuid.uuid4())

        async def buy():
            async with CapacityService(store).seat(product_id, 1):
                await store.insert("purchases", {"product_id": product_id})

        results = await asyncio.wait_for(
            asyncio.gather(buy(), buy(), buy(), return_exceptions=True), timeout=2
        )

        assert sum(1 for r in results if r is None) == 1
        assert sum(1 for r in results if isinstance(r, CapacityExceededError)) == 2
        assert len(db.rows) == 1

    async def test_locked_operations_use_the_lock_connection(self):
        db = FakeDatabase(pool_size=1)
        store = PostgresRecordStore(db)

        async with store.product_lock("p1"):
            await asyncio.wait_for(store.count("purchases", {"product_id": "p1"}), timeout=1)
            await asyncio.wait_for(store.insert("purchases", {"product_id": "p1"}), timeout=1)

        connections = {conn for conn, _, _ in db.queries}
        assert len(connections) == 1
        assert db.queries[0][1] == "SELECT pg_advisory_xact_lock(hashtext($1))"

    async def test_product_lock_does_not_nest(self):
        store = PostgresRecordStore(FakeDatabase())
        async with store.product_lock("p1"):
            with pytest.raises(RuntimeError):
                async with store.product_lock("p2"):
                    pass

    async def test_conditional_update_sql(self):
        db = FakeDatabase()
        store = PostgresRecordStore(db)
        record_id = str(uuid.uuid4())
        db.results.append({"id": record_id, "payment_status": "completed"})

        updated = await store.update(
            "purchases", record_id, {"payment_status": "completed"},
            conditions={"payment_status": "pending"},
        )

        assert updated["payment_status"] == "completed"
        _, query, params = db.queries[-1]
        assert query == "UPDATE purchases SET payment_status = $1 WHERE id = $2 AND payment_status = $3 RETURNING *"
        assert params == ["completed", record_id, "pending"]

    async def test_failed_condition_returns_none(self):
        db = FakeDatabase()
        store = PostgresRecordStore(db)
        record_id = str(uuid.uuid4())
        db.results.extend([None, {"id": record_id, "payment_status": "completed"}])

        result = await store.update(
            "purchases", record_id, {"payment_status": "failed"},
            conditions={"payment_status": "pending"},
        )

        assert result is None
        assert db.queries[-1][1] == "SELECT * FROM purchases WHERE id = $1"

    async def test_update_of_missing_row(self):
        db = FakeDatabase()
        store = PostgresRecordStore(db)
        db.results.extend([None, None])

        with pytest.raises(NotFoundError):
            await store.update(
                "purchases", str(uuid.uuid4()), {"payment_status": "failed"},
                conditions={"payment_status": "pending"},
            )

    async def test_non_uuid_id_is_not_found(self):
        db = FakeDatabase()
        store = PostgresRecordStore(db)

        with pytest.raises(NotFoundError):
            await store.get("products", "p1")
        assert await store.delete("products", "p1") is False
        assert db.queries == []
