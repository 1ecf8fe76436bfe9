# storefront/app.py
import logging
from typing import Optional
from .config import Config
from .database.database import Database
from .services import (
    AdminService,
    CapacityService,
    CheckoutService,
    DiscountService,
    DownloadService,
    PaymentSimulator,
    ProductService,
    PurchaseService,
    ReportService,
)
from .services.file_service import BlobStore, LocalBlobStore
from .stores import MemoryRecordStore, PostgresRecordStore, RecordStore

logger = logging.getLogger(__name__)

class Storefront:
    def __init__(self, store: RecordStore, blobs: Optional[BlobStore] = None,
                 database: Optional[Database] = None):
        """Wire the services over one record store and one blob store"""
        self.store = store
        self.blobs = blobs or LocalBlobStore()
        self.database = database

        self.discounts = DiscountService(store)
        self.capacity = CapacityService(store)
        self.purchases = PurchaseService(store)
        self.payments = PaymentSimulator()
        self.products = ProductService(store, self.blobs)
        self.checkout = CheckoutService(store)
        self.downloads = DownloadService(store, self.blobs)
        self.reports = ReportService(store)
        self.admin = AdminService(store, self.blobs)

    @classmethod
    async def connect(cls, dsn: Optional[str] = None, run_migrations: bool = True) -> "Storefront":
        """Storefront backed by PostgreSQL and the local upload directory"""
        database = Database(dsn)
        await database.connect(run_migrations=run_migrations)
        logger.info("Storefront started")
        return cls(PostgresRecordStore(database), LocalBlobStore(Config.UPLOAD_DIR), database)

    @classmethod
    def in_memory(cls, blobs: Optional[BlobStore] = None) -> "Storefront":
        return cls(MemoryRecordStore(), blobs)

    async def close(self):
        await self.store.close()
        if self.database:
            await self.database.close()
        logger.info("Storefront stopped")
