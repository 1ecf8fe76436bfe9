# storefront/stores/__init__.py
from .interfaces import (
    RecordStore,
    PRODUCTS,
    EVENT_DETAILS,
    DIGITAL_CONTENT_DETAILS,
    PURCHASES,
    DISCOUNT_CODES,
)
from .memory_store import MemoryRecordStore
from .postgres_store import PostgresRecordStore

__all__ = [
    'RecordStore',
    'MemoryRecordStore',
    'PostgresRecordStore',
    'PRODUCTS',
    'EVENT_DETAILS',
    'DIGITAL_CONTENT_DETAILS',
    'PURCHASES',
    'DISCOUNT_CODES',
]
