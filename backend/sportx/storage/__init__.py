"""Key/value storage backends selectable by name."""

from .areas import DatabaseStorageArea, StorageEventRelay
from .memory import MemoryStorage
from .service import StorageService
from .types import (
    StorageAccessError,
    StorageAdapter,
    StorageArea,
    StorageName,
    UnknownStorageError,
    WebStorageName,
    as_type_adapter,
)
from .web import WebStorage, serialize

__all__ = [
    "DatabaseStorageArea",
    "MemoryStorage",
    "StorageAccessError",
    "StorageAdapter",
    "StorageArea",
    "StorageEventRelay",
    "StorageName",
    "StorageService",
    "UnknownStorageError",
    "WebStorage",
    "WebStorageName",
    "as_type_adapter",
    "serialize",
]
