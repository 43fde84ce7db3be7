"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Currently implements a device-local JSON store, but designed to be swappable.
"""

from expense_tracker.services.storage.interface import (
    AuditStorageInterface,
    KeyValueStoreInterface,
    NotFoundError,
    StorageError,
)
from expense_tracker.services.storage.local_store import (
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    JsonLinesAuditStorage,
)
from expense_tracker.services.storage.state import LocalState

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "KeyValueStoreInterface",
    # Exceptions
    "NotFoundError",
    "StorageError",
    # Local implementation
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "JsonLinesAuditStorage",
    "LocalState",
]
