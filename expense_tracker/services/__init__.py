"""Services package."""

from expense_tracker.services.insights import (
    AI_DISABLED_MESSAGE,
    InsightGenerationError,
    InsightService,
)
from expense_tracker.services.storage import (
    AuditStorageInterface,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    JsonLinesAuditStorage,
    KeyValueStoreInterface,
    LocalState,
    NotFoundError,
    StorageError,
)

__all__ = [
    # Insight services
    "AI_DISABLED_MESSAGE",
    "InsightGenerationError",
    "InsightService",
    # Storage services
    "AuditStorageInterface",
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "JsonLinesAuditStorage",
    "KeyValueStoreInterface",
    "LocalState",
    "NotFoundError",
    "StorageError",
]
