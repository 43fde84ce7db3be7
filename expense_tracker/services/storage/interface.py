"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Keep the device-local JSON store today
2. Use in-memory storage for testing
3. Move license activations to a shared, authoritative store later
   without changing the licensing logic

The key-value interface is intentionally tiny: get/set of JSON values
under string keys, the same contract a browser's localStorage offers.
Reads never fail - a missing or unreadable value is simply absent.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from expense_tracker.models.audit import AuditEvent


class KeyValueStoreInterface(ABC):
    """
    Abstract interface for the device-local key-value store.

    Values are anything json.dumps accepts. A set() is durable before
    the next get() in the same process.
    """

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        """
        Read the value stored under key.

        Args:
            key: Storage key
            default: Returned when the key is absent or unreadable

        Returns:
            The decoded JSON value, or default
        """
        pass

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """
        Store a JSON-serializable value under key.

        Raises:
            StorageError: If the value cannot be serialized or written
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """
        Remove a key.

        Returns:
            True if the key existed
        """
        pass

    @abstractmethod
    def keys(self) -> list[str]:
        """All keys currently stored, sorted."""
        pass

    def __contains__(self, key: str) -> bool:
        return key in self.keys()


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[dict]:
        """
        Get the most recent audit events.

        Args:
            limit: Maximum number of events to return

        Returns:
            List of recent events as log dicts (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""

    def __init__(self, message: str, key: Optional[str] = None):
        super().__init__(message)
        self.key = key


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass
