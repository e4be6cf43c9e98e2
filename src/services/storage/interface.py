"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Keep the on-device JSON file for real use
2. Use in-memory storage for testing
3. Swap in a platform key-value store later
4. Keep business logic decoupled from storage implementation

The interface is intentionally tiny - a namespaced key-value store
holding serialized strings. Typed access lives in AssistantStorage.
"""

from abc import ABC, abstractmethod
from typing import Optional

from src.models.audit import AuditEvent


class KeyValueStore(ABC):
    """
    Abstract string key-value store.

    Single writer, last write wins. No locking.
    """

    @abstractmethod
    async def get_item(self, key: str) -> Optional[str]:
        """
        Read the raw value stored under a key.

        Returns:
            The stored string, or None if the key is absent

        Raises:
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    async def set_item(self, key: str, value: str) -> None:
        """
        Store a raw value under a key, replacing any previous value.

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def multi_remove(self, keys: list[str]) -> None:
        """
        Remove several keys at once. Missing keys are ignored.

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def keys(self) -> list[str]:
        """List the keys currently stored."""
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        """
        Get the most recent audit events (newest first).
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass
