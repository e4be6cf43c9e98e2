"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Currently implements a JSON file on the device, but designed to be swappable.
"""

from src.services.storage.interface import (
    AuditStorageInterface,
    KeyValueStore,
    NotFoundError,
    StorageError,
)
from src.services.storage.local import (
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    JsonLinesAuditStorage,
)
from src.services.storage.assistant_storage import (
    AssistantStorage,
    StorageKey,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "KeyValueStore",
    # Exceptions
    "NotFoundError",
    "StorageError",
    # Implementations
    "AssistantStorage",
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "JsonLinesAuditStorage",
    "StorageKey",
]
