"""
Typed access to the assistant's persisted collections.

Each collection lives under a fixed namespaced key and is stored as
JSON. Reads degrade to empty/default values instead of raising, so a
corrupted entry never takes the app down; writes raise StorageError
so the caller can tell the user their change was not saved.
"""

from enum import Enum
from typing import Optional, TypeVar

import structlog
from pydantic import TypeAdapter, ValidationError

from src.models.records import Event, Message, Transaction, UserProfile
from src.services.storage.interface import KeyValueStore, StorageError

T = TypeVar("T")

logger = structlog.get_logger(__name__)


class StorageKey(str, Enum):
    """Namespaced keys in the key-value store."""
    MESSAGES = "@ai_assistant_messages"
    EVENTS = "@ai_assistant_events"
    TRANSACTIONS = "@ai_assistant_transactions"
    USER_PROFILE = "@ai_assistant_user_profile"


_MESSAGES = TypeAdapter(list[Message])
_EVENTS = TypeAdapter(list[Event])
_TRANSACTIONS = TypeAdapter(list[Transaction])


class AssistantStorage:
    """
    Messages, events, transactions and the user profile.

    Wraps any KeyValueStore backend.
    """

    def __init__(self, store: KeyValueStore):
        self._store = store

    async def _read(self, key: StorageKey, adapter: TypeAdapter, default: T) -> T:
        try:
            raw = await self._store.get_item(key.value)
        except StorageError as e:
            logger.error("storage_read_failed", key=key.value, error=str(e))
            return default
        if raw is None:
            return default
        try:
            return adapter.validate_json(raw)
        except ValidationError as e:
            logger.error(
                "storage_value_invalid",
                key=key.value,
                error_count=e.error_count(),
            )
            return default

    async def _write(self, key: StorageKey, adapter: TypeAdapter, value) -> None:
        payload = adapter.dump_json(value).decode("utf-8")
        try:
            await self._store.set_item(key.value, payload)
        except StorageError as e:
            logger.error("storage_write_failed", key=key.value, error=str(e))
            raise

    async def get_messages(self) -> list[Message]:
        return await self._read(StorageKey.MESSAGES, _MESSAGES, [])

    async def save_messages(self, messages: list[Message]) -> None:
        await self._write(StorageKey.MESSAGES, _MESSAGES, messages)

    async def get_events(self) -> list[Event]:
        return await self._read(StorageKey.EVENTS, _EVENTS, [])

    async def save_events(self, events: list[Event]) -> None:
        await self._write(StorageKey.EVENTS, _EVENTS, events)

    async def get_transactions(self) -> list[Transaction]:
        return await self._read(StorageKey.TRANSACTIONS, _TRANSACTIONS, [])

    async def save_transactions(self, transactions: list[Transaction]) -> None:
        await self._write(StorageKey.TRANSACTIONS, _TRANSACTIONS, transactions)

    async def get_user_profile(self) -> Optional[UserProfile]:
        return await self._read(
            StorageKey.USER_PROFILE, TypeAdapter(UserProfile), None
        )

    async def save_user_profile(self, profile: UserProfile) -> None:
        await self._write(StorageKey.USER_PROFILE, TypeAdapter(UserProfile), profile)

    async def clear_all(self) -> list[str]:
        """
        Remove every namespaced key.

        Returns the keys that were cleared.
        """
        keys = [key.value for key in StorageKey]
        try:
            await self._store.multi_remove(keys)
        except StorageError as e:
            logger.error("storage_clear_failed", error=str(e))
            raise
        logger.info("storage_cleared", keys=keys)
        return keys
