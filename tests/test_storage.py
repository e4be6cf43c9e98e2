"""Tests for storage backends, typed storage and the audit log."""

import json
from datetime import datetime
from decimal import Decimal

import pytest

from src.audit import AuditLogger
from src.models import (
    AuditEventBuilder,
    AuditEventType,
    Event,
    Message,
    Transaction,
    TransactionType,
    UserProfile,
)
from src.services.storage import (
    AssistantStorage,
    AuditStorageInterface,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    JsonLinesAuditStorage,
    StorageError,
    StorageKey,
)


class FailingStore(InMemoryKeyValueStore):
    """Reads work, writes fail."""

    async def set_item(self, key, value):
        raise StorageError("disk full")

    async def multi_remove(self, keys):
        raise StorageError("disk full")


class UnreadableStore(InMemoryKeyValueStore):
    async def get_item(self, key):
        raise StorageError("locked")


class BrokenAuditStorage(AuditStorageInterface):
    async def append_event(self, event):
        raise OSError("read-only file system")

    async def get_recent_events(self, limit=100):
        return []


class TestAssistantStorage:
    """Tests for typed collection access."""

    async def test_empty_store_defaults(self, storage):
        assert await storage.get_messages() == []
        assert await storage.get_events() == []
        assert await storage.get_transactions() == []
        assert await storage.get_user_profile() is None

    async def test_events_round_trip_with_datetimes(self, storage):
        event = Event(title="Dentist", date_time=datetime(2024, 3, 5, 15, 0))

        await storage.save_events([event])
        loaded = await storage.get_events()

        assert loaded == [event]
        assert isinstance(loaded[0].date_time, datetime)

    async def test_transactions_keep_decimal_amounts(self, storage):
        transaction = Transaction(
            date=datetime(2024, 1, 2),
            description="Coffee",
            amount=Decimal("4.50"),
            type=TransactionType.EXPENSE,
            category="Food & Dining",
        )

        await storage.save_transactions([transaction])

        assert (await storage.get_transactions())[0].amount == Decimal("4.50")

    async def test_profile_round_trip(self, storage):
        await storage.save_user_profile(UserProfile(name="Alex", avatar=3))
        profile = await storage.get_user_profile()
        assert profile.name == "Alex"
        assert profile.avatar == 3

    async def test_uses_namespaced_keys(self, storage, kv_store):
        await storage.save_messages([Message(text="Hi", is_user=True)])
        assert await kv_store.keys() == ["@ai_assistant_messages"]

    async def test_corrupted_value_reads_as_default(self, kv_store, storage):
        await kv_store.set_item(StorageKey.EVENTS.value, "{not json")
        await kv_store.set_item(StorageKey.MESSAGES.value, json.dumps([{"text": 1}]))

        assert await storage.get_events() == []
        assert await storage.get_messages() == []

    async def test_unreadable_store_reads_as_default(self):
        storage = AssistantStorage(UnreadableStore())
        assert await storage.get_transactions() == []

    async def test_write_failure_raises(self):
        storage = AssistantStorage(FailingStore())
        with pytest.raises(StorageError):
            await storage.save_messages([Message(text="Hi", is_user=True)])

    async def test_clear_all_removes_every_key(self, storage, kv_store):
        await storage.save_messages([Message(text="Hi", is_user=True)])
        await storage.save_user_profile(UserProfile(name="Alex"))
        await kv_store.set_item("unrelated", "keep")

        cleared = await storage.clear_all()

        assert set(cleared) == {key.value for key in StorageKey}
        assert await kv_store.keys() == ["unrelated"]

    async def test_clear_all_failure_raises(self):
        with pytest.raises(StorageError):
            await AssistantStorage(FailingStore()).clear_all()


class TestJsonFileKeyValueStore:

    async def test_persists_across_instances(self, tmp_path):
        path = tmp_path / "store.json"
        await JsonFileKeyValueStore(path).set_item("a", "1")
        await JsonFileKeyValueStore(path).set_item("b", "2")

        reopened = JsonFileKeyValueStore(path)

        assert await reopened.get_item("a") == "1"
        assert sorted(await reopened.keys()) == ["a", "b"]

    async def test_missing_file_is_empty(self, tmp_path):
        store = JsonFileKeyValueStore(tmp_path / "nothing.json")
        assert await store.get_item("a") is None
        assert await store.keys() == []

    async def test_multi_remove(self, tmp_path):
        store = JsonFileKeyValueStore(tmp_path / "store.json")
        await store.set_item("a", "1")
        await store.set_item("b", "2")

        await store.multi_remove(["a", "missing"])

        assert await store.keys() == ["b"]

    async def test_corrupted_file_raises(self, tmp_path):
        path = tmp_path / "store.json"
        path.write_text("{broken", encoding="utf-8")

        with pytest.raises(StorageError):
            await JsonFileKeyValueStore(path).get_item("a")

    async def test_typed_storage_degrades_on_corrupted_file(self, tmp_path):
        path = tmp_path / "store.json"
        path.write_text("[]", encoding="utf-8")

        storage = AssistantStorage(JsonFileKeyValueStore(path))

        assert await storage.get_events() == []

    async def test_no_temp_files_left_behind(self, tmp_path):
        store = JsonFileKeyValueStore(tmp_path / "store.json")
        await store.set_item("a", "1")
        assert [p.name for p in tmp_path.iterdir()] == ["store.json"]


class TestAuditLog:

    async def test_json_lines_newest_first(self, tmp_path):
        audit = JsonLinesAuditStorage(tmp_path / "audit.jsonl")
        await audit.append_event(AuditEventBuilder.provider_skipped("Gemini", None))
        await audit.append_event(AuditEventBuilder.provider_succeeded("Local", None))

        events = await audit.get_recent_events()

        assert [e.event_type for e in events] == [
            AuditEventType.PROVIDER_SUCCEEDED,
            AuditEventType.PROVIDER_SKIPPED,
        ]
        assert len((tmp_path / "audit.jsonl").read_text().splitlines()) == 2

    async def test_recent_events_limit(self, tmp_path):
        audit = JsonLinesAuditStorage(tmp_path / "audit.jsonl")
        for name in ("A", "B", "C"):
            await audit.append_event(AuditEventBuilder.provider_skipped(name, None))

        events = await audit.get_recent_events(limit=2)

        assert [e.entity_id for e in events] == ["C", "B"]

    async def test_logger_survives_storage_failure(self):
        logger = AuditLogger(BrokenAuditStorage())
        event = AuditEventBuilder.provider_skipped("Gemini", None)
        assert await logger.log(event) is False

    async def test_logger_without_storage(self):
        assert await AuditLogger().log(AuditEventBuilder.storage_cleared([])) is True

    async def test_storage_cleared_logged(self, audit_logger, audit_storage):
        await audit_logger.log_storage_cleared(["@ai_assistant_events"])
        event = audit_storage.events[0]
        assert event.event_type == AuditEventType.STORAGE_CLEARED
        assert event.details["keys"] == ["@ai_assistant_events"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
