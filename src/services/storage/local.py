"""
Local Storage Backends

DESIGN DECISION: A single JSON file on the device holds every namespaced
key. It is small (a few collections for one user) so we rewrite the
whole file on every change, via a temp file and atomic replace so a crash
mid-write never leaves half a document behind.

TRADEOFFS:
- Last write wins; concurrent writers would clobber each other
  (acceptable: one user, one device, foreground only)
- No partial updates, no indexes (we filter in Python)
"""

import asyncio
import json
import os
import tempfile
from pathlib import Path
from typing import Optional, Union

from src.models.audit import AuditEvent
from src.services.storage.interface import (
    AuditStorageInterface,
    KeyValueStore,
    StorageError,
)


class InMemoryKeyValueStore(KeyValueStore):
    """Dictionary-backed store. Used in tests and when no path is configured."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    async def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set_item(self, key: str, value: str) -> None:
        self._data[key] = value

    async def multi_remove(self, keys: list[str]) -> None:
        for key in keys:
            self._data.pop(key, None)

    async def keys(self) -> list[str]:
        return list(self._data)


class JsonFileKeyValueStore(KeyValueStore):
    """
    Key-value store persisted as one JSON object in a file.

    The file maps key -> serialized value string.
    """

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _read_all(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            with self._path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Failed to read store at {self._path}: {e}") from e
        if not isinstance(data, dict):
            raise StorageError(f"Store at {self._path} is not a JSON object")
        return data

    def _write_all(self, data: dict[str, str]) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self._path.parent,
                prefix=f".{self._path.name}.",
                suffix=".tmp",
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False)
            os.replace(tmp_path, self._path)
        except OSError as e:
            raise StorageError(f"Failed to write store at {self._path}: {e}") from e

    async def get_item(self, key: str) -> Optional[str]:
        data = await asyncio.to_thread(self._read_all)
        return data.get(key)

    async def set_item(self, key: str, value: str) -> None:
        def _update() -> None:
            data = self._read_all()
            data[key] = value
            self._write_all(data)

        await asyncio.to_thread(_update)

    async def multi_remove(self, keys: list[str]) -> None:
        def _remove() -> None:
            data = self._read_all()
            for key in keys:
                data.pop(key, None)
            self._write_all(data)

        await asyncio.to_thread(_remove)

    async def keys(self) -> list[str]:
        data = await asyncio.to_thread(self._read_all)
        return list(data)


class JsonLinesAuditStorage(AuditStorageInterface):
    """
    Append-only audit log, one JSON document per line.
    """

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path)

    def _append(self, line: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._path.open("a", encoding="utf-8") as f:
            f.write(line + "\n")

    def _read_lines(self) -> list[str]:
        if not self._path.exists():
            return []
        with self._path.open("r", encoding="utf-8") as f:
            return [line for line in f if line.strip()]

    async def append_event(self, event: AuditEvent) -> bool:
        try:
            await asyncio.to_thread(self._append, event.to_json_line())
        except OSError as e:
            raise StorageError(f"Failed to append audit event: {e}") from e
        return True

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        lines = await asyncio.to_thread(self._read_lines)
        events = [AuditEvent.model_validate_json(line) for line in lines[-limit:]]
        events.reverse()
        return events
