"""
Shared test fixtures.

No real API calls in tests: LLM models, providers and sleeps are
replaced by the small fakes below, HTTP by httpx.MockTransport.
"""

from typing import Optional, Union

import pytest

from src.agents import AIProvider
from src.audit import AuditLogger
from src.config import GeminiSettings, RetrySettings
from src.models import AuditEvent
from src.services.storage import AssistantStorage, AuditStorageInterface, InMemoryKeyValueStore


class FakeResponse:
    def __init__(self, text: Optional[str]):
        self.text = text


class FakeModel:
    """Stands in for a google.generativeai GenerativeModel."""

    def __init__(self, *replies: Union[str, Exception]):
        self._replies = list(replies)
        self.prompts: list = []

    async def generate_content_async(self, prompt):
        self.prompts.append(prompt)
        reply = self._replies.pop(0) if len(self._replies) > 1 else self._replies[0]
        if isinstance(reply, Exception):
            raise reply
        return FakeResponse(reply)


class FakeProvider(AIProvider):
    """Provider that replays a script of replies and errors."""

    def __init__(
        self,
        name: str,
        *script: Union[str, Exception],
        available: bool = True,
    ):
        self.name = name
        self._script = list(script)
        self._available = available
        self.calls: list[str] = []

    def is_available(self) -> bool:
        return self._available

    async def generate_response(self, text: str) -> str:
        self.calls.append(text)
        step = self._script.pop(0) if len(self._script) > 1 else self._script[0]
        if isinstance(step, Exception):
            raise step
        return step


class MemoryAuditStorage(AuditStorageInterface):
    def __init__(self):
        self.events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self.events.append(event)
        return True

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return list(reversed(self.events[-limit:]))


class RecordingSleep:
    """Async sleep replacement that records delays instead of waiting."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def no_sleep():
    return RecordingSleep()


@pytest.fixture
def retry_settings():
    return RetrySettings(
        max_attempts=3,
        base_delay_seconds=0.5,
        factor=2.0,
        max_delay_seconds=5.0,
        jitter=0.3,
    )


@pytest.fixture
def unconfigured_gemini():
    return GeminiSettings(api_key=None)


@pytest.fixture
def audit_storage():
    return MemoryAuditStorage()


@pytest.fixture
def audit_logger(audit_storage):
    return AuditLogger(audit_storage)


@pytest.fixture
def kv_store():
    return InMemoryKeyValueStore()


@pytest.fixture
def storage(kv_store):
    return AssistantStorage(kv_store)
