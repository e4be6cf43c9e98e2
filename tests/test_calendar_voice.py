"""Tests for Google Calendar sync and text-to-speech, with fake clients."""

import asyncio
from datetime import datetime

import pytest

from src.config import GoogleCalendarSettings, VoiceSettings
from src.models import Event
from src.services import (
    CalendarError,
    CalendarNotConfiguredError,
    GoogleCalendarService,
    VoiceService,
)


class FakeRequest:
    def __init__(self, result=None, error=None):
        self._result = result
        self._error = error

    def execute(self):
        if self._error:
            raise self._error
        return self._result


class FakeEventsResource:
    """Mimics service.events() from googleapiclient."""

    def __init__(self, error=None):
        self.calls = []
        self._error = error

    def insert(self, **kwargs):
        self.calls.append(("insert", kwargs))
        return FakeRequest({"id": "g-123"}, self._error)

    def update(self, **kwargs):
        self.calls.append(("update", kwargs))
        return FakeRequest({}, self._error)

    def delete(self, **kwargs):
        self.calls.append(("delete", kwargs))
        return FakeRequest("", self._error)

    def list(self, **kwargs):
        self.calls.append(("list", kwargs))
        return FakeRequest({"items": [{"id": "g-1"}, {"id": "g-2"}]}, self._error)


class FakeCalendarService:
    def __init__(self, error=None):
        self.resource = FakeEventsResource(error)

    def events(self):
        return self.resource


EVENT = Event(title="Budget review", description="Q1", date_time=datetime(2024, 3, 5, 15, 0))


def calendar_with(fake) -> GoogleCalendarService:
    settings = GoogleCalendarSettings(
        credentials_path=None, calendar_id="team", time_zone="Europe/Berlin"
    )
    return GoogleCalendarService(settings, service=fake)


class TestGoogleCalendarService:

    async def test_create_event(self):
        fake = FakeCalendarService()

        google_id = await calendar_with(fake).create_event(EVENT)

        assert google_id == "g-123"
        name, kwargs = fake.resource.calls[0]
        assert name == "insert"
        assert kwargs["calendarId"] == "team"
        assert kwargs["body"]["summary"] == "Budget review"
        assert kwargs["body"]["start"] == {
            "dateTime": "2024-03-05T15:00:00",
            "timeZone": "Europe/Berlin",
        }
        assert kwargs["body"]["end"]["dateTime"] == "2024-03-05T16:00:00"

    async def test_update_and_delete(self):
        fake = FakeCalendarService()
        calendar = calendar_with(fake)

        await calendar.update_event("g-123", EVENT)
        await calendar.delete_event("g-123")

        assert [(n, k["eventId"]) for n, k in fake.resource.calls] == [
            ("update", "g-123"),
            ("delete", "g-123"),
        ]

    async def test_list_upcoming_window(self):
        fake = FakeCalendarService()

        items = await calendar_with(fake).list_upcoming_events(
            days_ahead=3, now=datetime(2024, 3, 1, 9, 0)
        )

        assert [item["id"] for item in items] == ["g-1", "g-2"]
        _, kwargs = fake.resource.calls[0]
        assert kwargs["timeMin"] == "2024-03-01T09:00:00Z"
        assert kwargs["timeMax"] == "2024-03-04T09:00:00Z"
        assert kwargs["singleEvents"] is True
        assert kwargs["orderBy"] == "startTime"

    async def test_api_error_wrapped(self):
        calendar = calendar_with(FakeCalendarService(error=RuntimeError("403 forbidden")))

        with pytest.raises(CalendarError, match="create failed"):
            await calendar.create_event(EVENT)

    async def test_not_configured(self):
        calendar = GoogleCalendarService(GoogleCalendarSettings(credentials_path=None))

        assert calendar.is_configured() is False
        with pytest.raises(CalendarNotConfiguredError):
            await calendar.create_event(EVENT)


class FakeCommunicate:
    """Stands in for edge_tts.Communicate."""

    instances = []

    def __init__(self, text, voice, rate=None, pitch=None, chunks=None, gate=None):
        self.text = text
        self.voice = voice
        self.rate = rate
        self.pitch = pitch
        self._chunks = chunks or [
            {"type": "WordBoundary", "offset": 0},
            {"type": "audio", "data": b"abc"},
            {"type": "audio", "data": b"def"},
        ]
        self._gate = gate
        FakeCommunicate.instances.append(self)

    async def stream(self):
        for chunk in self._chunks:
            if self._gate is not None:
                await self._gate.wait()
            yield chunk


class TestVoiceService:

    async def test_streams_audio_chunks(self):
        received = []

        async def sink(data: bytes):
            received.append(data)

        voice = VoiceService(
            VoiceSettings(voice="en-GB-SoniaNeural", rate="+0%"),
            communicate_factory=FakeCommunicate,
        )

        await voice.speak("Your balance is 700 dollars", sink)

        assert received == [b"abc", b"def"]
        assert voice.is_speaking is False
        last = FakeCommunicate.instances[-1]
        assert last.voice == "en-GB-SoniaNeural"
        assert last.rate == "+0%"

    async def test_blank_text_is_silent(self):
        calls = []
        voice = VoiceService(communicate_factory=lambda *a, **k: calls.append(a))

        async def sink(data):
            pass

        await voice.speak("   ", sink)

        assert calls == []

    async def test_stop_cancels_current_speech(self):
        gate = asyncio.Event()

        def factory(text, voice, **kwargs):
            return FakeCommunicate(text, voice, gate=gate, **kwargs)

        async def sink(data):
            pass

        voice = VoiceService(communicate_factory=factory)
        speaking = asyncio.create_task(voice.speak("Long answer", sink))
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        assert voice.is_speaking is True

        await voice.stop()
        await speaking

        assert voice.is_speaking is False

    async def test_synthesis_error_propagates(self):
        class Broken(FakeCommunicate):
            async def stream(self):
                raise ConnectionError("no network")
                yield  # pragma: no cover

        async def sink(data):
            pass

        voice = VoiceService(communicate_factory=Broken)

        with pytest.raises(ConnectionError):
            await voice.speak("Hello", sink)
        assert voice.is_speaking is False


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
