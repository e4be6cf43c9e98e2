"""Tests for smart scheduling suggestions."""

import json
from collections import Counter
from datetime import datetime, timedelta

import pytest

from src.config import GeminiSettings
from src.models import Event
from src.scheduling import (
    SchedulingAdvisor,
    analyze_busy_hours,
    find_conflicts,
    find_optimal_time_slots,
)

from tests.conftest import FakeModel

NOW = datetime(2024, 1, 20, 12, 0)


def weekly_sync() -> list[Event]:
    return [
        Event(title="Team Sync", date_time=datetime(2024, 1, day, 10, 0))
        for day in (1, 8, 15)
    ]


class TestHelpers:

    def test_conflict_window_is_strictly_under_an_hour(self):
        when = datetime(2024, 1, 22, 10, 0)
        near = Event(title="Near", date_time=when + timedelta(minutes=59))
        edge = Event(title="Edge", date_time=when + timedelta(hours=1))

        assert find_conflicts([near, edge], when) == [near]

    def test_busy_hours(self):
        counts = analyze_busy_hours(weekly_sync())
        assert counts[10] == 3
        assert counts[9] == 0

    def test_slots_start_tomorrow_at_preferred_hours(self):
        slots = find_optimal_time_slots([], Counter(), NOW)
        assert slots[0] == datetime(2024, 1, 21, 9, 0)
        assert [s.hour for s in slots] == [9, 10, 14, 15, 9]

    def test_slots_skip_conflicts_and_busy_hours(self):
        upcoming = [Event(title="Busy", date_time=datetime(2024, 1, 21, 9, 30))]
        busy = Counter({14: 6})

        slots = find_optimal_time_slots(upcoming, busy, NOW)

        assert datetime(2024, 1, 21, 9, 0) not in slots
        assert datetime(2024, 1, 21, 10, 0) not in slots
        assert all(slot.hour != 14 for slot in slots)


class TestSchedulingAdvisor:

    async def test_pattern_then_slots(self):
        advisor = SchedulingAdvisor(GeminiSettings(api_key=None))

        suggestions = await advisor.generate_smart_suggestions(weekly_sync(), now=NOW)

        assert len(suggestions) == 3
        pattern = suggestions[0]
        assert pattern.title == "Team Sync"
        assert pattern.suggested_time == datetime(2024, 1, 22, 10, 0)
        assert pattern.reason == "Based on weekly pattern detected"
        assert pattern.confidence == pytest.approx(1.0)
        assert [s.title for s in suggestions[1:]] == ["Available Time Slot"] * 2
        assert all(s.confidence == 0.7 for s in suggestions[1:])

    async def test_pattern_reports_conflicts(self):
        clash = Event(title="Dentist", date_time=datetime(2024, 1, 22, 10, 30))
        advisor = SchedulingAdvisor(GeminiSettings(api_key=None))

        suggestions = await advisor.generate_smart_suggestions(
            weekly_sync() + [clash], now=NOW
        )

        assert suggestions[0].conflicts_with == [clash]

    async def test_ai_suggestion_included(self):
        model = FakeModel(json.dumps({
            "title": "Budget review",
            "date_time": "2024-01-22T15:00:00",
            "reason": "Monday afternoon is free",
            "confidence": 0.9,
        }))
        advisor = SchedulingAdvisor(model=model)

        suggestions = await advisor.generate_smart_suggestions(
            weekly_sync(), user_input="Find time for a budget review", now=NOW
        )

        assert [s.title for s in suggestions[:2]] == ["Team Sync", "Budget review"]
        assert suggestions[1].suggested_time == datetime(2024, 1, 22, 15, 0)
        assert model.prompts == ["Find time for a budget review"]

    async def test_malformed_ai_answer_ignored(self):
        advisor = SchedulingAdvisor(model=FakeModel("Sure! How about Monday?"))

        suggestions = await advisor.generate_smart_suggestions(
            [], user_input="Find time", now=NOW
        )

        assert [s.title for s in suggestions] == ["Available Time Slot"] * 2

    async def test_ai_error_returns_none(self):
        advisor = SchedulingAdvisor(model=FakeModel(RuntimeError("quota")))
        assert await advisor.get_ai_suggestion("Find time", NOW) is None

    async def test_no_events_gives_only_slots(self):
        advisor = SchedulingAdvisor(GeminiSettings(api_key=None))
        suggestions = await advisor.generate_smart_suggestions([], now=NOW)
        assert len(suggestions) == 2


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
