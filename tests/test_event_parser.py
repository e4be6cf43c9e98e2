"""Tests for natural-language event parsing and reminders."""

from datetime import datetime, timedelta

import pytest

from src.models import Event, ParsedEventData, ReminderFlags, ReminderLead
from src.scheduling import (
    create_event_from_parsed_data,
    due_reminders,
    has_scheduling_intent,
    mark_reminder_sent,
    parse_event_from_text,
    reminder_time,
    reschedule,
)

NOW = datetime(2024, 3, 4, 10, 0)  # a Monday


class TestSchedulingIntent:

    @pytest.mark.parametrize("text", [
        "Schedule dentist appointment tomorrow at 3pm",
        "Remind me to pay rent on Friday",
        "Book a call next week",
    ])
    def test_detected(self, text):
        assert has_scheduling_intent(text) is True

    @pytest.mark.parametrize("text", [
        "Schedule something",
        "What happens tomorrow?",
        "How much did I spend?",
        "How can I prevent overspending tomorrow?",
    ])
    def test_needs_keyword_and_time(self, text):
        assert has_scheduling_intent(text) is False


class TestParseEventFromText:

    def test_relative_day(self):
        parsed = parse_event_from_text("Schedule dentist appointment tomorrow at 3pm", now=NOW)

        assert parsed is not None
        assert parsed.date_time == datetime(2024, 3, 5, 15, 0)
        assert parsed.title.startswith("Dentist")
        assert "tomorrow" not in parsed.title.lower()

    @pytest.mark.parametrize("text, title, expected", [
        ("Schedule meeting with John tomorrow at 2pm", "Meeting with john", datetime(2024, 3, 5, 14, 0)),
        ("Remind me to call mom on Friday at 10am", "Call mom", datetime(2024, 3, 8, 10, 0)),
        ("Team standup next Monday 9:30am", "Team standup", datetime(2024, 3, 11, 9, 30)),
    ])
    def test_day_and_clock_time(self, text, title, expected):
        parsed = parse_event_from_text(text, now=NOW)

        assert parsed.title == title
        assert parsed.date_time == expected

    def test_weekday_without_time_keeps_time_of_day(self):
        parsed = parse_event_from_text("Remind me to pay rent on Wednesday", now=NOW)

        assert parsed.title == "Pay rent"
        assert parsed.date_time == datetime(2024, 3, 6, 10, 0)

    def test_same_weekday_with_next_is_a_week_later(self):
        parsed = parse_event_from_text("Budget review next monday", now=NOW)
        assert parsed.date_time == datetime(2024, 3, 11, 10, 0)

    def test_tonight_defaults_to_evening(self):
        parsed = parse_event_from_text("Call the bank tonight", now=NOW)
        assert parsed.date_time == datetime(2024, 3, 4, 20, 0)

    def test_no_date_returns_none(self):
        assert parse_event_from_text("Buy groceries", now=NOW) is None


class TestCreateEventFromParsedData:

    def test_all_reminders_on(self):
        parsed = ParsedEventData(title="Dentist", date_time=datetime(2024, 3, 5, 15))
        event = create_event_from_parsed_data(parsed, now=NOW)

        assert event.title == "Dentist"
        assert event.date_time == datetime(2024, 3, 5, 15)
        assert event.reminders == ReminderFlags.all_on()
        assert event.reminders_sent == ReminderFlags()

    def test_missing_time_defaults_to_tomorrow(self):
        event = create_event_from_parsed_data(ParsedEventData(title="Call bank"), now=NOW)
        assert event.date_time == NOW + timedelta(days=1)


class TestReminders:
    """Tests for choosing which reminders are due."""

    def event(self, **kwargs) -> Event:
        return Event(title="Tax deadline", date_time=datetime(2024, 3, 10, 12, 0), **kwargs)

    def test_reminder_time(self):
        assert reminder_time(self.event(), ReminderLead.SIX_HOURS) == datetime(2024, 3, 10, 6, 0)

    def test_nothing_due_far_ahead(self):
        assert due_reminders(self.event(), now=datetime(2024, 3, 1)) == []

    def test_two_day_reminder_due(self):
        due = due_reminders(self.event(), now=datetime(2024, 3, 8, 12, 0))
        assert due == [ReminderLead.TWO_DAYS]

    def test_all_passed_leads_due(self):
        due = due_reminders(self.event(), now=datetime(2024, 3, 10, 11, 30))
        assert due == list(ReminderLead)

    def test_disabled_reminders_skipped(self):
        event = self.event(reminders=ReminderFlags(one_hour=True))
        assert due_reminders(event, now=datetime(2024, 3, 10, 7, 0)) == []

    def test_sent_reminders_not_repeated(self):
        event = mark_reminder_sent(self.event(), ReminderLead.TWO_DAYS)
        due = due_reminders(event, now=datetime(2024, 3, 9, 13, 0))
        assert due == [ReminderLead.ONE_DAY]

    def test_nothing_due_after_start(self):
        assert due_reminders(self.event(), now=datetime(2024, 3, 10, 12, 0)) == []

    def test_reschedule_resets_sent_flags(self):
        event = mark_reminder_sent(self.event(), ReminderLead.ONE_DAY)
        moved = reschedule(event, datetime(2024, 3, 12, 12, 0))

        assert moved.date_time == datetime(2024, 3, 12, 12, 0)
        assert moved.reminders_sent == ReminderFlags()
        assert moved.id == event.id

    def test_reschedule_same_time_keeps_flags(self):
        event = mark_reminder_sent(self.event(), ReminderLead.ONE_DAY)
        assert reschedule(event, event.date_time).reminders_sent.one_day is True


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
