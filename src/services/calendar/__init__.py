"""Google Calendar sync package."""

from src.services.calendar.google_calendar import (
    CalendarError,
    CalendarNotConfiguredError,
    GoogleCalendarService,
)

__all__ = [
    "CalendarError",
    "CalendarNotConfiguredError",
    "GoogleCalendarService",
]
