"""
Google Calendar mirror.

Local events are the source of truth; Google Calendar gets a copy when
a service account is configured. The API client is synchronous, so
every call runs in a worker thread.

Configuration lives on the instance. Two services with different
credentials can coexist.
"""

import asyncio
from datetime import datetime, timedelta
from typing import Any, Optional

import structlog
from google.oauth2.service_account import Credentials
from googleapiclient.discovery import build
from tenacity import retry, retry_if_not_exception_type, stop_after_attempt, wait_exponential

from src.config import GoogleCalendarSettings
from src.models import Event

logger = structlog.get_logger(__name__)

SCOPES = ["https://www.googleapis.com/auth/calendar"]


def _rfc3339(value: datetime) -> str:
    """Naive datetimes are sent as UTC."""
    if value.tzinfo is None:
        return value.isoformat() + "Z"
    return value.isoformat()


class CalendarError(Exception):
    """Google Calendar call failed."""
    pass


class CalendarNotConfiguredError(CalendarError):
    pass


class GoogleCalendarService:
    """
    Create, update, delete and list events in one Google calendar.

    Usage:
        calendar = GoogleCalendarService(get_settings().google_calendar)
        if calendar.is_configured():
            google_id = await calendar.create_event(event)
    """

    def __init__(
        self,
        settings: Optional[GoogleCalendarSettings] = None,
        service: Any = None,
    ):
        self._settings = settings or GoogleCalendarSettings()
        self._service = service

    def is_configured(self) -> bool:
        return self._service is not None or self._settings.is_configured

    @retry(
        retry=retry_if_not_exception_type(CalendarNotConfiguredError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> Any:
        """Build the Calendar API client from the service account file."""
        if self._service is None:
            if not self._settings.is_configured:
                raise CalendarNotConfiguredError("Google Calendar credentials not configured")
            try:
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=SCOPES,
                )
                self._service = build(
                    "calendar", "v3", credentials=credentials, cache_discovery=False
                )
            except FileNotFoundError:
                raise CalendarError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise CalendarError(f"Failed to connect to Google Calendar: {e}")
        return self._service

    def _event_body(self, event: Event) -> dict:
        end = event.date_time + timedelta(minutes=self._settings.event_duration_minutes)
        return {
            "summary": event.title,
            "description": event.description or "",
            "start": {
                "dateTime": event.date_time.isoformat(),
                "timeZone": self._settings.time_zone,
            },
            "end": {
                "dateTime": end.isoformat(),
                "timeZone": self._settings.time_zone,
            },
        }

    async def _execute(self, operation: str, build_request) -> Any:
        def run():
            service = self.connect()
            return build_request(service.events()).execute()

        try:
            return await asyncio.to_thread(run)
        except CalendarError:
            raise
        except Exception as e:
            logger.error("google_calendar_error", operation=operation, error=str(e))
            raise CalendarError(f"Google Calendar {operation} failed: {e}") from e

    async def create_event(self, event: Event) -> str:
        """Insert the event and return its Google Calendar id."""
        created = await self._execute(
            "create",
            lambda events: events.insert(
                calendarId=self._settings.calendar_id,
                body=self._event_body(event),
            ),
        )
        logger.info("google_calendar_event_created", event_id=event.id, google_id=created["id"])
        return created["id"]

    async def update_event(self, google_event_id: str, event: Event) -> None:
        await self._execute(
            "update",
            lambda events: events.update(
                calendarId=self._settings.calendar_id,
                eventId=google_event_id,
                body=self._event_body(event),
            ),
        )

    async def delete_event(self, google_event_id: str) -> None:
        await self._execute(
            "delete",
            lambda events: events.delete(
                calendarId=self._settings.calendar_id,
                eventId=google_event_id,
            ),
        )

    async def list_upcoming_events(
        self,
        days_ahead: int = 7,
        now: Optional[datetime] = None,
    ) -> list[dict]:
        """Raw event dicts from now until `days_ahead` days out, by start time."""
        now = now or datetime.now()
        result = await self._execute(
            "list",
            lambda events: events.list(
                calendarId=self._settings.calendar_id,
                timeMin=_rfc3339(now),
                timeMax=_rfc3339(now + timedelta(days=days_ahead)),
                singleEvents=True,
                orderBy="startTime",
            ),
        )
        return result.get("items", [])
