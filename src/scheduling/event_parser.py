"""
Natural-language event parsing.

Turns sentences like "Schedule dentist appointment tomorrow at 3pm"
into a title and a datetime. Common day words and clock times are
resolved directly; other date phrases are found with dateparser.
"""

import re
from datetime import date, datetime, time, timedelta
from typing import Optional

import dateparser
from dateparser.search import search_dates
from dateutil.relativedelta import relativedelta

from src.models import Event, ParsedEventData, ReminderFlags

DEFAULT_TITLE = "Untitled Event"

SCHEDULING_KEYWORDS = (
    "schedule", "remind me", "reminder", "meeting", "event", "appointment",
    "call", "deadline", "set up", "book", "reserve",
)

# Keywords match from the start of a word, so "prevent" is not an "event".
_SCHEDULING_KEYWORD = re.compile(
    r"\b(?:" + "|".join(re.escape(keyword) for keyword in SCHEDULING_KEYWORDS) + ")",
    re.IGNORECASE,
)

_TIME_INDICATOR = re.compile(
    r"\b(tomorrow|today|tonight|next week|next month|monday|tuesday|wednesday"
    r"|thursday|friday|saturday|sunday|at \d|am|pm|\d+:\d+)\b",
    re.IGNORECASE,
)

_PREFIX = re.compile(
    r"^(schedule|remind me to|create event|add event|set reminder for|remind me about)\s*",
    re.IGNORECASE,
)
_LEADING_CONNECTOR = re.compile(r"^(for|to|about|at|on)\s+", re.IGNORECASE)
_TRAILING_CONNECTOR = re.compile(r"\s+(for|to|about|at|on)\s*$", re.IGNORECASE)
_DANGLING_MODIFIER = re.compile(r"\s+(next|this)\s*$", re.IGNORECASE)

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

_DAY_PHRASE = re.compile(
    r"(?:\bon\s+)?\b(?:(?P<relative>today|tonight|tomorrow)"
    r"|(?:(?P<modifier>next|this)\s+)?(?P<weekday>" + "|".join(WEEKDAYS) + r")"
    r"|next\s+(?P<period>week|month))\b",
    re.IGNORECASE,
)
_TWELVE_HOUR = re.compile(
    r"(?:\bat\s+)?\b(?P<hour>\d{1,2})(?::(?P<minute>\d{2}))?\s*(?P<meridiem>am|pm)\b",
    re.IGNORECASE,
)
_TWENTY_FOUR_HOUR = re.compile(
    r"(?:\bat\s+)?\b(?P<hour>\d{1,2}):(?P<minute>\d{2})\b",
    re.IGNORECASE,
)

TONIGHT_HOUR = 20

DATEPARSER_SETTINGS = {
    "PREFER_DATES_FROM": "future",
    "RETURN_AS_TIMEZONE_AWARE": False,
}


def has_scheduling_intent(text: str) -> bool:
    """A scheduling keyword and a time indicator must both be present."""
    return bool(_SCHEDULING_KEYWORD.search(text)) and bool(_TIME_INDICATOR.search(text))


def _find_time(text: str) -> Optional[tuple[re.Match, time]]:
    """First clock time like "3pm", "at 9:30am" or "14:00"."""
    for pattern in (_TWELVE_HOUR, _TWENTY_FOUR_HOUR):
        for match in pattern.finditer(text):
            hour = int(match.group("hour"))
            minute = int(match.group("minute") or 0)
            meridiem = (match.groupdict().get("meridiem") or "").lower()
            if meridiem:
                if not 1 <= hour <= 12:
                    continue
                hour = hour % 12 + (12 if meridiem == "pm" else 0)
            if hour > 23 or minute > 59:
                continue
            return match, time(hour, minute)
    return None


def _resolve_day(match: re.Match, now: datetime) -> date:
    """Calendar day named by a _DAY_PHRASE match, never in the past."""
    today = now.date()
    relative = (match.group("relative") or "").lower()
    if relative == "tomorrow":
        return today + timedelta(days=1)
    if relative in ("today", "tonight"):
        return today

    period = (match.group("period") or "").lower()
    if period == "week":
        return today + timedelta(weeks=1)
    if period == "month":
        return today + relativedelta(months=1)

    days_ahead = (WEEKDAYS.index(match.group("weekday").lower()) - today.weekday()) % 7
    if days_ahead == 0 and (match.group("modifier") or "").lower() == "next":
        days_ahead = 7
    return today + timedelta(days=days_ahead)


def _search_other_date(text: str, now: datetime) -> Optional[tuple[str, datetime]]:
    """Any other date phrase ("march 15", "in 3 days") found by dateparser."""
    settings = {**DATEPARSER_SETTINGS, "RELATIVE_BASE": now}
    found = search_dates(text, languages=["en"], settings=settings)
    if not found:
        return None

    phrase, value = found[0]
    reparsed = dateparser.parse(
        _LEADING_CONNECTOR.sub("", phrase.strip()), languages=["en"], settings=settings
    )
    value = reparsed or value
    if not isinstance(value, datetime):
        return None
    return phrase, value


def _remove_span(text: str, match: Optional[re.Match]) -> str:
    if match is None:
        return text
    return text[:match.start()] + " " + text[match.end():]


def parse_event_from_text(text: str, now: Optional[datetime] = None) -> Optional[ParsedEventData]:
    """
    Title and time from a sentence, or None when it names no date.

    Weekdays, "today", "tonight", "tomorrow" and "next week/month" are
    resolved against `now`; any other date phrase goes to dateparser.
    A clock time ("3pm", "9:30am", "14:00") sets the hour, otherwise
    the current time of day is kept. The date and time phrases are
    removed from the title.
    """
    now = now or datetime.now()
    cleaned = _PREFIX.sub("", text.lower().strip())

    found_time = _find_time(cleaned)
    time_match = found_time[0] if found_time else None
    remaining = _remove_span(cleaned, time_match)

    day_match = _DAY_PHRASE.search(remaining)
    if day_match is not None:
        day = _resolve_day(day_match, now)
        title = _remove_span(remaining, day_match)
        default_time = now.time().replace(microsecond=0)
        if (day_match.group("relative") or "").lower() == "tonight":
            default_time = time(TONIGHT_HOUR, 0)
        date_time = datetime.combine(day, found_time[1] if found_time else default_time)
    else:
        other = _search_other_date(remaining, now)
        if other is not None:
            phrase, date_time = other
            title = remaining.replace(phrase, " ", 1)
            if found_time:
                date_time = datetime.combine(date_time.date(), found_time[1])
        elif found_time:
            title = remaining
            date_time = datetime.combine(now.date(), found_time[1])
        else:
            return None

    title = re.sub(r"\s+", " ", title).strip()
    title = _DANGLING_MODIFIER.sub("", title)
    title = _LEADING_CONNECTOR.sub("", title)
    title = _TRAILING_CONNECTOR.sub("", title).strip()

    if title:
        title = title[0].upper() + title[1:]

    return ParsedEventData(
        title=title or DEFAULT_TITLE,
        date_time=date_time,
        description="",
    )


def create_event_from_parsed_data(
    parsed: ParsedEventData,
    now: Optional[datetime] = None,
) -> Event:
    """New event with every reminder on; defaults to this time tomorrow."""
    now = now or datetime.now()
    return Event(
        title=parsed.title,
        description=parsed.description or "",
        date_time=parsed.date_time or now + timedelta(days=1),
        reminders=ReminderFlags.all_on(),
        reminders_sent=ReminderFlags(),
    )
