"""
Event reminders.

Each event can have up to four reminders, fired 2 days, 1 day, 6 hours
and 1 hour before it starts. This module only decides WHICH reminders
are due; delivering them is the host application's job.
"""

from datetime import datetime
from typing import Optional

from src.models import Event, ReminderFlags, ReminderLead, to_local_naive


def reminder_time(event: Event, lead: ReminderLead) -> datetime:
    return event.date_time - lead.offset


def due_reminders(event: Event, now: Optional[datetime] = None) -> list[ReminderLead]:
    """
    Reminders that are enabled, not yet sent, and whose time has come.

    Nothing is due once the event itself has started.
    """
    now = now or datetime.now()
    if now >= event.date_time:
        return []

    return [
        lead
        for lead in ReminderLead
        if event.reminders.is_set(lead)
        and not event.reminders_sent.is_set(lead)
        and reminder_time(event, lead) <= now
    ]


def mark_reminder_sent(event: Event, lead: ReminderLead) -> Event:
    sent = event.reminders_sent.model_copy(update={lead.value: True})
    return event.model_copy(update={"reminders_sent": sent})


def reschedule(event: Event, new_time: datetime) -> Event:
    """Move the event; sent flags reset when the time actually changes."""
    new_time = to_local_naive(new_time)
    if new_time == event.date_time:
        return event
    return event.model_copy(
        update={"date_time": new_time, "reminders_sent": ReminderFlags()}
    )
