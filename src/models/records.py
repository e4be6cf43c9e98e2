"""
Core Records for Pocket Assistant

These are the entities persisted on the device:
messages, events, transactions and the user profile.

DESIGN DECISION: Records are plain Pydantic v2 models.
Dates come back as real datetimes because the schema says so,
not because a JSON reviver guessed which keys hold dates.
"""

from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Literal, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator


def new_record_id() -> str:
    """Generate an opaque record identifier."""
    return uuid4().hex


def to_local_naive(value: datetime) -> datetime:
    """Aware datetimes become naive local time; naive ones pass through."""
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


# =============================================================================
# ENUMS
# =============================================================================

class TransactionType(str, Enum):
    """Direction of a transaction."""
    INCOME = "income"
    EXPENSE = "expense"


class ReminderLead(str, Enum):
    """
    Reminder lead times before an event.

    Values match the field names on ReminderFlags.
    """
    TWO_DAYS = "two_days"
    ONE_DAY = "one_day"
    SIX_HOURS = "six_hours"
    ONE_HOUR = "one_hour"

    @property
    def offset(self) -> timedelta:
        return REMINDER_OFFSETS[self]

    @property
    def notification_title(self) -> str:
        return REMINDER_TITLES[self]


REMINDER_OFFSETS = {
    ReminderLead.TWO_DAYS: timedelta(days=2),
    ReminderLead.ONE_DAY: timedelta(days=1),
    ReminderLead.SIX_HOURS: timedelta(hours=6),
    ReminderLead.ONE_HOUR: timedelta(hours=1),
}

REMINDER_TITLES = {
    ReminderLead.TWO_DAYS: "Event in 2 days",
    ReminderLead.ONE_DAY: "Event tomorrow",
    ReminderLead.SIX_HOURS: "Event in 6 hours",
    ReminderLead.ONE_HOUR: "Event in 1 hour",
}


# =============================================================================
# CHAT
# =============================================================================

class Message(BaseModel):
    """A single chat message. Conversations are append-only."""

    id: str = Field(default_factory=new_record_id)
    text: str
    is_user: bool
    timestamp: datetime = Field(default_factory=datetime.now)


# =============================================================================
# CALENDAR
# =============================================================================

class ReminderFlags(BaseModel):
    """One boolean per reminder lead time."""

    two_days: bool = False
    one_day: bool = False
    six_hours: bool = False
    one_hour: bool = False

    @classmethod
    def all_on(cls) -> "ReminderFlags":
        return cls(two_days=True, one_day=True, six_hours=True, one_hour=True)

    def is_set(self, lead: ReminderLead) -> bool:
        return getattr(self, lead.value)


class Event(BaseModel):
    """
    A calendar event with reminder settings.

    `reminders` says which reminders the user wants,
    `reminders_sent` mirrors it with which ones already fired.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(default_factory=new_record_id)
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    date_time: datetime
    reminders: ReminderFlags = Field(default_factory=ReminderFlags.all_on)
    reminders_sent: ReminderFlags = Field(default_factory=ReminderFlags)
    google_calendar_event_id: Optional[str] = None

    @field_validator("date_time")
    @classmethod
    def to_local_time(cls, v: datetime) -> datetime:
        return to_local_naive(v)


# =============================================================================
# FINANCE
# =============================================================================

class Transaction(BaseModel):
    """
    A single income or expense line.

    Amount is unsigned; `type` carries the direction.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(default_factory=new_record_id)
    date: datetime
    description: str = Field(..., min_length=1)
    amount: Decimal = Field(..., ge=0)
    type: TransactionType
    category: str = Field(..., min_length=1)
    category_confidence: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    subcategory: Optional[str] = None
    bank_name: Optional[str] = None


class BalanceSheet(BaseModel):
    """Totals over a set of transactions."""

    total_income: Decimal
    total_expenses: Decimal
    balance: Decimal
    transactions: list[Transaction]

    @classmethod
    def from_transactions(cls, transactions: list[Transaction]) -> "BalanceSheet":
        income = sum(
            (t.amount for t in transactions if t.type == TransactionType.INCOME),
            Decimal("0"),
        )
        expenses = sum(
            (t.amount for t in transactions if t.type == TransactionType.EXPENSE),
            Decimal("0"),
        )
        return cls(
            total_income=income,
            total_expenses=expenses,
            balance=income - expenses,
            transactions=transactions,
        )


# =============================================================================
# PROFILE
# =============================================================================

AvatarOption = Literal[1, 2, 3, 4]


class UserProfile(BaseModel):
    """The device owner's profile. One per device."""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = ""
    avatar: AvatarOption = 1
