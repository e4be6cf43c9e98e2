"""
Scheduling Models

Recurring patterns, scheduling suggestions and events parsed
from free text.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from src.models.records import Event


class PatternType(str, Enum):
    """Recurrence buckets the pattern detector can recognise."""
    DAILY = "daily"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    CUSTOM = "custom"


class RecurringPattern(BaseModel):
    """A repeating event inferred from past occurrences."""

    type: PatternType
    interval: int = Field(..., ge=1)
    confidence: float = Field(..., ge=0.0, le=1.0)
    suggested_title: Optional[str] = None
    occurrences: list[datetime]


class SchedulingSuggestion(BaseModel):
    title: str
    suggested_time: datetime
    reason: str
    confidence: float = Field(..., ge=0.0, le=1.0)
    conflicts_with: list[Event] = Field(default_factory=list)


class ParsedEventData(BaseModel):
    """Event details pulled out of a sentence like "lunch tomorrow at 1pm"."""

    title: str
    date_time: Optional[datetime] = None
    description: str = ""
