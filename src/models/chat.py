"""
Chat Models

Request, intent and provider response shapes for the assistant chat.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class IntentType(str, Enum):
    """What the user seems to want from a chat message."""
    SCHEDULE_MEETING = "schedule_meeting"
    CONVERT_CURRENCY = "convert_currency"
    ANALYZE_EXPENSE = "analyze_expense"
    GENERAL = "general"


class ChatRequest(BaseModel):
    """
    Incoming chat message.

    Invalid requests fail here with a pydantic ValidationError
    carrying structured error details.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    message: str = Field(..., min_length=1, max_length=2000)
    context: Optional[dict[str, Any]] = None


class ProviderResponse(BaseModel):
    """Text produced by a responder, tagged with the responder's name."""

    response: str
    provider: str


class AIIntent(BaseModel):
    """Result of processing one user message."""

    type: IntentType
    entities: dict[str, Any] = Field(default_factory=dict)
    response: str
    provider: Optional[str] = None
