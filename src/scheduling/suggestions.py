"""
Smart scheduling suggestions.

Suggestions come from three places, merged and sorted by confidence:
1. Strong recurring patterns (confidence > 0.8) in past events
2. The LLM, when the user described what they want
3. Free slots at preferred hours over the next week
"""

from collections import Counter
from datetime import datetime, timedelta
from typing import Any, Optional

import structlog
from pydantic import BaseModel, ConfigDict, Field

from src.agents.llm import MalformedOutputError, build_gemini_model, parse_structured_output
from src.config import GeminiSettings
from src.models import Event, SchedulingSuggestion, to_local_naive
from src.scheduling.patterns import calculate_next_occurrence, detect_recurring_patterns

logger = structlog.get_logger(__name__)

PATTERN_CONFIDENCE_THRESHOLD = 0.8
CONFLICT_WINDOW = timedelta(hours=1)
PREFERRED_HOURS = (9, 10, 14, 15)
BUSY_HOUR_THRESHOLD = 5
MAX_SLOTS = 5
SLOT_SUGGESTIONS = 2
SLOT_CONFIDENCE = 0.7


class AISuggestionAnswer(BaseModel):
    """Exact shape the model must answer with."""
    model_config = ConfigDict(extra="forbid")

    title: str = Field(..., min_length=1)
    date_time: datetime
    reason: str
    confidence: float = Field(default=0.7, ge=0.0, le=1.0)


def find_conflicts(events: list[Event], when: datetime) -> list[Event]:
    """Events starting less than an hour before or after `when`."""
    return [e for e in events if abs(e.date_time - when) < CONFLICT_WINDOW]


def analyze_busy_hours(events: list[Event]) -> Counter:
    """Number of events per hour of day."""
    return Counter(event.date_time.hour for event in events)


def find_optimal_time_slots(
    upcoming: list[Event],
    busy_hours: Counter,
    now: datetime,
) -> list[datetime]:
    """First few free preferred-hour slots over the next 7 days."""
    slots = []
    for day in range(1, 8):
        date = now + timedelta(days=day)
        for hour in PREFERRED_HOURS:
            slot = date.replace(hour=hour, minute=0, second=0, microsecond=0)
            if find_conflicts(upcoming, slot):
                continue
            if busy_hours.get(hour, 0) > BUSY_HOUR_THRESHOLD:
                continue
            slots.append(slot)
    return slots[:MAX_SLOTS]


def _ai_system_prompt(now: datetime) -> str:
    return f"""You are a smart scheduling assistant. Analyze the user's request and suggest the best time for their meeting.

Consider:
- Current date/time: {now.isoformat()}
- Typical business hours: 9 AM - 5 PM
- Avoid weekends unless specifically requested
- Look for context clues about urgency ("ASAP", "tomorrow", "next week")

Respond with a single JSON object and nothing else:
{{"title": "suggested meeting title", "date_time": "ISO timestamp", "reason": "why this time works", "confidence": 0.85}}"""


class SchedulingAdvisor:
    """Builds scheduling suggestions from a user's events."""

    def __init__(
        self,
        settings: Optional[GeminiSettings] = None,
        model: Any = None,
    ):
        self._settings = settings or GeminiSettings()
        self._model = model

    def _get_model(self, now: datetime):
        if self._model is not None:
            return self._model
        # The prompt carries the current time, so the model is built per call.
        return build_gemini_model(
            self._settings,
            temperature=0.5,
            max_output_tokens=300,
            json_output=True,
            system_instruction=_ai_system_prompt(now),
        )

    async def get_ai_suggestion(
        self,
        user_input: str,
        now: datetime,
    ) -> Optional[SchedulingSuggestion]:
        """One suggestion from the LLM, or None on any failure."""
        model = self._get_model(now)
        if model is None:
            return None

        try:
            response = await model.generate_content_async(user_input)
            answer = parse_structured_output(response.text, AISuggestionAnswer)
        except MalformedOutputError as e:
            logger.warning("ai_suggestion_malformed_output", error=str(e))
            return None
        except Exception as e:
            logger.error("ai_suggestion_failed", error=str(e))
            return None

        return SchedulingSuggestion(
            title=answer.title,
            suggested_time=to_local_naive(answer.date_time),
            reason=answer.reason,
            confidence=answer.confidence,
        )

    async def generate_smart_suggestions(
        self,
        events: list[Event],
        user_input: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> list[SchedulingSuggestion]:
        now = now or datetime.now()
        upcoming = [e for e in events if e.date_time > now]
        past = [e for e in events if e.date_time <= now]

        suggestions = []

        for pattern in detect_recurring_patterns(past):
            if pattern.confidence <= PATTERN_CONFIDENCE_THRESHOLD:
                continue
            next_time = calculate_next_occurrence(
                pattern.occurrences[-1], pattern.type, pattern.interval
            )
            suggestions.append(
                SchedulingSuggestion(
                    title=pattern.suggested_title or "Recurring Event",
                    suggested_time=next_time,
                    reason=f"Based on {pattern.type.value} pattern detected",
                    confidence=pattern.confidence,
                    conflicts_with=find_conflicts(upcoming, next_time),
                )
            )

        if user_input:
            ai_suggestion = await self.get_ai_suggestion(user_input, now)
            if ai_suggestion:
                suggestions.append(ai_suggestion)

        busy_hours = analyze_busy_hours(events)
        for slot in find_optimal_time_slots(upcoming, busy_hours, now)[:SLOT_SUGGESTIONS]:
            suggestions.append(
                SchedulingSuggestion(
                    title="Available Time Slot",
                    suggested_time=slot,
                    reason="Optimal time based on your schedule",
                    confidence=SLOT_CONFIDENCE,
                )
            )

        suggestions.sort(key=lambda s: s.confidence, reverse=True)
        return suggestions
