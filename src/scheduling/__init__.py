"""Scheduling package: patterns, suggestions, event parsing and reminders."""

from src.scheduling.event_parser import (
    create_event_from_parsed_data,
    has_scheduling_intent,
    parse_event_from_text,
)
from src.scheduling.patterns import (
    calculate_next_occurrence,
    classify_interval,
    detect_recurring_patterns,
)
from src.scheduling.reminders import (
    due_reminders,
    mark_reminder_sent,
    reminder_time,
    reschedule,
)
from src.scheduling.suggestions import (
    SchedulingAdvisor,
    analyze_busy_hours,
    find_conflicts,
    find_optimal_time_slots,
)

__all__ = [
    "create_event_from_parsed_data",
    "has_scheduling_intent",
    "parse_event_from_text",
    "calculate_next_occurrence",
    "classify_interval",
    "detect_recurring_patterns",
    "due_reminders",
    "mark_reminder_sent",
    "reminder_time",
    "reschedule",
    "SchedulingAdvisor",
    "analyze_busy_hours",
    "find_conflicts",
    "find_optimal_time_slots",
]
