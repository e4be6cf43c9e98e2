"""
Recurring Pattern Detector

DESIGN DECISION: Patterns are found with plain statistics, no ML:
1. Group events by normalized title (lowercased, trimmed)
2. Keep groups with at least 3 events
3. Measure the gaps between consecutive events
4. consistency = 1 - min(stddev / mean, 1), keep if > 0.7
5. Bucket the mean gap into daily / weekly / biweekly / monthly / custom

The standard deviation is the population one (divide by N).
"""

import math
from collections import defaultdict
from datetime import datetime, timedelta

from dateutil.relativedelta import relativedelta

from src.models import Event, PatternType, RecurringPattern

MIN_OCCURRENCES = 3
MIN_CONSISTENCY = 0.7

_DAY = timedelta(days=1).total_seconds()

# (type, target gap, tolerance, interval), checked in order
CLASSIFICATION_WINDOWS = [
    (PatternType.DAILY, 1 * _DAY, 0.1 * _DAY, 1),
    (PatternType.WEEKLY, 7 * _DAY, 0.5 * _DAY, 1),
    (PatternType.BIWEEKLY, 14 * _DAY, 0.5 * _DAY, 2),
    (PatternType.MONTHLY, 30 * _DAY, 2 * _DAY, 1),
]


def normalize_title(title: str) -> str:
    return title.strip().lower()


def classify_interval(mean_seconds: float) -> tuple[PatternType, int]:
    """Pattern type and interval for a mean gap; custom when nothing fits."""
    for pattern_type, target, tolerance, interval in CLASSIFICATION_WINDOWS:
        if abs(mean_seconds - target) < tolerance:
            return pattern_type, interval
    return PatternType.CUSTOM, 1


def detect_recurring_patterns(events: list[Event]) -> list[RecurringPattern]:
    """
    Find events that repeat at a steady rhythm.

    Returns patterns sorted by confidence, highest first. A group whose
    events all share one instant has no rhythm and is skipped.
    """
    groups: dict[str, list[Event]] = defaultdict(list)
    for event in sorted(events, key=lambda e: e.date_time):
        groups[normalize_title(event.title)].append(event)

    patterns = []
    for group in groups.values():
        if len(group) < MIN_OCCURRENCES:
            continue

        gaps = [
            (later.date_time - earlier.date_time).total_seconds()
            for earlier, later in zip(group, group[1:])
        ]
        mean = sum(gaps) / len(gaps)
        if mean <= 0:
            continue

        stddev = math.sqrt(sum((gap - mean) ** 2 for gap in gaps) / len(gaps))
        consistency = 1 - min(stddev / mean, 1)
        if consistency <= MIN_CONSISTENCY:
            continue

        pattern_type, interval = classify_interval(mean)
        patterns.append(
            RecurringPattern(
                type=pattern_type,
                interval=interval,
                confidence=consistency,
                suggested_title=group[0].title,
                occurrences=[event.date_time for event in group],
            )
        )

    patterns.sort(key=lambda p: p.confidence, reverse=True)
    return patterns


def calculate_next_occurrence(
    last: datetime,
    pattern_type: PatternType,
    interval: int,
) -> datetime:
    """When the pattern should happen next after `last`."""
    if pattern_type == PatternType.DAILY:
        return last + timedelta(days=interval)
    if pattern_type == PatternType.WEEKLY:
        return last + timedelta(weeks=interval)
    if pattern_type == PatternType.BIWEEKLY:
        return last + timedelta(weeks=2)
    if pattern_type == PatternType.MONTHLY:
        # relativedelta clamps the day to the end of shorter months
        return last + relativedelta(months=interval)
    return last + timedelta(days=7)
