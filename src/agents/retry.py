"""
Retry with exponential backoff and proportional jitter.

Delay before retry n (zero-based, so n=0 is the wait after the first
failure):

    exponential = min(base * factor**n, cap)
    delay       = exponential + uniform(0, jitter * exponential)

With the defaults (0.5s, x2, 5s cap, 30% jitter) the waits are
0.5-0.65s then 1.0-1.3s between three attempts.
"""

import asyncio
import random
from typing import Awaitable, Callable, Optional

import structlog
from tenacity import AsyncRetrying, RetryCallState, stop_after_attempt
from tenacity.wait import wait_base

from src.config import RetrySettings

logger = structlog.get_logger(__name__)


def backoff_delay(
    retry_index: int,
    settings: RetrySettings,
    rng: Optional[random.Random] = None,
) -> float:
    """Seconds to wait before retry `retry_index` (zero-based)."""
    rng = rng or random
    exponential = min(
        settings.base_delay_seconds * (settings.factor ** retry_index),
        settings.max_delay_seconds,
    )
    return exponential + rng.uniform(0, settings.jitter * exponential)


class wait_proportional_jitter(wait_base):
    """Tenacity wait strategy built on backoff_delay."""

    def __init__(self, settings: RetrySettings, rng: Optional[random.Random] = None):
        self._settings = settings
        self._rng = rng

    def __call__(self, retry_state: RetryCallState) -> float:
        return backoff_delay(retry_state.attempt_number - 1, self._settings, self._rng)


def _log_before_sleep(label: str, max_attempts: int):
    def before_sleep(retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
        logger.debug(
            "retry_scheduled",
            target=label,
            attempt=retry_state.attempt_number,
            max_attempts=max_attempts,
            delay_ms=round(delay * 1000),
            error=str(error) if error else None,
        )
    return before_sleep


def build_retrying(
    settings: RetrySettings,
    label: str,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    rng: Optional[random.Random] = None,
) -> AsyncRetrying:
    """
    Build an AsyncRetrying that re-raises the last error once attempts run out.
    """
    return AsyncRetrying(
        stop=stop_after_attempt(settings.max_attempts),
        wait=wait_proportional_jitter(settings, rng),
        sleep=sleep,
        reraise=True,
        before_sleep=_log_before_sleep(label, settings.max_attempts),
    )
