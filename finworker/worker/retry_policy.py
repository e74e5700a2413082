from dataclasses import dataclass
from typing import Literal

DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_BASE_BACKOFF_MS = 1000
DEFAULT_MAX_BACKOFF_MS = 30000


@dataclass(frozen=True)
class RetryOutcome:
    status: Literal["failed", "dead_letter"]
    delay_ms: int


def calculate_backoff_delay(
    attempt: int,
    base_ms: int = DEFAULT_BASE_BACKOFF_MS,
    max_ms: int = DEFAULT_MAX_BACKOFF_MS,
) -> int:
    """Exponential delay doubling from ``base_ms`` on attempt 1, capped at ``max_ms``."""
    attempt = max(1, attempt)
    return min(base_ms * 2 ** (attempt - 1), max_ms)


def determine_retry_outcome(
    attempt: int,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    base_ms: int = DEFAULT_BASE_BACKOFF_MS,
    max_ms: int = DEFAULT_MAX_BACKOFF_MS,
) -> RetryOutcome:
    """Decide what happens after ``attempt`` has failed.

    Below the ceiling the job is retried after the backoff delay; at or above
    it the job is dead-lettered and nothing is scheduled.
    """
    if attempt >= max_attempts:
        return RetryOutcome(status="dead_letter", delay_ms=0)
    return RetryOutcome(
        status="failed",
        delay_ms=calculate_backoff_delay(attempt, base_ms, max_ms),
    )
