"""Retry policy for calls to the extraction oracle."""
import asyncio
import random
from dataclasses import dataclass, field
from typing import Callable, FrozenSet

from openai import APIConnectionError, APIStatusError, APITimeoutError

from cafe_ordering.core.config import Settings

RETRYABLE_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 529})


@dataclass(frozen=True)
class RetryPolicy:
    """Attempt ceiling, exponential backoff and the transient-error predicate.

    ``max_attempts`` counts the first call, so 3 means one call plus two retries.
    """

    max_attempts: int = 3
    base_delay: float = 1.0
    multiplier: float = 2.0
    jitter: float = 1.0
    retryable_statuses: FrozenSet[int] = RETRYABLE_STATUS_CODES
    random_fn: Callable[[], float] = field(default=random.random, compare=False, repr=False)

    @classmethod
    def from_settings(cls, settings: Settings) -> "RetryPolicy":
        """Build the policy from application settings."""
        return cls(
            max_attempts=max(1, settings.oracle_max_attempts),
            base_delay=settings.oracle_base_delay_seconds,
            multiplier=settings.oracle_backoff_multiplier,
            jitter=settings.oracle_jitter_seconds,
        )

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after failed attempt number ``attempt`` (1-based)."""
        backoff = self.base_delay * (self.multiplier ** (attempt - 1))
        return backoff + self.random_fn() * self.jitter

    def is_transient(self, error: BaseException) -> bool:
        """Timeouts, connection errors and 408/429/5xx-class statuses are worth retrying."""
        if isinstance(error, (asyncio.TimeoutError, APITimeoutError, APIConnectionError)):
            return True
        if isinstance(error, APIStatusError):
            return error.status_code in self.retryable_statuses
        return False
