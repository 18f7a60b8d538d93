"""Retry policy with exponential backoff for remote calls."""
from __future__ import annotations

from dataclasses import dataclass

from shopcart.core.constants import (
    DEFAULT_RETRIES,
    DEFAULT_RETRY_INITIAL_DELAY,
    DEFAULT_RETRY_MAX_DELAY,
)


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """How many extra attempts a request gets and how long to wait between them.

    Args:
        retries: Extra attempts after the first one
        initial_delay: Delay before the first retry, in seconds
        exponential_base: Multiplier applied per retry
        max_delay: Upper bound for a single delay

    Example:
        RetryPolicy().delays() -> [2.0, 4.0]
    """

    retries: int = DEFAULT_RETRIES
    initial_delay: float = DEFAULT_RETRY_INITIAL_DELAY
    exponential_base: float = 2.0
    max_delay: float = DEFAULT_RETRY_MAX_DELAY

    def delay_for(self, retry_number: int) -> float:
        """Delay before retry number ``retry_number`` (1-based)."""
        delay = self.initial_delay * (self.exponential_base ** (retry_number - 1))
        return min(delay, self.max_delay)

    def delays(self) -> list[float]:
        return [self.delay_for(n) for n in range(1, self.retries + 1)]

    @property
    def max_attempts(self) -> int:
        return max(0, self.retries) + 1


def is_retryable_status(status: int) -> bool:
    """Only 5xx responses are retried; 4xx is the caller's fault."""
    return status >= 500
