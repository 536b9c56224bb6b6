"""Retry budget and inter-attempt delay calculation."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..config.settings import (
    DEFAULT_BACKOFF_MULTIPLIER,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_MAX_RETRY_DELAY_MS,
    DEFAULT_RETRY_DELAY_MS,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """Configuration for retry behaviour.

    With the default multiplier of 1.0 every wait equals
    ``retry_delay_ms``. There is no jitter so delays are reproducible.
    """

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    retry_delay_ms: int = DEFAULT_RETRY_DELAY_MS
    multiplier: float = DEFAULT_BACKOFF_MULTIPLIER
    max_delay_ms: int = DEFAULT_MAX_RETRY_DELAY_MS

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1 (got {self.max_attempts})")
        if self.retry_delay_ms < 0:
            raise ValueError(f"retry_delay_ms must be non-negative (got {self.retry_delay_ms})")
        if self.multiplier < 1.0:
            raise ValueError(f"multiplier must be at least 1.0 (got {self.multiplier})")

    def should_retry(self, attempt: int) -> bool:
        """True when another attempt is allowed after ``attempt`` failed."""
        can_retry = attempt < self.max_attempts
        if not can_retry:
            logger.debug("Max attempts (%s) reached", self.max_attempts)
        return can_retry

    def delay_ms(self, attempt: int) -> float:
        """Delay to wait after failed ``attempt`` (1-based) before the next one."""
        if attempt < 1:
            raise ValueError(f"attempt must be at least 1 (got {attempt})")
        base_delay = self.retry_delay_ms * (self.multiplier ** (attempt - 1))
        return min(base_delay, max(self.max_delay_ms, self.retry_delay_ms))

    def delay_seconds(self, attempt: int) -> float:
        return self.delay_ms(attempt) / 1000.0


__all__ = ["RetryPolicy"]
