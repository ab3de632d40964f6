"""Retry delay and attempt cutoff for backend calls."""

from dataclasses import dataclass
from enum import Enum


class ErrorKind(str, Enum):
    RATE_LIMITED = "rate_limited"
    OTHER = "other"


@dataclass(frozen=True)
class BackoffPolicy:
    """Exponential backoff, capped. Delays are in milliseconds."""
    initial_delay: int = 1000
    backoff_factor: float = 2.0
    max_delay: int = 10000
    max_attempts: int = 3

    @classmethod
    def from_settings(cls, settings) -> "BackoffPolicy":
        return cls(
            initial_delay=settings.firecrawl_retry_initial_delay,
            backoff_factor=settings.firecrawl_retry_backoff_factor,
            max_delay=settings.firecrawl_retry_max_delay,
            max_attempts=settings.firecrawl_retry_max_attempts,
        )

    def compute_delay(self, attempt: int) -> float:
        """Delay before retrying after the given (1-based) failed attempt."""
        if attempt < 1:
            raise ValueError(f"attempt must be >= 1, got {attempt}")
        return min(self.initial_delay * self.backoff_factor ** (attempt - 1), self.max_delay)

    def should_retry(self, attempt: int, kind: ErrorKind) -> bool:
        return kind == ErrorKind.RATE_LIMITED and attempt < self.max_attempts
