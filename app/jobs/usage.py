"""Credit usage tracking with one-shot threshold notifications."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict

from app.jobs.models import utcnow

logger = logging.getLogger(__name__)


@dataclass
class UsageCounter:
    total: int = 0
    last_check: datetime = field(default_factory=utcnow)


class UsageMeter:
    """Accumulates credits reported by successful backend calls.

    Each threshold fires once, the moment the running total first reaches it.
    Self-hosted backends have no credit concept, so a disabled meter ignores
    every record() call.
    """

    def __init__(
        self,
        warning_threshold: int,
        critical_threshold: int,
        enabled: bool = True,
    ):
        self.counter = UsageCounter()
        self.warning_threshold = warning_threshold
        self.critical_threshold = critical_threshold
        self.enabled = enabled
        self._warning_emitted = False
        self._critical_emitted = False

    @classmethod
    def from_settings(cls, settings) -> "UsageMeter":
        return cls(
            warning_threshold=settings.firecrawl_credit_warning_threshold,
            critical_threshold=settings.firecrawl_credit_critical_threshold,
            enabled=not settings.is_self_hosted,
        )

    @property
    def total(self) -> int:
        return self.counter.total

    def record(self, credits_used: int) -> None:
        if not self.enabled:
            return
        if credits_used < 0:
            raise ValueError(f"credits_used must be >= 0, got {credits_used}")

        self.counter.total += credits_used
        self.counter.last_check = utcnow()
        logger.info(f"Credit usage update: +{credits_used}, Total: {self.counter.total}")

        if not self._critical_emitted and self.counter.total >= self.critical_threshold:
            self._critical_emitted = True
            logger.critical(
                f"CRITICAL: Credit usage threshold reached: "
                f"{self.counter.total} / {self.critical_threshold}"
            )
        if not self._warning_emitted and self.counter.total >= self.warning_threshold:
            self._warning_emitted = True
            logger.warning(
                f"WARNING: Credit usage threshold reached: "
                f"{self.counter.total} / {self.warning_threshold}"
            )

    def snapshot(self) -> Dict[str, Any]:
        return {
            "enabled": self.enabled,
            "total": self.counter.total,
            "last_check": self.counter.last_check.isoformat(),
            "warning_threshold": self.warning_threshold,
            "critical_threshold": self.critical_threshold,
            "warning_emitted": self._warning_emitted,
            "critical_emitted": self._critical_emitted,
        }
