"""TTL-based eviction of finished jobs from the registry."""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Optional

from app.jobs.models import utcnow
from app.jobs.registry import JobRegistry

logger = logging.getLogger(__name__)


class JobRetention:
    """Removes completed/failed jobs older than a TTL. Pending and running jobs are never touched."""

    def __init__(self, registry: JobRegistry, ttl_hours: int, interval_seconds: int = 300):
        self._registry = registry
        self._ttl = timedelta(hours=ttl_hours)
        self._interval = interval_seconds
        self._task: Optional[asyncio.Task] = None

    @property
    def enabled(self) -> bool:
        return self._ttl > timedelta(0)

    def sweep(self, now: Optional[datetime] = None) -> int:
        """Remove expired terminal jobs. Returns count of removed jobs."""
        if not self.enabled:
            return 0
        cutoff = (now or utcnow()) - self._ttl
        removed = 0
        for job in self._registry.list_jobs():
            if not job.state.is_terminal or job.completed_at is None:
                continue
            if job.completed_at < cutoff and self._registry.remove(job.id):
                removed += 1
        if removed:
            logger.info(f"Evicted {removed} expired job(s)")
        return removed

    async def start(self) -> None:
        if self.enabled and (self._task is None or self._task.done()):
            self._task = asyncio.create_task(self._sweep_loop())

    async def stop(self) -> None:
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None

    async def _sweep_loop(self) -> None:
        while True:
            try:
                await asyncio.sleep(self._interval)
                self.sweep()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Error during job retention sweep: {e}")
