"""In-process job queue using asyncio.

Runs backend calls strictly one at a time, in submission order, from a
single background task. The backend enforces one shared rate limit, so
serialising calls keeps the retry backoff meaningful.
No external dependencies (Redis, Celery) needed.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from app.jobs.dispatcher import JobDispatcher
from app.jobs.errors import BackendFailure, InternalQueueingError
from app.jobs.executor import CallExecutor
from app.jobs.models import BackendResponse, JobRecord, JobState
from app.jobs.registry import JobRegistry
from app.jobs.usage import UsageMeter

logger = logging.getLogger(__name__)

JobRunner = Callable[[JobRecord], Awaitable[BackendResponse]]


class InProcessQueue(JobDispatcher):
    """Local async job queue. Processes jobs one at a time via asyncio."""

    def __init__(
        self,
        registry: JobRegistry,
        executor: CallExecutor,
        runner: JobRunner,
        usage_meter: Optional[UsageMeter] = None,
    ):
        """
        runner: coroutine function(job: JobRecord) -> BackendResponse
            Performs the actual backend call for a job. Wrapped in the
            executor's retry loop, so it may be invoked more than once.
        """
        self._registry = registry
        self._executor = executor
        self._runner = runner
        self._usage = usage_meter
        self._queue: asyncio.Queue[str] = asyncio.Queue()
        self._task: Optional[asyncio.Task] = None
        self._running = False
        self._closed = False
        self._busy = False

    @property
    def pending_count(self) -> int:
        return self._queue.qsize()

    @property
    def busy(self) -> bool:
        return self._busy

    def submit(self, job_id: str) -> str:
        try:
            if self._closed:
                raise InternalQueueingError("queue has been stopped")
            self._queue.put_nowait(job_id)
        except Exception as e:
            self._fail_unqueued(job_id, e)
        else:
            logger.debug(f"Queued job {job_id} ({self._queue.qsize()} waiting)")
        return job_id

    async def start(self) -> None:
        if self._task is not None and not self._task.done():
            return
        self._running = True
        self._closed = False
        self._task = asyncio.create_task(self._worker_loop())

    async def stop(self) -> None:
        self._running = False
        self._closed = True
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    async def join(self) -> None:
        """Wait until every job queued so far has reached a terminal state."""
        await self._queue.join()

    def _fail_unqueued(self, job_id: str, cause: Exception) -> None:
        error = InternalQueueingError(f"Failed to queue: {cause}")
        logger.error(f"Failed to queue job {job_id}: {cause}")
        job = self._registry.get(job_id)
        if job is not None and job.state == JobState.PENDING:
            job.mark_failed(str(error))

    async def _worker_loop(self) -> None:
        """Process jobs one at a time from the queue."""
        while self._running:
            try:
                job_id = await asyncio.wait_for(self._queue.get(), timeout=1.0)
            except asyncio.TimeoutError:
                continue
            except asyncio.CancelledError:
                break

            self._busy = True
            try:
                job = self._registry.get(job_id)
                if job is None:
                    logger.warning(f"Dequeued unknown job {job_id}, skipping")
                    continue
                await self._process(job)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.exception(f"Unexpected error while processing job {job_id}")
                job = self._registry.get(job_id)
                if job is not None and not job.state.is_terminal:
                    job.mark_failed(f"{type(e).__name__}: {e}")
            finally:
                self._busy = False
                self._queue.task_done()

    async def _process(self, job: JobRecord) -> None:
        job.mark_processing()
        label = job.kind.value
        logger.info(f"Processing {label} operation {job.id}")

        async def call_backend() -> BackendResponse:
            response = await self._runner(job)
            if not response.success:
                raise BackendFailure(
                    response.error or f"{label.capitalize()} operation failed in Firecrawl API"
                )
            return response

        try:
            response = await self._executor.execute(call_backend, f"{label} {job.id} processing")
        except Exception as e:
            job.mark_failed(str(e) or type(e).__name__)
            logger.error(f"{label.capitalize()} {job.id} failed: {job.error}")
            return

        job.mark_completed(
            response.model_dump(exclude_none=True),
            credits_used=response.credits_used,
        )
        if response.credits_used is not None and self._usage is not None:
            self._usage.record(response.credits_used)
        logger.info(
            f"{label.capitalize()} {job.id} completed. "
            f"Credits used: {response.credits_used if response.credits_used is not None else 'N/A'}"
        )
