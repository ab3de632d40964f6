"""Submission and status interface consumed by the transport layer."""

import logging
from typing import Any, Dict, List, Optional

from app.jobs.dispatcher import JobDispatcher
from app.jobs.executor import CallExecutor
from app.jobs.models import BackendResponse, JobKind
from app.jobs.registry import JobRegistry
from app.jobs.status import JobStatusPayload, StatusReporter
from app.jobs.usage import UsageMeter

logger = logging.getLogger(__name__)


def _validate_urls(urls: Any) -> List[str]:
    if not isinstance(urls, list) or not urls:
        raise ValueError("Invalid arguments: Missing or invalid 'urls' array.")
    if not all(isinstance(u, str) and u for u in urls):
        raise ValueError("Invalid arguments: every entry in 'urls' must be a non-empty string.")
    return urls


class JobService:
    """Registers jobs, hands them to the dispatcher and answers status polls.

    Submission never talks to the backend; it only creates the record and
    queues it, so it returns as soon as the job id is known.
    """

    def __init__(
        self,
        registry: JobRegistry,
        dispatcher: JobDispatcher,
        executor: CallExecutor,
        usage_meter: UsageMeter,
        backend=None,
    ):
        """
        backend: object with ``check_crawl_status(crawl_id)``; only needed
            for remote crawl status checks.
        """
        self.registry = registry
        self.dispatcher = dispatcher
        self.usage_meter = usage_meter
        self._executor = executor
        self.backend = backend
        self._reporter = StatusReporter(registry)

    def submit_batch(self, urls: List[str], options: Optional[Dict[str, Any]] = None) -> Dict[str, str]:
        urls = _validate_urls(urls)
        job = self.registry.create(JobKind.BATCH, urls, options)
        self.dispatcher.submit(job.id)
        logger.info(f"Queued batch_scrape submission {job.id} with {len(urls)} URLs")
        return {"job_id": job.id}

    def submit_crawl(self, url: str, options: Optional[Dict[str, Any]] = None) -> Dict[str, str]:
        if not isinstance(url, str) or not url:
            raise ValueError("Invalid arguments: Missing or invalid 'url'.")
        job = self.registry.create(JobKind.CRAWL, [url], options)
        self.dispatcher.submit(job.id)
        logger.info(f"Queued crawl submission {job.id} for {url}")
        return {"job_id": job.id}

    def get_status(self, job_id: str) -> JobStatusPayload:
        return self._reporter.report(job_id)

    async def check_crawl_status(self, crawl_id: str) -> BackendResponse:
        """Ask the backend directly about a crawl it is running under ``crawl_id``."""
        if self.backend is None:
            raise RuntimeError("No backend configured for crawl status checks")
        return await self._executor.execute(
            lambda: self.backend.check_crawl_status(crawl_id),
            f"check_crawl_status {crawl_id}",
        )

    def usage(self) -> Dict[str, Any]:
        return self.usage_meter.snapshot()
