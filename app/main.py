"""Scrape Job Queue - FastAPI application."""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI

from app.config import Settings, settings
from app.api.v1.router import v1_router
from app.api.v1.health import router as health_root_router
from app.api.v1 import health as health_api
from app.api.v1 import jobs as jobs_api
from app.firecrawl.client import FirecrawlClient
from app.jobs.backoff import BackoffPolicy
from app.jobs.executor import CallExecutor
from app.jobs.in_process_queue import InProcessQueue
from app.jobs.registry import JobRegistry
from app.jobs.service import JobService
from app.jobs.usage import UsageMeter
from app.storage.job_retention import JobRetention

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    """Log to stderr; stdout may be owned by the transport."""
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )
    root.addHandler(handler)
    root.setLevel(level.upper())


def build_service(
    config: Settings,
    backend=None,
    executor: Optional[CallExecutor] = None,
) -> JobService:
    """Wire registry, executor, meter and queue around a backend.

    backend: object exposing ``run_job(job)`` and ``check_crawl_status(id)``;
        a FirecrawlClient built from config when omitted.
    """
    if backend is None:
        backend = FirecrawlClient.from_settings(config)
    if executor is None:
        executor = CallExecutor(BackoffPolicy.from_settings(config))
    registry = JobRegistry()
    meter = UsageMeter.from_settings(config)
    queue = InProcessQueue(registry, executor, backend.run_job, usage_meter=meter)
    return JobService(registry, queue, executor, meter, backend=backend)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown logic."""
    configure_logging(settings.log_level)
    logger.info(f"Starting Scrape Job Queue on port {settings.port}")
    logger.info(
        "Backend: "
        + (f"self-hosted at {settings.firecrawl_api_url}" if settings.is_self_hosted else "Firecrawl cloud")
    )

    service = build_service(settings)
    await service.dispatcher.start()
    logger.info("Job dispatcher started")

    retention = JobRetention(
        service.registry,
        ttl_hours=settings.job_retention_ttl_hours,
        interval_seconds=settings.job_retention_interval_seconds,
    )
    await retention.start()
    if retention.enabled:
        logger.info(f"Job retention enabled: {settings.job_retention_ttl_hours}h TTL")

    jobs_api.set_service(service)
    health_api.set_service(service)

    yield

    logger.info("Shutting down Scrape Job Queue")
    await retention.stop()
    await service.dispatcher.stop()
    if hasattr(service.backend, "aclose"):
        await service.backend.aclose()
    jobs_api.set_service(None)
    health_api.set_service(None)


app = FastAPI(
    title="Scrape Job Queue",
    description="Queued, rate-limit aware batch scraping and crawling jobs",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(health_root_router, tags=["health"])  # GET /health at root
app.include_router(v1_router)  # All /api/v1/* endpoints


def main() -> None:
    uvicorn.run(app, host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    main()
