"""Shared fixtures: a scripted in-memory backend and a recording sleep."""

import asyncio
from typing import List, Optional

import pytest

from app.config import Settings
from app.jobs.backoff import BackoffPolicy
from app.jobs.executor import CallExecutor
from app.jobs.models import BackendResponse, JobRecord
from app.main import build_service


class SleepRecorder:
    """Stands in for asyncio.sleep; records requested delays in seconds."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class FakeBackend:
    """Backend double.

    ``script`` is consumed one entry per call: an Exception is raised, a
    BackendResponse is returned. Once exhausted every call succeeds.
    """

    def __init__(self, script=None, latency: float = 0.0, credits: Optional[int] = None):
        self.script = list(script or [])
        self.latency = latency
        self.credits = credits
        self.calls: List[str] = []
        self.active = 0
        self.max_active = 0
        self.status_checks: List[str] = []

    async def run_job(self, job: JobRecord) -> BackendResponse:
        self.calls.append(job.id)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.latency:
                await asyncio.sleep(self.latency)
            if self.script:
                item = self.script.pop(0)
                if isinstance(item, Exception):
                    raise item
                return item
            return BackendResponse(
                success=True,
                id=f"remote-{job.id}",
                data={"urls": job.urls},
                credits_used=self.credits,
            )
        finally:
            self.active -= 1

    async def check_crawl_status(self, crawl_id: str) -> BackendResponse:
        self.status_checks.append(crawl_id)
        return BackendResponse(
            success=True,
            data={"status": "completed", "completed": 3, "total": 3},
            credits_used=3,
        )


@pytest.fixture
def sleeper():
    return SleepRecorder()


@pytest.fixture
def policy():
    return BackoffPolicy(initial_delay=1000, backoff_factor=2.0, max_delay=10000, max_attempts=3)


@pytest.fixture
def executor(policy, sleeper):
    return CallExecutor(policy, sleep=sleeper)


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def make_service(sleeper):
    """Build a JobService around a FakeBackend with a non-waiting executor."""

    def _make(backend: FakeBackend, **overrides):
        config = Settings(**overrides)
        executor = CallExecutor(BackoffPolicy.from_settings(config), sleep=sleeper)
        return build_service(config, backend=backend, executor=executor)

    return _make


@pytest.fixture
async def service(make_service, backend):
    service = make_service(backend)
    yield service
    await service.dispatcher.stop()
