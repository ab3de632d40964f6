"""Caller-facing view of a job record."""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel

from app.jobs.errors import JobNotFoundError
from app.jobs.models import JobKind, JobRecord, JobState
from app.jobs.registry import JobRegistry

_UNIT = {JobKind.BATCH: "URLs processed", JobKind.CRAWL: "URLs crawled"}


class ProgressPayload(BaseModel):
    completed: int
    total: int


class JobStatusPayload(BaseModel):
    job_id: str
    kind: JobKind
    state: JobState
    progress: ProgressPayload
    created_at: datetime
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    error: Optional[str] = None
    result_available: Optional[bool] = None


def project(job: JobRecord) -> JobStatusPayload:
    """Snapshot a record. The result payload itself is never copied out."""
    payload = JobStatusPayload(
        job_id=job.id,
        kind=job.kind,
        state=job.state,
        progress=ProgressPayload(
            completed=job.progress.completed,
            total=job.progress.total,
        ),
        created_at=job.created_at,
        started_at=job.started_at,
        completed_at=job.completed_at,
    )
    if job.state == JobState.FAILED:
        payload.error = job.error
    elif job.state == JobState.COMPLETED:
        payload.result_available = job.result is not None
    return payload


class StatusReporter:
    def __init__(self, registry: JobRegistry):
        self._registry = registry

    def report(self, job_id: str) -> JobStatusPayload:
        job = self._registry.get(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return project(job)


def format_status_text(status: JobStatusPayload) -> str:
    title = status.kind.value.capitalize()
    lines = [
        f"{title} Job ID: {status.job_id}",
        f"Status: {status.state.value}",
        f"Progress: {status.progress.completed}/{status.progress.total} {_UNIT[status.kind]}",
    ]
    if status.state == JobState.FAILED and status.error:
        lines.append(f"Error: {status.error}")
    if status.state == JobState.COMPLETED and status.result_available:
        lines.append(f"Result: {title} completed successfully.")
    return "\n".join(lines).strip()
