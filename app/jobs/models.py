"""Job record data model for queued backend operations."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

from app.jobs.errors import InvalidTransitionError


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JobKind(str, Enum):
    BATCH = "batch"
    CRAWL = "crawl"


class JobState(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobState.COMPLETED, JobState.FAILED)


class JobProgress(BaseModel):
    completed: int = Field(default=0, ge=0)
    total: int = Field(default=0, ge=0)


class BackendResponse(BaseModel):
    """Normalised reply from the scraping backend."""
    success: bool
    data: Any = None
    error: Optional[str] = None
    credits_used: Optional[int] = None
    id: Optional[str] = None


class JobRecord(BaseModel):
    """Tracks the lifecycle of one batch or crawl job.

    State only moves forward: pending -> processing -> completed | failed,
    or pending -> failed when the job never made it onto the queue.
    Use the mark_* methods rather than assigning ``state`` directly.
    """
    id: str
    kind: JobKind
    urls: List[str]
    options: Dict[str, Any] = Field(default_factory=dict)
    state: JobState = JobState.PENDING
    progress: JobProgress = Field(default_factory=JobProgress)
    result: Optional[Any] = None
    error: Optional[str] = None
    credits_used: Optional[int] = None
    created_at: datetime = Field(default_factory=utcnow)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    def mark_processing(self) -> None:
        if self.state != JobState.PENDING:
            raise InvalidTransitionError(
                f"Job {self.id} cannot start processing from state '{self.state.value}'"
            )
        self.state = JobState.PROCESSING
        self.started_at = utcnow()

    def mark_completed(self, result: Any, credits_used: Optional[int] = None) -> None:
        if self.state != JobState.PROCESSING:
            raise InvalidTransitionError(
                f"Job {self.id} cannot complete from state '{self.state.value}'"
            )
        self.result = result
        self.credits_used = credits_used
        self.progress.completed = self.progress.total
        self.state = JobState.COMPLETED
        self.completed_at = utcnow()

    def mark_failed(self, error: str) -> None:
        if self.state.is_terminal:
            raise InvalidTransitionError(
                f"Job {self.id} is already '{self.state.value}'"
            )
        self.error = error
        self.state = JobState.FAILED
        self.completed_at = utcnow()
