"""In-memory job registry: id assignment and record ownership."""

import itertools
import logging
import threading
from typing import Any, Dict, List, Optional, Sequence

from app.jobs.models import JobKind, JobProgress, JobRecord, JobState

logger = logging.getLogger(__name__)


class JobRegistry:
    """Maps job ids to records for the lifetime of the process.

    Ids are ``{kind}_{n}`` with one counter shared by all kinds, so an id is
    never handed out twice, even after the record has been removed.
    Only insert, lookup and removal take the lock; nothing here runs jobs.
    """

    def __init__(self):
        self._jobs: Dict[str, JobRecord] = {}
        self._counter = itertools.count(1)
        self._lock = threading.Lock()

    def create(
        self,
        kind: JobKind,
        urls: Sequence[str],
        options: Optional[Dict[str, Any]] = None,
    ) -> JobRecord:
        with self._lock:
            job_id = f"{kind.value}_{next(self._counter)}"
            job = JobRecord(
                id=job_id,
                kind=kind,
                urls=list(urls),
                options=dict(options or {}),
                progress=JobProgress(completed=0, total=len(urls)),
            )
            self._jobs[job_id] = job
        logger.debug(f"Registered job {job_id} with {len(urls)} URL(s)")
        return job

    def get(self, job_id: str) -> Optional[JobRecord]:
        with self._lock:
            return self._jobs.get(job_id)

    def list_jobs(self, state: Optional[JobState] = None) -> List[JobRecord]:
        with self._lock:
            jobs = list(self._jobs.values())
        if state is not None:
            jobs = [j for j in jobs if j.state == state]
        return jobs

    def remove(self, job_id: str) -> bool:
        with self._lock:
            return self._jobs.pop(job_id, None) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)

    def __contains__(self, job_id: str) -> bool:
        with self._lock:
            return job_id in self._jobs
