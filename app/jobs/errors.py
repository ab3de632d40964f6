"""Error taxonomy for the job queue."""


class JobQueueError(Exception):
    """Base class for job queue errors."""


class RateLimitedError(JobQueueError):
    """The backend signalled throttling. Retryable."""


class BackendFailure(JobQueueError):
    """Terminal failure reported by (or while talking to) the backend."""


class RetryExhaustedError(BackendFailure):
    """Rate limiting persisted through every allowed attempt."""

    def __init__(self, context: str, attempts: int, cause: BaseException):
        self.context = context
        self.attempts = attempts
        super().__init__(
            f"Rate limit persisted for {context} after {attempts} attempt(s): {cause}"
        )


class InternalQueueingError(JobQueueError):
    """A job could not be placed on the execution queue."""


class JobNotFoundError(JobQueueError):
    """Status requested for a job id that was never submitted (or was evicted)."""

    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__(f"No job found with ID: {job_id}")


class InvalidTransitionError(JobQueueError):
    """Illegal job state change, e.g. leaving a terminal state."""
