"""Resilient execution of a single backend call."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from app.jobs.backoff import BackoffPolicy, ErrorKind
from app.jobs.errors import RateLimitedError, RetryExhaustedError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_RATE_LIMIT_STATUS = 429


def _status_code(error: BaseException) -> Optional[int]:
    code = getattr(error, "status_code", None)
    if code is None:
        response = getattr(error, "response", None)
        code = getattr(response, "status_code", None)
    return code if isinstance(code, int) else None


def classify_error(error: BaseException) -> ErrorKind:
    """Decide whether a failure is backend throttling or something terminal."""
    if isinstance(error, RateLimitedError):
        return ErrorKind.RATE_LIMITED
    if _status_code(error) == _RATE_LIMIT_STATUS:
        return ErrorKind.RATE_LIMITED
    message = str(error).lower()
    if "rate limit" in message or "429" in message:
        return ErrorKind.RATE_LIMITED
    return ErrorKind.OTHER


class CallExecutor:
    """Runs a zero-argument coroutine function, retrying on rate limits."""

    def __init__(
        self,
        policy: BackoffPolicy,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        sleep: awaitable taking seconds. Swapped out in tests so retries
            don't actually wait.
        """
        self._policy = policy
        self._sleep = sleep

    @property
    def policy(self) -> BackoffPolicy:
        return self._policy

    async def execute(self, operation: Callable[[], Awaitable[T]], context: str) -> T:
        attempt = 1
        while True:
            try:
                return await operation()
            except Exception as e:
                kind = classify_error(e)
                if self._policy.should_retry(attempt, kind):
                    delay_ms = self._policy.compute_delay(attempt)
                    logger.warning(
                        f"Rate limit hit for {context}. "
                        f"Attempt {attempt}/{self._policy.max_attempts}. "
                        f"Retrying in {delay_ms:.0f}ms"
                    )
                    await self._sleep(delay_ms / 1000.0)
                    attempt += 1
                    continue

                if kind == ErrorKind.RATE_LIMITED:
                    logger.error(
                        f"Rate limit persisted for {context} after {attempt} attempt(s)"
                    )
                    raise RetryExhaustedError(context, attempt, e) from e

                logger.error(f"Error during {context} (attempt {attempt}): {e}")
                raise
