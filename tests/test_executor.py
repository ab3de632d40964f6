"""Tests for CallExecutor and error classification."""

import httpx
import pytest

from app.jobs.backoff import BackoffPolicy, ErrorKind
from app.jobs.errors import BackendFailure, RateLimitedError, RetryExhaustedError
from app.jobs.executor import CallExecutor, classify_error


class Flaky:
    """Fails with the given errors in order, then returns ``value``."""

    def __init__(self, errors, value="ok"):
        self.errors = list(errors)
        self.value = value
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return self.value


class StatusError(Exception):
    def __init__(self, message, status_code):
        super().__init__(message)
        self.status_code = status_code


class TestClassifyError:

    def test_rate_limited_error_type(self):
        assert classify_error(RateLimitedError("slow down")) == ErrorKind.RATE_LIMITED

    def test_status_code_attribute(self):
        assert classify_error(StatusError("too many", 429)) == ErrorKind.RATE_LIMITED
        assert classify_error(StatusError("server", 500)) == ErrorKind.OTHER

    def test_httpx_status_error(self):
        request = httpx.Request("POST", "https://api.firecrawl.dev/v1/batch/scrape")
        response = httpx.Response(429, request=request)
        error = httpx.HTTPStatusError("Too Many Requests", request=request, response=response)
        assert classify_error(error) == ErrorKind.RATE_LIMITED

    @pytest.mark.parametrize("message", ["Rate limit exceeded", "HTTP 429 from upstream"])
    def test_message_markers(self, message):
        assert classify_error(RuntimeError(message)) == ErrorKind.RATE_LIMITED

    def test_other_errors(self):
        assert classify_error(ValueError("invalid url")) == ErrorKind.OTHER


class TestCallExecutor:

    @pytest.mark.asyncio
    async def test_success_returns_immediately(self, executor, sleeper):
        op = Flaky([])
        assert await executor.execute(op, "test") == "ok"
        assert op.calls == 1
        assert sleeper.delays == []

    @pytest.mark.asyncio
    async def test_recovers_after_k_rate_limits(self, executor, sleeper):
        op = Flaky([RateLimitedError("rate limit"), RateLimitedError("rate limit")])
        assert await executor.execute(op, "test") == "ok"
        assert op.calls == 3
        assert sleeper.delays == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_gives_up_after_max_attempts(self, executor, sleeper):
        op = Flaky([RateLimitedError("rate limit")] * 10)
        with pytest.raises(RetryExhaustedError) as exc_info:
            await executor.execute(op, "batch batch_1 processing")
        assert op.calls == 3
        assert sleeper.delays == [1.0, 2.0]
        assert isinstance(exc_info.value, BackendFailure)
        assert exc_info.value.attempts == 3
        assert "batch batch_1 processing" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_terminal_error_is_not_retried(self, executor, sleeper):
        op = Flaky([BackendFailure("bad request")])
        with pytest.raises(BackendFailure, match="bad request"):
            await executor.execute(op, "test")
        assert op.calls == 1
        assert sleeper.delays == []

    @pytest.mark.asyncio
    async def test_delays_respect_cap(self, sleeper):
        policy = BackoffPolicy(initial_delay=1000, backoff_factor=10, max_delay=5000, max_attempts=4)
        executor = CallExecutor(policy, sleep=sleeper)
        op = Flaky([StatusError("throttled", 429)] * 3)
        await executor.execute(op, "test")
        assert sleeper.delays == [1.0, 5.0, 5.0]

    @pytest.mark.asyncio
    async def test_attempts_are_not_shared_between_calls(self, executor):
        first = Flaky([RateLimitedError("rate limit")] * 2)
        second = Flaky([RateLimitedError("rate limit")] * 2)
        await executor.execute(first, "first")
        await executor.execute(second, "second")
        assert first.calls == 3
        assert second.calls == 3
