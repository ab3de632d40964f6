"""Async client for the Firecrawl scraping API."""
from __future__ import annotations

import logging
from typing import Any

import httpx

from app.jobs.errors import BackendFailure
from app.jobs.models import BackendResponse, JobKind, JobRecord

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.firecrawl.dev"


class FirecrawlError(BackendFailure):
    """Raised on transport errors, non-2xx statuses and undecodable replies."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class FirecrawlClient:
    """Thin wrapper over the Firecrawl v1 REST endpoints used by the job queue."""

    def __init__(
        self,
        api_key: str | None = None,
        *,
        api_url: str | None = None,
        timeout: float = 60.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = (api_url or DEFAULT_API_URL).rstrip("/")
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        self._headers = headers
        self._client = http_client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = http_client is None

    @classmethod
    def from_settings(cls, settings) -> "FirecrawlClient":
        if not settings.is_self_hosted and not settings.firecrawl_api_key:
            logger.warning(
                "FIRECRAWL_API_KEY is not set. This is required for the cloud service."
            )
        return cls(
            settings.firecrawl_api_key,
            api_url=settings.firecrawl_api_url,
            timeout=settings.firecrawl_timeout_seconds,
        )

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("error"):
            detail = str(body["error"])
        else:
            detail = response.text.strip() or response.reason_phrase
        return f"Request failed with status code {response.status_code}: {detail}"

    @staticmethod
    def _normalise(body: Any) -> BackendResponse:
        if not isinstance(body, dict):
            return BackendResponse(success=True, data=body)
        credits = body.get("creditsUsed")
        return BackendResponse(
            success=bool(body.get("success", True)),
            data=body,
            error=body.get("error"),
            credits_used=credits if isinstance(credits, int) else None,
            id=body.get("id"),
        )

    async def _request(self, method: str, path: str, payload: dict[str, Any] | None = None) -> BackendResponse:
        url = f"{self._base_url}{path}"
        try:
            response = await self._client.request(method, url, json=payload, headers=self._headers)
        except httpx.HTTPError as e:
            raise FirecrawlError(f"Request to {path} failed: {e}") from e
        if response.is_error:
            raise FirecrawlError(self._error_message(response), status_code=response.status_code)
        try:
            body = response.json()
        except ValueError as e:
            raise FirecrawlError(
                f"Invalid JSON in response from {path}", status_code=response.status_code
            ) from e
        return self._normalise(body)

    # ------------------------------------------------------------------
    # public API
    # ------------------------------------------------------------------
    async def async_batch_scrape(
        self, urls: list[str], options: dict[str, Any] | None = None
    ) -> BackendResponse:
        return await self._request("POST", "/v1/batch/scrape", {**(options or {}), "urls": list(urls)})

    async def async_crawl(self, url: str, options: dict[str, Any] | None = None) -> BackendResponse:
        return await self._request("POST", "/v1/crawl", {**(options or {}), "url": url})

    async def check_crawl_status(self, crawl_id: str) -> BackendResponse:
        return await self._request("GET", f"/v1/crawl/{crawl_id}")

    async def run_job(self, job: JobRecord) -> BackendResponse:
        if job.kind == JobKind.BATCH:
            return await self.async_batch_scrape(job.urls, job.options)
        return await self.async_crawl(job.urls[0], job.options)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


__all__ = ["FirecrawlClient", "FirecrawlError", "DEFAULT_API_URL"]
