"""Job management API: submit batch scrapes and crawls, poll status."""

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field
from typing import Any, Dict, List

from app.jobs.errors import BackendFailure, JobNotFoundError
from app.jobs.status import JobStatusPayload, format_status_text

router = APIRouter()

# Set by main.py during lifespan
_service = None


def set_service(service):
    global _service
    _service = service


def _require_service():
    if _service is None:
        raise HTTPException(status_code=503, detail="Job service not initialized")
    return _service


class BatchScrapeRequest(BaseModel):
    urls: List[str] = Field(min_length=1)
    options: Dict[str, Any] = {}


class CrawlRequest(BaseModel):
    url: str = Field(min_length=1)
    options: Dict[str, Any] = {}


class JobSubmitResponse(BaseModel):
    job_id: str
    status: str
    message: str


@router.post("/batch-scrape", response_model=JobSubmitResponse)
async def submit_batch_scrape(request: BatchScrapeRequest):
    """Queue a batch scrape. The backend is called later, one job at a time."""
    service = _require_service()
    try:
        job_id = service.submit_batch(request.urls, request.options)["job_id"]
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return JobSubmitResponse(
        job_id=job_id,
        status="pending",
        message=f"Batch operation queued with ID: {job_id}. Poll GET /api/v1/jobs/{job_id} for status.",
    )


@router.post("/crawl", response_model=JobSubmitResponse)
async def submit_crawl(request: CrawlRequest):
    service = _require_service()
    try:
        job_id = service.submit_crawl(request.url, request.options)["job_id"]
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return JobSubmitResponse(
        job_id=job_id,
        status="pending",
        message=f"Crawl operation queued with ID: {job_id}. Poll GET /api/v1/jobs/{job_id} for status.",
    )


@router.get("/jobs/{job_id}", response_model=JobStatusPayload, response_model_exclude_none=True)
async def get_job_status(job_id: str):
    """Get the current status of a job."""
    service = _require_service()
    try:
        return service.get_status(job_id)
    except JobNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/jobs/{job_id}/text")
async def get_job_status_text(job_id: str):
    """Same status, rendered as the plain-text summary tool clients display."""
    service = _require_service()
    try:
        status = service.get_status(job_id)
    except JobNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"text": format_status_text(status)}


@router.get("/crawl/{crawl_id}/status")
async def check_crawl_status(crawl_id: str):
    """Query the backend for a crawl it is running (remote id, not a local job id)."""
    service = _require_service()
    try:
        response = await service.check_crawl_status(crawl_id)
    except BackendFailure as e:
        raise HTTPException(status_code=502, detail=f"Check crawl status failed: {e}")
    if not response.success:
        raise HTTPException(
            status_code=502,
            detail=f"Check crawl status failed: {response.error or 'Failed to check crawl status'}",
        )
    return {
        "crawl_id": crawl_id,
        "credits_used": response.credits_used,
        "data": response.data,
    }


@router.get("/usage")
async def get_usage():
    """Credit usage accumulated since startup."""
    return _require_service().usage()
