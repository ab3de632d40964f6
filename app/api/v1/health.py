"""Health check endpoint."""

from fastapi import APIRouter
import platform
import sys

from app.jobs.models import JobState

router = APIRouter()

# Set by main.py during lifespan (same pattern as jobs.py)
_service = None


def set_service(service):
    global _service
    _service = service


@router.get("/health")
async def health_check():
    """Service health, queue depth, and system info."""
    response = {
        "status": "healthy" if _service is not None else "starting",
        "python_version": sys.version,
        "platform": platform.platform(),
    }
    if _service is not None:
        dispatcher = _service.dispatcher
        response["queue"] = {
            "pending": getattr(dispatcher, "pending_count", None),
            "busy": getattr(dispatcher, "busy", None),
        }
        response["jobs"] = {
            state.value: len(_service.registry.list_jobs(state)) for state in JobState
        }
    return response
