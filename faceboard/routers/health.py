"""
Faceboard - Health Check Router

GET /health - Liveness probe: returns 200 if the process is up.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from .. import __version__
from ..config import Settings
from ..dependencies import settings_dependency

router = APIRouter(prefix="/health", tags=["Health"])


class HealthResponse(BaseModel):
    """Basic health check response."""

    status: str
    timestamp: str
    environment: str
    version: str


@router.get("", response_model=HealthResponse)
async def health_check(settings: Settings = Depends(settings_dependency)) -> HealthResponse:
    """Liveness probe. No external calls."""
    return HealthResponse(
        status="ok",
        timestamp=datetime.now(timezone.utc).isoformat(),
        environment=settings.ENVIRONMENT,
        version=__version__,
    )
