"""
Health check endpoint.

Always 200 while the process is up; ``backend`` says whether the Supabase
client could be built from the current configuration.
"""

from datetime import datetime, timezone

from fastapi import APIRouter

from studio_tracker.config import APP_VERSION
from studio_tracker.dependencies import Backend
from studio_tracker.models import HealthResponse

router = APIRouter(prefix="/api", tags=["health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    operation_id="getHealth",
    summary="Health check",
)
async def get_health(backend: Backend) -> HealthResponse:
    return HealthResponse(
        status="ok",
        version=APP_VERSION,
        backend="configured" if backend is not None else "unavailable",
        timestamp=datetime.now(timezone.utc),
    )
