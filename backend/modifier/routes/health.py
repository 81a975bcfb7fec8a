"""
Modifier — Health Check Route
===============================

What:  Liveness endpoint for Docker health checks and load balancers.
How:   The service has no external dependencies (no database, no network
       I/O of its own), so reaching this handler is the whole check.
"""

from datetime import datetime, timezone

from fastapi import APIRouter

from modifier import __version__
from modifier.schemas.echo import HealthResponse

router = APIRouter(tags=["Health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check() -> HealthResponse:
    return HealthResponse(
        status="healthy",
        version=__version__,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )
