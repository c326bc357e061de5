"""
SuiviTens Backend — Health Check Route
========================================

What:  Liveness endpoint for load balancers and container health checks.
How:   Returns a static payload without touching the database, so it keeps
       answering while the database is unreachable.
"""

from fastapi import APIRouter

from suivitens import __version__
from suivitens.schemas.measurement import HealthResponse

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthResponse, summary="Service liveness check")
@router.get("/api/health", response_model=HealthResponse, include_in_schema=False)
async def health_check() -> HealthResponse:
    return HealthResponse(
        message="SuiviTens API is running",
        status="OK",
        version=__version__,
    )
