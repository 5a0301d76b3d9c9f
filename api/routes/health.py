"""
Health Check Route

Simple health check endpoint for liveness probes.
"""

from fastapi import APIRouter

from api import __version__
from api.deps import results_available
from api.models.responses import HealthResponse


router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Health check endpoint.

    Returns service status for liveness probes.
    """
    return HealthResponse(
        ok=True,
        service="airdrop-tree-api",
        version=__version__,
        results_loaded=results_available(),
    )
