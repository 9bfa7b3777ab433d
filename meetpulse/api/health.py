"""
Health check endpoint.

Provides a lightweight probe for load balancers, uptime monitors,
and deployment readiness checks.
"""

import time
from typing import Any

from fastapi import APIRouter, Depends

from meetpulse.api.deps import get_app_settings, get_registry
from meetpulse.config import Settings
from meetpulse.store.session_store import SessionRegistry

router = APIRouter(tags=["Health"])

# Record server start time for uptime calculation
_start_time = time.time()


@router.get(
    "/health",
    summary="Health Check",
    description="Returns the current health status of the service.",
    response_model=dict[str, Any],
)
async def health_check(
    settings: Settings = Depends(get_app_settings),
    registry: SessionRegistry = Depends(get_registry),
) -> dict[str, Any]:
    """Return service health, version, environment, uptime and session count."""
    stats = await registry.get_stats()
    return {
        "status": "healthy",
        "version": settings.app_version,
        "environment": settings.environment,
        "uptime_seconds": round(time.time() - _start_time, 2),
        "active_sessions": stats["active_sessions"],
    }
