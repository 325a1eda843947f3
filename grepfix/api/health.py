"""Health check endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from grepfix.dependencies import get_container, verify_token
from grepfix.models.health import HealthDetailResponse
from grepfix.services.runners import AsyncJobRunner
from grepfix.version import get_version

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness check. No authentication required."""
    return {"status": "ok"}


@router.get(
    "/health/detailed",
    response_model=HealthDetailResponse,
    dependencies=[Depends(verify_token)],
)
async def health_detailed() -> HealthDetailResponse:
    """Search configuration and background job status."""
    container = get_container()
    return HealthDetailResponse(
        status="ok" if container.dispatcher.enabled else "search_disabled",
        version=get_version(),
        search_program=container.settings.grep_program,
        async_enabled=isinstance(container.runner, AsyncJobRunner),
        background_tasks=container.job_tracker.get_status(),
    )
