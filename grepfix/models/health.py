"""Models for health endpoints."""

from __future__ import annotations

from pydantic import BaseModel, Field


class HealthDetailResponse(BaseModel):
    """Detailed service status."""

    status: str
    version: str
    search_program: str | None = Field(None, description="Configured grep program, if any")
    async_enabled: bool
    background_tasks: dict[str, object]
