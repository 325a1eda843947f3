"""Application factory.

Run with ``uvicorn grepfix.main:create_app --factory``.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from grepfix.api import health, results, search, substitute
from grepfix.config import Settings, get_settings
from grepfix.logging_config import configure_json_logging
from grepfix.middleware.request_id import RequestIDMiddleware
from grepfix.services.container import build_container, init_container, reset_container
from grepfix.services.runners import AsyncJobRunner
from grepfix.version import get_version

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, configure_logging: bool = True) -> FastAPI:
    """Build the FastAPI application around a fresh editor session."""
    if settings is None:
        settings = get_settings()
    if configure_logging:
        configure_json_logging(log_level=settings.log_level, use_json=settings.log_json)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        container = init_container(build_container(settings))
        logger.info(
            "grepfix started",
            extra={
                "search_enabled": container.dispatcher.enabled,
                "workspace_root": settings.workspace_root,
            },
        )
        try:
            yield
        finally:
            if isinstance(container.runner, AsyncJobRunner):
                container.runner.cancel()
            reset_container()
            logger.info("grepfix stopped")

    app = FastAPI(title="grepfix", version=get_version(), lifespan=lifespan)
    app.add_middleware(RequestIDMiddleware)
    app.include_router(health.router)
    app.include_router(search.router)
    app.include_router(results.router)
    app.include_router(substitute.router)
    return app
