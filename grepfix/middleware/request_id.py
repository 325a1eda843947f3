"""Middleware that tags each request with an ID for log correlation."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from starlette.middleware.base import BaseHTTPMiddleware

from grepfix.utils.request_context import (
    generate_request_id,
    reset_request_id,
    set_request_id,
)

if TYPE_CHECKING:
    from fastapi import Request

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Reuse the client's request ID or mint one, and echo it back."""

    async def dispatch(self, request: Request, call_next):  # type: ignore[no-untyped-def]
        request_id = request.headers.get(REQUEST_ID_HEADER) or generate_request_id()
        token = set_request_id(request_id)
        should_log = not request.url.path.startswith("/health")

        if should_log:
            logger.info(
                "Request started",
                extra={"method": request.method, "path": request.url.path},
            )
        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = request_id
            if should_log:
                logger.info("Request completed", extra={"status_code": response.status_code})
            return response
        finally:
            reset_request_id(token)
