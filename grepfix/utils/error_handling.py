"""
Error handling utilities for grepfix.

Provides a logging decorator and the API error payload formatter.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from functools import wraps
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def log_errors(operation_name: str) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Decorator to log errors with context before re-raising them.

    Args:
        operation_name: Name of the operation for logging context

    Example:
        @log_errors("search_run")
        def run(self, command_line: str) -> RunOutcome:
            ...
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            try:
                return func(*args, **kwargs)
            except Exception as e:
                from grepfix.exceptions import GrepfixError

                context = e.context if isinstance(e, GrepfixError) else {}
                logger.exception(
                    f"Error in {operation_name}",
                    extra={
                        "operation": operation_name,
                        "error_type": type(e).__name__,
                        "function": func.__name__,
                        **context,
                    },
                )
                raise

        return wrapper

    return decorator


def format_exception_for_response(e: Exception) -> dict[str, object]:
    """
    Format exception for API error response.

    Example:
        try:
            service.substitute(expression, mode)
        except ValidationError as e:
            raise HTTPException(status_code=400, detail=format_exception_for_response(e))
    """
    from grepfix.exceptions import GrepfixError

    error_dict: dict[str, object] = {
        "error": type(e).__name__,
        "message": str(e),
    }

    if isinstance(e, GrepfixError) and e.context:
        error_dict["context"] = e.context

    return error_dict
