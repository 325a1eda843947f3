"""Lifecycle notifications emitted around searches and substitutions."""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)

HookCallback = Callable[..., Any]


class HookEvent(str, Enum):
    BEFORE_WRITE = "before_write"
    AFTER_WRITE = "after_write"
    ASYNC_START = "async_start"
    ASYNC_FINISH = "async_finish"


class HookRegistry:
    """
    Registry of collaborator callbacks keyed by event.

    Callbacks run in registration order. A failing callback is logged and
    does not stop the callbacks after it or the operation that emitted it.
    """

    def __init__(self) -> None:
        self._callbacks: dict[HookEvent, list[HookCallback]] = defaultdict(list)

    def register(self, event: HookEvent, callback: HookCallback) -> None:
        self._callbacks[event].append(callback)

    def unregister(self, event: HookEvent, callback: HookCallback) -> None:
        try:
            self._callbacks[event].remove(callback)
        except ValueError:
            logger.debug("Hook callback was not registered", extra={"event": event.value})

    def emit(self, event: HookEvent, **payload: Any) -> int:
        """Call every callback for ``event``; returns how many failed."""
        failures = 0
        for callback in list(self._callbacks[event]):
            try:
                callback(**payload)
            except Exception as e:
                failures += 1
                logger.exception(
                    "Hook callback failed",
                    extra={
                        "event": event.value,
                        "callback": getattr(callback, "__name__", repr(callback)),
                        "error_type": type(e).__name__,
                    },
                )
        return failures
