"""Single-slot holder for the most recent search pattern."""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


class LastSearch:
    """
    Most recent captured search pattern, read by the highlighting step.

    Written once per completed dispatch that captured a pattern, and only
    while highlighting is enabled. Publishing marks the highlight state
    dirty; ``consume`` hands the pattern to the highlighter and clears it.
    """

    def __init__(self, highlight_enabled: bool = False) -> None:
        self.highlight_enabled = highlight_enabled
        self._pattern: str | None = None
        self._dirty = False

    @property
    def pattern(self) -> str | None:
        return self._pattern

    @property
    def dirty(self) -> bool:
        return self._dirty

    def publish(self, pattern: str | None) -> bool:
        """Record ``pattern``; returns False when nothing was published."""
        if pattern is None or not self.highlight_enabled:
            return False
        self._pattern = pattern
        self._dirty = True
        logger.debug("Published last search", extra={"pattern_length": len(pattern)})
        return True

    def consume(self) -> str | None:
        """Return the pattern for re-highlighting and mark the state clean."""
        self._dirty = False
        return self._pattern
