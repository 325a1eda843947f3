"""Delete ranges of entries from result lists."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from grepfix.exceptions import InvalidRangeError
from grepfix.models.results import ListMode, Position, ResultList, ResultSlot, Tombstone
from grepfix.services.session import SelectionMode

if TYPE_CHECKING:
    from grepfix.services.session import EditorSession

logger = logging.getLogger(__name__)

TOMBSTONE = Tombstone()


def delete_range(slots: Sequence[ResultSlot], first: int, last: int) -> tuple[ResultSlot, ...]:
    """
    Return ``slots`` with every slot in ``[first, last]`` tombstoned.

    Indices are 1-based and inclusive. The length never changes and slots
    outside the range are returned as they were.

    Raises:
        InvalidRangeError: Unless ``1 <= first <= last <= len(slots)``
    """
    if not 1 <= first <= last <= len(slots):
        msg = "Deletion range out of bounds"
        raise InvalidRangeError(
            msg,
            context={"first": first, "last": last, "length": len(slots)},
        )
    return tuple(
        TOMBSTONE if first <= index <= last else slot
        for index, slot in enumerate(slots, start=1)
    )


def range_from_motion(
    start: Position,
    end: Position,
    selection: SelectionMode,
) -> tuple[int, int]:
    """
    Translate motion boundaries into an inclusive line range.

    Under exclusive selection a motion that ends at column 0 of a later
    line stops short of that line. The selection argument models the host's
    ambient setting; list deletions always pass inclusive.
    """
    if (end.line, end.col) < (start.line, start.col):
        start, end = end, start
    first, last = start.line, end.line
    if selection is SelectionMode.EXCLUSIVE and end.col == 0 and last > first:
        last -= 1
    return first, last


class ResultListService:
    """Applies deletions to the session's lists and moves the selection."""

    def __init__(self, session: EditorSession) -> None:
        self.session = session

    def get(self, mode: ListMode) -> ResultList:
        return self.session.get(mode)

    def delete(self, mode: ListMode, first: int, last: int) -> ResultList:
        """Delete ``[first, last]`` and select the slot now at ``first``."""
        current = self.session.get(mode)
        slots = delete_range(current.slots, first, last)
        updated = self.session.install(
            mode,
            ResultList(slots=slots, title=current.title, selected=first),
        )
        self.session.open_view(mode)

        logger.info(
            "Deleted result entries",
            extra={
                "mode": mode.value,
                "first": first,
                "last": last,
                "length": len(updated),
                "live": len(updated.entries()),
            },
        )
        return updated

    def delete_motion(self, mode: ListMode, start: Position, end: Position) -> ResultList:
        """Delete the lines covered by a motion, always read inclusively."""
        with self.session.forced_selection(SelectionMode.INCLUSIVE):
            first, last = range_from_motion(start, end, self.session.selection_mode)
        return self.delete(mode, first, last)
