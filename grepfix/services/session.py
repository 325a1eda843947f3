"""
In-process editor session: result lists, selection and working set.

Every change to a result list is a whole-value swap of an immutable
ResultList, so readers never observe a partially edited list.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from enum import Enum

from grepfix.models.results import ListMode, ResultEntry, ResultList

logger = logging.getLogger(__name__)


class SelectionMode(str, Enum):
    """How the end of a motion or selection is interpreted."""

    INCLUSIVE = "inclusive"
    EXCLUSIVE = "exclusive"


class EditorSession:
    """State owned by the host editor that the core reads and replaces."""

    def __init__(self, selection_mode: SelectionMode = SelectionMode.INCLUSIVE) -> None:
        self.selection_mode = selection_mode
        self.working_set: tuple[str, ...] = ()
        self.active_view: ListMode | None = None
        self._lists: dict[ListMode, ResultList] = {mode: ResultList() for mode in ListMode}

    def get(self, mode: ListMode) -> ResultList:
        return self._lists[mode]

    def install(self, mode: ListMode, result_list: ResultList) -> ResultList:
        """Replace the whole list for ``mode``."""
        self._lists[mode] = result_list
        return result_list

    def replace_entries(
        self,
        mode: ListMode,
        entries: Iterable[ResultEntry],
        title: str = "",
    ) -> ResultList:
        """Install a fresh list built from ``entries``, selecting the first one."""
        slots = tuple(entries)
        return self.install(
            mode,
            ResultList(slots=slots, title=title, selected=1 if slots else 0),
        )

    def open_view(self, mode: ListMode) -> None:
        """Show and focus the results view for ``mode``."""
        self.active_view = mode

    def set_working_set(self, files: Iterable[str]) -> tuple[str, ...]:
        self.working_set = tuple(files)
        logger.debug("Working set replaced", extra={"file_count": len(self.working_set)})
        return self.working_set

    @contextmanager
    def forced_selection(self, mode: SelectionMode) -> Iterator[None]:
        """Temporarily override ``selection_mode``, restoring it afterwards."""
        saved = self.selection_mode
        self.selection_mode = mode
        try:
            yield
        finally:
            self.selection_mode = saved
