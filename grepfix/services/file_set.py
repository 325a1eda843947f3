"""Derive the distinct files referenced by a result list."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from pathlib import Path

from grepfix.exceptions import NoFilesError
from grepfix.models.results import ResultEntry, ResultSlot
from grepfix.models.substitution import FileSet

logger = logging.getLogger(__name__)


def file_identifier(path: Path) -> str:
    """Identity of the underlying file, independent of how it was spelled."""
    return os.path.normcase(str(path.resolve()))


def display_path(path: Path, root: Path) -> str:
    """Path relative to ``root`` when inside it, otherwise absolute."""
    resolved = path.resolve()
    try:
        return resolved.relative_to(root.resolve()).as_posix()
    except ValueError:
        return resolved.as_posix()


def derive_files(slots: Iterable[ResultSlot], root: Path | str = ".") -> FileSet:
    """
    Project ``slots`` onto their files, first occurrence first.

    Tombstones contribute nothing. Entries that spell the same file
    differently (``a.txt`` and ``./a.txt``) collapse to one.

    Raises:
        NoFilesError: If no live entry remains
    """
    root_path = Path(root)
    files: dict[str, str] = {}

    for slot in slots:
        if not isinstance(slot, ResultEntry):
            continue
        path = root_path / slot.file
        identifier = file_identifier(path)
        if identifier not in files:
            files[identifier] = display_path(path, root_path)

    if not files:
        msg = "No files in result list"
        raise NoFilesError(msg, context={"reason": "no_files"})

    logger.debug("Derived file set", extra={"file_count": len(files)})
    return FileSet(files=tuple(files.values()))
