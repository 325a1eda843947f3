"""
Apply a substitution across every file referenced by a result list.

Expressions look like ``/pattern/replacement/flags``; pattern and
replacement use Python ``re`` syntax and ``\\/`` stands for a literal
slash. The ``g`` and ``e`` flags are always appended to the user's
flags, so every occurrence on a line is replaced and files without a
match are not errors.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from grepfix.exceptions import InvalidExpressionError, PersistenceError
from grepfix.models.results import ListMode
from grepfix.models.substitution import (
    FileFailure,
    FileSet,
    SubstituteResponse,
    SubstitutionExpression,
)
from grepfix.services.file_set import derive_files
from grepfix.services.hooks import HookEvent

if TYPE_CHECKING:
    from grepfix.services.hooks import HookRegistry
    from grepfix.services.session import EditorSession

logger = logging.getLogger(__name__)

DELIMITER = "/"
# c is accepted for familiarity; confirmation is always suppressed.
ALLOWED_FLAGS = frozenset("geiInc")


def split_on_delimiter(text: str) -> list[str]:
    """
    Split on unescaped delimiters, unescaping ``\\/`` in each part.

    Other backslash pairs, ``\\\\`` included, are kept as written.
    """
    parts: list[str] = []
    current: list[str] = []
    index = 0
    while index < len(text):
        char = text[index]
        if char == "\\":
            following = text[index + 1 : index + 2]
            if following == DELIMITER:
                current.append(DELIMITER)
            else:
                current.append(char + following)
            index += 2
            continue
        if char == DELIMITER:
            parts.append("".join(current))
            current = []
        else:
            current.append(char)
        index += 1
    parts.append("".join(current))
    return parts


def parse_expression(expression: str) -> SubstitutionExpression:
    """
    Parse ``/pattern/replacement/flags``.

    Raises:
        InvalidExpressionError: On a missing delimiter, an empty pattern
            or an unknown flag
    """
    if not expression.startswith(DELIMITER):
        msg = "Invalid substitution expression: expected /pattern/replacement/"
        raise InvalidExpressionError(
            msg,
            context={"expression": expression, "reason": "missing_leading_delimiter"},
        )

    parts = split_on_delimiter(expression[1:])
    if len(parts) != 3:
        reason = "missing_delimiter" if len(parts) < 3 else "unexpected_delimiter"
        msg = "Invalid substitution expression: expected /pattern/replacement/"
        raise InvalidExpressionError(msg, context={"expression": expression, "reason": reason})

    pattern, replacement, flags = parts
    if not pattern:
        msg = "Invalid substitution expression: empty pattern"
        raise InvalidExpressionError(
            msg,
            context={"expression": expression, "reason": "empty_pattern"},
        )

    unknown = sorted(set(flags) - ALLOWED_FLAGS)
    if unknown:
        msg = f"Invalid substitution flags: {''.join(unknown)}"
        raise InvalidExpressionError(
            msg,
            context={"expression": expression, "reason": "unknown_flag", "flags": unknown},
        )

    return SubstitutionExpression(pattern=pattern, replacement=replacement, flags=flags)


def compile_pattern(expression: SubstitutionExpression) -> re.Pattern[str]:
    """Compile the pattern honouring ``i``/``I``; the last of them wins."""
    case_flags = [flag for flag in expression.effective_flags if flag in "iI"]
    ignore_case = bool(case_flags) and case_flags[-1] == "i"
    try:
        return re.compile(expression.pattern, re.IGNORECASE if ignore_case else 0)
    except re.error as exc:
        msg = f"Invalid substitution pattern: {exc}"
        raise InvalidExpressionError(
            msg,
            context={"pattern": expression.pattern, "reason": "invalid_pattern"},
        ) from exc


@dataclass
class FileEdit:
    path: Path
    display: str
    original: str
    updated: str
    replacements: int


def substitute_lines(
    regex: re.Pattern[str],
    replacement: str,
    content: str,
    global_replace: bool = True,
) -> tuple[str, int]:
    """Apply the substitution to each line of ``content``, keeping line endings."""
    count = 0 if global_replace else 1
    total = 0
    lines: list[str] = []
    for line in content.splitlines(keepends=True):
        body = line.rstrip("\r\n")
        ending = line[len(body) :]
        new_body, replaced = regex.subn(replacement, body, count=count)
        total += replaced
        lines.append(new_body + ending)
    return "".join(lines), total


class SubstitutionService:
    """
    Drives a substitution pass over the files of a result list.

    Validation (expression, file set) happens before any side effect.
    Every file's new content is computed before the first write, so a
    replacement that fails part way leaves all files untouched. Writes
    are not transactional: a file that fails to save is reported and the
    remaining files are still written.
    """

    def __init__(
        self,
        session: EditorSession,
        hooks: HookRegistry,
        root: Path | str = ".",
    ) -> None:
        self.session = session
        self.hooks = hooks
        self.root = Path(root)

    def derive_working_set(self, mode: ListMode) -> FileSet:
        """Derive the file set for ``mode`` and make it the working set."""
        file_set = derive_files(self.session.get(mode).slots, self.root)
        self.session.set_working_set(file_set.files)
        logger.info(
            "Working set populated from results",
            extra={"mode": mode.value, "file_count": len(file_set)},
        )
        return file_set

    def substitute(self, expression: str, mode: ListMode = ListMode.QUICKFIX) -> SubstituteResponse:
        parsed = parse_expression(expression)
        regex = compile_pattern(parsed)
        flags = parsed.effective_flags
        dry_run = "n" in flags

        file_set = self.derive_working_set(mode)
        self.hooks.emit(HookEvent.BEFORE_WRITE, files=file_set.files, expression=parsed)

        failures: list[FileFailure] = []
        edits: list[FileEdit] = []
        for display in file_set.files:
            path = self.root / display
            try:
                with path.open(encoding="utf-8", newline="") as f:
                    original = f.read()
            except (OSError, UnicodeDecodeError) as exc:
                failures.append(self._record_failure(display, exc))
                continue
            try:
                updated, replaced = substitute_lines(
                    regex, parsed.replacement, original, global_replace="g" in flags
                )
            except re.error as exc:
                msg = f"Invalid replacement: {exc}"
                raise InvalidExpressionError(
                    msg,
                    context={"replacement": parsed.replacement, "reason": "invalid_replacement"},
                ) from exc
            edits.append(FileEdit(path, display, original, updated, replaced))

        changed = [edit for edit in edits if edit.updated != edit.original]
        files_changed = 0
        if dry_run:
            files_changed = len(changed)
        else:
            for edit in changed:
                try:
                    edit.path.write_text(edit.updated, encoding="utf-8", newline="")
                except OSError as exc:
                    failures.append(self._record_failure(edit.display, exc))
                    continue
                files_changed += 1

        self.hooks.emit(HookEvent.AFTER_WRITE, files=file_set.files, expression=parsed)

        response = SubstituteResponse(
            files_changed=files_changed,
            files_visited=len(edits),
            replacements=sum(edit.replacements for edit in edits),
            dry_run=dry_run,
            failures=failures,
        )
        logger.info(
            "Substitution completed",
            extra={
                "mode": mode.value,
                "files_changed": response.files_changed,
                "files_visited": response.files_visited,
                "replacements": response.replacements,
                "failures": len(failures),
                "dry_run": dry_run,
            },
        )
        return response

    def _record_failure(self, display: str, exc: Exception) -> FileFailure:
        error = PersistenceError(
            f"Failed to process {display}",
            context={"path": display, "error": str(exc), "error_type": type(exc).__name__},
        )
        logger.error(str(error), extra=error.context)
        return FileFailure(path=display, error=str(exc))
