"""Parse search program output into result entries."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable

from grepfix.exceptions import ConfigurationError
from grepfix.models.results import ResultEntry

logger = logging.getLogger(__name__)

DEFAULT_FORMAT = "%f:%l:%c:%m,%f:%l:%m"

_SPECIFIERS = {
    "f": r"(?P<file>.+?)",
    "l": r"(?P<line>\d+)",
    "c": r"(?P<column>\d+)",
    "m": r"(?P<text>.*)",
}


def compile_format(record_format: str) -> list[re.Pattern[str]]:
    """
    Translate a comma-separated list of record formats into regexes.

    Supported specifiers: ``%f`` file, ``%l`` line, ``%c`` column,
    ``%m`` message text and ``%%`` for a literal percent sign. A literal
    comma inside a format is written ``\\,``.
    """
    patterns: list[re.Pattern[str]] = []

    for alternative in re.split(r"(?<!\\),", record_format):
        alternative = alternative.replace("\\,", ",")
        parts: list[str] = []
        index = 0
        while index < len(alternative):
            char = alternative[index]
            if char != "%":
                parts.append(re.escape(char))
                index += 1
                continue

            specifier = alternative[index + 1 : index + 2]
            if specifier == "%":
                parts.append("%")
            elif specifier in _SPECIFIERS:
                parts.append(_SPECIFIERS[specifier])
            else:
                msg = f"Unknown match record format specifier: %{specifier}"
                raise ConfigurationError(
                    msg,
                    context={"format": record_format, "specifier": f"%{specifier}"},
                )
            index += 2

        if not parts:
            continue
        pattern = "".join(parts)
        if "(?P<file>" not in pattern or "(?P<line>" not in pattern:
            msg = "Match record format needs both %f and %l"
            raise ConfigurationError(msg, context={"format": alternative})
        patterns.append(re.compile(f"^{pattern}$"))

    if not patterns:
        msg = "Match record format is empty"
        raise ConfigurationError(msg, context={"format": record_format})
    return patterns


class OutputParser:
    """Turns newline-delimited match records into ResultEntry objects."""

    def __init__(self, record_format: str = DEFAULT_FORMAT) -> None:
        self.record_format = record_format
        self._patterns = compile_format(record_format)

    def parse_line(self, raw_line: str) -> ResultEntry | None:
        line = raw_line.rstrip("\r\n")
        for pattern in self._patterns:
            match = pattern.match(line)
            if match is None:
                continue
            groups = match.groupdict()
            return ResultEntry(
                file=groups["file"],
                line=int(groups["line"]),
                column=int(groups.get("column") or 0),
                text=groups.get("text") or "",
            )
        return None

    def parse(self, output: str | Iterable[str]) -> list[ResultEntry]:
        """Parse every recognisable record; other lines are skipped."""
        lines = output.splitlines() if isinstance(output, str) else output
        entries: list[ResultEntry] = []
        skipped = 0

        for raw_line in lines:
            if not raw_line.strip():
                continue
            entry = self.parse_line(raw_line)
            if entry is None:
                skipped += 1
                continue
            entries.append(entry)

        if skipped:
            logger.debug(
                "Skipped unrecognised output lines",
                extra={"skipped": skipped, "format": self.record_format},
            )
        return entries
