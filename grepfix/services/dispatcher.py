"""Run a compiled search and install its results."""

from __future__ import annotations

import logging
import shlex
from pathlib import Path
from typing import TYPE_CHECKING

from grepfix.models.results import ListMode, ResultList
from grepfix.models.search import CompiledCommand, SearchRequest, SearchResponse
from grepfix.services.arguments import compile_query

if TYPE_CHECKING:
    from collections.abc import Iterable

    from grepfix.services.last_search import LastSearch
    from grepfix.services.runners import RunOutcome, SearchRunner
    from grepfix.services.session import EditorSession

logger = logging.getLogger(__name__)


def build_command_line(
    grep_program: str,
    command: CompiledCommand,
    scope_files: Iterable[str] | None = None,
) -> str:
    """
    Join the grep program, the compiled arguments and any scope files.

    Scope files are dropped when the query has no pattern, since the tool
    would read the first of them as one.
    """
    parts = [grep_program]
    if command.escaped_args:
        parts.append(command.escaped_args)
    if scope_files and command.pattern is not None:
        parts.extend(shlex.quote(path) for path in scope_files)
    return " ".join(parts)


class SearchDispatcher:
    """
    Hands compiled searches to the configured runner.

    With no grep program configured every dispatch is a no-op. When a
    run completes its entries replace the target list wholesale, the
    results view is opened (also for zero matches) and then the captured
    pattern is published for highlighting.
    """

    def __init__(
        self,
        session: EditorSession,
        runner: SearchRunner,
        last_search: LastSearch,
        grep_program: str | None,
        root: Path | str = ".",
    ) -> None:
        self.session = session
        self.runner = runner
        self.last_search = last_search
        self.grep_program = grep_program
        self.root = Path(root)

    @property
    def enabled(self) -> bool:
        return bool(self.grep_program)

    async def search(self, request: SearchRequest) -> SearchResponse:
        """Compile ``request.query`` and dispatch it."""
        if not self.enabled:
            logger.debug("No search program configured, search skipped")
            return SearchResponse(enabled=False)
        command = compile_query(request.query, self.root)
        return await self.dispatch(command, request.mode, scope_files=request.scope_files)

    async def dispatch(
        self,
        command: CompiledCommand,
        mode: ListMode = ListMode.QUICKFIX,
        scope_files: Iterable[str] | None = None,
    ) -> SearchResponse:
        if not self.grep_program:
            logger.debug("No search program configured, dispatch skipped")
            return SearchResponse(enabled=False)

        command_line = build_command_line(self.grep_program, command, scope_files)
        completed: list[RunOutcome] = []

        def on_complete(outcome: RunOutcome) -> None:
            self._install(mode, outcome, command.pattern)
            completed.append(outcome)

        pending = await self.runner.start(command_line, on_complete)
        if pending:
            logger.info(
                "Search job started",
                extra={"mode": mode.value, "has_pattern": command.pattern is not None},
            )
            return SearchResponse(
                enabled=True,
                command=command_line,
                pattern=command.pattern,
                pending=True,
            )

        outcome = completed[0]
        return SearchResponse(
            enabled=True,
            command=command_line,
            pattern=command.pattern,
            entries=len(outcome.entries),
            exit_code=outcome.exit_code,
            stderr=outcome.stderr,
        )

    def _install(self, mode: ListMode, outcome: RunOutcome, pattern: str | None) -> ResultList:
        result_list = self.session.replace_entries(
            mode, outcome.entries, title=outcome.command_line
        )
        self.session.open_view(mode)
        published = self.last_search.publish(pattern)

        logger.info(
            "Search completed",
            extra={
                "mode": mode.value,
                "result_count": len(result_list),
                "exit_code": outcome.exit_code,
                "duration_ms": outcome.duration_ms,
                "highlight_published": published,
            },
        )
        return result_list
