"""
Execution strategies for the search program.

Both runners share ``start(command_line, on_complete)``. The synchronous
runner blocks until the program exits and reports ``pending=False``; the
asynchronous job runner launches the program out of band and calls
``on_complete`` from its own task later.
"""

from __future__ import annotations

import asyncio
import logging
import shlex
import subprocess
import sys
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from grepfix.exceptions import SearchError
from grepfix.models.results import ResultEntry
from grepfix.services.background_tasks import JobTracker, run_tracked_job
from grepfix.services.hooks import HookEvent, HookRegistry
from grepfix.services.output_parser import OutputParser
from grepfix.utils.error_handling import log_errors

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 60


@dataclass(frozen=True)
class RunOutcome:
    """What one run of the search program produced."""

    command_line: str
    entries: list[ResultEntry] = field(default_factory=list)
    exit_code: int | None = None
    stderr: str = ""
    duration_ms: int = 0


CompletionCallback = Callable[[RunOutcome], None]


class SearchRunner(Protocol):
    async def start(self, command_line: str, on_complete: CompletionCallback) -> bool:
        """Run ``command_line``; return True if completion is still pending."""
        ...


def split_command_line(command_line: str) -> list[str]:
    try:
        return shlex.split(command_line)
    except ValueError as exc:
        msg = "Search command line could not be split"
        raise SearchError(
            msg,
            context={"reason": "unbalanced_quotes", "detail": str(exc)},
        ) from exc


class SyncSearchRunner:
    """Runs the search program to completion and parses its output."""

    def __init__(
        self,
        parser: OutputParser,
        cwd: Path | str = ".",
        timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self.parser = parser
        self.cwd = Path(cwd)
        self.timeout_seconds = timeout_seconds

    @log_errors("search_run")
    def run(self, command_line: str) -> RunOutcome:
        """Run ``command_line`` and return its parsed output.

        A non-zero exit status is not an error here; the program's stderr
        is handed back untouched for the caller to show.

        Raises:
            SearchError: If the program cannot be started or times out
        """
        args = split_command_line(command_line)
        start_time = time.monotonic()
        try:
            completed = subprocess.run(
                args,
                capture_output=True,
                cwd=self.cwd,
                timeout=self.timeout_seconds,
                check=False,
            )
        except FileNotFoundError as exc:
            msg = f"Search program not found: {args[0]}"
            raise SearchError(
                msg,
                context={"reason": "program_missing", "program": args[0]},
            ) from exc
        except subprocess.TimeoutExpired as exc:
            msg = f"Search timed out after {self.timeout_seconds}s"
            raise SearchError(
                msg,
                context={"reason": "timeout", "timeout_seconds": self.timeout_seconds},
            ) from exc
        duration_ms = int((time.monotonic() - start_time) * 1000)

        stdout = completed.stdout.decode("utf-8", errors="replace")
        stderr = completed.stderr.decode("utf-8", errors="replace")
        return RunOutcome(
            command_line=command_line,
            entries=self.parser.parse(stdout),
            exit_code=completed.returncode,
            stderr=stderr,
            duration_ms=duration_ms,
        )

    async def start(self, command_line: str, on_complete: CompletionCallback) -> bool:
        outcome = await asyncio.to_thread(self.run, command_line)
        on_complete(outcome)
        return False


class AsyncJobRunner:
    """
    Launches the search program as a tracked background job.

    The runner owns its parser (configured with the match record format),
    so the entries it hands to ``on_complete`` are already parsed.
    Cancellation is the runner's business: ``cancel`` stops every job
    still in flight.
    """

    def __init__(
        self,
        parser: OutputParser,
        tracker: JobTracker,
        hooks: HookRegistry,
        cwd: Path | str = ".",
        timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self.parser = parser
        self.tracker = tracker
        self.hooks = hooks
        self.cwd = Path(cwd)
        self.timeout_seconds = timeout_seconds

    async def start(self, command_line: str, on_complete: CompletionCallback) -> bool:
        args = split_command_line(command_line)

        async def job() -> None:
            self.hooks.emit(HookEvent.ASYNC_START, command_line=command_line)
            try:
                outcome = await self._run(command_line, args)
                on_complete(outcome)
            finally:
                self.hooks.emit(HookEvent.ASYNC_FINISH, command_line=command_line)

        task = asyncio.get_running_loop().create_task(
            run_tracked_job(self.tracker, f"search:{args[0]}", job)
        )
        self.tracker.track(task)
        return True

    def cancel(self) -> int:
        cancelled = self.tracker.cancel_all()
        if cancelled:
            logger.info("Cancelled search jobs", extra={"cancelled": cancelled})
        return cancelled

    async def _run(self, command_line: str, args: list[str]) -> RunOutcome:
        start_time = time.monotonic()
        try:
            process = await asyncio.create_subprocess_exec(
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(self.cwd),
            )
        except FileNotFoundError as exc:
            msg = f"Search program not found: {args[0]}"
            raise SearchError(
                msg,
                context={"reason": "program_missing", "program": args[0]},
            ) from exc

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(),
                timeout=self.timeout_seconds,
            )
        except TimeoutError as exc:
            process.kill()
            await process.communicate()
            msg = f"Search timed out after {self.timeout_seconds}s"
            raise SearchError(
                msg,
                context={"reason": "timeout", "timeout_seconds": self.timeout_seconds},
            ) from exc
        except asyncio.CancelledError:
            process.kill()
            await process.wait()
            raise

        return RunOutcome(
            command_line=command_line,
            entries=self.parser.parse(stdout.decode("utf-8", errors="replace")),
            exit_code=process.returncode,
            stderr=stderr.decode("utf-8", errors="replace"),
            duration_ms=int((time.monotonic() - start_time) * 1000),
        )


def job_runner_available() -> bool:
    """Whether the event loop can spawn subprocesses for background jobs."""
    if sys.platform != "win32":
        return True
    return isinstance(
        asyncio.get_event_loop_policy(),
        asyncio.WindowsProactorEventLoopPolicy,  # type: ignore[attr-defined]
    )


def select_runner(
    *,
    async_enabled: bool,
    parser: OutputParser,
    tracker: JobTracker,
    hooks: HookRegistry,
    cwd: Path | str,
    timeout_seconds: int,
) -> SyncSearchRunner | AsyncJobRunner:
    """Pick the execution strategy once, at startup."""
    if async_enabled and job_runner_available():
        logger.info("Using asynchronous search job runner")
        return AsyncJobRunner(parser, tracker, hooks, cwd=cwd, timeout_seconds=timeout_seconds)
    logger.info("Using synchronous search runner")
    return SyncSearchRunner(parser, cwd=cwd, timeout_seconds=timeout_seconds)
