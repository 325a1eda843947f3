"""Tests for search dispatch with both runner strategies."""

from __future__ import annotations

import asyncio
import shlex
from pathlib import Path

import pytest

from grepfix.models.results import ListMode, ResultEntry
from grepfix.models.search import CompiledCommand, SearchRequest
from grepfix.services.arguments import compile_query
from grepfix.services.background_tasks import JobTracker
from grepfix.services.dispatcher import SearchDispatcher, build_command_line
from grepfix.services.hooks import HookEvent, HookRegistry
from grepfix.services.last_search import LastSearch
from grepfix.services.output_parser import OutputParser
from grepfix.services.runners import AsyncJobRunner, SyncSearchRunner
from grepfix.services.session import EditorSession


@pytest.fixture
def session() -> EditorSession:
    return EditorSession()


@pytest.fixture
def last_search() -> LastSearch:
    return LastSearch(highlight_enabled=True)


@pytest.fixture
def sync_dispatcher(
    session: EditorSession, last_search: LastSearch, workspace: Path, fake_grep: str
) -> SearchDispatcher:
    runner = SyncSearchRunner(OutputParser(), cwd=workspace, timeout_seconds=30)
    return SearchDispatcher(session, runner, last_search, fake_grep, root=workspace)


def test_build_command_line() -> None:
    command = CompiledCommand(
        escaped_args="-i 'two words'", argv=("-i", "two words"), pattern="two words"
    )

    assert build_command_line("rg --vimgrep", command) == "rg --vimgrep -i 'two words'"
    assert build_command_line("rg", CompiledCommand(escaped_args="")) == "rg"
    assert build_command_line("rg", command, ["a b.txt"]) == "rg -i 'two words' 'a b.txt'"


def test_scope_files_are_dropped_without_pattern() -> None:
    command = compile_query("-i")

    assert command.pattern is None
    assert build_command_line("rg", command, ["beta.txt"]) == "rg -i"


async def test_sync_search_populates_list(
    sync_dispatcher: SearchDispatcher, session: EditorSession
) -> None:
    response = await sync_dispatcher.search(SearchRequest(query="foo"))

    assert response.enabled is True
    assert response.pending is False
    assert response.entries == 3
    assert response.exit_code == 0
    assert response.pattern == "foo"
    result_list = session.get(ListMode.QUICKFIX)
    assert result_list.slots == (
        ResultEntry(file="alpha.txt", line=1, column=1, text="foo one"),
        ResultEntry(file="alpha.txt", line=3, column=1, text="foo foo three"),
        ResultEntry(file="beta.txt", line=2, column=1, text="foo at the end"),
    )
    assert result_list.selected == 1
    assert result_list.title == response.command
    assert session.active_view is ListMode.QUICKFIX


async def test_zero_matches_installs_empty_list_and_opens_view(
    sync_dispatcher: SearchDispatcher, session: EditorSession
) -> None:
    session.replace_entries(ListMode.LOCATION, [ResultEntry(file="old.txt", line=1)])

    response = await sync_dispatcher.search(
        SearchRequest(query="zebra", mode=ListMode.LOCATION)
    )

    assert response.entries == 0
    assert response.exit_code == 1
    assert len(session.get(ListMode.LOCATION)) == 0
    assert session.active_view is ListMode.LOCATION


async def test_search_with_escaped_space_pattern(
    sync_dispatcher: SearchDispatcher, session: EditorSession
) -> None:
    response = await sync_dispatcher.search(SearchRequest(query=r"foo\ at"))

    assert response.pattern == "foo at"
    assert [slot.file for slot in session.get(ListMode.QUICKFIX).entries()] == ["beta.txt"]


async def test_path_arguments_limit_the_search(
    sync_dispatcher: SearchDispatcher, session: EditorSession
) -> None:
    await sync_dispatcher.search(SearchRequest(query="foo b*.txt"))

    assert {slot.file for slot in session.get(ListMode.QUICKFIX).entries()} == {"beta.txt"}


async def test_missing_path_error_comes_from_the_tool(
    sync_dispatcher: SearchDispatcher,
) -> None:
    response = await sync_dispatcher.search(SearchRequest(query="foo nowhere/*.txt"))

    assert response.entries == 0
    assert "nowhere/*.txt: No such file or directory" in response.stderr


async def test_scope_files_restrict_search(
    sync_dispatcher: SearchDispatcher, session: EditorSession
) -> None:
    response = await sync_dispatcher.search(
        SearchRequest(query="foo", scope_files=["beta.txt"])
    )

    assert response.command is not None
    assert response.command.endswith("foo beta.txt")
    assert [slot.file for slot in session.get(ListMode.QUICKFIX).entries()] == ["beta.txt"]


async def test_no_program_is_a_silent_noop(
    session: EditorSession, last_search: LastSearch, workspace: Path
) -> None:
    runner = SyncSearchRunner(OutputParser(), cwd=workspace)
    dispatcher = SearchDispatcher(session, runner, last_search, None, root=workspace)

    response = await dispatcher.search(SearchRequest(query="foo"))

    assert response.enabled is False
    assert response.command is None
    assert session.active_view is None
    assert last_search.pattern is None


async def test_highlight_published_after_install(
    sync_dispatcher: SearchDispatcher, last_search: LastSearch
) -> None:
    await sync_dispatcher.search(SearchRequest(query="-i foo"))

    assert last_search.pattern == "foo"
    assert last_search.dirty is True
    assert last_search.consume() == "foo"
    assert last_search.dirty is False


async def test_highlight_disabled_publishes_nothing(
    session: EditorSession, workspace: Path, fake_grep: str
) -> None:
    last_search = LastSearch(highlight_enabled=False)
    runner = SyncSearchRunner(OutputParser(), cwd=workspace)
    dispatcher = SearchDispatcher(session, runner, last_search, fake_grep, root=workspace)

    await dispatcher.search(SearchRequest(query="foo"))

    assert last_search.pattern is None
    assert last_search.dirty is False


async def test_options_only_query_has_no_pattern(
    sync_dispatcher: SearchDispatcher, last_search: LastSearch
) -> None:
    response = await sync_dispatcher.search(SearchRequest(query="--hidden"))

    assert response.pattern is None
    assert response.exit_code == 2
    assert last_search.pattern is None


async def test_async_runner_installs_results_later(
    session: EditorSession, last_search: LastSearch, workspace: Path, fake_grep: str
) -> None:
    tracker = JobTracker()
    hooks = HookRegistry()
    events: list[str] = []
    hooks.register(HookEvent.ASYNC_START, lambda **_: events.append("start"))
    hooks.register(HookEvent.ASYNC_FINISH, lambda **_: events.append("finish"))
    runner = AsyncJobRunner(OutputParser(), tracker, hooks, cwd=workspace, timeout_seconds=30)
    dispatcher = SearchDispatcher(session, runner, last_search, fake_grep, root=workspace)

    response = await dispatcher.search(SearchRequest(query="foo"))

    assert response.pending is True
    assert response.entries == 0
    assert len(session.get(ListMode.QUICKFIX)) == 0

    await asyncio.gather(*list(tracker.running))

    assert len(session.get(ListMode.QUICKFIX).entries()) == 3
    assert session.active_view is ListMode.QUICKFIX
    assert last_search.pattern == "foo"
    assert events == ["start", "finish"]
    assert tracker.get_status()["completed_jobs"] == 1


async def test_async_missing_program_is_tracked(
    session: EditorSession, last_search: LastSearch, workspace: Path
) -> None:
    tracker = JobTracker()
    runner = AsyncJobRunner(OutputParser(), tracker, HookRegistry(), cwd=workspace)
    dispatcher = SearchDispatcher(
        session, runner, last_search, shlex.quote(str(workspace / "no-such-grep")), root=workspace
    )

    response = await dispatcher.search(SearchRequest(query="foo"))
    await asyncio.gather(*list(tracker.running))

    assert response.pending is True
    status = tracker.get_status()
    assert status["failed_jobs"] == 1
    assert status["recent_failures"][0]["type"] == "SearchError"
    assert session.active_view is None
