"""
Service dependency container.

Builds the session and the services around it once at startup; routers
reach them through FastAPI dependencies.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from grepfix.services.background_tasks import JobTracker
from grepfix.services.dispatcher import SearchDispatcher
from grepfix.services.hooks import HookRegistry
from grepfix.services.last_search import LastSearch
from grepfix.services.output_parser import OutputParser
from grepfix.services.result_list import ResultListService
from grepfix.services.runners import select_runner
from grepfix.services.session import EditorSession
from grepfix.services.substitution import SubstitutionService

if TYPE_CHECKING:
    from grepfix.config import Settings
    from grepfix.services.runners import AsyncJobRunner, SyncSearchRunner


class ServiceContainer:
    """Container for the session and every service operating on it."""

    def __init__(
        self,
        settings: Settings,
        session: EditorSession,
        hooks: HookRegistry,
        last_search: LastSearch,
        job_tracker: JobTracker,
        runner: SyncSearchRunner | AsyncJobRunner,
        dispatcher: SearchDispatcher,
        result_list_service: ResultListService,
        substitution_service: SubstitutionService,
    ) -> None:
        self.settings = settings
        self.session = session
        self.hooks = hooks
        self.last_search = last_search
        self.job_tracker = job_tracker
        self.runner = runner
        self.dispatcher = dispatcher
        self.result_list_service = result_list_service
        self.substitution_service = substitution_service


def build_container(settings: Settings) -> ServiceContainer:
    """Wire services from settings; the runner strategy is chosen here, once."""
    root = Path(settings.workspace_root)
    session = EditorSession()
    hooks = HookRegistry()
    last_search = LastSearch(highlight_enabled=settings.search_highlight)
    job_tracker = JobTracker()
    runner = select_runner(
        async_enabled=settings.search_async,
        parser=OutputParser(settings.grep_format),
        tracker=job_tracker,
        hooks=hooks,
        cwd=root,
        timeout_seconds=settings.search_timeout_seconds,
    )
    return ServiceContainer(
        settings=settings,
        session=session,
        hooks=hooks,
        last_search=last_search,
        job_tracker=job_tracker,
        runner=runner,
        dispatcher=SearchDispatcher(
            session=session,
            runner=runner,
            last_search=last_search,
            grep_program=settings.grep_program,
            root=root,
        ),
        result_list_service=ResultListService(session),
        substitution_service=SubstitutionService(session, hooks, root=root),
    )


_container: ServiceContainer | None = None


def init_container(container: ServiceContainer) -> ServiceContainer:
    global _container
    _container = container
    return container


def get_container() -> ServiceContainer:
    if _container is None:
        msg = "Service container not initialized"
        raise RuntimeError(msg)
    return _container


def reset_container() -> None:
    global _container
    _container = None
