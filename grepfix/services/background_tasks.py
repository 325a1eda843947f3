"""Tracking for search jobs that run outside the request that started them.

Failures of out-of-band jobs have no caller to propagate to, so they are
logged and kept in a bounded history for the detailed health endpoint.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import Any

logger = logging.getLogger(__name__)


class JobFailure:
    """Record of a failed background job."""

    def __init__(
        self,
        job_name: str,
        error: BaseException,
        timestamp: datetime | None = None,
    ):
        self.job_name = job_name
        self.error = error
        self.timestamp = timestamp or datetime.now(UTC)
        self.error_type = type(error).__name__
        self.error_message = str(error)


class JobTracker:
    """Keeps recent job outcomes and the set of jobs still running."""

    def __init__(self, max_history: int = 100):
        self.max_history = max_history
        self.completed: list[tuple[str, datetime]] = []
        self.failed: list[JobFailure] = []
        self.running: set[asyncio.Task[Any]] = set()

    def record_success(self, job_name: str) -> None:
        self.completed.append((job_name, datetime.now(UTC)))
        if len(self.completed) > self.max_history:
            self.completed = self.completed[-self.max_history :]

    def record_failure(self, job_name: str, error: BaseException) -> None:
        self.failed.append(JobFailure(job_name, error))
        if len(self.failed) > self.max_history:
            self.failed = self.failed[-self.max_history :]

    def track(self, task: asyncio.Task[Any]) -> asyncio.Task[Any]:
        """Hold a reference to ``task`` until it finishes."""
        self.running.add(task)
        task.add_done_callback(self.running.discard)
        return task

    def cancel_all(self) -> int:
        cancelled = 0
        for task in list(self.running):
            if task.cancel():
                cancelled += 1
        return cancelled

    def get_status(self) -> dict[str, Any]:
        return {
            "running_jobs": len(self.running),
            "completed_jobs": len(self.completed),
            "failed_jobs": len(self.failed),
            "recent_failures": [
                {
                    "job": f.job_name,
                    "error": f.error_message,
                    "type": f.error_type,
                    "timestamp": f.timestamp.isoformat(),
                }
                for f in self.failed[-5:]
            ],
        }


async def run_tracked_job(
    tracker: JobTracker,
    job_name: str,
    job: Callable[[], Awaitable[None]],
) -> None:
    """
    Await ``job`` and record its outcome on ``tracker``.

    Exceptions are logged and recorded instead of propagated: nothing is
    waiting on the task to receive them. Cancellation is recorded and
    re-raised.
    """
    logger.debug("Search job started", extra={"job_name": job_name})
    try:
        await job()
    except asyncio.CancelledError as e:
        logger.info("Search job cancelled", extra={"job_name": job_name})
        tracker.record_failure(job_name, e)
        raise
    except Exception as e:
        logger.error(
            "Search job failed",
            exc_info=True,
            extra={
                "job_name": job_name,
                "error": str(e),
                "error_type": type(e).__name__,
            },
        )
        tracker.record_failure(job_name, e)
    else:
        logger.info("Search job completed", extra={"job_name": job_name})
        tracker.record_success(job_name)
