"""
Tama Learn - Background Worker

Slow I/O (page fetches, chat replies) runs on a daemon thread so the live
loop keeps ticking. The worker never touches pet state: it only computes
values, and the game applies them on its own thread.
"""

from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class JobResult:
    """Outcome of one background job: either a value or the exception it raised."""

    kind: str
    value: Any = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class BackgroundWorker:
    """Background worker thread for slow jobs."""

    def __init__(self, max_pending: int = 4) -> None:
        """Initialize the worker with job/result queues."""
        self.jobs: "queue.Queue[tuple[str, Callable[[], Any]]]" = queue.Queue(maxsize=max_pending)
        self.results: "queue.Queue[JobResult]" = queue.Queue()
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()

    def _run(self) -> None:
        """Worker thread main loop."""
        while True:
            kind, job = self.jobs.get()
            try:
                result = JobResult(kind, value=job())
            except Exception as e:
                logger.warning("background %s job failed: %s", kind, e)
                result = JobResult(kind, error=e)
            self.results.put(result)
            self.jobs.task_done()

    def try_submit(self, kind: str, job: Callable[[], Any]) -> bool:
        """
        Try to queue a job.

        Args:
            kind: Label the result is tagged with
            job: Zero-argument callable run on the worker thread

        Returns:
            True if the job was queued, False if the queue is full
        """
        try:
            self.jobs.put_nowait((kind, job))
            return True
        except queue.Full:
            return False

    def try_pop(self) -> Optional[JobResult]:
        """
        Try to get a finished job.

        Returns:
            JobResult if one is available, None otherwise
        """
        try:
            return self.results.get_nowait()
        except queue.Empty:
            return None

    def drain(self) -> list[JobResult]:
        """Every finished job, oldest first."""
        out = []
        while True:
            result = self.try_pop()
            if result is None:
                return out
            out.append(result)

    def join(self) -> None:
        """Block until every queued job has finished."""
        self.jobs.join()
