"""
Tama Learn - Scheduler

A tiny cooperative scheduler for deferred effects (the natural wake after
sleep). Time only moves when the host calls ``advance``, so tests can drive
it without sleeping.
"""

from __future__ import annotations

import heapq
import itertools
import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

logger = logging.getLogger(__name__)

# Slack for float drift when advancing by a computed remainder
DUE_EPSILON = 1e-9


@dataclass(frozen=True)
class TaskHandle:
    """Opaque ticket returned by ``Scheduler.schedule``."""

    id: int


@dataclass(order=True)
class _Task:
    due: float
    seq: int
    handle: TaskHandle = field(compare=False)
    effect: Callable[[], None] = field(compare=False)


class Scheduler:
    """Runs effects once their delay has elapsed on the scheduler's clock."""

    def __init__(self) -> None:
        self.clock = 0.0
        self._queue: list[_Task] = []
        self._live: set[int] = set()
        self._ids = itertools.count(1)

    def schedule(self, delay_s: float, effect: Callable[[], None]) -> TaskHandle:
        """
        Queue an effect to run after a delay.

        Args:
            delay_s: Delay in scheduler seconds
            effect: Zero-argument callable

        Returns:
            Handle for cancelling the task
        """
        handle = TaskHandle(next(self._ids))
        heapq.heappush(self._queue, _Task(self.clock + max(0.0, delay_s), handle.id, handle, effect))
        self._live.add(handle.id)
        return handle

    def cancel(self, handle: TaskHandle) -> bool:
        """Cancel a task. Cancelling twice, or after it ran, is harmless."""
        if handle.id in self._live:
            self._live.discard(handle.id)
            logger.debug("cancelled task %d", handle.id)
            return True
        return False

    def is_pending(self, handle: TaskHandle) -> bool:
        return handle.id in self._live

    def remaining(self, handle: TaskHandle) -> Optional[float]:
        """Seconds until a pending task runs, or None once it ran or was cancelled."""
        if handle.id not in self._live:
            return None
        due = next(t.due for t in self._queue if t.handle.id == handle.id)
        return max(0.0, due - self.clock)

    @property
    def pending(self) -> int:
        """Number of tasks still waiting to run."""
        return len(self._live)

    def advance(self, seconds: float) -> int:
        """
        Move the clock forward and run every task that became due, in due order.

        Args:
            seconds: Time to advance by

        Returns:
            Number of effects run
        """
        self.clock += max(0.0, seconds)
        ran = 0
        while self._queue and self._queue[0].due <= self.clock + DUE_EPSILON:
            task = heapq.heappop(self._queue)
            if task.handle.id not in self._live:
                continue
            self._live.discard(task.handle.id)
            task.effect()
            ran += 1
        return ran
