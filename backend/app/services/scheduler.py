"""
Timer queue used for delayed auto-replies and typing expiry.

Production code runs on the asyncio loop; tests use ManualScheduler and move a
virtual clock forward instead of sleeping.
"""

import asyncio
import heapq
import itertools
import logging
from abc import ABC, abstractmethod
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


class ScheduledTask:
    """Handle for a callback scheduled to run once."""

    def __init__(self, due: float, callback: Callable[[], None]):
        self.due = due
        self.callback = callback
        self.cancelled = False
        self.done = False
        self._handle: Optional[asyncio.TimerHandle] = None

    def cancel(self) -> None:
        self.cancelled = True
        if self._handle is not None:
            self._handle.cancel()

    def run(self) -> None:
        if self.cancelled or self.done:
            return
        self.done = True
        try:
            self.callback()
        except Exception as e:
            logger.error(f"Scheduled callback failed: {e}", exc_info=True)


class Scheduler(ABC):
    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledTask:
        """Run `callback` once after `delay` seconds."""

    @abstractmethod
    def time(self) -> float:
        """Current scheduler time in seconds."""


class AsyncioScheduler(Scheduler):
    """Schedules callbacks on the running event loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def time(self) -> float:
        return self.loop.time()

    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledTask:
        task = ScheduledTask(self.time() + delay, callback)
        task._handle = self.loop.call_later(delay, task.run)
        return task


class ManualScheduler(Scheduler):
    """Virtual clock: callbacks run only when `advance()` moves time past them."""

    def __init__(self, start: float = 0.0):
        self._now = start
        self._queue: List[tuple] = []
        self._counter = itertools.count()

    def time(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledTask:
        task = ScheduledTask(self._now + delay, callback)
        heapq.heappush(self._queue, (task.due, next(self._counter), task))
        return task

    @property
    def pending(self) -> int:
        return sum(1 for _, _, task in self._queue if not task.cancelled)

    def advance(self, seconds: float) -> int:
        """Move the clock forward, running due callbacks in due order. Returns how many ran."""
        target = self._now + seconds
        ran = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, task = heapq.heappop(self._queue)
            self._now = due
            if task.cancelled:
                continue
            task.run()
            ran += 1
        self._now = target
        return ran
