"""Deterministic scheduler driven by a virtual clock."""

import heapq
import itertools
import logging
from typing import Callable

from ..domain.interfaces.scheduler import Scheduler

logger = logging.getLogger(__name__)


class VirtualTimerHandle:
    """Handle to a callback queued on a ``VirtualScheduler``."""

    def __init__(self, when: float, callback: Callable[[], None]):
        self.when = when
        self._callback = callback
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    def cancelled(self) -> bool:
        return self._cancelled

    def run(self) -> None:
        self._callback()


class VirtualScheduler(Scheduler):
    """Scheduler whose time only moves when ``advance()`` is called.

    Callbacks due at the same instant run in the order they were queued.
    Used by the tests and for offline simulation, where minutes of
    session time execute instantly.
    """

    def __init__(self, start: float = 0.0):
        self._now = float(start)
        self._queue: list[tuple[float, int, VirtualTimerHandle]] = []
        self._sequence = itertools.count()

    def now(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callable[[], None]) -> VirtualTimerHandle:
        handle = VirtualTimerHandle(self._now + max(0.0, delay), callback)
        heapq.heappush(self._queue, (handle.when, next(self._sequence), handle))
        return handle

    def advance(self, seconds: float) -> int:
        """
        Move the clock forward, running every callback that falls due.

        Args:
            seconds: How far to move the clock.

        Returns:
            int: Number of callbacks that ran.
        """
        if seconds < 0:
            raise ValueError(f"Cannot move the clock backwards ({seconds}s)")

        target = self._now + seconds
        ran = 0
        while self._queue and self._queue[0][0] <= target:
            when, _, handle = heapq.heappop(self._queue)
            if handle.cancelled():
                continue
            self._now = when
            handle.run()
            ran += 1

        self._now = target
        return ran

    @property
    def pending(self) -> int:
        """Callbacks still queued and not cancelled."""
        return sum(1 for _, _, handle in self._queue if not handle.cancelled())
