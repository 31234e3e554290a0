"""Scheduler backed by the running asyncio event loop."""

import asyncio
from typing import Callable, Optional

from ..domain.interfaces.scheduler import Scheduler, TimerHandle


class AsyncioScheduler(Scheduler):
    """Runs engine callbacks with ``loop.call_later``.

    Without an explicit loop, the loop running at call time is used, so
    the scheduler can be created at import time and used from request
    handlers.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is not None:
            return self._loop
        return asyncio.get_running_loop()

    def now(self) -> float:
        return self._get_loop().time()

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        return self._get_loop().call_later(max(0.0, delay), callback)
