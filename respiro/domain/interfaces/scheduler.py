"""Scheduler interface for the session clocks."""

from typing import Callable, Protocol, runtime_checkable


@runtime_checkable
class TimerHandle(Protocol):
    """Handle to a pending delayed callback."""

    def cancel(self) -> None:
        """Cancel the callback. Cancelling twice is a no-op."""
        ...

    def cancelled(self) -> bool:
        ...


@runtime_checkable
class Scheduler(Protocol):
    """Protocol for single-threaded timer scheduling.

    Callbacks run one at a time on the same logical event loop, so a
    cancelled handle is guaranteed never to fire afterwards.
    """

    def now(self) -> float:
        """Monotonic time in seconds."""
        ...

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """Run ``callback`` once after ``delay`` seconds.

        Args:
            delay: Delay in seconds.
            callback: Zero-argument callable.

        Returns:
            TimerHandle: Handle that cancels the pending callback.
        """
        ...
