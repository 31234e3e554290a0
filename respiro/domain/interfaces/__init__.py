"""Domain interfaces for the breathing coach application."""

from .phase_listener import PhaseListener, SampleListener
from .scheduler import Scheduler, TimerHandle
from .session_history_repository import SessionHistoryRepository

__all__ = [
    "PhaseListener",
    "SampleListener",
    "Scheduler",
    "TimerHandle",
    "SessionHistoryRepository",
]
