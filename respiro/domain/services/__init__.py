"""Domain services for the breathing engine."""

from .phase_scheduler import PhaseScheduler, next_phase
from .session_engine import SessionEngine
from .session_report import aggregate_stats, build_session_report, calculate_vagal_score
from .signal_generator import BiofeedbackSignalGenerator

__all__ = [
    "BiofeedbackSignalGenerator",
    "PhaseScheduler",
    "next_phase",
    "SessionEngine",
    "build_session_report",
    "calculate_vagal_score",
    "aggregate_stats",
]
