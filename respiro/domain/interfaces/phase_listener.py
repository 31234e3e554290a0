"""Listener interfaces for consumers of the session engine outputs."""

from typing import Protocol, runtime_checkable

from ..entities.biofeedback import BiofeedbackSample
from ..entities.phase import BreathingPhase


@runtime_checkable
class PhaseListener(Protocol):
    """Consumer of phase transitions (rendering, haptics, voice, audio)."""

    def on_phase(self, phase: BreathingPhase, duration_ms: int) -> None:
        """Called when ``phase`` begins and will last ``duration_ms``."""
        ...

    def on_session_stopped(self) -> None:
        """Called after the session clocks were cancelled."""
        ...


@runtime_checkable
class SampleListener(Protocol):
    """Consumer of biofeedback samples (charts, dashboards)."""

    def on_sample(self, sample: BiofeedbackSample) -> None:
        ...
