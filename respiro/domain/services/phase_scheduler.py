"""Breathing phase state machine with adaptive phase durations."""

import logging
from typing import Optional

from ..entities.biofeedback import BiofeedbackSample
from ..entities.breathing_session import SchedulerState
from ..entities.pattern import BreathingPattern
from ..entities.phase import BreathingPhase
from ..patterns import COHERENT_PATTERN_ID

logger = logging.getLogger(__name__)


def next_phase(current: BreathingPhase, pattern: BreathingPattern) -> BreathingPhase:
    """
    Phase that follows ``current`` in ``pattern``.

    Holds with a zero base duration are skipped; INHALE and EXHALE are
    always entered.
    """
    if current == BreathingPhase.INHALE:
        if pattern.duration_of(BreathingPhase.HOLD_IN) > 0:
            return BreathingPhase.HOLD_IN
        return BreathingPhase.EXHALE
    if current == BreathingPhase.HOLD_IN:
        return BreathingPhase.EXHALE
    if current == BreathingPhase.EXHALE:
        if pattern.duration_of(BreathingPhase.HOLD_OUT) > 0:
            return BreathingPhase.HOLD_OUT
        return BreathingPhase.INHALE
    return BreathingPhase.INHALE


class PhaseScheduler:
    """
    Decides phase transitions and the effective duration of each phase.

    The schedule is the pattern's fixed cycle. In adaptive mode the latest
    biofeedback sample may stretch an upcoming phase by half a second:

    - acute distress (heart rate above 95, RSA below 3): never stretch
    - EXHALE while heart rate is above 75: stretch
    - INHALE while heart rate is below 55: stretch

    The coherent pattern ignores its base timing and splits the configured
    breath cycle evenly between inhale and exhale.
    """

    ADAPTIVE_STRETCH_MS = 500
    DISTRESS_HEART_RATE = 95
    DISTRESS_RSA = 3
    CALMING_EXHALE_HEART_RATE = 75
    AIR_HUNGER_HEART_RATE = 55

    def __init__(
        self,
        pattern: BreathingPattern,
        is_adaptive: bool = True,
        breath_cycle_duration: float = 10.0,
    ):
        self.pattern = pattern
        self.is_adaptive = is_adaptive
        self.breath_cycle_duration = breath_cycle_duration
        self.state: Optional[SchedulerState] = None

    @property
    def breath_cycle_duration(self) -> float:
        return self._breath_cycle_duration

    @breath_cycle_duration.setter
    def breath_cycle_duration(self, seconds: float) -> None:
        if seconds <= 0:
            raise ValueError(f"breath_cycle_duration must be positive, got {seconds}")
        self._breath_cycle_duration = float(seconds)

    def effective_duration(
        self,
        phase: BreathingPhase,
        latest_sample: Optional[BiofeedbackSample] = None,
    ) -> int:
        """
        Duration of ``phase`` in milliseconds.

        Args:
            phase: The phase about to begin
            latest_sample: Most recent biofeedback sample, if any

        Returns:
            int: The base duration, or base + 500 ms when stretched
        """
        if self.pattern.id == COHERENT_PATTERN_ID:
            return int(round(self.breath_cycle_duration * 1000 / 2))

        base_ms = int(round(self.pattern.duration_of(phase) * 1000))
        if not self.is_adaptive or base_ms == 0 or latest_sample is None:
            return base_ms

        heart_rate = latest_sample.heart_rate
        if phase.is_hold:
            return base_ms
        if heart_rate > self.DISTRESS_HEART_RATE and latest_sample.rsa_amplitude < self.DISTRESS_RSA:
            return base_ms
        if phase == BreathingPhase.EXHALE and heart_rate > self.CALMING_EXHALE_HEART_RATE:
            return base_ms + self.ADAPTIVE_STRETCH_MS
        if phase == BreathingPhase.INHALE and heart_rate < self.AIR_HUNGER_HEART_RATE:
            return base_ms + self.ADAPTIVE_STRETCH_MS
        return base_ms

    def start(self, now: float, latest_sample: Optional[BiofeedbackSample] = None) -> SchedulerState:
        """Begin the cycle at INHALE."""
        return self._enter(BreathingPhase.INHALE, now, latest_sample)

    def advance(self, now: float, latest_sample: Optional[BiofeedbackSample] = None) -> SchedulerState:
        """
        Transition to the next phase.

        Raises:
            RuntimeError: If the scheduler was not started.
        """
        if self.state is None:
            raise RuntimeError("PhaseScheduler.advance() called before start()")
        return self._enter(next_phase(self.state.phase, self.pattern), now, latest_sample)

    def stop(self) -> None:
        """Discard the scheduler state."""
        self.state = None

    def _enter(
        self,
        phase: BreathingPhase,
        now: float,
        latest_sample: Optional[BiofeedbackSample],
    ) -> SchedulerState:
        duration_ms = self.effective_duration(phase, latest_sample)
        if duration_ms <= 0:
            # zero-length timers would spin the phase clock
            raise RuntimeError(f"{phase.value} scheduled with non-positive duration {duration_ms} ms")

        self.state = SchedulerState(phase=phase, duration_ms=duration_ms, started_at=now)
        return self.state
