"""Synthetic heart-rate / HRV signal generator."""

import logging
import random
import time
from typing import Optional

from ..entities.biofeedback import BiofeedbackSample, SignalGeneratorState
from ..entities.phase import ArousalState, BreathingPhase

logger = logging.getLogger(__name__)


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


class BiofeedbackSignalGenerator:
    """
    Simulates the sinus node response to breathing.

    Heart rate rises during inhalation and falls during exhalation around a
    baseline set by the stress level. The swing (RSA amplitude) shrinks as
    stress grows. The baseline follows its target with a first-order
    low-pass filter, so changes in stress show up gradually.

    One instance belongs to one logical session; call ``reset()`` before
    reusing it for a new one.
    """

    INITIAL_HEART_RATE = 75.0
    BASELINE_MIN = 60.0
    BASELINE_STRESS_RANGE = 40.0
    BASELINE_SMOOTHING = 0.02
    RSA_MIN = 2.0
    RSA_STRESS_RANGE = 15.0
    HOLD_DRIFT = 2.0

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng or random.Random()
        self.state = SignalGeneratorState()
        self.reset()

    def reset(self) -> None:
        """Forget baseline drift and extrema from previous samples."""
        self.state = SignalGeneratorState(
            baseline_heart_rate=self.INITIAL_HEART_RATE,
            current_heart_rate=self.INITIAL_HEART_RATE,
            last_max_heart_rate=self.INITIAL_HEART_RATE,
            last_min_heart_rate=self.INITIAL_HEART_RATE,
        )
        logger.debug("Signal generator state reset")

    @classmethod
    def target_baseline(cls, stress_level: float) -> float:
        """Baseline heart rate the filter converges to (60-100 bpm)."""
        return cls.BASELINE_MIN + _clamp(stress_level) * cls.BASELINE_STRESS_RANGE

    @classmethod
    def rsa_amplitude(cls, stress_level: float) -> float:
        """Breathing-driven heart-rate swing (2 bpm stressed, 17 bpm relaxed)."""
        return (1 - _clamp(stress_level)) * cls.RSA_STRESS_RANGE + cls.RSA_MIN

    @staticmethod
    def classify(stress_level: float, rsa_amplitude: float) -> ArousalState:
        """Arousal state for a stress level and RSA amplitude, first match wins."""
        if stress_level > 0.7:
            return ArousalState.HYPER_AROUSAL
        if stress_level < 0.2 and rsa_amplitude < 5:
            return ArousalState.HYPO_AROUSAL
        if stress_level < 0.4 and rsa_amplitude > 10:
            return ArousalState.BALANCED
        return ArousalState.BALANCED

    def generate_sample(
        self,
        phase: BreathingPhase,
        stress_level: float,
        cycle_progress: float,
        timestamp: Optional[float] = None,
    ) -> BiofeedbackSample:
        """
        Produce one sample and advance the carried state.

        Args:
            phase: The phase currently being breathed
            stress_level: 0 (calm) to 1 (panic)
            cycle_progress: 0 to 1, how far into the current phase
            timestamp: Sample time in seconds, defaults to wall clock

        Returns:
            BiofeedbackSample: The new sample
        """
        stress_level = _clamp(stress_level)
        progress = _clamp(cycle_progress)
        state = self.state

        state.baseline_heart_rate += (
            self.target_baseline(stress_level) - state.baseline_heart_rate
        ) * self.BASELINE_SMOOTHING

        rsa = self.rsa_amplitude(stress_level)

        if phase == BreathingPhase.INHALE:
            state.current_heart_rate = state.baseline_heart_rate + progress * rsa
            state.last_max_heart_rate = state.current_heart_rate
        elif phase == BreathingPhase.EXHALE:
            state.current_heart_rate = state.last_max_heart_rate - progress * rsa
            state.last_min_heart_rate = state.current_heart_rate
        elif phase == BreathingPhase.HOLD_IN:
            state.current_heart_rate = state.last_max_heart_rate - progress * self.HOLD_DRIFT
        elif phase == BreathingPhase.HOLD_OUT:
            state.current_heart_rate = state.last_min_heart_rate + progress * self.HOLD_DRIFT

        noise = self._rng.uniform(-1.0, 1.0)
        heart_rate = round(state.current_heart_rate + noise)
        hrv = round(rsa * 5 + self._rng.uniform(0.0, 10.0))
        reported_rsa = round(abs(state.last_max_heart_rate - state.last_min_heart_rate), 1)

        return BiofeedbackSample(
            timestamp=time.time() if timestamp is None else timestamp,
            heart_rate=heart_rate,
            hrv=hrv,
            rsa_amplitude=reported_rsa,
            arousal_state=self.classify(stress_level, rsa),
        )
