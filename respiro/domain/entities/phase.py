"""Breathing phase and arousal state enums."""

from enum import Enum


class BreathingPhase(str, Enum):
    """Phases of one breath cycle, in their fixed cyclic order."""

    INHALE = "INHALE"
    HOLD_IN = "HOLD_IN"
    EXHALE = "EXHALE"
    HOLD_OUT = "HOLD_OUT"

    @property
    def is_hold(self) -> bool:
        return self in (BreathingPhase.HOLD_IN, BreathingPhase.HOLD_OUT)


class ArousalState(str, Enum):
    """Autonomic arousal classification derived from a biofeedback sample."""

    HYPER_AROUSAL = "hyper_arousal"
    BALANCED = "balanced"
    HYPO_AROUSAL = "hypo_arousal"
    DISENGAGED = "disengaged"
