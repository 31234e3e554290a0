"""Phase listeners that turn phase transitions into client cues.

Haptics, speech and audio run on the client device; these dispatchers
only decide what to ask for and publish the request. Each one is gated by
its enable flag, which the engine knows nothing about.
"""

import logging
from typing import Callable

from ..domain.entities.messages import (
    AudioCueMessage,
    HapticCueMessage,
    OutboundMessage,
    VoiceCueMessage,
)
from ..domain.entities.phase import BreathingPhase
from ..domain.interfaces.phase_listener import PhaseListener

logger = logging.getLogger(__name__)

Publish = Callable[[OutboundMessage], None]
EnabledCheck = Callable[[], bool]

# Vibration patterns in milliseconds (on, off, on, ...)
HAPTIC_PATTERNS: dict[BreathingPhase, list[int]] = {
    BreathingPhase.INHALE: [50],
    BreathingPhase.HOLD_IN: [30, 50, 30],
    BreathingPhase.EXHALE: [80],
    BreathingPhase.HOLD_OUT: [30, 50, 30],
}

VOICE_PROMPTS: dict[BreathingPhase, str] = {
    BreathingPhase.INHALE: "Inhale",
    BreathingPhase.HOLD_IN: "Hold",
    BreathingPhase.EXHALE: "Exhale",
    BreathingPhase.HOLD_OUT: "Hold",
}


class HapticCueDispatcher(PhaseListener):
    """Short pulse on inhale, double pulse on holds, long pulse on exhale."""

    def __init__(self, publish: Publish, is_enabled: EnabledCheck):
        self._publish = publish
        self._is_enabled = is_enabled

    def on_phase(self, phase: BreathingPhase, duration_ms: int) -> None:
        if not self._is_enabled():
            return
        self._publish(HapticCueMessage(phase=phase, vibration=list(HAPTIC_PATTERNS[phase])))

    def on_session_stopped(self) -> None:
        pass


class VoiceCueDispatcher(PhaseListener):
    """Speaks one word per phase and cancels speech when the session stops."""

    def __init__(self, publish: Publish, is_enabled: EnabledCheck):
        self._publish = publish
        self._is_enabled = is_enabled

    def on_phase(self, phase: BreathingPhase, duration_ms: int) -> None:
        if not self._is_enabled():
            return
        self._publish(VoiceCueMessage(text=VOICE_PROMPTS[phase]))

    def on_session_stopped(self) -> None:
        # in-flight speech is cancelled even if voice was just disabled
        self._publish(VoiceCueMessage(cancel=True))


class AudioCueDispatcher(PhaseListener):
    """Asks the client audio graph to shape its envelope over the phase."""

    def __init__(self, publish: Publish, is_enabled: EnabledCheck):
        self._publish = publish
        self._is_enabled = is_enabled

    def on_phase(self, phase: BreathingPhase, duration_ms: int) -> None:
        if not self._is_enabled():
            return
        self._publish(AudioCueMessage(phase=phase, duration_s=duration_ms / 1000.0))

    def on_session_stopped(self) -> None:
        logger.debug("Audio cues stopped")
