"""Domain entities for the breathing coach application."""

from .biofeedback import BiofeedbackSample, SignalGeneratorState
from .breathing_session import (
    SchedulerState,
    SessionConfig,
    SessionConfigUpdate,
    SessionStatus,
)
from .messages import (
    AudioCueMessage,
    BiofeedbackSampleMessage,
    ErrorOutMessage,
    HapticCueMessage,
    NoticeMessage,
    OutboundMessage,
    PhaseChangeMessage,
    SessionReportMessage,
    SessionStartedMessage,
    SessionStoppedMessage,
    VoiceCueMessage,
)
from .pattern import BreathingPattern, PatternId
from .phase import ArousalState, BreathingPhase
from .session_summary import AggregatedStats, SavedSession, SessionReport
from .websocket_messages import (
    ClientMessage,
    ErrorCode,
    ErrorMessage,
    ServerMessage,
)

__all__ = [
    # Phase entities
    "BreathingPhase",
    "ArousalState",
    # Pattern entities
    "BreathingPattern",
    "PatternId",
    # Biofeedback entities
    "BiofeedbackSample",
    "SignalGeneratorState",
    # Session entities
    "SchedulerState",
    "SessionConfig",
    "SessionConfigUpdate",
    "SessionStatus",
    # Report entities
    "SessionReport",
    "SavedSession",
    "AggregatedStats",
    # Message entities
    "OutboundMessage",
    "PhaseChangeMessage",
    "BiofeedbackSampleMessage",
    "HapticCueMessage",
    "VoiceCueMessage",
    "AudioCueMessage",
    "SessionStartedMessage",
    "SessionStoppedMessage",
    "SessionReportMessage",
    "NoticeMessage",
    "ErrorOutMessage",
    # WebSocket message entities
    "ClientMessage",
    "ServerMessage",
    "ErrorMessage",
    "ErrorCode",
]
