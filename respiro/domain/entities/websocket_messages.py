"""WebSocket message models for the breathing coach application."""

from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field

from .breathing_session import SessionConfigUpdate
from .phase import ArousalState, BreathingPhase
from .session_summary import SessionReport


# ===== Client → Server Messages =====


class SessionStartRequest(BaseModel):
    """Start the breathing session."""

    type: Literal["session.start"] = "session.start"


class SessionStopRequest(BaseModel):
    """Stop the breathing session, keeping its history."""

    type: Literal["session.stop"] = "session.stop"


class SessionFinishRequest(BaseModel):
    """Stop the session and request its completion report."""

    type: Literal["session.finish"] = "session.finish"


class SessionResetRequest(BaseModel):
    """Clear history and start metrics after a report was consumed."""

    type: Literal["session.reset"] = "session.reset"


class ConfigUpdateRequest(BaseModel):
    """Partial configuration update from client."""

    type: Literal["config.update"] = "config.update"
    config: SessionConfigUpdate


# Union type for all client messages
ClientMessage = Annotated[
    Union[
        SessionStartRequest,
        SessionStopRequest,
        SessionFinishRequest,
        SessionResetRequest,
        ConfigUpdateRequest,
    ],
    Field(discriminator="type"),
]


# ===== Server → Client Messages =====


class PhaseChange(BaseModel):
    """A new breathing phase has begun."""

    type: Literal["phase.change"] = "phase.change"
    phase: BreathingPhase
    duration_ms: int = Field(gt=0)


class BiofeedbackUpdate(BaseModel):
    """A biofeedback sample was appended to the history."""

    type: Literal["biofeedback.sample"] = "biofeedback.sample"
    timestamp: float
    heart_rate: int
    hrv: int
    rsa_amplitude: float
    arousal_state: ArousalState


class HapticCue(BaseModel):
    """Vibration pattern for the client device (milliseconds on/off)."""

    type: Literal["cue.haptic"] = "cue.haptic"
    phase: BreathingPhase
    vibration: list[int]


class VoiceCue(BaseModel):
    """Word to speak, or a request to cancel speech in progress."""

    type: Literal["cue.voice"] = "cue.voice"
    text: Optional[str] = None
    cancel: bool = False


class AudioCue(BaseModel):
    """Envelope modulation request for the client's audio graph."""

    type: Literal["cue.audio"] = "cue.audio"
    phase: BreathingPhase
    duration_s: float


class SessionStarted(BaseModel):
    """Session started notification."""

    type: Literal["session.started"] = "session.started"
    pattern_id: str
    restarted: bool = False


class SessionStopped(BaseModel):
    """Session stopped notification."""

    type: Literal["session.stopped"] = "session.stopped"
    elapsed_seconds: float


class SessionReportReady(BaseModel):
    """Completion report for a finished session."""

    type: Literal["session.report"] = "session.report"
    report: Optional[SessionReport] = None


class ServerNotice(BaseModel):
    """Server notice message."""

    type: Literal["server_notice"] = "server_notice"
    message: str


class ErrorCode(str, Enum):
    """Error codes for WebSocket errors."""

    INVALID_MESSAGE = "INVALID_MESSAGE"
    INVALID_CONFIG = "INVALID_CONFIG"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ErrorMessage(BaseModel):
    """Error message from server."""

    type: Literal["error"] = "error"
    code: ErrorCode
    message: str


# Union type for all server messages
ServerMessage = Union[
    PhaseChange,
    BiofeedbackUpdate,
    HapticCue,
    VoiceCue,
    AudioCue,
    SessionStarted,
    SessionStopped,
    SessionReportReady,
    ServerNotice,
    ErrorMessage,
]
