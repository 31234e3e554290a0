"""Outbound message entities."""

from dataclasses import dataclass, field
from typing import Optional

from .biofeedback import BiofeedbackSample
from .phase import BreathingPhase
from .session_summary import SessionReport
from .websocket_messages import (
    AudioCue,
    BiofeedbackUpdate,
    ErrorCode,
    ErrorMessage,
    HapticCue,
    PhaseChange,
    ServerNotice,
    SessionReportReady,
    SessionStarted,
    SessionStopped,
    VoiceCue,
)


class OutboundMessage:
    """Base class for outbound messages."""

    pass


@dataclass
class PhaseChangeMessage(OutboundMessage):
    """Message announcing the phase that just began."""

    phase: BreathingPhase
    duration_ms: int
    phase_change: PhaseChange = field(init=False)

    def __post_init__(self):
        self.phase_change = PhaseChange(phase=self.phase, duration_ms=self.duration_ms)


@dataclass
class BiofeedbackSampleMessage(OutboundMessage):
    """Message carrying the newest biofeedback sample."""

    sample: BiofeedbackSample
    update: BiofeedbackUpdate = field(init=False)

    def __post_init__(self):
        self.update = BiofeedbackUpdate(**self.sample.model_dump())


@dataclass
class HapticCueMessage(OutboundMessage):
    """Message containing a vibration pattern."""

    phase: BreathingPhase
    vibration: list[int]
    cue: HapticCue = field(init=False)

    def __post_init__(self):
        self.cue = HapticCue(phase=self.phase, vibration=self.vibration)


@dataclass
class VoiceCueMessage(OutboundMessage):
    """Message containing a spoken prompt or a speech cancellation."""

    text: Optional[str] = None
    cancel: bool = False
    cue: VoiceCue = field(init=False)

    def __post_init__(self):
        self.cue = VoiceCue(text=self.text, cancel=self.cancel)


@dataclass
class AudioCueMessage(OutboundMessage):
    """Message containing an audio envelope modulation request."""

    phase: BreathingPhase
    duration_s: float
    cue: AudioCue = field(init=False)

    def __post_init__(self):
        self.cue = AudioCue(phase=self.phase, duration_s=self.duration_s)


@dataclass
class SessionStartedMessage(OutboundMessage):
    """Message indicating the session clocks are running."""

    pattern_id: str
    restarted: bool = False
    session_started: SessionStarted = field(init=False)

    def __post_init__(self):
        self.session_started = SessionStarted(pattern_id=self.pattern_id, restarted=self.restarted)


@dataclass
class SessionStoppedMessage(OutboundMessage):
    """Message indicating the session clocks were cancelled."""

    elapsed_seconds: float
    session_stopped: SessionStopped = field(init=False)

    def __post_init__(self):
        self.session_stopped = SessionStopped(elapsed_seconds=self.elapsed_seconds)


@dataclass
class SessionReportMessage(OutboundMessage):
    """Message containing the completion report."""

    report: Optional[SessionReport] = None
    report_ready: SessionReportReady = field(init=False)

    def __post_init__(self):
        self.report_ready = SessionReportReady(report=self.report)


@dataclass
class NoticeMessage(OutboundMessage):
    """Message containing a notice."""

    message: str
    notice: ServerNotice = field(init=False)

    def __post_init__(self):
        self.notice = ServerNotice(message=self.message)


@dataclass
class ErrorOutMessage(OutboundMessage):
    """Message containing an error."""

    code: ErrorCode
    message: str
    error: ErrorMessage = field(init=False)

    def __post_init__(self):
        self.error = ErrorMessage(code=self.code, message=self.message)
