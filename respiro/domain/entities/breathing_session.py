"""Session entities for the breathing engine."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from .pattern import PatternId
from .phase import BreathingPhase


class SessionStatus(str, Enum):
    """Session status enum."""

    IDLE = "idle"
    PLAYING = "playing"
    STOPPED = "stopped"


@dataclass(frozen=True)
class SchedulerState:
    """The phase currently being breathed and when it began."""

    phase: BreathingPhase
    duration_ms: int
    started_at: float

    @property
    def ends_at(self) -> float:
        return self.started_at + self.duration_ms / 1000.0


class SessionConfig(BaseModel):
    """Runtime options of the breathing session."""

    pattern_id: PatternId = PatternId.COHERENT
    is_adaptive: bool = True
    breath_cycle_duration: float = Field(default=10.0, ge=4.0, le=20.0, description="Seconds, coherent pattern only")
    simulated_stress: float = Field(default=0.5, ge=0.0, le=1.0)
    audio_enabled: bool = False
    voice_enabled: bool = False
    haptics_enabled: bool = True

    class Config:
        """Pydantic model configuration."""

        validate_assignment = True
        json_schema_extra = {
            "example": {
                "pattern_id": "box",
                "is_adaptive": False,
                "breath_cycle_duration": 10,
                "simulated_stress": 0.5,
                "audio_enabled": False,
                "voice_enabled": True,
                "haptics_enabled": True,
            }
        }


class SessionConfigUpdate(BaseModel):
    """Partial update of the session options.

    ``is_playing`` starts or stops the session.
    """

    is_playing: Optional[bool] = None
    pattern_id: Optional[PatternId] = None
    is_adaptive: Optional[bool] = None
    breath_cycle_duration: Optional[float] = Field(default=None, ge=4.0, le=20.0)
    simulated_stress: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    audio_enabled: Optional[bool] = None
    voice_enabled: Optional[bool] = None
    haptics_enabled: Optional[bool] = None
