"""Biofeedback sample entities."""

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field

from .phase import ArousalState


class BiofeedbackSample(BaseModel):
    """One synthetic heart-rate / HRV sample."""

    model_config = ConfigDict(frozen=True)

    timestamp: float = Field(description="Seconds on the session clock")
    heart_rate: int = Field(description="Beats per minute")
    hrv: int = Field(description="Derived heart rate variability metric")
    rsa_amplitude: float = Field(ge=0, description="Peak-to-trough swing in bpm")
    arousal_state: ArousalState


@dataclass
class SignalGeneratorState:
    """Carried state of the signal generator between samples."""

    baseline_heart_rate: float = 75.0
    current_heart_rate: float = 75.0
    last_max_heart_rate: float = 75.0
    last_min_heart_rate: float = 75.0
