"""Breathing pattern entities."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .phase import BreathingPhase


class PatternId(str, Enum):
    """Identifiers of the catalog patterns."""

    COHERENT = "coherent"
    BOX = "box"
    RELAX_478 = "relax_478"
    SOLDIER = "soldier"
    PERFORMANCE = "performance"
    PANIC_RESCUE = "panic_rescue"


class BreathingPattern(BaseModel):
    """A breathing pattern definition.

    Only ``id`` and ``base_timing`` matter to the engine; the remaining
    fields are display metadata for clients.
    """

    model_config = ConfigDict(frozen=True)

    id: PatternId
    name: str = Field(min_length=1, max_length=100)
    description: str = ""
    mechanism: str = ""
    color: str = Field(default="#22d3ee", description="Display color (hex)")
    base_timing: dict[BreathingPhase, float] = Field(
        description="Base duration in seconds for each of the four phases"
    )

    @field_validator("base_timing")
    @classmethod
    def _validate_base_timing(cls, value: dict[BreathingPhase, float]) -> dict[BreathingPhase, float]:
        missing = [phase.value for phase in BreathingPhase if phase not in value]
        if missing:
            raise ValueError(f"base_timing is missing phases: {', '.join(missing)}")

        for phase, seconds in value.items():
            if seconds < 0:
                raise ValueError(f"{phase.value} duration must be non-negative, got {seconds}")

        # INHALE and EXHALE are always entered, holds may be skipped
        for phase in (BreathingPhase.INHALE, BreathingPhase.EXHALE):
            if value[phase] <= 0:
                raise ValueError(f"{phase.value} duration must be positive")

        return value

    def duration_of(self, phase: BreathingPhase) -> float:
        """Base duration of ``phase`` in seconds."""
        return self.base_timing[phase]
