"""Session report and saved history entities."""

from typing import Optional

from pydantic import BaseModel, Field

from .phase import ArousalState


class SessionReport(BaseModel):
    """Completion report comparing the start and final samples of a session."""

    duration_seconds: int = Field(ge=0)
    pattern_name: str
    start_heart_rate: int
    final_heart_rate: int
    heart_rate_diff: int
    start_hrv: int
    final_hrv: int
    hrv_diff: int
    vagal_score: int = Field(ge=0, le=100)
    initial_state: ArousalState
    final_state: ArousalState


class SavedSession(BaseModel):
    """A finished session summary as persisted in the local history."""

    id: str
    timestamp: int = Field(description="Epoch milliseconds when the session was saved")
    duration_seconds: int = Field(ge=0)
    pattern_name: str
    vagal_score: int = Field(ge=0, le=100)

    class Config:
        """Pydantic model configuration."""

        json_schema_extra = {
            "example": {
                "id": "0f8fad5b-d9cb-469f-a165-70867728950e",
                "timestamp": 1760900000000,
                "duration_seconds": 300,
                "pattern_name": "Box Breathing (4:4:4:4)",
                "vagal_score": 64,
            }
        }


class AggregatedStats(BaseModel):
    """Totals across the saved session history."""

    total_sessions: int = 0
    total_minutes: int = 0
    current_streak: int = 0
    last_session_date: Optional[int] = None
    average_vagal_score: int = 0
