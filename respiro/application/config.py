"""Application configuration using Pydantic Settings."""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application settings
    app_name: str = "respiro-coach"
    app_version: str = "0.1.0"
    debug: bool = False

    # API settings
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Logging
    log_level: str = "INFO"

    # Session defaults
    default_pattern: str = "coherent"
    is_adaptive: bool = True
    breath_cycle_duration: float = Field(default=10.0, ge=4.0, le=20.0)
    simulated_stress: float = Field(default=0.5, ge=0.0, le=1.0)
    audio_enabled: bool = False
    voice_enabled: bool = False
    haptics_enabled: bool = True

    # Engine settings
    sampling_interval_ms: int = Field(default=50, gt=0)
    history_size: int = Field(default=120, ge=1)
    start_metrics_index: int = Field(default=5, ge=0)
    reset_generator_on_start: bool = True

    # Session history storage
    storage_backend: Literal["json", "memory"] = "json"
    storage_path: str = "respiro_sessions.json"
    storage_namespace: str = "respiro_sessions_v1"


# Create a singleton instance
settings = Settings()
