"""Breathing Coach Controller for handling session lifecycle and coordination."""

import logging
import time
from datetime import datetime, timezone
from typing import Any, Optional
from uuid import uuid4

from ..domain.entities import (
    BiofeedbackSample,
    BreathingPattern,
    NoticeMessage,
    SavedSession,
    SessionConfig,
    SessionConfigUpdate,
    SessionReport,
    SessionReportMessage,
    SessionStartedMessage,
    SessionStatus,
    SessionStoppedMessage,
)
from ..domain.entities.session_summary import AggregatedStats
from ..domain.interfaces.scheduler import Scheduler
from ..domain.interfaces.session_history_repository import SessionHistoryRepository
from ..domain.patterns import get_pattern, list_patterns
from ..domain.services import (
    BiofeedbackSignalGenerator,
    SessionEngine,
    aggregate_stats,
    build_session_report,
)
from ..infrastructure.asyncio_scheduler import AsyncioScheduler
from ..infrastructure.cue_dispatchers import (
    AudioCueDispatcher,
    HapticCueDispatcher,
    VoiceCueDispatcher,
)
from ..infrastructure.json_session_history_repository import JsonFileSessionHistoryRepository
from ..infrastructure.local_session_history_repository import LocalSessionHistoryRepository
from .config import Settings
from .message_hub import MessageHub, SessionEventPublisher

logger = logging.getLogger(__name__)


class BreathingCoachController:
    """
    Controller for coordinating breathing coach operations.

    This controller is injected with the session engine and the history
    repository and handles the logic behind each endpoint, keeping the
    API layer thin. It owns the runtime session options and wires the
    engine to the client cue dispatchers, which it gates with the
    audio/voice/haptics enable flags.
    """

    def __init__(
        self,
        engine: SessionEngine,
        history_repository: SessionHistoryRepository,
        hub: Optional[MessageHub] = None,
        config: Optional[SessionConfig] = None,
    ):
        """
        Initialize the controller with injected dependencies.

        Args:
            engine: The session engine driving both clocks
            history_repository: Storage for finished session summaries
            hub: Outbound message fan-out to connected clients
            config: Initial session options, applied to the engine
        """
        self.engine = engine
        self.history_repository = history_repository
        self.hub = hub or MessageHub()
        self.config = config or SessionConfig(
            pattern_id=engine.pattern.id,
            is_adaptive=engine.is_adaptive,
            breath_cycle_duration=engine.breath_cycle_duration,
            simulated_stress=engine.simulated_stress,
        )

        self._pending_report: Optional[SessionReport] = None
        self._started_at: Optional[datetime] = None

        publisher = SessionEventPublisher(self.hub)
        self.engine.phase_listeners.extend([
            publisher,
            HapticCueDispatcher(self.hub.publish, lambda: self.config.haptics_enabled),
            VoiceCueDispatcher(self.hub.publish, lambda: self.config.voice_enabled),
            AudioCueDispatcher(self.hub.publish, lambda: self.config.audio_enabled),
        ])
        self.engine.sample_listeners.append(publisher)

        self._apply_to_engine(self.config)
        logger.info("BreathingCoachController initialized")

    # ===== Patterns =====

    def list_patterns(self) -> list[BreathingPattern]:
        return list_patterns()

    def get_pattern(self, pattern_id: str) -> BreathingPattern:
        """
        Look up a pattern.

        Raises:
            ValueError: If the pattern is not in the catalog.
        """
        return get_pattern(pattern_id)

    # ===== Lifecycle =====

    def start_session(self) -> bool:
        """
        Start the breathing session.

        Returns:
            True if the session started, False if it was already playing
        """
        if self.engine.is_playing:
            logger.warning("Session already playing")
            return False

        self._started_at = datetime.now(timezone.utc)
        self.hub.publish(SessionStartedMessage(pattern_id=self.engine.pattern.id.value))
        self.engine.start()
        return True

    def stop_session(self) -> bool:
        """
        Stop the breathing session, keeping its history.

        Returns:
            True if the session stopped, False if it was not playing
        """
        if not self.engine.is_playing:
            return False

        self.engine.stop()
        self._started_at = None
        self.hub.publish(SessionStoppedMessage(elapsed_seconds=round(self.engine.elapsed_seconds, 3)))
        return True

    def finish_session(self) -> Optional[SessionReport]:
        """
        Stop the session and build its completion report.

        Returns:
            The report, or None if no samples were collected
        """
        self.stop_session()

        history = self.engine.history
        start_sample = self.engine.start_metrics or (history[0] if history else None)
        final_sample = history[-1] if history else None

        report = build_session_report(
            start_sample,
            final_sample,
            self.engine.elapsed_seconds,
            self.engine.pattern.name,
        )
        self._pending_report = report
        self.hub.publish(SessionReportMessage(report=report))

        if report:
            logger.info(f"Session finished: {report.duration_seconds}s, vagal score {report.vagal_score}")
        else:
            logger.info("Session finished without samples, no report")
        return report

    async def close_report(self) -> Optional[SavedSession]:
        """
        Persist the pending report once, then reset the session.

        Returns:
            The saved summary, or None if there was no pending report
        """
        report = self._pending_report
        saved = None

        if report is not None:
            saved = SavedSession(
                id=str(uuid4()),
                timestamp=int(time.time() * 1000),
                duration_seconds=report.duration_seconds,
                pattern_name=report.pattern_name,
                vagal_score=report.vagal_score,
            )
            await self.history_repository.save_session(saved)
            self._pending_report = None
            logger.info(f"Session {saved.id} saved to history")

        self.reset_session()
        return saved

    def reset_session(self) -> None:
        """Clear history, start metrics and the pending report."""
        self.stop_session()
        self.engine.reset()
        self._pending_report = None
        self._started_at = None
        self.hub.publish(NoticeMessage("Session reset"))

    def shutdown(self) -> None:
        """Stop the clocks before the event loop goes away."""
        self.engine.stop()

    # ===== Configuration =====

    def update_config(self, update: SessionConfigUpdate) -> SessionConfig:
        """
        Apply a partial configuration update.

        Changing the pattern or the breath cycle duration while playing
        restarts the session at INHALE. ``is_playing`` starts or stops it.

        Args:
            update: Fields to change

        Returns:
            SessionConfig: The resulting configuration

        Raises:
            ValueError: If the pattern is unknown or a value is out of range
        """
        changes = update.model_dump(exclude_none=True)
        is_playing = changes.pop("is_playing", None)

        config = SessionConfig.model_validate({**self.config.model_dump(), **changes})
        was_playing = self.engine.is_playing

        self.config = config
        schedule_changed = self._apply_to_engine(config)
        logger.info(f"Configuration updated: {changes}")

        if was_playing and schedule_changed:
            self.hub.publish(SessionStartedMessage(pattern_id=config.pattern_id.value, restarted=True))

        if is_playing is True:
            self.start_session()
        elif is_playing is False:
            self.stop_session()

        return self.config

    def _apply_to_engine(self, config: SessionConfig) -> bool:
        self.engine.is_adaptive = config.is_adaptive
        self.engine.simulated_stress = config.simulated_stress
        return self.engine.configure(
            pattern=get_pattern(config.pattern_id),
            breath_cycle_duration=config.breath_cycle_duration,
        )

    # ===== Queries =====

    @property
    def status(self) -> SessionStatus:
        if self.engine.is_playing:
            return SessionStatus.PLAYING
        if self.engine.history or self._pending_report is not None:
            return SessionStatus.STOPPED
        return SessionStatus.IDLE

    @property
    def pending_report(self) -> Optional[SessionReport]:
        return self._pending_report

    def get_history(self, limit: Optional[int] = None) -> list[BiofeedbackSample]:
        """
        Get the bounded biofeedback history, oldest first.

        Args:
            limit: Only return the newest ``limit`` samples
        """
        history = self.engine.history
        if limit is not None:
            history = history[-limit:] if limit > 0 else []
        return history

    async def get_saved_sessions(self) -> list[SavedSession]:
        return await self.history_repository.get_history()

    async def get_aggregated_stats(self) -> AggregatedStats:
        sessions = await self.history_repository.get_history()
        return aggregate_stats(sessions)

    def get_session_state(self) -> dict[str, Any]:
        """Get the current session state as a dictionary.

        Returns:
            Dictionary representation of session state
        """
        engine = self.engine
        latest = engine.latest_sample
        state = engine.scheduler_state
        start_metrics = engine.start_metrics
        return {
            "status": self.status.value,
            "pattern": engine.pattern.id.value,
            "phase": engine.current_phase.value if engine.current_phase else None,
            "phase_duration_ms": engine.phase_duration_ms,
            "phase_ends_at": state.ends_at if state else None,
            "phase_progress": round(engine.phase_progress(), 3),
            "session_start_time": engine.session_start_time,
            "started_at": self._started_at.isoformat() if self._started_at else None,
            "elapsed_seconds": round(engine.elapsed_seconds, 3),
            "history_length": len(engine.history),
            "latest_sample": latest.model_dump(mode="json") if latest else None,
            "start_metrics": start_metrics.model_dump(mode="json") if start_metrics else None,
            "has_pending_report": self._pending_report is not None,
            "config": self.config.model_dump(mode="json"),
        }

    def get_health_status(self) -> dict:
        """
        Get application health status.

        Returns:
            Dict containing health status information
        """
        return {
            "status": "healthy",
            "session": self.status.value,
            "clients": self.hub.subscriber_count,
            "providers": {
                "history_repository": type(self.history_repository).__name__,
            },
        }


def build_controller(
    settings: Settings,
    scheduler: Optional[Scheduler] = None,
    history_repository: Optional[SessionHistoryRepository] = None,
) -> BreathingCoachController:
    """
    Build a controller from application settings.

    Args:
        settings: Application settings
        scheduler: Clock source, defaults to the running asyncio loop
        history_repository: Storage override, defaults to ``storage_backend``
    """
    config = SessionConfig(
        pattern_id=settings.default_pattern,
        is_adaptive=settings.is_adaptive,
        breath_cycle_duration=settings.breath_cycle_duration,
        simulated_stress=settings.simulated_stress,
        audio_enabled=settings.audio_enabled,
        voice_enabled=settings.voice_enabled,
        haptics_enabled=settings.haptics_enabled,
    )

    if history_repository is None:
        if settings.storage_backend == "memory":
            history_repository = LocalSessionHistoryRepository(settings.storage_namespace)
        else:
            history_repository = JsonFileSessionHistoryRepository(
                settings.storage_path, settings.storage_namespace
            )

    engine = SessionEngine(
        scheduler=scheduler or AsyncioScheduler(),
        pattern=get_pattern(config.pattern_id),
        generator=BiofeedbackSignalGenerator(),
        is_adaptive=config.is_adaptive,
        breath_cycle_duration=config.breath_cycle_duration,
        simulated_stress=config.simulated_stress,
        sampling_interval=settings.sampling_interval_ms / 1000.0,
        history_size=settings.history_size,
        start_metrics_index=settings.start_metrics_index,
        reset_generator_on_start=settings.reset_generator_on_start,
    )

    return BreathingCoachController(
        engine=engine,
        history_repository=history_repository,
        config=config,
    )
