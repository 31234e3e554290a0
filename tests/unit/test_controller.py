"""Tests for BreathingCoachController."""

import random
from unittest.mock import AsyncMock, MagicMock

import pytest

from respiro.application.config import Settings
from respiro.application.controller import BreathingCoachController, build_controller
from respiro.application.message_hub import MessageHub
from respiro.domain.entities import (
    BreathingPhase,
    HapticCueMessage,
    NoticeMessage,
    PhaseChangeMessage,
    SessionConfig,
    SessionConfigUpdate,
    SessionReportMessage,
    SessionStartedMessage,
    SessionStatus,
    SessionStoppedMessage,
    VoiceCueMessage,
)
from respiro.domain.patterns import get_pattern
from respiro.domain.services import BiofeedbackSignalGenerator, SessionEngine
from respiro.infrastructure.json_session_history_repository import JsonFileSessionHistoryRepository
from respiro.infrastructure.local_session_history_repository import LocalSessionHistoryRepository
from respiro.infrastructure.virtual_scheduler import VirtualScheduler


def drain(queue):
    """Take everything currently queued."""
    items = []
    while not queue.empty():
        items.append(queue.get_nowait())
    return items


@pytest.fixture
def scheduler():
    return VirtualScheduler()


@pytest.fixture
def repository():
    return LocalSessionHistoryRepository()


@pytest.fixture
def controller(scheduler, repository):
    """Create a controller on a virtual clock with in-memory history."""
    engine = SessionEngine(
        scheduler=scheduler,
        pattern=get_pattern("coherent"),
        generator=BiofeedbackSignalGenerator(rng=random.Random(5)),
    )
    return BreathingCoachController(
        engine=engine,
        history_repository=repository,
        hub=MessageHub(),
        config=SessionConfig(pattern_id="box", is_adaptive=False),
    )


@pytest.fixture
def queue(controller):
    return controller.hub.subscribe()


class TestLifecycle:
    """Start, stop, finish and reset."""

    def test_initial_config_applied_to_engine(self, controller):
        assert controller.engine.pattern.id.value == "box"
        assert controller.engine.is_adaptive is False
        assert controller.status == SessionStatus.IDLE

    def test_start_publishes_started_then_phase(self, controller, queue):
        assert controller.start_session() is True

        messages = drain(queue)
        assert isinstance(messages[0], SessionStartedMessage)
        assert messages[0].session_started.pattern_id == "box"
        assert isinstance(messages[1], PhaseChangeMessage)
        assert messages[1].phase == BreathingPhase.INHALE
        assert isinstance(messages[2], HapticCueMessage)
        assert len(messages) == 3
        assert controller.status == SessionStatus.PLAYING

    def test_start_twice(self, controller):
        controller.start_session()
        assert controller.start_session() is False

    def test_samples_are_streamed(self, controller, queue, scheduler):
        controller.start_session()
        drain(queue)
        scheduler.advance(1.0)

        messages = drain(queue)
        assert len(messages) >= 19
        assert all(m.update.type == "biofeedback.sample" for m in messages)

    def test_stop(self, controller, queue, scheduler):
        assert controller.stop_session() is False

        controller.start_session()
        scheduler.advance(3.0)
        drain(queue)

        assert controller.stop_session() is True
        messages = drain(queue)

        assert isinstance(messages[0], VoiceCueMessage)
        assert messages[0].cancel is True
        assert isinstance(messages[-1], SessionStoppedMessage)
        assert messages[-1].elapsed_seconds == pytest.approx(3.0)
        assert controller.status == SessionStatus.STOPPED

    def test_finish_builds_report_from_start_metrics(self, controller, queue, scheduler):
        controller.start_session()
        scheduler.advance(30.0)

        report = controller.finish_session()
        engine = controller.engine

        assert report is not None
        assert report.duration_seconds == 30
        assert report.pattern_name == "Box Breathing (4:4:4:4)"
        assert report.start_heart_rate == engine.start_metrics.heart_rate
        assert report.final_heart_rate == engine.history[-1].heart_rate
        assert controller.pending_report is report
        assert not engine.is_playing

        messages = drain(queue)
        assert isinstance(messages[-1], SessionReportMessage)
        assert messages[-1].report is report

    def test_finish_without_samples(self, controller, queue):
        controller.start_session()
        assert controller.finish_session() is None

        messages = drain(queue)
        assert isinstance(messages[-1], SessionReportMessage)
        assert messages[-1].report_ready.report is None

    @pytest.mark.asyncio
    async def test_close_report_saves_once_and_resets(self, controller, repository, scheduler):
        controller.start_session()
        scheduler.advance(20.0)
        report = controller.finish_session()

        saved = await controller.close_report()

        assert saved.duration_seconds == report.duration_seconds
        assert saved.vagal_score == report.vagal_score
        assert saved.pattern_name == report.pattern_name
        assert [s.id for s in await repository.get_history()] == [saved.id]

        assert controller.pending_report is None
        assert controller.engine.history == []
        assert controller.status == SessionStatus.IDLE

        assert await controller.close_report() is None
        assert len(await repository.get_history()) == 1

    @pytest.mark.asyncio
    async def test_aggregated_stats(self, controller, scheduler):
        for _ in range(2):
            controller.start_session()
            scheduler.advance(90.0)
            controller.finish_session()
            await controller.close_report()

        stats = await controller.get_aggregated_stats()
        assert stats.total_sessions == 2
        assert stats.total_minutes == 3
        assert stats.current_streak == 1
        assert len(await controller.get_saved_sessions()) == 2

    @pytest.mark.asyncio
    async def test_failed_save_keeps_pending_report(self, controller, scheduler):
        controller.history_repository = AsyncMock()
        controller.history_repository.save_session.side_effect = OSError("disk full")

        controller.start_session()
        scheduler.advance(10.0)
        report = controller.finish_session()

        with pytest.raises(OSError):
            await controller.close_report()

        assert controller.pending_report is report
        assert controller.engine.history != []

    def test_listener_mock_sees_every_phase(self, controller, scheduler):
        listener = MagicMock()
        controller.engine.phase_listeners.append(listener)

        controller.start_session()
        scheduler.advance(8.0)
        controller.stop_session()

        phases = [c.args[0] for c in listener.on_phase.call_args_list]
        assert phases == [BreathingPhase.INHALE, BreathingPhase.HOLD_IN, BreathingPhase.EXHALE]
        listener.on_session_stopped.assert_called_once()

    def test_reset(self, controller, queue, scheduler):
        controller.start_session()
        scheduler.advance(2.0)
        drain(queue)

        controller.reset_session()

        messages = drain(queue)
        assert any(isinstance(m, SessionStoppedMessage) for m in messages)
        assert isinstance(messages[-1], NoticeMessage)
        assert controller.engine.history == []
        assert controller.status == SessionStatus.IDLE
        assert scheduler.pending == 0


class TestConfiguration:
    """Tests for update_config()."""

    def test_pattern_change_while_playing_restarts(self, controller, queue, scheduler):
        controller.start_session()
        scheduler.advance(5.0)
        drain(queue)

        config = controller.update_config(SessionConfigUpdate(pattern_id="soldier"))

        assert config.pattern_id.value == "soldier"
        assert controller.engine.current_phase == BreathingPhase.INHALE
        assert controller.engine.scheduler_state.started_at == pytest.approx(5.0)

        messages = drain(queue)
        started = [m for m in messages if isinstance(m, SessionStartedMessage)]
        assert len(started) == 1
        assert started[0].restarted is True
        assert started[0].pattern_id == "soldier"

    def test_stress_change_does_not_restart(self, controller, queue, scheduler):
        controller.start_session()
        scheduler.advance(5.0)
        drain(queue)

        controller.update_config(SessionConfigUpdate(simulated_stress=0.9))

        assert controller.engine.simulated_stress == 0.9
        assert controller.engine.current_phase == BreathingPhase.HOLD_IN
        assert drain(queue) == []

    def test_is_playing_starts_and_stops(self, controller):
        controller.update_config(SessionConfigUpdate(is_playing=True))
        assert controller.engine.is_playing

        controller.update_config(SessionConfigUpdate(is_playing=False))
        assert not controller.engine.is_playing

    def test_enabling_voice_takes_effect_on_next_phase(self, controller, queue, scheduler):
        controller.start_session()
        controller.update_config(SessionConfigUpdate(voice_enabled=True, haptics_enabled=False))
        drain(queue)

        scheduler.advance(4.0)

        messages = drain(queue)
        voice = [m for m in messages if isinstance(m, VoiceCueMessage)]
        assert [m.text for m in voice] == ["Hold"]
        assert not any(isinstance(m, HapticCueMessage) for m in messages)

    def test_invalid_update_leaves_config_unchanged(self, controller):
        update = SessionConfigUpdate.model_construct(simulated_stress=2.0)

        with pytest.raises(ValueError):
            controller.update_config(update)

        assert controller.config.simulated_stress == 0.5
        assert controller.engine.simulated_stress == 0.5


class TestQueries:
    """Tests for state queries."""

    def test_session_state(self, controller, scheduler):
        controller.start_session()
        scheduler.advance(1.0)

        state = controller.get_session_state()

        assert state["status"] == "playing"
        assert state["pattern"] == "box"
        assert state["phase"] == "INHALE"
        assert state["phase_duration_ms"] == 4000
        assert state["phase_progress"] == pytest.approx(0.25)
        assert state["phase_ends_at"] == pytest.approx(4.0)
        assert state["session_start_time"] == 0.0
        assert state["started_at"] is not None
        assert state["elapsed_seconds"] == pytest.approx(1.0)
        assert state["history_length"] == len(controller.engine.history)
        assert state["latest_sample"] is not None
        assert state["has_pending_report"] is False
        assert state["config"]["pattern_id"] == "box"

    def test_history_limit(self, controller, scheduler):
        controller.start_session()
        scheduler.advance(1.0)

        history = controller.engine.history
        assert controller.get_history() == history
        assert controller.get_history(3) == history[-3:]
        assert controller.get_history(0) == []

    def test_health(self, controller):
        controller.hub.subscribe()
        health = controller.get_health_status()

        assert health["status"] == "healthy"
        assert health["session"] == "idle"
        assert health["clients"] == 1
        assert health["providers"]["history_repository"] == "LocalSessionHistoryRepository"


class TestBuildController:
    """Tests for build_controller()."""

    def test_memory_backend(self):
        settings = Settings(storage_backend="memory", default_pattern="relax_478", simulated_stress=0.2)
        controller = build_controller(settings, scheduler=VirtualScheduler())

        assert isinstance(controller.history_repository, LocalSessionHistoryRepository)
        assert controller.engine.pattern.id.value == "relax_478"
        assert controller.engine.simulated_stress == 0.2
        assert controller.engine.sampling_interval == 0.05

    def test_json_backend(self, tmp_path):
        settings = Settings(storage_backend="json", storage_path=str(tmp_path / "h.json"))
        controller = build_controller(settings, scheduler=VirtualScheduler())

        assert isinstance(controller.history_repository, JsonFileSessionHistoryRepository)
        assert controller.history_repository.path == tmp_path / "h.json"
