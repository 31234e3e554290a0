"""Tests for SessionEngine timing, history and lifecycle on a virtual clock."""

import random

import pytest

from respiro.domain.entities import ArousalState, BiofeedbackSample, BreathingPhase
from respiro.domain.patterns import get_pattern
from respiro.domain.services import BiofeedbackSignalGenerator, SessionEngine
from respiro.infrastructure.virtual_scheduler import VirtualScheduler

INHALE = BreathingPhase.INHALE
HOLD_IN = BreathingPhase.HOLD_IN
EXHALE = BreathingPhase.EXHALE
HOLD_OUT = BreathingPhase.HOLD_OUT


class PhaseRecorder:
    """Phase listener recording (time, phase, duration_ms) tuples."""

    def __init__(self, scheduler):
        self.scheduler = scheduler
        self.events = []
        self.stopped = 0

    def on_phase(self, phase, duration_ms):
        self.events.append((self.scheduler.now(), phase, duration_ms))

    def on_session_stopped(self):
        self.stopped += 1

    @property
    def phases(self):
        return [phase for _, phase, _ in self.events]


class SampleRecorder:
    """Sample listener keeping every sample it sees."""

    def __init__(self):
        self.samples = []

    def on_sample(self, sample):
        self.samples.append(sample)


class BrokenListener:
    """Listener failing on every callback."""

    def on_phase(self, phase, duration_ms):
        raise RuntimeError("listener exploded")

    def on_session_stopped(self):
        raise RuntimeError("listener exploded")

    def on_sample(self, sample):
        raise RuntimeError("listener exploded")


class FixedGenerator:
    """Generator returning the same vitals every time."""

    def __init__(self, heart_rate: int, rsa_amplitude: float):
        self.heart_rate = heart_rate
        self.rsa_amplitude = rsa_amplitude

    def reset(self):
        pass

    def generate_sample(self, phase, stress_level, cycle_progress, timestamp=None):
        return BiofeedbackSample(
            timestamp=timestamp or 0.0,
            heart_rate=self.heart_rate,
            hrv=40,
            rsa_amplitude=self.rsa_amplitude,
            arousal_state=ArousalState.BALANCED,
        )


@pytest.fixture
def scheduler():
    """Create a virtual clock starting at zero."""
    return VirtualScheduler()


@pytest.fixture
def recorder(scheduler):
    return PhaseRecorder(scheduler)


@pytest.fixture
def samples():
    return SampleRecorder()


def make_engine(scheduler, pattern_id="box", **kwargs):
    kwargs.setdefault("generator", BiofeedbackSignalGenerator(rng=random.Random(1)))
    kwargs.setdefault("is_adaptive", False)
    return SessionEngine(scheduler=scheduler, pattern=get_pattern(pattern_id), **kwargs)


@pytest.fixture
def engine(scheduler, recorder, samples):
    """Non-adaptive box breathing engine with recording listeners."""
    return make_engine(scheduler, phase_listeners=[recorder], sample_listeners=[samples])


class TestPhaseClock:
    """Phase transitions over virtual time."""

    def test_box_cycle_timing(self, engine, scheduler, recorder):
        engine.start()
        scheduler.advance(16.0)

        assert recorder.phases == [INHALE, HOLD_IN, EXHALE, HOLD_OUT, INHALE]
        for (time, _, duration), expected in zip(recorder.events, [0.0, 4.0, 8.0, 12.0, 16.0]):
            assert time == pytest.approx(expected, abs=0.05)
            assert duration == 4000

    def test_coherent_alternates_inhale_and_exhale(self, scheduler, recorder):
        engine = make_engine(scheduler, "coherent", breath_cycle_duration=10, phase_listeners=[recorder])
        engine.start()
        scheduler.advance(20.0)

        assert recorder.phases == [INHALE, EXHALE, INHALE, EXHALE, INHALE]
        assert {duration for _, _, duration in recorder.events} == {5000}
        assert [t for t, _, _ in recorder.events] == pytest.approx([0.0, 5.0, 10.0, 15.0, 20.0])

    def test_zero_holds_never_dispatched(self, scheduler, recorder):
        engine = make_engine(scheduler, "soldier", phase_listeners=[recorder])
        engine.start()
        scheduler.advance(30.0)

        assert HOLD_IN not in recorder.phases
        assert HOLD_OUT not in recorder.phases

    def test_adaptive_durations_follow_latest_sample(self, scheduler, recorder):
        engine = make_engine(
            scheduler,
            generator=FixedGenerator(heart_rate=80, rsa_amplitude=10.0),
            is_adaptive=True,
            phase_listeners=[recorder],
        )
        engine.start()
        scheduler.advance(17.0)

        assert recorder.phases == [INHALE, HOLD_IN, EXHALE, HOLD_OUT, INHALE]
        assert [d for _, _, d in recorder.events] == [4000, 4000, 4500, 4000, 4000]
        assert recorder.events[3][0] == pytest.approx(12.5)

    def test_distress_signature_disables_stretch(self, scheduler, recorder):
        engine = make_engine(
            scheduler,
            generator=FixedGenerator(heart_rate=100, rsa_amplitude=2.0),
            is_adaptive=True,
            phase_listeners=[recorder],
        )
        engine.start()
        scheduler.advance(12.0)

        assert [d for _, _, d in recorder.events] == [4000, 4000, 4000, 4000]

    def test_phase_progress(self, engine, scheduler):
        assert engine.phase_progress() == 0.0

        engine.start()
        scheduler.advance(1.0)

        assert engine.phase_progress() == pytest.approx(0.25)
        assert engine.phase_progress(now=100.0) == 1.0
        assert engine.phase_progress(now=-5.0) == 0.0


class TestSamplingClock:
    """Sample production and the bounded history."""

    def test_twenty_samples_per_second(self, engine, scheduler):
        engine.start()
        scheduler.advance(1.0)

        assert 19 <= len(engine.history) <= 20
        assert engine.history[0].timestamp == pytest.approx(0.05)

    def test_history_is_bounded_fifo(self, engine, scheduler, samples):
        engine.start()
        scheduler.advance(10.0)

        assert len(samples.samples) > 120
        assert len(engine.history) == 120
        assert engine.history == samples.samples[-120:]
        assert engine.latest_sample is samples.samples[-1]

        timestamps = [s.timestamp for s in engine.history]
        assert timestamps == sorted(timestamps)

    def test_start_metrics_is_sixth_sample(self, engine, scheduler, samples):
        engine.start()
        scheduler.advance(0.2)
        assert engine.start_metrics is None

        scheduler.advance(1.0)
        assert engine.start_metrics is samples.samples[5]

        scheduler.advance(10.0)
        assert engine.start_metrics is samples.samples[5]

    def test_samples_use_the_configured_stress(self, scheduler):
        engine = make_engine(scheduler, simulated_stress=0.9)
        engine.start()
        scheduler.advance(1.0)

        assert all(s.arousal_state == ArousalState.HYPER_AROUSAL for s in engine.history)

    def test_generator_reset_on_fresh_start(self, scheduler):
        generator = BiofeedbackSignalGenerator(rng=random.Random(3))
        generator.state.baseline_heart_rate = 99.0
        engine = make_engine(scheduler, generator=generator)

        engine.start()
        assert generator.state.baseline_heart_rate == 75.0

    def test_generator_kept_when_reset_disabled(self, scheduler):
        generator = BiofeedbackSignalGenerator(rng=random.Random(3))
        generator.state.baseline_heart_rate = 99.0
        engine = make_engine(scheduler, generator=generator, reset_generator_on_start=False)

        engine.start()
        assert generator.state.baseline_heart_rate == 99.0


class TestLifecycle:
    """Start, stop, restart and reset."""

    def test_start_is_idempotent(self, engine, scheduler, recorder):
        engine.start()
        scheduler.advance(1.0)
        engine.start()

        assert engine.session_start_time == 0.0
        assert recorder.phases == [INHALE]
        assert scheduler.pending == 2

    def test_stop_cancels_both_clocks(self, engine, scheduler, recorder):
        engine.start()
        scheduler.advance(5.0)
        engine.stop()

        assert scheduler.pending == 0
        history_length = len(engine.history)
        events = len(recorder.events)

        scheduler.advance(30.0)
        assert len(engine.history) == history_length
        assert len(recorder.events) == events
        assert not engine.is_playing
        assert engine.current_phase is None

    def test_stop_keeps_history_and_elapsed_time(self, engine, scheduler):
        engine.start()
        scheduler.advance(12.5)
        engine.stop()

        assert len(engine.history) > 0
        assert engine.session_start_time is None
        assert engine.elapsed_seconds == pytest.approx(12.5)

    def test_stop_is_idempotent(self, engine, recorder):
        engine.stop()
        engine.start()
        engine.stop()
        engine.stop()

        assert recorder.stopped == 1

    def test_stop_then_start_begins_at_inhale(self, engine, scheduler, recorder):
        engine.start()
        scheduler.advance(12.5)
        assert recorder.phases == [INHALE, HOLD_IN, EXHALE, HOLD_OUT]

        engine.stop()
        scheduler.advance(5.0)
        engine.start()

        assert engine.current_phase == INHALE
        assert engine.session_start_time == pytest.approx(17.5)
        assert recorder.events[-1][:2] == (pytest.approx(17.5), INHALE)

        # the cancelled HOLD_OUT timer would have fired at 16.0
        scheduler.advance(3.9)
        assert engine.current_phase == INHALE

        scheduler.advance(0.2)
        assert engine.current_phase == HOLD_IN
        assert recorder.events[-1][0] == pytest.approx(21.5)

    def test_start_after_stop_begins_a_new_history(self, scheduler, samples):
        engine = make_engine(scheduler, simulated_stress=1.0, sample_listeners=[samples])
        engine.start()
        scheduler.advance(2.0)
        engine.stop()
        first_start_metrics = engine.start_metrics

        engine.simulated_stress = 0.0
        engine.start()
        scheduler.advance(2.0)

        assert engine.history[0].timestamp > 2.0
        assert all(s.timestamp > 2.0 for s in engine.history)
        assert engine.start_metrics is not first_start_metrics
        assert engine.start_metrics.timestamp >= 2.0
        assert engine.start_metrics is engine.history[5]

    def test_pattern_change_while_playing_restarts(self, engine, scheduler, recorder):
        engine.start()
        scheduler.advance(5.0)
        assert engine.current_phase == HOLD_IN

        engine.set_pattern(get_pattern("soldier"))

        assert engine.current_phase == INHALE
        assert engine.scheduler_state.started_at == pytest.approx(5.0)
        assert engine.session_start_time == 0.0
        assert scheduler.pending == 2

        scheduler.advance(3.5)
        assert engine.current_phase == INHALE

        scheduler.advance(1.0)
        assert engine.current_phase == EXHALE
        assert engine.phase_duration_ms == 8000

    def test_pattern_change_while_stopped_does_not_start(self, engine, scheduler):
        engine.set_pattern(get_pattern("relax_478"))

        assert not engine.is_playing
        assert engine.pattern.id.value == "relax_478"
        assert scheduler.pending == 0

    def test_cycle_duration_change_restarts_coherent(self, scheduler, recorder):
        engine = make_engine(scheduler, "coherent", phase_listeners=[recorder])
        engine.start()
        scheduler.advance(2.0)

        engine.set_breath_cycle_duration(7)

        assert recorder.events[-1] == (pytest.approx(2.0), INHALE, 3500)
        scheduler.advance(3.5)
        assert engine.current_phase == EXHALE

    def test_configure_reports_changes(self, engine, scheduler, recorder):
        engine.start()

        assert engine.configure(pattern=get_pattern("box"), breath_cycle_duration=10.0) is False
        assert recorder.phases == [INHALE]

        assert engine.configure(pattern=get_pattern("soldier"), breath_cycle_duration=8.0) is True
        # one restart for both changes
        assert recorder.phases == [INHALE, INHALE]

    def test_restart_keeps_generator_state(self, engine, scheduler):
        engine.start()
        scheduler.advance(2.0)
        baseline = engine._generator.state.baseline_heart_rate

        engine.set_pattern(get_pattern("soldier"))
        assert engine._generator.state.baseline_heart_rate == baseline

    def test_reset_clears_session(self, engine, scheduler):
        engine.start()
        scheduler.advance(2.0)
        engine.reset()

        assert not engine.is_playing
        assert engine.history == []
        assert engine.start_metrics is None
        assert engine.session_start_time is None
        assert engine.elapsed_seconds == 0.0
        assert scheduler.pending == 0

    def test_listener_failures_do_not_stop_the_clocks(self, scheduler, recorder):
        broken = BrokenListener()
        engine = make_engine(
            scheduler,
            phase_listeners=[broken, recorder],
            sample_listeners=[broken],
        )
        engine.start()
        scheduler.advance(8.0)
        engine.stop()

        assert recorder.phases == [INHALE, HOLD_IN, EXHALE]
        assert len(engine.history) == 120
        assert recorder.stopped == 1


class TestValidation:
    """Constructor and setter validation."""

    def test_invalid_sampling_interval(self, scheduler):
        with pytest.raises(ValueError):
            make_engine(scheduler, sampling_interval=0)

    def test_invalid_history_size(self, scheduler):
        with pytest.raises(ValueError):
            make_engine(scheduler, history_size=0)

    def test_stress_out_of_range(self, engine):
        with pytest.raises(ValueError):
            engine.simulated_stress = 1.5
        assert engine.simulated_stress == 0.5
