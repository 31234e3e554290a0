"""Session engine driving the phase clock and the sampling clock."""

import logging
from collections import deque
from typing import Iterable, Optional

from ..entities.biofeedback import BiofeedbackSample
from ..entities.breathing_session import SchedulerState
from ..entities.pattern import BreathingPattern
from ..entities.phase import BreathingPhase
from ..interfaces.phase_listener import PhaseListener, SampleListener
from ..interfaces.scheduler import Scheduler, TimerHandle
from .phase_scheduler import PhaseScheduler
from .signal_generator import BiofeedbackSignalGenerator

logger = logging.getLogger(__name__)


class SessionEngine:
    """
    Orchestrates one breathing session over time.

    This engine owns:
    - The sampling clock (fixed period, 20 Hz by default)
    - The phase clock (re-armed with each phase's effective duration)
    - The bounded biofeedback history and the start-metrics snapshot
    - The session start time

    Both clocks are delayed callbacks on a single ``Scheduler``, so they
    never run concurrently. Listener failures are logged and never stop
    the clocks.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        pattern: BreathingPattern,
        generator: Optional[BiofeedbackSignalGenerator] = None,
        is_adaptive: bool = True,
        breath_cycle_duration: float = 10.0,
        simulated_stress: float = 0.5,
        sampling_interval: float = 0.05,
        history_size: int = 120,
        start_metrics_index: int = 5,
        reset_generator_on_start: bool = True,
        phase_listeners: Optional[Iterable[PhaseListener]] = None,
        sample_listeners: Optional[Iterable[SampleListener]] = None,
    ):
        if sampling_interval <= 0:
            raise ValueError(f"sampling_interval must be positive, got {sampling_interval}")
        if history_size < 1:
            raise ValueError(f"history_size must be at least 1, got {history_size}")

        self._scheduler = scheduler
        self._generator = generator or BiofeedbackSignalGenerator()
        self._phase_scheduler = PhaseScheduler(pattern, is_adaptive, breath_cycle_duration)
        self.simulated_stress = simulated_stress

        self.sampling_interval = sampling_interval
        self.start_metrics_index = start_metrics_index
        self.reset_generator_on_start = reset_generator_on_start

        self.phase_listeners: list[PhaseListener] = list(phase_listeners or [])
        self.sample_listeners: list[SampleListener] = list(sample_listeners or [])

        # Session state
        self._history: deque[BiofeedbackSample] = deque(maxlen=history_size)
        self._start_metrics: Optional[BiofeedbackSample] = None
        self._session_start_time: Optional[float] = None
        self._last_elapsed_seconds: float = 0.0

        # Clock handles
        self._phase_handle: Optional[TimerHandle] = None
        self._sample_handle: Optional[TimerHandle] = None
        self._playing = False

    # ===== Configuration =====

    @property
    def pattern(self) -> BreathingPattern:
        return self._phase_scheduler.pattern

    @property
    def is_adaptive(self) -> bool:
        return self._phase_scheduler.is_adaptive

    @is_adaptive.setter
    def is_adaptive(self, value: bool) -> None:
        self._phase_scheduler.is_adaptive = value

    @property
    def simulated_stress(self) -> float:
        return self._simulated_stress

    @simulated_stress.setter
    def simulated_stress(self, value: float) -> None:
        if not 0.0 <= value <= 1.0:
            raise ValueError(f"simulated_stress must be within [0, 1], got {value}")
        self._simulated_stress = float(value)

    @property
    def breath_cycle_duration(self) -> float:
        return self._phase_scheduler.breath_cycle_duration

    def configure(
        self,
        pattern: Optional[BreathingPattern] = None,
        breath_cycle_duration: Optional[float] = None,
    ) -> bool:
        """
        Change the pattern and/or the coherent cycle length.

        A playing session restarts once at INHALE if anything changed.

        Returns:
            bool: True if the schedule changed
        """
        changed = False
        scheduler = self._phase_scheduler

        if pattern is not None and pattern != scheduler.pattern:
            logger.info(f"Pattern changed from {scheduler.pattern.id.value} to {pattern.id.value}")
            scheduler.pattern = pattern
            changed = True

        if breath_cycle_duration is not None and breath_cycle_duration != scheduler.breath_cycle_duration:
            scheduler.breath_cycle_duration = breath_cycle_duration
            logger.info(f"Breath cycle duration set to {breath_cycle_duration}s")
            changed = True

        if changed and self._playing:
            self.restart()
        return changed

    def set_pattern(self, pattern: BreathingPattern) -> None:
        """Switch pattern; a playing session restarts at INHALE."""
        self.configure(pattern=pattern)

    def set_breath_cycle_duration(self, seconds: float) -> None:
        """Change the coherent cycle length; a playing session restarts at INHALE."""
        self.configure(breath_cycle_duration=seconds)

    # ===== Read-only session state =====

    @property
    def is_playing(self) -> bool:
        return self._playing

    @property
    def scheduler_state(self) -> Optional[SchedulerState]:
        return self._phase_scheduler.state

    @property
    def current_phase(self) -> Optional[BreathingPhase]:
        state = self._phase_scheduler.state
        return state.phase if state else None

    @property
    def phase_duration_ms(self) -> Optional[int]:
        state = self._phase_scheduler.state
        return state.duration_ms if state else None

    @property
    def history(self) -> list[BiofeedbackSample]:
        """Samples in production order, oldest first."""
        return list(self._history)

    @property
    def latest_sample(self) -> Optional[BiofeedbackSample]:
        return self._history[-1] if self._history else None

    @property
    def start_metrics(self) -> Optional[BiofeedbackSample]:
        return self._start_metrics

    @property
    def session_start_time(self) -> Optional[float]:
        return self._session_start_time

    @property
    def elapsed_seconds(self) -> float:
        """Seconds since the session started, or the length of the last one."""
        if self._session_start_time is not None:
            return self._scheduler.now() - self._session_start_time
        return self._last_elapsed_seconds

    def phase_progress(self, now: Optional[float] = None) -> float:
        """Fraction of the current phase that has elapsed, clamped to [0, 1]."""
        state = self._phase_scheduler.state
        if state is None:
            return 0.0
        if now is None:
            now = self._scheduler.now()
        progress = (now - state.started_at) * 1000.0 / state.duration_ms
        return max(0.0, min(1.0, progress))

    # ===== Lifecycle =====

    def start(self) -> None:
        """Start a new session at INHALE and arm both clocks.

        History and start metrics left over from a stopped session are
        discarded, so the report only compares samples of this session.
        """
        if self._playing:
            logger.warning("Session already playing, ignoring start")
            return

        if self._session_start_time is None:
            self._history.clear()
            self._start_metrics = None
            if self.reset_generator_on_start:
                self._generator.reset()
            self._session_start_time = self._scheduler.now()

        self._playing = True
        self._begin_cycle()
        logger.info(
            f"Session started with pattern {self.pattern.id.value} "
            f"(adaptive={self.is_adaptive}, stress={self.simulated_stress})"
        )

    def stop(self) -> None:
        """Cancel both clocks. History is kept for the completion report."""
        if not self._playing:
            logger.debug("Session not playing, ignoring stop")
            return

        self._cancel_clocks()
        self._playing = False
        self._phase_scheduler.stop()

        if self._session_start_time is not None:
            self._last_elapsed_seconds = self._scheduler.now() - self._session_start_time
        self._session_start_time = None

        for listener in self.phase_listeners:
            try:
                listener.on_session_stopped()
            except Exception as e:
                logger.error(f"Phase listener {type(listener).__name__} failed on stop: {e}", exc_info=True)

        logger.info(f"Session stopped after {self._last_elapsed_seconds:.1f}s")

    def restart(self) -> None:
        """Cancel and re-arm both clocks from INHALE, keeping the session running."""
        if not self._playing:
            return
        self._cancel_clocks()
        self._begin_cycle()
        logger.info(f"Session restarted with pattern {self.pattern.id.value}")

    def reset(self) -> None:
        """Clear history, start metrics and start time."""
        if self._playing:
            logger.warning("Resetting a playing session, stopping it first")
            self.stop()

        self._history.clear()
        self._start_metrics = None
        self._session_start_time = None
        self._last_elapsed_seconds = 0.0
        logger.info("Session reset")

    # ===== Clocks =====

    def _begin_cycle(self) -> None:
        now = self._scheduler.now()
        state = self._phase_scheduler.start(now, self.latest_sample)
        self._dispatch_phase(state)
        self._phase_handle = self._scheduler.call_later(state.duration_ms / 1000.0, self._on_phase_tick)
        self._sample_handle = self._scheduler.call_later(self.sampling_interval, self._on_sample_tick)

    def _cancel_clocks(self) -> None:
        for handle in (self._phase_handle, self._sample_handle):
            if handle is not None:
                handle.cancel()
        self._phase_handle = None
        self._sample_handle = None

    def _on_phase_tick(self) -> None:
        self._phase_handle = None
        if not self._playing:
            return

        state = self._phase_scheduler.advance(self._scheduler.now(), self.latest_sample)
        logger.info(f"Phase {state.phase.value} for {state.duration_ms} ms")
        self._dispatch_phase(state)
        self._phase_handle = self._scheduler.call_later(state.duration_ms / 1000.0, self._on_phase_tick)

    def _on_sample_tick(self) -> None:
        self._sample_handle = None
        state = self._phase_scheduler.state
        if not self._playing or state is None:
            return

        now = self._scheduler.now()
        sample = self._generator.generate_sample(
            state.phase,
            self.simulated_stress,
            self.phase_progress(now),
            timestamp=now,
        )
        self._append_sample(sample)

        for listener in self.sample_listeners:
            try:
                listener.on_sample(sample)
            except Exception as e:
                logger.error(f"Sample listener {type(listener).__name__} failed: {e}", exc_info=True)

        self._sample_handle = self._scheduler.call_later(self.sampling_interval, self._on_sample_tick)

    def _append_sample(self, sample: BiofeedbackSample) -> None:
        # the snapshot skips the first few samples while the generator settles
        if self._start_metrics is None and len(self._history) == self.start_metrics_index:
            self._start_metrics = sample
        self._history.append(sample)
        logger.debug(f"Sample hr={sample.heart_rate} rsa={sample.rsa_amplitude} ({len(self._history)} in history)")

    def _dispatch_phase(self, state: SchedulerState) -> None:
        for listener in self.phase_listeners:
            try:
                listener.on_phase(state.phase, state.duration_ms)
            except Exception as e:
                logger.error(f"Phase listener {type(listener).__name__} failed: {e}", exc_info=True)
