"""
Run a breathing session offline on a virtual clock and print its report.

This script:
1. Builds a session engine on a VirtualScheduler (no event loop, no waiting)
2. Breathes the chosen pattern for the given number of minutes
3. Prints the phase timeline summary and the completion report

Usage:
    python examples/simulate_session.py [pattern_id] [minutes] [stress]
"""

import logging
import sys
from collections import Counter

from respiro.domain.patterns import get_pattern
from respiro.domain.services import SessionEngine, build_session_report
from respiro.infrastructure.virtual_scheduler import VirtualScheduler


class PhaseCounter:
    """Counts phases and their total scheduled time."""

    def __init__(self):
        self.counts = Counter()
        self.total_ms = Counter()

    def on_phase(self, phase, duration_ms):
        self.counts[phase] += 1
        self.total_ms[phase] += duration_ms

    def on_session_stopped(self):
        pass


def simulate(pattern_id: str = "coherent", minutes: float = 5.0, stress: float = 0.5):
    scheduler = VirtualScheduler()
    counter = PhaseCounter()
    engine = SessionEngine(
        scheduler=scheduler,
        pattern=get_pattern(pattern_id),
        simulated_stress=stress,
        phase_listeners=[counter],
    )

    engine.start()
    scheduler.advance(minutes * 60)
    engine.stop()

    history = engine.history
    report = build_session_report(
        engine.start_metrics or (history[0] if history else None),
        history[-1] if history else None,
        engine.elapsed_seconds,
        engine.pattern.name,
    )
    return counter, report


def main():
    logging.basicConfig(level=logging.WARNING)

    pattern_id = sys.argv[1] if len(sys.argv) > 1 else "coherent"
    minutes = float(sys.argv[2]) if len(sys.argv) > 2 else 5.0
    stress = float(sys.argv[3]) if len(sys.argv) > 3 else 0.5

    counter, report = simulate(pattern_id, minutes, stress)

    print("=" * 60)
    print(f"Simulated {minutes:g} min of {pattern_id} at stress {stress}")
    print("=" * 60)
    for phase, count in counter.counts.items():
        print(f"  {phase.value:<9} x{count:<4} avg {counter.total_ms[phase] / count:.0f} ms")

    if report is None:
        print("\nNo samples collected")
        return

    print(f"\nHeart rate: {report.start_heart_rate} -> {report.final_heart_rate} bpm")
    print(f"HRV:        {report.start_hrv} -> {report.final_hrv}")
    print(f"State:      {report.initial_state.value} -> {report.final_state.value}")
    print(f"Vagal score: {report.vagal_score}")


if __name__ == "__main__":
    main()
