"""Catalog of the built-in breathing patterns."""

from .entities.pattern import BreathingPattern, PatternId
from .entities.phase import BreathingPhase

INHALE = BreathingPhase.INHALE
HOLD_IN = BreathingPhase.HOLD_IN
EXHALE = BreathingPhase.EXHALE
HOLD_OUT = BreathingPhase.HOLD_OUT


BREATHING_PATTERNS: dict[PatternId, BreathingPattern] = {
    PatternId.COHERENT: BreathingPattern(
        id=PatternId.COHERENT,
        name="Coherence (5:5)",
        description="Balances the autonomic nervous system. The reference pattern for HRV.",
        mechanism="Balance",
        color="#22d3ee",
        base_timing={INHALE: 5, HOLD_IN: 0, EXHALE: 5, HOLD_OUT: 0},
    ),
    PatternId.BOX: BreathingPattern(
        id=PatternId.BOX,
        name="Box Breathing (4:4:4:4)",
        description="Used for focus and stress control under pressure.",
        mechanism="Focus",
        color="#a78bfa",
        base_timing={INHALE: 4, HOLD_IN: 4, EXHALE: 4, HOLD_OUT: 4},
    ),
    PatternId.RELAX_478: BreathingPattern(
        id=PatternId.RELAX_478,
        name="Deep Sleep (4-7-8)",
        description="Extended exhale for a strong parasympathetic response.",
        mechanism="Sedation",
        color="#60a5fa",
        base_timing={INHALE: 4, HOLD_IN: 7, EXHALE: 8, HOLD_OUT: 0},
    ),
    PatternId.SOLDIER: BreathingPattern(
        id=PatternId.SOLDIER,
        name="Soldier's Rest (4:8)",
        description="Simple progressive relaxation pattern.",
        mechanism="Vagal",
        color="#34d399",
        base_timing={INHALE: 4, HOLD_IN: 0, EXHALE: 8, HOLD_OUT: 0},
    ),
    PatternId.PERFORMANCE: BreathingPattern(
        id=PatternId.PERFORMANCE,
        name="Activation (2:2)",
        description="Raises alertness and sympathetic tone.",
        mechanism="Sympathetic",
        color="#fb923c",
        base_timing={INHALE: 2, HOLD_IN: 0, EXHALE: 2, HOLD_OUT: 0},
    ),
    PatternId.PANIC_RESCUE: BreathingPattern(
        id=PatternId.PANIC_RESCUE,
        name="Panic Rescue (3:6)",
        description="Quickly reduces acute anxiety.",
        mechanism="Acute Rescue",
        color="#f87171",
        base_timing={INHALE: 3, HOLD_IN: 0, EXHALE: 6, HOLD_OUT: 1},
    ),
}

# Pattern whose inhale/exhale follow the configured cycle length
COHERENT_PATTERN_ID = PatternId.COHERENT


def get_pattern(pattern_id: str) -> BreathingPattern:
    """Look up a catalog pattern.

    Args:
        pattern_id: The pattern identifier, e.g. ``"box"``.

    Returns:
        BreathingPattern: The pattern definition.

    Raises:
        ValueError: If the pattern is not in the catalog.
    """
    try:
        return BREATHING_PATTERNS[PatternId(pattern_id)]
    except ValueError:
        raise ValueError(f"Pattern with id {pattern_id} not found") from None


def list_patterns() -> list[BreathingPattern]:
    """All catalog patterns in catalog order."""
    return list(BREATHING_PATTERNS.values())
