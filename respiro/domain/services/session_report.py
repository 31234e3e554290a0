"""Completion report, vagal score and history statistics."""

import math
from datetime import date, datetime, timedelta
from typing import Iterable, Optional

from ..entities.biofeedback import BiofeedbackSample
from ..entities.session_summary import AggregatedStats, SavedSession, SessionReport


def calculate_vagal_score(heart_rate_diff: int, hrv_diff: int) -> int:
    """Vagal tone proxy in [0, 100]: rises with HRV, falls with heart rate."""
    return min(100, max(0, 50 + hrv_diff * 2 - heart_rate_diff * 2))


def build_session_report(
    start_sample: Optional[BiofeedbackSample],
    final_sample: Optional[BiofeedbackSample],
    duration_seconds: float,
    pattern_name: str,
) -> Optional[SessionReport]:
    """
    Compare the start and final samples of a session.

    Args:
        start_sample: Start-metrics snapshot (or first sample)
        final_sample: Newest sample in the history
        duration_seconds: Elapsed session time
        pattern_name: Display name of the pattern

    Returns:
        The report, or None if either sample is missing
    """
    if start_sample is None or final_sample is None:
        return None

    heart_rate_diff = final_sample.heart_rate - start_sample.heart_rate
    hrv_diff = final_sample.hrv - start_sample.hrv

    return SessionReport(
        duration_seconds=max(0, int(duration_seconds)),
        pattern_name=pattern_name,
        start_heart_rate=start_sample.heart_rate,
        final_heart_rate=final_sample.heart_rate,
        heart_rate_diff=heart_rate_diff,
        start_hrv=start_sample.hrv,
        final_hrv=final_sample.hrv,
        hrv_diff=hrv_diff,
        vagal_score=calculate_vagal_score(heart_rate_diff, hrv_diff),
        initial_state=start_sample.arousal_state,
        final_state=final_sample.arousal_state,
    )


def _session_day(session: SavedSession) -> date:
    return datetime.fromtimestamp(session.timestamp / 1000).date()


def current_streak(sessions: Iterable[SavedSession], today: Optional[date] = None) -> int:
    """Consecutive practice days ending today or yesterday."""
    days = sorted({_session_day(s) for s in sessions}, reverse=True)
    if not days:
        return 0

    today = today or date.today()
    if days[0] not in (today, today - timedelta(days=1)):
        return 0

    streak = 1
    for previous, day in zip(days, days[1:]):
        if previous - day != timedelta(days=1):
            break
        streak += 1
    return streak


def aggregate_stats(sessions: list[SavedSession], today: Optional[date] = None) -> AggregatedStats:
    """
    Totals across the saved history.

    Args:
        sessions: Saved sessions, newest first
        today: Reference day for the streak, defaults to the local date

    Returns:
        AggregatedStats: Session count, minutes, streak and average score
    """
    if not sessions:
        return AggregatedStats()

    total_seconds = sum(s.duration_seconds for s in sessions)
    average_score = sum(s.vagal_score for s in sessions) / len(sessions)

    return AggregatedStats(
        total_sessions=len(sessions),
        total_minutes=int(total_seconds // 60),
        current_streak=current_streak(sessions, today),
        last_session_date=max(s.timestamp for s in sessions),
        average_vagal_score=math.floor(average_score + 0.5),
    )
