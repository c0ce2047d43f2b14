"""
Trend metrics derived from an ordered sequence of study sessions.

Every function here is a pure function of its input. Denominators that could
reach zero (total hours, record counts) are floored at 1 instead of producing
NaN or infinity.
"""

import logging
from collections import defaultdict
from statistics import mean, pstdev
from typing import Dict, Sequence

from .constants import (
    DENOMINATOR_FLOOR,
    MAX_CONSISTENCY_SCORE,
    SESSIONS_PER_WEEK,
)
from .exceptions import EmptyDatasetError
from .models import StudySessionRecord, StudyTrend

logger = logging.getLogger(__name__)


def _require_sessions(sessions: Sequence[StudySessionRecord]) -> None:
    if not sessions:
        raise EmptyDatasetError("Cannot compute trends over zero sessions.")


def weekly_hours(sessions: Sequence[StudySessionRecord]) -> float:
    """
    Approximate hours studied per week.

    Each run of seven records is treated as one week; this is a count-based
    simplification, not calendar-based.
    """
    _require_sessions(sessions)
    total_hours = sum(s.hours_studied for s in sessions)
    weeks = max(DENOMINATOR_FLOOR, len(sessions) / SESSIONS_PER_WEEK)
    return total_hours / weeks


def efficiency_score(sessions: Sequence[StudySessionRecord]) -> float:
    """Retention points earned per hour studied."""
    _require_sessions(sessions)
    total_retention = sum(s.retention_score for s in sessions)
    total_hours = sum(s.hours_studied for s in sessions)
    return total_retention / max(DENOMINATOR_FLOOR, total_hours)


def hours_by_time_of_day(
    sessions: Sequence[StudySessionRecord],
) -> Dict[str, float]:
    """Total hours per time-of-day bucket, keyed in label order."""
    totals: Dict[str, float] = defaultdict(float)
    for session in sessions:
        totals[session.time_of_day] += session.hours_studied
    return dict(sorted(totals.items()))


def consistency_score(sessions: Sequence[StudySessionRecord]) -> float:
    """
    Inverse spread of study hours across buckets, in [0, 100].

    Time-of-day buckets stand in for days: hours are summed per bucket and the
    population standard deviation of those totals is mapped to
    ``100 / (1 + stddev)``.
    """
    _require_sessions(sessions)
    bucket_totals = list(hours_by_time_of_day(sessions).values())
    spread = pstdev(bucket_totals)
    return min(MAX_CONSISTENCY_SCORE, MAX_CONSISTENCY_SCORE / (1.0 + spread))


def improvement_rate(sessions: Sequence[StudySessionRecord]) -> float:
    """
    Relative change, in percent, of mean retention between the two halves.

    The sequence is split by index at ``n // 2``. Fewer than two records
    yields 0.
    """
    if len(sessions) < 2:
        return 0.0
    midpoint = len(sessions) // 2
    first_avg = mean(s.retention_score for s in sessions[:midpoint])
    second_avg = mean(s.retention_score for s in sessions[midpoint:])
    return ((second_avg - first_avg) / max(DENOMINATOR_FLOOR, first_avg)) * 100.0


def calculate_trend(sessions: Sequence[StudySessionRecord]) -> StudyTrend:
    """
    Compute all trend metrics for a non-empty session sequence.

    Raises:
        EmptyDatasetError: If ``sessions`` is empty.
    """
    _require_sessions(sessions)
    trend = StudyTrend(
        weekly_hours=weekly_hours(sessions),
        efficiency_score=efficiency_score(sessions),
        consistency_score=consistency_score(sessions),
        improvement_rate=improvement_rate(sessions),
    )
    logger.debug(f"Computed trend over {len(sessions)} sessions: {trend}")
    return trend
