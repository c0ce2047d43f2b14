"""
Per-subject and per-time-of-day retention aggregates.
"""

from collections import defaultdict
from typing import Dict, List, Sequence, Tuple

from .constants import MAX_OPTIMAL_TIMES
from .exceptions import EmptyDatasetError
from .models import StudySessionRecord


def _mean_retention_by(
    sessions: Sequence[StudySessionRecord], attribute: str
) -> Dict[str, float]:
    """Group sessions by ``attribute`` and average their retention scores."""
    totals: Dict[str, float] = defaultdict(float)
    counts: Dict[str, int] = defaultdict(int)
    for session in sessions:
        key = getattr(session, attribute)
        totals[key] += session.retention_score
        counts[key] += 1
    return {key: totals[key] / counts[key] for key in sorted(totals)}


def subject_performance(
    sessions: Sequence[StudySessionRecord],
) -> Dict[str, float]:
    """
    Mean retention per subject.

    Subjects are grouped by their exact label (no case folding) and every
    subject observed gets an entry, regardless of sample size.
    """
    return _mean_retention_by(sessions, "subject")


def sessions_by_subject(
    sessions: Sequence[StudySessionRecord],
) -> Dict[str, List[StudySessionRecord]]:
    """Partition sessions by exact subject label, preserving input order."""
    groups: Dict[str, List[StudySessionRecord]] = defaultdict(list)
    for session in sessions:
        groups[session.subject].append(session)
    return {subject: groups[subject] for subject in sorted(groups)}


def time_of_day_performance(
    sessions: Sequence[StudySessionRecord],
) -> Dict[str, float]:
    """Mean retention per time-of-day bucket."""
    return _mean_retention_by(sessions, "time_of_day")


def rank_times_of_day(
    sessions: Sequence[StudySessionRecord],
) -> List[Tuple[str, float]]:
    """
    Buckets ordered best first by mean retention.

    Equal means are ordered by bucket label, ascending, so the ranking does
    not depend on input order.
    """
    performance = time_of_day_performance(sessions)
    return sorted(performance.items(), key=lambda item: (-item[1], item[0]))


def optimal_study_times(
    sessions: Sequence[StudySessionRecord], limit: int = MAX_OPTIMAL_TIMES
) -> List[str]:
    """Return up to ``limit`` time-of-day labels, best first."""
    return [label for label, _ in rank_times_of_day(sessions)[:limit]]


def understanding_retention_correlation(
    sessions: Sequence[StudySessionRecord],
) -> float:
    """
    Bounded proxy for how closely understanding tracks retention.

    Computed as ``100 - |mean understanding - mean retention|`` over the full
    sequence and clamped to [0, 100]. This is not a statistical correlation
    coefficient.

    Raises:
        EmptyDatasetError: If ``sessions`` is empty.
    """
    if not sessions:
        raise EmptyDatasetError("Cannot compute correlation over zero sessions.")
    count = len(sessions)
    avg_understanding = sum(s.understanding_score for s in sessions) / count
    avg_retention = sum(s.retention_score for s in sessions) / count
    correlation = 100.0 - abs(avg_understanding - avg_retention)
    return min(100.0, max(0.0, correlation))
