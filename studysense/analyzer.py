"""
Assembles a complete AnalysisReport from one snapshot of study sessions.

Each call works on its own immutable copy of the input and shares no mutable
state with other calls, so independent analyses may run concurrently.
"""

import logging
from typing import Optional, Sequence

from .aggregation import (
    optimal_study_times,
    sessions_by_subject,
    subject_performance,
    understanding_retention_correlation,
)
from .exceptions import EmptyDatasetError
from .models import AnalysisReport, StudySessionRecord
from .predictor import HeuristicPredictor, ScorePredictor
from .recommendations import generate_recommendations
from .trends import calculate_trend

logger = logging.getLogger(__name__)


def generate_analysis(
    student_id: str,
    sessions: Sequence[StudySessionRecord],
    predictor: Optional[ScorePredictor] = None,
) -> AnalysisReport:
    """
    Produce the full analysis report for a student's sessions.

    Parameters:
        student_id (str): Opaque identifier copied into the report.
        sessions (Sequence[StudySessionRecord]): Ordered, already validated
            sessions. Order matters for the improvement rate.
        predictor (Optional[ScorePredictor]): Predictor used for the
            per-subject projections. Defaults to the heuristic projection
            (current mean + 5, capped at 95).

    Returns:
        AnalysisReport: The assembled report. Identical input always yields an
        identical report.

    Raises:
        EmptyDatasetError: If ``sessions`` is empty. No partial report is
            produced.
    """
    snapshot = tuple(sessions)
    if not snapshot:
        raise EmptyDatasetError(
            f"No study sessions supplied for student '{student_id}'."
        )

    logger.info(
        f"Generating analysis for student {student_id} over {len(snapshot)} sessions"
    )

    if predictor is None:
        predictor = HeuristicPredictor.train(snapshot)

    trend = calculate_trend(snapshot)
    correlation = understanding_retention_correlation(snapshot)
    predicted_scores = {
        subject: predictor.predict_subject(group)
        for subject, group in sessions_by_subject(snapshot).items()
    }

    report = AnalysisReport(
        student_id=student_id,
        weekly_trend=trend,
        subject_performance=subject_performance(snapshot),
        optimal_times=optimal_study_times(snapshot),
        predicted_scores=predicted_scores,
        recommendations=generate_recommendations(trend, correlation),
    )
    logger.info(
        f"Analysis for student {student_id} complete: "
        f"{len(report.recommendations)} recommendation(s)"
    )
    return report
