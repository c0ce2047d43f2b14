"""
Score predictors for study sessions.

Two interchangeable implementations satisfy the ScorePredictor protocol:

- HeuristicPredictor: rule-of-thumb adjustments around the average retention.
- RegressionPredictor: ordinary least squares over
  (hours, time-of-day ordinal, understanding).

The variant is chosen through PredictorConfig passed to train_predictor.
Predictors are immutable once constructed and may be shared between threads.
"""

import logging
import threading
from dataclasses import dataclass, field
from statistics import mean
from typing import Literal, Optional, Protocol, Sequence, runtime_checkable

import numpy as np
from pydantic import BaseModel, ConfigDict, Field

from .aggregation import rank_times_of_day
from .constants import (
    BEST_TIME_BONUS,
    DEFAULT_BEST_TIME,
    DEFAULT_MAX_CONDITION_NUMBER,
    HEURISTIC_SCORE_CAP,
    HEURISTIC_SCORE_FLOOR,
    HEURISTIC_SUBJECT_BOOST,
    LONG_SESSION_BONUS,
    LONG_SESSION_HOURS,
    REGRESSION_FEATURE_COUNT,
    SHORT_SESSION_HOURS,
    SHORT_SESSION_PENALTY,
    TIME_OF_DAY_ORDINALS,
    UNDERSTANDING_PIVOT,
    UNDERSTANDING_WEIGHT,
    UNKNOWN_TIME_OF_DAY_ORDINAL,
)
from .exceptions import TrainingError
from .models import StudySessionRecord

logger = logging.getLogger(__name__)


def time_of_day_ordinal(time_of_day: str) -> float:
    """Encode a time-of-day label; unrecognised labels map to afternoon."""
    return TIME_OF_DAY_ORDINALS.get(time_of_day, UNKNOWN_TIME_OF_DAY_ORDINAL)


def session_features(session: StudySessionRecord) -> np.ndarray:
    """Feature vector (hours, time-of-day ordinal, understanding)."""
    return np.array(
        [
            session.hours_studied,
            time_of_day_ordinal(session.time_of_day),
            float(session.understanding_score),
        ]
    )


def project_score(current_mean: float) -> float:
    """Heuristic projection of a subject's next score from its current mean."""
    return min(current_mean + HEURISTIC_SUBJECT_BOOST, HEURISTIC_SCORE_CAP)


@runtime_checkable
class ScorePredictor(Protocol):
    """Capability shared by every predictor variant."""

    kind: str

    def predict(
        self, hours: float, time_of_day: str, understanding: float
    ) -> float:
        """Predict a retention score for a hypothetical session."""
        ...

    def predict_subject(
        self, subject_sessions: Sequence[StudySessionRecord]
    ) -> float:
        """Predict a subject's next score from the sessions recorded for it."""
        ...


class PredictorConfig(BaseModel):
    """Configuration selecting and tuning the predictor variant."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["heuristic", "regression"] = "heuristic"
    regression_cap: Optional[float] = Field(
        default=None,
        description="Upper bound for regression output. None leaves it uncapped.",
    )
    fallback_to_heuristic: bool = Field(
        default=True,
        description="Return a HeuristicPredictor when the regression fit fails.",
    )
    max_condition_number: float = Field(
        default=DEFAULT_MAX_CONDITION_NUMBER, gt=0
    )


@dataclass(frozen=True)
class HeuristicPredictor:
    """
    Rule-of-thumb predictor.

    Subject projections only need the subject's current mean. What-if
    predictions start from ``baseline_retention`` and adjust for session
    length, time of day and understanding, clamped to [30, 95].
    """

    baseline_retention: float
    best_time: str = DEFAULT_BEST_TIME
    kind: str = field(default="heuristic", init=False)

    @classmethod
    def train(
        cls, sessions: Sequence[StudySessionRecord]
    ) -> "HeuristicPredictor":
        """
        Derive the baseline retention and best time of day from ``sessions``.

        Raises:
            TrainingError: If ``sessions`` is empty.
        """
        if not sessions:
            raise TrainingError("Cannot train a predictor on zero sessions.")
        baseline = mean(float(s.retention_score) for s in sessions)
        best_time = rank_times_of_day(sessions)[0][0]
        logger.info(
            f"Heuristic predictor ready: baseline retention {baseline:.1f}, "
            f"best time '{best_time}'"
        )
        return cls(baseline_retention=baseline, best_time=best_time)

    def predict(
        self, hours: float, time_of_day: str, understanding: float
    ) -> float:
        score = self.baseline_retention
        if hours > LONG_SESSION_HOURS:
            score += LONG_SESSION_BONUS
        elif hours < SHORT_SESSION_HOURS:
            score -= SHORT_SESSION_PENALTY
        if time_of_day == self.best_time:
            score += BEST_TIME_BONUS
        score += (understanding - UNDERSTANDING_PIVOT) * UNDERSTANDING_WEIGHT
        return max(HEURISTIC_SCORE_FLOOR, min(HEURISTIC_SCORE_CAP, score))

    def predict_subject(
        self, subject_sessions: Sequence[StudySessionRecord]
    ) -> float:
        current_mean = mean(float(s.retention_score) for s in subject_sessions)
        return project_score(current_mean)


@dataclass(frozen=True, eq=False)
class RegressionPredictor:
    """
    Linear model fitted by ordinary least squares.

    ``coefficients`` holds ``[intercept, hours, time_of_day, understanding]``
    and is read-only. Output is not capped unless ``cap`` is set, unlike the
    heuristic variant which never exceeds 95.
    """

    coefficients: np.ndarray
    cap: Optional[float] = None
    kind: str = field(default="regression", init=False)

    @classmethod
    def fit(
        cls,
        sessions: Sequence[StudySessionRecord],
        cap: Optional[float] = None,
        max_condition_number: float = DEFAULT_MAX_CONDITION_NUMBER,
    ) -> "RegressionPredictor":
        """
        Fit retention against session features.

        Raises:
            TrainingError: If there are fewer rows than coefficients, or the
                design matrix is rank deficient or ill-conditioned.
        """
        rows = len(sessions)
        if rows < REGRESSION_FEATURE_COUNT:
            raise TrainingError(
                f"Regression needs at least {REGRESSION_FEATURE_COUNT} sessions, got {rows}."
            )

        design = np.column_stack(
            [np.ones(rows), np.vstack([session_features(s) for s in sessions])]
        )
        target = np.array([float(s.retention_score) for s in sessions])

        rank = np.linalg.matrix_rank(design)
        if rank < REGRESSION_FEATURE_COUNT:
            raise TrainingError(
                f"Feature matrix is singular (rank {rank} < {REGRESSION_FEATURE_COUNT})."
            )
        condition = np.linalg.cond(design)
        if not np.isfinite(condition) or condition > max_condition_number:
            raise TrainingError(
                f"Feature matrix is ill-conditioned (condition number {condition:.3g})."
            )

        coefficients, _, _, _ = np.linalg.lstsq(design, target, rcond=None)
        coefficients.setflags(write=False)
        logger.info(
            f"Regression predictor fitted on {rows} sessions: "
            f"coefficients {np.round(coefficients, 4).tolist()}"
        )
        return cls(coefficients=coefficients, cap=cap)

    def _evaluate(self, features: np.ndarray) -> float:
        score = float(self.coefficients[0] + np.dot(self.coefficients[1:], features))
        if self.cap is not None:
            score = min(self.cap, score)
        return score

    def predict(
        self, hours: float, time_of_day: str, understanding: float
    ) -> float:
        features = np.array(
            [hours, time_of_day_ordinal(time_of_day), float(understanding)]
        )
        return self._evaluate(features)

    def predict_subject(
        self, subject_sessions: Sequence[StudySessionRecord]
    ) -> float:
        mean_features = np.vstack(
            [session_features(s) for s in subject_sessions]
        ).mean(axis=0)
        return self._evaluate(mean_features)


def train_predictor(
    sessions: Sequence[StudySessionRecord],
    config: Optional[PredictorConfig] = None,
) -> ScorePredictor:
    """
    Build the predictor selected by ``config`` from ``sessions``.

    When a regression fit fails and ``config.fallback_to_heuristic`` is set,
    a HeuristicPredictor trained on the same sessions is returned instead and
    a warning is logged.

    Raises:
        TrainingError: If ``sessions`` is empty, or the regression fit fails
            and fallback is disabled.
    """
    if config is None:
        config = PredictorConfig()
    if not sessions:
        raise TrainingError("Cannot train a predictor on zero sessions.")

    if config.kind == "heuristic":
        return HeuristicPredictor.train(sessions)

    try:
        return RegressionPredictor.fit(
            sessions,
            cap=config.regression_cap,
            max_condition_number=config.max_condition_number,
        )
    except TrainingError as e:
        if not config.fallback_to_heuristic:
            raise
        logger.warning(
            f"Regression fit failed ({e}); falling back to heuristic predictor."
        )
        return HeuristicPredictor.train(sessions)


def predict(
    predictor: ScorePredictor,
    hours: float,
    time_of_day: str,
    understanding: float,
) -> float:
    """Predict a what-if score with any predictor variant."""
    return predictor.predict(hours, time_of_day, understanding)


class PredictorSlot:
    """
    Holds the currently published predictor.

    A predictor is published only after it is fully constructed, and
    retraining replaces the instance rather than mutating it, so readers
    always see a complete predictor.
    """

    def __init__(self, predictor: Optional[ScorePredictor] = None):
        self._lock = threading.Lock()
        self._predictor = predictor

    @property
    def current(self) -> Optional[ScorePredictor]:
        with self._lock:
            return self._predictor

    def publish(self, predictor: ScorePredictor) -> Optional[ScorePredictor]:
        """Swap in ``predictor`` and return the one it replaced."""
        with self._lock:
            previous, self._predictor = self._predictor, predictor
        logger.info(f"Published {predictor.kind} predictor.")
        return previous

    def retrain(
        self,
        sessions: Sequence[StudySessionRecord],
        config: Optional[PredictorConfig] = None,
    ) -> ScorePredictor:
        """Train outside the lock, then publish the finished predictor."""
        predictor = train_predictor(sessions, config)
        self.publish(predictor)
        return predictor
