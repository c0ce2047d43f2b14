"""StudySense - study session analysis and recommendations."""

from .models import (
    AnalysisReport,
    Recommendation,
    StudySessionRecord,
    StudyTrend,
    WeeklyPlanEntry,
)
from .analyzer import generate_analysis
from .predictor import (
    HeuristicPredictor,
    PredictorConfig,
    PredictorSlot,
    RegressionPredictor,
    ScorePredictor,
    predict,
    train_predictor,
)
from .planner import generate_weekly_plan
from .exceptions import EmptyDatasetError, TrainingError
from .db import StudyDatabase

__all__ = [
    "AnalysisReport",
    "Recommendation",
    "StudySessionRecord",
    "StudyTrend",
    "WeeklyPlanEntry",
    "generate_analysis",
    "HeuristicPredictor",
    "PredictorConfig",
    "PredictorSlot",
    "RegressionPredictor",
    "ScorePredictor",
    "predict",
    "train_predictor",
    "generate_weekly_plan",
    "EmptyDatasetError",
    "TrainingError",
    "StudyDatabase",
]
