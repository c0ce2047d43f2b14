"""
Analysis constants.

This module contains the static thresholds, caps and fixed messages used by the
study analysis pipeline. No runtime configuration - pure constants only.
"""
from typing import Dict, Tuple

# Recognised time-of-day buckets. Any other label is kept verbatim and treated
# as its own bucket by the aggregators.
TIMES_OF_DAY: Tuple[str, ...] = ("morning", "afternoon", "evening")

# Ordinal encoding used for the regression feature vector.
TIME_OF_DAY_ORDINALS: Dict[str, float] = {
    "morning": 0.0,
    "afternoon": 1.0,
    "evening": 2.0,
}
UNKNOWN_TIME_OF_DAY_ORDINAL: float = 1.0

# A "week" is approximated as this many consecutive records.
SESSIONS_PER_WEEK: float = 7.0

# Denominators that could reach zero are floored at this value.
DENOMINATOR_FLOOR: float = 1.0

MAX_CONSISTENCY_SCORE: float = 100.0
MAX_OPTIMAL_TIMES: int = 2

# A single session cannot span more than one day.
MAX_SESSION_HOURS: float = 24.0

# --- Heuristic predictor ---
HEURISTIC_SUBJECT_BOOST: float = 5.0
HEURISTIC_SCORE_CAP: float = 95.0
HEURISTIC_SCORE_FLOOR: float = 30.0
LONG_SESSION_HOURS: float = 2.0
LONG_SESSION_BONUS: float = 10.0
SHORT_SESSION_HOURS: float = 1.0
SHORT_SESSION_PENALTY: float = 5.0
BEST_TIME_BONUS: float = 5.0
UNDERSTANDING_PIVOT: float = 70.0
UNDERSTANDING_WEIGHT: float = 0.2
DEFAULT_BEST_TIME: str = "morning"

# --- Regression predictor ---
# Intercept plus (hours, time-of-day ordinal, understanding).
REGRESSION_FEATURE_COUNT: int = 4
DEFAULT_MAX_CONDITION_NUMBER: float = 1e10

# --- Recommendation rules ---
# category -> (threshold, confidence, impact_score, message)
# Each rule fires when its metric is strictly below the threshold.
RECOMMENDATION_RULES: Dict[str, Tuple[float, float, float, str]] = {
    "duration": (
        10.0,
        0.8,
        7.5,
        "Consider increasing study time to 10+ hours weekly for better results",
    ),
    "efficiency": (
        30.0,
        0.7,
        8.0,
        "Focus on active recall techniques to improve retention per study hour",
    ),
    "consistency": (
        70.0,
        0.9,
        6.5,
        "Try studying at consistent times each day to build better habits",
    ),
    "learning": (
        80.0,
        0.75,
        7.0,
        "Work on converting understanding to long-term retention through spaced repetition",
    ),
}

# --- Weekly planner ---
DEFAULT_PLAN_SUBJECTS: Tuple[str, ...] = (
    "Math",
    "Physics",
    "Programming",
    "History",
    "English",
)
DEFAULT_PLAN_DAYS: int = 7
PLAN_BASE_HOURS: float = 1.5
PLAN_HOURS_STEP: float = 0.5
PLAN_ASSUMED_UNDERSTANDING: int = 75

# --- Ingestion ---
CSV_COLUMNS: Tuple[str, ...] = (
    "subject",
    "hours_studied",
    "time_of_day",
    "understanding_score",
    "retention_score",
)

SAMPLE_SESSIONS_CSV: str = """subject,hours_studied,time_of_day,understanding_score,retention_score
mathematics,2.0,morning,85,90
physics,1.5,afternoon,70,65
programming,3.0,evening,90,80
history,1.0,morning,60,75
english,1.5,evening,75,70
chemistry,2.5,morning,80,85
mathematics,1.5,afternoon,75,70
programming,2.0,evening,85,80
physics,2.0,morning,80,85
history,1.0,afternoon,65,60
"""

# Student id used when analysing a CSV without an explicit --student.
DEFAULT_STUDENT_ID: str = "student_001"
