"""
Weekly study plan generation driven by a score predictor.
"""

import logging
from typing import List, Sequence

from .constants import (
    DEFAULT_PLAN_DAYS,
    DEFAULT_PLAN_SUBJECTS,
    PLAN_ASSUMED_UNDERSTANDING,
    PLAN_BASE_HOURS,
    PLAN_HOURS_STEP,
    TIMES_OF_DAY,
)
from .models import WeeklyPlanEntry
from .predictor import ScorePredictor

logger = logging.getLogger(__name__)


def generate_weekly_plan(
    predictor: ScorePredictor,
    subjects: Sequence[str] = DEFAULT_PLAN_SUBJECTS,
    days: int = DEFAULT_PLAN_DAYS,
    assumed_understanding: int = PLAN_ASSUMED_UNDERSTANDING,
) -> List[WeeklyPlanEntry]:
    """
    Lay out one study block per subject per day.

    Time slots rotate through morning, afternoon and evening so each subject
    visits every slot over the week; later subjects in the list get longer
    blocks. Each block carries the predictor's retention estimate.

    Raises:
        ValueError: If ``days`` is less than 1.
    """
    if days < 1:
        raise ValueError(f"Invalid number of days: {days}. Must be at least 1.")

    plan: List[WeeklyPlanEntry] = []
    for day in range(1, days + 1):
        for index, subject in enumerate(subjects):
            time_of_day = TIMES_OF_DAY[(day + index) % len(TIMES_OF_DAY)]
            hours = PLAN_BASE_HOURS + index * PLAN_HOURS_STEP
            plan.append(
                WeeklyPlanEntry(
                    day=day,
                    subject=subject,
                    time_of_day=time_of_day,
                    hours=hours,
                    predicted_retention=predictor.predict(
                        hours, time_of_day, assumed_understanding
                    ),
                )
            )
    logger.info(
        f"Generated {days}-day plan with {len(plan)} blocks using the {predictor.kind} predictor"
    )
    return plan
