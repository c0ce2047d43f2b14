import pytest

from studysense.constants import DEFAULT_PLAN_SUBJECTS
from studysense.planner import generate_weekly_plan
from studysense.predictor import HeuristicPredictor


@pytest.fixture
def predictor() -> HeuristicPredictor:
    return HeuristicPredictor(baseline_retention=76.0, best_time="morning")


def test_default_plan_covers_every_subject_each_day(predictor):
    plan = generate_weekly_plan(predictor)
    assert len(plan) == 7 * len(DEFAULT_PLAN_SUBJECTS)
    assert [e.day for e in plan[: len(DEFAULT_PLAN_SUBJECTS)]] == [1] * len(DEFAULT_PLAN_SUBJECTS)
    assert plan[-1].day == 7


def test_time_slots_rotate_and_hours_grow(predictor):
    plan = generate_weekly_plan(predictor, subjects=["A", "B", "C"], days=2)
    assert [(e.day, e.subject, e.time_of_day, e.hours) for e in plan] == [
        (1, "A", "afternoon", 1.5),
        (1, "B", "evening", 2.0),
        (1, "C", "morning", 2.5),
        (2, "A", "evening", 1.5),
        (2, "B", "morning", 2.0),
        (2, "C", "afternoon", 2.5),
    ]


def test_predictions_come_from_predictor(predictor):
    plan = generate_weekly_plan(predictor, subjects=["A", "B", "C"], days=1)
    # understanding 75 adds 1.0; C is a long morning block (+10 +5)
    assert [e.predicted_retention for e in plan] == pytest.approx([77.0, 77.0, 92.0])


def test_empty_subject_list_gives_empty_plan(predictor):
    assert generate_weekly_plan(predictor, subjects=[]) == []


def test_invalid_days(predictor):
    with pytest.raises(ValueError, match="Invalid number of days"):
        generate_weekly_plan(predictor, days=0)
