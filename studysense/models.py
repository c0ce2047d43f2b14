"""
Pydantic models for study sessions and the analysis report built from them.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .constants import MAX_OPTIMAL_TIMES, MAX_SESSION_HOURS


class StudySessionRecord(BaseModel):
    """
    One observed study event.

    Records are validated once by the ingestion layer and are immutable
    afterwards; the analysis pipeline never modifies them.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    subject: str = Field(
        ...,
        min_length=1,
        description="Free-text subject label. Case-sensitive, not normalized.",
    )
    hours_studied: float = Field(
        ...,
        ge=0,
        le=MAX_SESSION_HOURS,
        allow_inf_nan=False,
        description="Duration of the session in hours, finite and at most one day.",
    )
    time_of_day: str = Field(
        ...,
        min_length=1,
        description="Time-of-day bucket (morning/afternoon/evening or other).",
    )
    understanding_score: int = Field(
        ...,
        ge=0,
        le=100,
        description="Self-reported understanding, 0-100.",
    )
    retention_score: int = Field(
        ...,
        ge=0,
        le=100,
        description="Measured retention, 0-100.",
    )


class StudyTrend(BaseModel):
    """Aggregate weekly, efficiency, consistency and improvement metrics."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    weekly_hours: float = Field(..., ge=0)
    efficiency_score: float = Field(
        ..., ge=0, description="Retention points earned per hour studied."
    )
    consistency_score: float = Field(..., ge=0, le=100)
    improvement_rate: float = Field(
        ...,
        description="Relative change in mean retention, second half vs first, in percent.",
    )


class Recommendation(BaseModel):
    """A rule-triggered piece of advice with confidence and impact metadata."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    category: str
    message: str
    confidence: float = Field(..., ge=0, le=1)
    impact_score: float = Field(..., ge=0, le=10)


class AnalysisReport(BaseModel):
    """
    The single output artifact of one analysis run.

    Mapping fields are stored with their keys sorted so that two reports built
    from the same sessions serialize identically.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    student_id: str
    weekly_trend: StudyTrend
    subject_performance: Dict[str, float] = Field(default_factory=dict)
    optimal_times: List[str] = Field(
        default_factory=list, max_length=MAX_OPTIMAL_TIMES
    )
    predicted_scores: Dict[str, float] = Field(default_factory=dict)
    recommendations: List[Recommendation] = Field(default_factory=list)

    @field_validator("subject_performance", "predicted_scores")
    @classmethod
    def sort_mapping_keys(cls, value: Dict[str, float]) -> Dict[str, float]:
        """Return the mapping re-ordered by key."""
        return dict(sorted(value.items()))

    def priority_recommendation(self) -> Optional[Recommendation]:
        """
        Return the recommendation with the highest impact score.

        Ties keep the earliest recommendation in display order. Returns None
        when no rule fired.
        """
        best: Optional[Recommendation] = None
        for rec in self.recommendations:
            if best is None or rec.impact_score > best.impact_score:
                best = rec
        return best


class StoredAnalysis(BaseModel):
    """An analysis report together with its storage metadata."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    analysis_id: int
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    report: AnalysisReport


class WeeklyPlanEntry(BaseModel):
    """One scheduled study block in a generated weekly plan."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    day: int = Field(..., ge=1)
    subject: str
    time_of_day: str
    hours: float = Field(..., ge=0)
    predicted_retention: float
