"""
Rule-based study recommendations.
"""

from typing import Dict, List

from .constants import RECOMMENDATION_RULES
from .models import Recommendation, StudyTrend


def _rule_metrics(trend: StudyTrend, correlation: float) -> Dict[str, float]:
    """Metric each rule category is evaluated against, in display order."""
    return {
        "duration": trend.weekly_hours,
        "efficiency": trend.efficiency_score,
        "consistency": trend.consistency_score,
        "learning": correlation,
    }


def generate_recommendations(
    trend: StudyTrend, correlation: float
) -> List[Recommendation]:
    """
    Apply the threshold rules to a trend and correlation signal.

    Each rule fires at most once, when its metric is strictly below the
    threshold. Fired rules are returned in the fixed order duration,
    efficiency, consistency, learning; the list is empty when every metric
    meets its threshold.
    """
    recommendations: List[Recommendation] = []
    for category, value in _rule_metrics(trend, correlation).items():
        threshold, confidence, impact_score, message = RECOMMENDATION_RULES[category]
        if value < threshold:
            recommendations.append(
                Recommendation(
                    category=category,
                    message=message,
                    confidence=confidence,
                    impact_score=impact_score,
                )
            )
    return recommendations
