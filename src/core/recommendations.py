"""
Advisory messages derived from calibration, bias and pattern signals.
"""

from __future__ import annotations

import enum
from collections.abc import Sequence
from dataclasses import dataclass

from src.core.calibration import CalibrationResult
from src.core.confidence_bias import ConfidenceBiasResult

CALIBRATION_WARNING_SCORE = 60


class RecommendationType(enum.StrEnum):
    """Presentation class for a recommendation."""

    WARNING = "warning"
    TIP = "tip"
    ACTION = "action"


@dataclass(frozen=True, slots=True)
class Recommendation:
    type: RecommendationType
    text: str


def generate_recommendations(
    calibration: CalibrationResult,
    confidence_bias: ConfidenceBiasResult,
    patterns: Sequence[str],
) -> list[Recommendation]:
    """
    Apply every matching rule in a fixed order.

    Rules are not exclusive; the keep-tracking action is always last.
    """
    recommendations: list[Recommendation] = []

    score = calibration.calibration_score
    if score is not None and score < CALIBRATION_WARNING_SCORE:
        recommendations.append(
            Recommendation(
                RecommendationType.WARNING,
                "Your predictions don't match reality well. Try being less certain.",
            )
        )

    if confidence_bias.is_overconfident:
        recommendations.append(
            Recommendation(
                RecommendationType.WARNING,
                "High confidence predictions often fail. Consider lowering them.",
            )
        )

    if confidence_bias.is_underconfident:
        recommendations.append(
            Recommendation(
                RecommendationType.TIP,
                "You're more accurate than you think. Trust yourself more!",
            )
        )

    if any("pessimistic" in pattern for pattern in patterns):
        recommendations.append(
            Recommendation(
                RecommendationType.TIP,
                "Recent fears haven't materialized. You might be overly worried.",
            )
        )

    recommendations.append(
        Recommendation(
            RecommendationType.ACTION,
            "Continue tracking to get more accurate insights",
        )
    )
    return recommendations
