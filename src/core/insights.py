"""
Gated calibration insights pipeline.

Insights stay locked until enough predictions are resolved; below the
threshold nothing is computed.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

import structlog

from src.core.calibration import CalibrationResult, build_calibration
from src.core.config import settings
from src.core.confidence_bias import ConfidenceBiasResult, detect_confidence_bias
from src.core.patterns import find_patterns
from src.core.recommendations import Recommendation, generate_recommendations
from src.core.scoring import resolved_predictions
from src.storage.models import PredictionRecord

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class InsightsResult:
    """Insights payload; only `ready` results carry analysis sections."""

    ready: bool
    resolved_count: int
    required_count: int
    message: str | None = None
    calibration: CalibrationResult | None = None
    confidence_bias: ConfidenceBiasResult | None = None
    patterns: list[str] = field(default_factory=list)
    recommendations: list[Recommendation] = field(default_factory=list)

    @property
    def remaining_count(self) -> int:
        return max(0, self.required_count - self.resolved_count)


def locked_message(*, required: int, remaining: int) -> str:
    noun = "prediction" if remaining == 1 else "predictions"
    return (
        f"Resolve at least {required} predictions to unlock insights "
        f"({remaining} more {noun} needed)"
    )


def analyze_predictions(
    records: Sequence[PredictionRecord],
    *,
    min_resolved: int | None = None,
) -> InsightsResult:
    """Run calibration, bias, pattern and recommendation analysis."""
    required = settings.INSIGHTS_MIN_RESOLVED if min_resolved is None else min_resolved
    resolved = resolved_predictions(records)

    if len(resolved) < required:
        remaining = required - len(resolved)
        logger.debug(
            "Insights locked",
            resolved_count=len(resolved),
            required_count=required,
        )
        return InsightsResult(
            ready=False,
            resolved_count=len(resolved),
            required_count=required,
            message=locked_message(required=required, remaining=remaining),
        )

    calibration = build_calibration(resolved)
    confidence_bias = detect_confidence_bias(resolved)
    patterns = find_patterns(resolved)
    recommendations = generate_recommendations(calibration, confidence_bias, patterns)

    logger.debug(
        "Insights computed",
        resolved_count=len(resolved),
        calibration_score=calibration.calibration_score,
        is_overconfident=confidence_bias.is_overconfident,
        is_underconfident=confidence_bias.is_underconfident,
        pattern_count=len(patterns),
    )
    return InsightsResult(
        ready=True,
        resolved_count=len(resolved),
        required_count=required,
        calibration=calibration,
        confidence_bias=confidence_bias,
        patterns=patterns,
        recommendations=recommendations,
    )
