"""
Over/underconfidence detection from extreme-probability predictions.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from src.core.scoring import is_correct, resolved_predictions
from src.storage.models import PredictionRecord

HIGH_CONFIDENCE_MIN_PROBABILITY = 80
LOW_CONFIDENCE_MAX_PROBABILITY = 20
BIAS_ACCURACY_THRESHOLD = 0.7
BIAS_MIN_SAMPLE_SIZE = 3

OVERCONFIDENT_MESSAGE = "You often predict high confidence but are wrong"
UNDERCONFIDENT_MESSAGE = "You're underconfident - trust your gut more!"
WELL_CALIBRATED_MESSAGE = "Your confidence matches your accuracy"


@dataclass(frozen=True, slots=True)
class ConfidenceBiasResult:
    """Bias flags with the subset statistics they were derived from."""

    is_overconfident: bool
    is_underconfident: bool
    high_confidence_accuracy: float
    low_confidence_accuracy: float
    high_confidence_count: int
    low_confidence_count: int
    message: str


def detect_confidence_bias(records: Iterable[PredictionRecord]) -> ConfidenceBiasResult:
    """
    Classify bias using the p >= 80 and p <= 20 subsets.

    An empty high-confidence subset counts as fully accurate and an empty
    low-confidence subset as never accurate. Each flag also needs at least
    three samples in its subset; the advisory message does not.
    """
    resolved = resolved_predictions(records)
    high = [r for r in resolved if r.probability >= HIGH_CONFIDENCE_MIN_PROBABILITY]
    low = [r for r in resolved if r.probability <= LOW_CONFIDENCE_MAX_PROBABILITY]

    high_accuracy = sum(1 for r in high if is_correct(r)) / len(high) if high else 1.0
    low_accuracy = sum(1 for r in low if is_correct(r)) / len(low) if low else 0.0

    is_overconfident = (
        high_accuracy < BIAS_ACCURACY_THRESHOLD and len(high) >= BIAS_MIN_SAMPLE_SIZE
    )
    is_underconfident = (
        low_accuracy > BIAS_ACCURACY_THRESHOLD and len(low) >= BIAS_MIN_SAMPLE_SIZE
    )

    if high_accuracy < BIAS_ACCURACY_THRESHOLD:
        message = OVERCONFIDENT_MESSAGE
    elif low_accuracy > BIAS_ACCURACY_THRESHOLD:
        message = UNDERCONFIDENT_MESSAGE
    else:
        message = WELL_CALIBRATED_MESSAGE

    return ConfidenceBiasResult(
        is_overconfident=is_overconfident,
        is_underconfident=is_underconfident,
        high_confidence_accuracy=high_accuracy,
        low_confidence_accuracy=low_accuracy,
        high_confidence_count=len(high),
        low_confidence_count=len(low),
        message=message,
    )
