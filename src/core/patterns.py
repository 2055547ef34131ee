"""
Temporal drift and per-category pattern mining.

Records are expected most-recent-first, which is the order the prediction
store keeps them in.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from src.core.scoring import is_correct, resolved_predictions
from src.storage.models import PredictionCategory, PredictionRecord, ResolvedPrediction

DRIFT_WINDOW_SIZE = 7
DRIFT_MIN_WINDOW_SIZE = 3
DRIFT_THRESHOLD_POINTS = 10

CATEGORY_MIN_SAMPLE_SIZE = 3
CATEGORY_STRONG_ACCURACY = 80
CATEGORY_WEAK_ACCURACY = 40

PESSIMISTIC_PATTERN = "You've become more pessimistic recently"
OPTIMISTIC_PATTERN = "You've become more optimistic recently"


def _mean_probability(records: Sequence[ResolvedPrediction]) -> float:
    return sum(record.probability for record in records) / len(records)


def find_temporal_pattern(resolved: Sequence[ResolvedPrediction]) -> str | None:
    """
    Compare the latest window's mean probability with the window before it.

    Rising stated probabilities mean fears are being rated likelier, i.e. the
    user is getting more pessimistic.
    """
    recent = resolved[:DRIFT_WINDOW_SIZE]
    prior = resolved[DRIFT_WINDOW_SIZE : DRIFT_WINDOW_SIZE * 2]
    if len(recent) < DRIFT_MIN_WINDOW_SIZE or len(prior) < DRIFT_MIN_WINDOW_SIZE:
        return None

    recent_mean = _mean_probability(recent)
    prior_mean = _mean_probability(prior)
    if recent_mean > prior_mean + DRIFT_THRESHOLD_POINTS:
        return PESSIMISTIC_PATTERN
    if recent_mean < prior_mean - DRIFT_THRESHOLD_POINTS:
        return OPTIMISTIC_PATTERN
    return None


def find_category_patterns(resolved: Sequence[ResolvedPrediction]) -> list[str]:
    patterns: list[str] = []
    for category in PredictionCategory:
        in_category = [record for record in resolved if record.category == category]
        if len(in_category) < CATEGORY_MIN_SAMPLE_SIZE:
            continue
        accuracy = sum(1 for record in in_category if is_correct(record)) / len(in_category) * 100
        if accuracy >= CATEGORY_STRONG_ACCURACY:
            patterns.append(f"You're great at {category.value} predictions")
        elif accuracy <= CATEGORY_WEAK_ACCURACY:
            patterns.append(f"You struggle with {category.value} predictions")
    return patterns


def find_patterns(records: Iterable[PredictionRecord]) -> list[str]:
    """Temporal drift note (if any) followed by category notes."""
    resolved = resolved_predictions(records)
    patterns: list[str] = []
    temporal = find_temporal_pattern(resolved)
    if temporal is not None:
        patterns.append(temporal)
    patterns.extend(find_category_patterns(resolved))
    return patterns
