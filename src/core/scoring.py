"""
Brier score and accuracy over resolved predictions.

All functions here are pure reductions over a snapshot of records. Inputs are
assumed well-formed (see src.storage.models); empty inputs yield sentinels
instead of errors: ``None`` for the Brier score and ``0.0`` for accuracy.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from src.storage.models import (
    PredictionCategory,
    PredictionRecord,
    ResolvedPrediction,
)


@dataclass(frozen=True, slots=True)
class CategoryStats:
    """Per-category totals and scores."""

    category: PredictionCategory
    total: int
    resolved: int
    correct: int
    accuracy: float | None
    brier_score: float | None


@dataclass(frozen=True, slots=True)
class PredictionSummary:
    """Headline numbers for the whole collection."""

    total: int
    resolved: int
    pending: int
    accuracy: float
    brier_score: float | None
    categories: dict[str, int]


def resolved_predictions(records: Iterable[PredictionRecord]) -> list[ResolvedPrediction]:
    """Return resolved records, preserving input order."""
    return [record for record in records if isinstance(record, ResolvedPrediction)]


def is_correct(record: PredictionRecord) -> bool:
    """
    Whether a prediction called its outcome correctly.

    A feared outcome that happened is a hit above 50%; one that did not happen
    is a hit below 50%. Exactly 50% is never correct, and pending records are
    never correct.
    """
    if not isinstance(record, ResolvedPrediction):
        return False
    if record.outcome:
        return record.probability > 50
    return record.probability < 50


def squared_error(record: ResolvedPrediction) -> float:
    actual = 1.0 if record.outcome else 0.0
    return (record.probability / 100 - actual) ** 2


def compute_brier_score(records: Iterable[PredictionRecord]) -> float | None:
    """
    Mean squared error between stated probability and outcome.

    Brier = mean((p / 100 - outcome)^2) over resolved records. Lower is better:
    0 is perfect, 0.25 is always guessing 50%, 1 is maximally wrong.
    Returns None when there are no resolved records.
    """
    resolved = resolved_predictions(records)
    if not resolved:
        return None
    return math.fsum(squared_error(record) for record in resolved) / len(resolved)


def compute_accuracy(records: Iterable[PredictionRecord]) -> float:
    """Percentage (0-100) of resolved records that were correct; 0.0 if none."""
    resolved = resolved_predictions(records)
    if not resolved:
        return 0.0
    correct = sum(1 for record in resolved if is_correct(record))
    return correct / len(resolved) * 100


def compute_category_stats(records: Sequence[PredictionRecord]) -> list[CategoryStats]:
    """Totals, accuracy and Brier score per category in definition order."""
    rows: list[CategoryStats] = []
    for category in PredictionCategory:
        in_category = [record for record in records if record.category == category]
        resolved = resolved_predictions(in_category)
        correct = sum(1 for record in resolved if is_correct(record))
        rows.append(
            CategoryStats(
                category=category,
                total=len(in_category),
                resolved=len(resolved),
                correct=correct,
                accuracy=(correct / len(resolved) * 100) if resolved else None,
                brier_score=compute_brier_score(resolved),
            )
        )
    return rows


def count_by_category(records: Iterable[PredictionRecord]) -> dict[str, int]:
    """Record counts keyed by category value, only for categories present."""
    counts: dict[str, int] = {}
    for record in records:
        key = record.category.value
        counts[key] = counts.get(key, 0) + 1
    return counts


def summarize_predictions(records: Sequence[PredictionRecord]) -> PredictionSummary:
    resolved = resolved_predictions(records)
    return PredictionSummary(
        total=len(records),
        resolved=len(resolved),
        pending=len(records) - len(resolved),
        accuracy=compute_accuracy(resolved),
        brier_score=compute_brier_score(resolved),
        categories=count_by_category(records),
    )


def describe_brier_score(score: float | None) -> str:
    """Map a Brier score to a short display label."""
    if score is None:
        return "Start predicting!"
    if score <= 0.1:
        return "Superhuman!"
    if score <= 0.2:
        return "Excellent"
    if score <= 0.3:
        return "Good"
    if score <= 0.4:
        return "Average"
    if score <= 0.5:
        return "Needs work"
    return "Systematic bias"
