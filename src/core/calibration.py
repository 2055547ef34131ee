"""
Confidence-bucket calibration analysis.

Resolved predictions are grouped into five fixed probability buckets and each
bucket's observed accuracy is compared with a reference value taken from the
bucket's lower bound plus ten points.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass

from src.core.scoring import is_correct, resolved_predictions
from src.storage.models import PredictionRecord


@dataclass(frozen=True, slots=True)
class BucketRange:
    lower: int
    upper: int

    @property
    def label(self) -> str:
        return f"{self.lower}-{self.upper}"

    @property
    def expected(self) -> int:
        return self.lower + 10


# Inclusive bounds, scanned in ascending order.
PROBABILITY_BUCKETS: tuple[BucketRange, ...] = (
    BucketRange(0, 20),
    BucketRange(21, 40),
    BucketRange(41, 60),
    BucketRange(61, 80),
    BucketRange(81, 100),
)


@dataclass(frozen=True, slots=True)
class CalibrationBucket:
    """Calibration statistics for one probability bucket."""

    range: str
    expected: int
    observed: float | None
    correct: int
    total: int

    @property
    def calibration_error(self) -> float | None:
        if self.observed is None:
            return None
        return abs(self.expected - self.observed)


@dataclass(frozen=True, slots=True)
class CalibrationResult:
    """Per-bucket breakdown plus the aggregate calibration score."""

    buckets: list[CalibrationBucket]
    calibration_score: int | None


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def get_bucket(probability: int) -> BucketRange:
    """Return the first bucket whose upper bound is >= probability."""
    for bucket in PROBABILITY_BUCKETS:
        if probability <= bucket.upper:
            return bucket
    return PROBABILITY_BUCKETS[-1]


def get_bucket_label(probability: int) -> str:
    return get_bucket(probability).label


def build_calibration_buckets(records: Iterable[PredictionRecord]) -> list[CalibrationBucket]:
    """Group resolved records by probability bucket and compute observed accuracy."""
    stats = {bucket.label: {"correct": 0, "total": 0} for bucket in PROBABILITY_BUCKETS}
    for record in resolved_predictions(records):
        bucket_stats = stats[get_bucket_label(record.probability)]
        bucket_stats["total"] += 1
        if is_correct(record):
            bucket_stats["correct"] += 1

    buckets: list[CalibrationBucket] = []
    for bucket in PROBABILITY_BUCKETS:
        correct = stats[bucket.label]["correct"]
        total = stats[bucket.label]["total"]
        buckets.append(
            CalibrationBucket(
                range=bucket.label,
                expected=bucket.expected,
                observed=(correct / total * 100) if total else None,
                correct=correct,
                total=total,
            )
        )
    return buckets


def calculate_calibration_score(buckets: Iterable[CalibrationBucket]) -> int | None:
    """
    Score how closely observed accuracy tracks the bucket reference values.

    score = 100 - mean(|expected - observed|) over non-empty buckets, floored
    at 0 and rounded half up. None when every bucket is empty.
    """
    errors = [bucket.calibration_error for bucket in buckets if bucket.total > 0]
    if not errors:
        return None
    mean_error = math.fsum(error for error in errors if error is not None) / len(errors)
    return round_half_up(max(0.0, 100 - mean_error))


def build_calibration(records: Iterable[PredictionRecord]) -> CalibrationResult:
    buckets = build_calibration_buckets(records)
    return CalibrationResult(
        buckets=buckets,
        calibration_score=calculate_calibration_score(buckets),
    )
