"""
Weekly and monthly prediction reports over a trailing window.
"""

from __future__ import annotations

import enum
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta

import structlog

from src.core.config import settings
from src.core.scoring import (
    compute_accuracy,
    compute_brier_score,
    count_by_category,
    resolved_predictions,
)
from src.storage.models import PredictionCategory, PredictionRecord, normalize_utc

logger = structlog.get_logger(__name__)

CELEBRATE_BRIER_BELOW = 0.2
CAUTION_BRIER_ABOVE = 0.4
BUSY_CATEGORY_MIN_COUNT = 4

FALLBACK_INSIGHT = "Keep predicting to get personalized insights!"


class ReportPeriod(enum.StrEnum):
    WEEK = "week"
    MONTH = "month"

    @property
    def days(self) -> int:
        if self == ReportPeriod.WEEK:
            return settings.REPORT_WEEKLY_DAYS
        return settings.REPORT_MONTHLY_DAYS


@dataclass(frozen=True, slots=True)
class PeriodicReport:
    period: ReportPeriod
    period_start: datetime
    period_end: datetime
    total: int
    resolved: int
    pending: int
    brier_score: float | None
    accuracy: float
    by_category: dict[str, int]
    insights: list[str]


def records_in_window(
    records: Sequence[PredictionRecord],
    *,
    start: datetime,
    end: datetime,
) -> list[PredictionRecord]:
    """Records created within [start, end], preserving order."""
    window_start = normalize_utc(start)
    window_end = normalize_utc(end)
    return [record for record in records if window_start <= record.created_at <= window_end]


def generate_report_insights(
    brier_score: float | None,
    by_category: dict[str, int],
    *,
    period: ReportPeriod = ReportPeriod.WEEK,
) -> list[str]:
    """One or two short observations about the period."""
    insights: list[str] = []

    if brier_score is not None:
        if brier_score < CELEBRATE_BRIER_BELOW:
            insights.append(f"Excellent calibration this {period.value}!")
        elif brier_score > CAUTION_BRIER_ABOVE:
            insights.append(
                "Your predictions were often wrong. Consider being less confident."
            )

    busiest: tuple[str, int] | None = None
    for category in PredictionCategory:
        count = by_category.get(category.value, 0)
        if count >= BUSY_CATEGORY_MIN_COUNT and (busiest is None or count > busiest[1]):
            busiest = (category.value, count)
    if busiest is not None:
        insights.append(
            f"You made many {busiest[0]} predictions ({busiest[1]}) - how did they turn out?"
        )

    if not insights:
        insights.append(FALLBACK_INSIGHT)
    return insights


def build_periodic_report(
    records: Sequence[PredictionRecord],
    *,
    now: datetime,
    period: ReportPeriod = ReportPeriod.WEEK,
) -> PeriodicReport:
    """Score the predictions created in the trailing window ending at `now`."""
    period_end = normalize_utc(now)
    period_start = period_end - timedelta(days=period.days)
    window = records_in_window(records, start=period_start, end=period_end)
    resolved = resolved_predictions(window)

    brier_score = compute_brier_score(resolved)
    by_category = count_by_category(window)
    report = PeriodicReport(
        period=period,
        period_start=period_start,
        period_end=period_end,
        total=len(window),
        resolved=len(resolved),
        pending=len(window) - len(resolved),
        brier_score=brier_score,
        accuracy=compute_accuracy(resolved),
        by_category=by_category,
        insights=generate_report_insights(brier_score, by_category, period=period),
    )
    logger.info(
        "Periodic report built",
        period=period.value,
        total=report.total,
        resolved=report.resolved,
        brier_score=brier_score,
    )
    return report
