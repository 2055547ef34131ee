from __future__ import annotations

from datetime import timedelta

import pytest

from src.core.periodic_report import (
    FALLBACK_INSIGHT,
    ReportPeriod,
    build_periodic_report,
    generate_report_insights,
)
from src.storage.models import PredictionCategory

pytestmark = pytest.mark.unit


def test_weekly_report_only_counts_window(make_resolved, make_pending, fixed_now) -> None:
    inside = [
        make_resolved(probability=10, outcome=False, created_at=fixed_now - timedelta(days=2)),
        make_resolved(probability=80, outcome=True, created_at=fixed_now - timedelta(days=6)),
        make_pending(created_at=fixed_now - timedelta(hours=1)),
    ]
    outside = [
        make_resolved(probability=100, outcome=False, created_at=fixed_now - timedelta(days=8)),
        make_pending(created_at=fixed_now + timedelta(days=1)),
    ]

    report = build_periodic_report(inside + outside, now=fixed_now, period=ReportPeriod.WEEK)

    assert report.period_end == fixed_now
    assert report.period_start == fixed_now - timedelta(days=7)
    assert (report.total, report.resolved, report.pending) == (3, 2, 1)
    assert report.brier_score == pytest.approx((0.01 + 0.04) / 2)
    assert report.accuracy == pytest.approx(100.0)
    assert report.by_category == {"social": 3}
    assert report.insights == ["Excellent calibration this week!"]


def test_empty_window_has_no_score(fixed_now) -> None:
    report = build_periodic_report([], now=fixed_now)

    assert report.brier_score is None
    assert report.accuracy == 0.0
    assert report.insights == [FALLBACK_INSIGHT]


def test_monthly_window_is_longer(make_pending, fixed_now) -> None:
    records = [make_pending(created_at=fixed_now - timedelta(days=20))]

    assert build_periodic_report(records, now=fixed_now, period=ReportPeriod.WEEK).total == 0
    assert build_periodic_report(records, now=fixed_now, period=ReportPeriod.MONTH).total == 1


def test_insights_caution_and_busy_category() -> None:
    insights = generate_report_insights(0.5, {"work": 4, "social": 2})

    assert insights == [
        "Your predictions were often wrong. Consider being less confident.",
        "You made many work predictions (4) - how did they turn out?",
    ]


def test_insights_busy_category_needs_more_than_three() -> None:
    assert generate_report_insights(0.3, {"social": 3}) == [FALLBACK_INSIGHT]


def test_insights_pick_busiest_category_in_definition_order() -> None:
    counts = {PredictionCategory.FINANCE.value: 5, PredictionCategory.DATING.value: 5}

    insights = generate_report_insights(None, counts)

    assert insights == ["You made many dating predictions (5) - how did they turn out?"]
