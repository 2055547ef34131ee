"""
Reports API endpoints.

Weekly and monthly summaries over a trailing window.
"""

from __future__ import annotations

from datetime import UTC, datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict

from src.api.deps import get_prediction_store
from src.core.periodic_report import ReportPeriod, build_periodic_report
from src.storage.prediction_store import PredictionStore

router = APIRouter()


class PeriodicReportResponse(BaseModel):
    """Scores and insights for one reporting window."""

    model_config = ConfigDict(from_attributes=True)

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


@router.get("/{period}", response_model=PeriodicReportResponse)
async def get_periodic_report(
    period: ReportPeriod,
    store: PredictionStore = Depends(get_prediction_store),
) -> PeriodicReportResponse:
    """
    Build the weekly or monthly report ending now.
    """
    report = build_periodic_report(
        store.snapshot().records,
        now=datetime.now(tz=UTC),
        period=period,
    )
    return PeriodicReportResponse.model_validate(report)
