"""
Analytics API endpoints.

Headline statistics, gated calibration insights, challenges and exports,
all computed from the current prediction snapshot.
"""

from __future__ import annotations

from datetime import UTC, datetime

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, ConfigDict

from src.api.deps import get_prediction_store
from src.core.challenges import ChallengeCadence, check_challenge_progress
from src.core.data_export import ExportFormat, render_predictions
from src.core.insights import analyze_predictions
from src.core.recommendations import RecommendationType
from src.core.scoring import compute_category_stats, describe_brier_score, summarize_predictions
from src.storage.models import PredictionCategory
from src.storage.prediction_store import PredictionStore

router = APIRouter()


# =============================================================================
# Response Models
# =============================================================================


class CategoryStatsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    category: PredictionCategory
    total: int
    resolved: int
    correct: int
    accuracy: float | None
    brier_score: float | None


class StatsResponse(BaseModel):
    """Headline numbers for the whole collection."""

    total: int
    resolved: int
    pending: int
    accuracy: float
    brier_score: float | None
    brier_label: str
    snapshot_version: int
    categories: list[CategoryStatsResponse]


class CalibrationBucketResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    range: str
    expected: int
    observed: float | None
    correct: int
    total: int


class CalibrationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    buckets: list[CalibrationBucketResponse]
    calibration_score: int | None


class ConfidenceBiasResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    is_overconfident: bool
    is_underconfident: bool
    high_confidence_accuracy: float
    low_confidence_accuracy: float
    high_confidence_count: int
    low_confidence_count: int
    message: str


class RecommendationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    type: RecommendationType
    text: str


class InsightsResponse(BaseModel):
    """Calibration insights, or a locked notice below the resolved threshold."""

    model_config = ConfigDict(from_attributes=True)

    ready: bool
    resolved_count: int
    required_count: int
    remaining_count: int
    message: str | None
    calibration: CalibrationResponse | None
    confidence_bias: ConfidenceBiasResponse | None
    patterns: list[str]
    recommendations: list[RecommendationResponse]


class ChallengeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    xp: int
    cadence: ChallengeCadence
    completed: bool


class ChallengeProgressResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    challenges: list[ChallengeResponse]
    total_xp: int
    streak: int


# =============================================================================
# Endpoints
# =============================================================================


@router.get("/stats", response_model=StatsResponse)
async def get_stats(
    store: PredictionStore = Depends(get_prediction_store),
) -> StatsResponse:
    """
    Get overall Brier score, accuracy and per-category statistics.
    """
    snapshot = store.snapshot()
    summary = summarize_predictions(snapshot.records)
    return StatsResponse(
        total=summary.total,
        resolved=summary.resolved,
        pending=summary.pending,
        accuracy=summary.accuracy,
        brier_score=summary.brier_score,
        brier_label=describe_brier_score(summary.brier_score),
        snapshot_version=snapshot.version,
        categories=[
            CategoryStatsResponse.model_validate(row)
            for row in compute_category_stats(snapshot.records)
        ],
    )


@router.get("/insights", response_model=InsightsResponse)
async def get_insights(
    store: PredictionStore = Depends(get_prediction_store),
) -> InsightsResponse:
    """
    Get calibration insights.

    Returns a locked result until enough predictions are resolved.
    """
    result = analyze_predictions(store.snapshot().records)
    return InsightsResponse.model_validate(result)


@router.get("/challenges", response_model=ChallengeProgressResponse)
def get_challenges(
    store: PredictionStore = Depends(get_prediction_store),
) -> ChallengeProgressResponse:
    """
    Get daily and weekly challenge progress with the current streak.
    """
    progress = check_challenge_progress(
        store.snapshot().records,
        now=datetime.now(tz=UTC),
        streak=store.streak(),
    )
    return ChallengeProgressResponse.model_validate(progress)


@router.get("/export/{fmt}", response_class=PlainTextResponse)
async def export_predictions(
    fmt: ExportFormat,
    store: PredictionStore = Depends(get_prediction_store),
) -> PlainTextResponse:
    """
    Export every prediction as JSON or CSV.
    """
    media_type = "text/csv" if fmt == ExportFormat.CSV else "application/json"
    return PlainTextResponse(
        render_predictions(store.snapshot().records, fmt),
        media_type=media_type,
    )
