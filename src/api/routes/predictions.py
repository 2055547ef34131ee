"""
Predictions API endpoints.

Log feared outcomes with a probability, resolve them once the outcome is
known, and delete them.
"""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from pydantic import BaseModel, ConfigDict, Field

from src.api.deps import get_prediction_store
from src.storage.models import (
    PredictionCategory,
    PredictionRecord,
    PredictionStatus,
    ResolvedPrediction,
)
from src.storage.prediction_store import (
    PredictionAlreadyResolvedError,
    PredictionNotFoundError,
    PredictionStore,
)

router = APIRouter()


# =============================================================================
# Request/Response Models
# =============================================================================


class PredictionCreateRequest(BaseModel):
    """Request body for logging a prediction."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "event": "Ask a question in the team meeting",
                "fear": "Everyone thinks the question is stupid",
                "probability": 70,
                "category": "work",
            }
        }
    )

    event: str = Field(..., min_length=1, max_length=500, description="What you are about to do")
    fear: str = Field(..., min_length=1, max_length=500, description="What you fear will happen")
    probability: int = Field(..., ge=0, le=100, description="Chance (0-100) the fear comes true")
    category: PredictionCategory = PredictionCategory.SOCIAL


class PredictionResolveRequest(BaseModel):
    """Request body for resolving a prediction."""

    outcome: bool = Field(..., description="True when the feared outcome happened")
    notes: str = Field(default="", max_length=2000)


class PredictionResponse(BaseModel):
    """Serialized prediction record."""

    id: str
    event: str
    fear: str
    probability: int
    category: PredictionCategory
    status: PredictionStatus
    outcome: bool | None = None
    notes: str | None = None
    created_at: datetime
    resolved_at: datetime | None = None


def _to_prediction_response(record: PredictionRecord) -> PredictionResponse:
    response = PredictionResponse(
        id=record.id,
        event=record.event,
        fear=record.fear,
        probability=record.probability,
        category=record.category,
        status=record.status,
        created_at=record.created_at,
    )
    if isinstance(record, ResolvedPrediction):
        response.outcome = record.outcome
        response.notes = record.notes
        response.resolved_at = record.resolved_at
    return response


def _require_not_blank(field_name: str, value: str) -> None:
    if not value.strip():
        raise HTTPException(
            status_code=422,
            detail=f"Field '{field_name}' must not be blank",
        )


# =============================================================================
# Endpoints
# =============================================================================


@router.get("", response_model=list[PredictionResponse])
async def list_predictions(
    status_filter: PredictionStatus | None = Query(default=None, alias="status"),
    category: PredictionCategory | None = Query(default=None),
    limit: int = Query(default=100, ge=1, le=1000),
    store: PredictionStore = Depends(get_prediction_store),
) -> list[PredictionResponse]:
    """
    List predictions, most recent first.

    Supports optional filtering by status and category.
    """
    records = [
        record
        for record in store.snapshot().records
        if (status_filter is None or record.status == status_filter)
        and (category is None or record.category == category)
    ]
    return [_to_prediction_response(record) for record in records[:limit]]


@router.post("", response_model=PredictionResponse, status_code=status.HTTP_201_CREATED)
def create_prediction(
    payload: PredictionCreateRequest,
    store: PredictionStore = Depends(get_prediction_store),
) -> PredictionResponse:
    """
    Log a new prediction.

    The prediction starts pending and counts toward the daily streak.
    """
    _require_not_blank("event", payload.event)
    _require_not_blank("fear", payload.fear)
    record = store.add(
        event=payload.event,
        fear=payload.fear,
        probability=payload.probability,
        category=payload.category,
    )
    return _to_prediction_response(record)


@router.get("/{prediction_id}", response_model=PredictionResponse)
async def get_prediction(
    prediction_id: str,
    store: PredictionStore = Depends(get_prediction_store),
) -> PredictionResponse:
    """
    Get one prediction by id.
    """
    try:
        record = store.get(prediction_id)
    except PredictionNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return _to_prediction_response(record)


@router.post("/{prediction_id}/resolve", response_model=PredictionResponse)
def resolve_prediction(
    prediction_id: str,
    payload: PredictionResolveRequest,
    store: PredictionStore = Depends(get_prediction_store),
) -> PredictionResponse:
    """
    Record whether the feared outcome happened.

    A prediction can be resolved once; a second attempt returns 409.
    """
    try:
        record = store.resolve(prediction_id, outcome=payload.outcome, notes=payload.notes)
    except PredictionNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except PredictionAlreadyResolvedError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return _to_prediction_response(record)


@router.delete("/{prediction_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_prediction(
    prediction_id: str,
    store: PredictionStore = Depends(get_prediction_store),
) -> Response:
    """
    Delete a prediction permanently.
    """
    try:
        store.delete(prediction_id)
    except PredictionNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
