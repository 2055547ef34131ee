"""
Health check endpoints.

Reports whether the prediction store can be read.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

import structlog
from fastapi import APIRouter, Depends
from pydantic import BaseModel

from src.api.deps import get_prediction_store
from src.storage.prediction_store import PredictionStore, PredictionStoreError

logger = structlog.get_logger(__name__)

router = APIRouter()


class HealthStatus(BaseModel):
    """Health check response."""

    status: str
    timestamp: str
    version: str
    checks: dict[str, Any]


@router.get("/health", response_model=HealthStatus)
def health_check(
    store: PredictionStore = Depends(get_prediction_store),
) -> HealthStatus:
    """
    Check application health.

    Re-reads the stored documents so a corrupt or unreadable data directory
    shows up as unhealthy.
    """
    checks: dict[str, Any] = {}
    overall_status = "healthy"

    store_check = check_store(store)
    checks["store"] = store_check
    if store_check["status"] != "healthy":
        overall_status = "unhealthy"

    return HealthStatus(
        status=overall_status,
        timestamp=datetime.now(tz=UTC).isoformat(),
        version="1.0.0",
        checks=checks,
    )


@router.get("/health/live")
async def liveness_check() -> dict[str, str]:
    """
    Liveness probe.

    Does not check dependencies.
    """
    return {"status": "alive"}


def check_store(store: PredictionStore) -> dict[str, Any]:
    """Verify the store documents parse and report the snapshot size."""
    try:
        persisted = store.verify()
    except PredictionStoreError as e:
        logger.error("Prediction store health check failed", error=str(e))
        return {"status": "unhealthy", "message": str(e)}
    return {
        "status": "healthy",
        "records": persisted,
        "version": store.snapshot().version,
    }
