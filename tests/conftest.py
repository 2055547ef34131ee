"""
Pytest configuration and shared fixtures.

This module provides:
- Prediction record factories for unit tests
- Store fixtures backed by memory or a temporary directory
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from itertools import count
from pathlib import Path

import pytest

from src.storage.models import (
    PendingPrediction,
    PredictionCategory,
    ResolvedPrediction,
)
from src.storage.prediction_store import InMemoryBackend, JsonFileBackend, PredictionStore

FIXED_NOW = datetime(2025, 3, 14, 12, 0, tzinfo=UTC)

_ids = count(1)


# =============================================================================
# Sample Data Fixtures
# =============================================================================


@pytest.fixture
def fixed_now() -> datetime:
    """Reference 'now' for time-windowed tests."""
    return FIXED_NOW


@pytest.fixture
def make_pending() -> Callable[..., PendingPrediction]:
    def _make(
        *,
        probability: int = 50,
        category: PredictionCategory = PredictionCategory.SOCIAL,
        created_at: datetime | None = None,
        event: str = "Give a toast at the wedding",
        fear: str = "Forget the words",
    ) -> PendingPrediction:
        return PendingPrediction(
            id=f"p{next(_ids)}",
            event=event,
            fear=fear,
            probability=probability,
            category=category,
            created_at=created_at or FIXED_NOW - timedelta(days=1),
        )

    return _make


@pytest.fixture
def make_resolved() -> Callable[..., ResolvedPrediction]:
    def _make(
        *,
        probability: int,
        outcome: bool,
        category: PredictionCategory = PredictionCategory.SOCIAL,
        created_at: datetime | None = None,
        resolved_at: datetime | None = None,
        notes: str = "",
    ) -> ResolvedPrediction:
        created = created_at or FIXED_NOW - timedelta(days=1)
        return ResolvedPrediction(
            id=f"r{next(_ids)}",
            event="Ask for a raise",
            fear="Manager laughs at me",
            probability=probability,
            category=category,
            created_at=created,
            outcome=outcome,
            notes=notes,
            resolved_at=resolved_at or created + timedelta(hours=2),
        )

    return _make


# =============================================================================
# Store Fixtures
# =============================================================================


@pytest.fixture
def memory_store() -> PredictionStore:
    return PredictionStore(InMemoryBackend())


@pytest.fixture
def file_store(tmp_path: Path) -> PredictionStore:
    return PredictionStore(JsonFileBackend(tmp_path / "data"))
