"""
Shared FastAPI dependencies.
"""

from __future__ import annotations

from functools import lru_cache

from src.core.config import settings
from src.storage.prediction_store import JsonFileBackend, PredictionStore


@lru_cache
def get_prediction_store() -> PredictionStore:
    """Process-wide store over the configured data directory."""
    return PredictionStore(JsonFileBackend(settings.DATA_DIR))
