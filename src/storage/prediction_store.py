"""
Prediction record store backed by JSON documents.

The store owns the record collection. Every mutation builds a new immutable
snapshot with an incremented version; analytics only ever receive snapshots.
Records are kept most-recent-first.
"""

from __future__ import annotations

import json
import os
import tempfile
import threading
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Protocol
from uuid import uuid4

import structlog

from src.core.streaks import StreakState, advance_streak, streak_from_dict, streak_to_dict
from src.storage.models import (
    PendingPrediction,
    PredictionCategory,
    PredictionRecord,
    ResolvedPrediction,
    normalize_utc,
    record_from_dict,
    record_to_dict,
)

logger = structlog.get_logger(__name__)

PREDICTIONS_KEY = "predictions"
STREAK_KEY = "streak"


class PredictionStoreError(Exception):
    """Raised when stored prediction data cannot be read."""


class PredictionNotFoundError(LookupError):
    """Raised when a prediction id is unknown."""

    def __init__(self, prediction_id: str) -> None:
        super().__init__(f"Prediction '{prediction_id}' not found")
        self.prediction_id = prediction_id


class PredictionAlreadyResolvedError(ValueError):
    """Raised when resolving a prediction that is already resolved."""

    def __init__(self, prediction_id: str) -> None:
        super().__init__(f"Prediction '{prediction_id}' is already resolved")
        self.prediction_id = prediction_id


@dataclass(frozen=True, slots=True)
class PredictionSnapshot:
    """Immutable view of the collection at one version."""

    version: int
    records: tuple[PredictionRecord, ...]

    def __len__(self) -> int:
        return len(self.records)

    def get(self, prediction_id: str) -> PredictionRecord | None:
        for record in self.records:
            if record.id == prediction_id:
                return record
        return None


class KeyValueBackend(Protocol):
    def get_item(self, key: str) -> Any | None: ...

    def set_item(self, key: str, value: Any) -> None: ...


class InMemoryBackend:
    """Backend that keeps documents in a dict; used by tests and dry runs."""

    def __init__(self) -> None:
        self._items: dict[str, str] = {}

    def get_item(self, key: str) -> Any | None:
        raw = self._items.get(key)
        return None if raw is None else json.loads(raw)

    def set_item(self, key: str, value: Any) -> None:
        self._items[key] = json.dumps(value)


class JsonFileBackend:
    """One JSON document per key under `data_dir`, replaced atomically."""

    def __init__(self, data_dir: str | Path) -> None:
        self.data_dir = Path(data_dir)

    def _path(self, key: str) -> Path:
        return self.data_dir / f"{key}.json"

    def get_item(self, key: str) -> Any | None:
        path = self._path(key)
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            msg = f"Could not read '{path}'"
            raise PredictionStoreError(msg) from exc
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            logger.warning("Corrupt prediction store document", path=str(path), error=str(exc))
            msg = f"File '{path}' does not contain valid JSON"
            raise PredictionStoreError(msg) from exc

    def set_item(self, key: str, value: Any) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        fd, tmp_name = tempfile.mkstemp(dir=self.data_dir, prefix=f".{key}-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(value, handle, indent=2)
                handle.write("\n")
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise


class PredictionStore:
    """Append, resolve and delete predictions; hand out versioned snapshots."""

    def __init__(self, backend: KeyValueBackend) -> None:
        self.backend = backend
        self._lock = threading.Lock()
        self._snapshot = self._load_snapshot()

    def _load_snapshot(self) -> PredictionSnapshot:
        document = self.backend.get_item(PREDICTIONS_KEY)
        if document is None:
            return PredictionSnapshot(version=0, records=())
        if not isinstance(document, dict) or not isinstance(document.get("predictions"), list):
            msg = "Prediction document must be an object with a 'predictions' list"
            raise PredictionStoreError(msg)
        try:
            version = int(document.get("version", 0))
            records = tuple(record_from_dict(item) for item in document["predictions"])
        except (KeyError, TypeError, ValueError) as exc:
            msg = f"Invalid prediction record in store: {exc}"
            raise PredictionStoreError(msg) from exc
        return PredictionSnapshot(version=version, records=records)

    def _commit(self, records: tuple[PredictionRecord, ...]) -> PredictionSnapshot:
        snapshot = PredictionSnapshot(version=self._snapshot.version + 1, records=records)
        self.backend.set_item(
            PREDICTIONS_KEY,
            {
                "version": snapshot.version,
                "predictions": [record_to_dict(record) for record in records],
            },
        )
        self._snapshot = snapshot
        return snapshot

    def snapshot(self) -> PredictionSnapshot:
        return self._snapshot

    def verify(self) -> int:
        """Re-read the stored documents and return the persisted record count."""
        self.streak()
        return len(self._load_snapshot())

    def get(self, prediction_id: str) -> PredictionRecord:
        record = self._snapshot.get(prediction_id)
        if record is None:
            raise PredictionNotFoundError(prediction_id)
        return record

    def add(
        self,
        *,
        event: str,
        fear: str,
        probability: int,
        category: PredictionCategory | str,
        now: datetime | None = None,
    ) -> PendingPrediction:
        created_at = normalize_utc(now) if now is not None else datetime.now(tz=UTC)
        record = PendingPrediction(
            id=uuid4().hex,
            event=event.strip(),
            fear=fear.strip(),
            probability=probability,
            category=PredictionCategory(category),
            created_at=created_at,
        )
        with self._lock:
            streak = advance_streak(self.streak(), created_at.date())
            snapshot = self._commit((record, *self._snapshot.records))
            self.backend.set_item(STREAK_KEY, streak_to_dict(streak))
        logger.info(
            "Prediction added",
            prediction_id=record.id,
            category=record.category.value,
            probability=record.probability,
            version=snapshot.version,
        )
        return record

    def resolve(
        self,
        prediction_id: str,
        *,
        outcome: bool,
        notes: str = "",
        now: datetime | None = None,
    ) -> ResolvedPrediction:
        resolved_at = normalize_utc(now) if now is not None else datetime.now(tz=UTC)
        with self._lock:
            current = self._snapshot.get(prediction_id)
            if current is None:
                raise PredictionNotFoundError(prediction_id)
            if isinstance(current, ResolvedPrediction):
                raise PredictionAlreadyResolvedError(prediction_id)
            resolved = current.resolve(
                outcome=outcome, notes=notes.strip(), resolved_at=resolved_at
            )
            snapshot = self._commit(
                tuple(
                    resolved if record.id == prediction_id else record
                    for record in self._snapshot.records
                )
            )
        logger.info(
            "Prediction resolved",
            prediction_id=prediction_id,
            outcome=outcome,
            version=snapshot.version,
        )
        return resolved

    def delete(self, prediction_id: str) -> None:
        with self._lock:
            if self._snapshot.get(prediction_id) is None:
                raise PredictionNotFoundError(prediction_id)
            snapshot = self._commit(
                tuple(record for record in self._snapshot.records if record.id != prediction_id)
            )
        logger.info("Prediction deleted", prediction_id=prediction_id, version=snapshot.version)

    def clear(self) -> None:
        with self._lock:
            removed = len(self._snapshot)
            snapshot = self._commit(())
        logger.info("Predictions cleared", removed=removed, version=snapshot.version)

    def streak(self) -> StreakState:
        document = self.backend.get_item(STREAK_KEY)
        if document is None:
            return StreakState()
        try:
            return streak_from_dict(document)
        except (AttributeError, TypeError, ValueError) as exc:
            msg = f"Invalid streak document in store: {exc}"
            raise PredictionStoreError(msg) from exc
