"""
Domain models for prediction records.

A prediction is either pending or resolved. The two states are separate frozen
dataclasses so that an outcome and a resolution timestamp exist exactly when a
record is resolved. Records are immutable; resolving a pending record returns
a new ResolvedPrediction.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, TypeAlias

# =============================================================================
# Enums
# =============================================================================


class PredictionCategory(str, enum.Enum):
    """Life areas a feared outcome can belong to (definition order matters)."""

    SOCIAL = "social"
    WORK = "work"
    DATING = "dating"
    HEALTH = "health"
    FINANCE = "finance"
    OTHER = "other"


class PredictionStatus(str, enum.Enum):
    """Lifecycle state of a prediction."""

    PENDING = "pending"
    RESOLVED = "resolved"


# =============================================================================
# Helpers
# =============================================================================


def normalize_utc(value: datetime) -> datetime:
    """Normalize datetime values to timezone-aware UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp, accepting a trailing ``Z``."""
    normalized = value.strip()
    if normalized.endswith("Z"):
        normalized = normalized[:-1] + "+00:00"
    return normalize_utc(datetime.fromisoformat(normalized))


def format_timestamp(value: datetime) -> str:
    return normalize_utc(value).isoformat().replace("+00:00", "Z")


# =============================================================================
# Records
# =============================================================================


@dataclass(frozen=True, slots=True)
class PendingPrediction:
    """A logged prediction whose outcome is not known yet."""

    id: str
    event: str
    fear: str
    probability: int
    category: PredictionCategory
    created_at: datetime

    def __post_init__(self) -> None:
        _validate_common(self)
        object.__setattr__(self, "category", PredictionCategory(self.category))
        object.__setattr__(self, "created_at", normalize_utc(self.created_at))

    @property
    def status(self) -> PredictionStatus:
        return PredictionStatus.PENDING

    def resolve(
        self,
        *,
        outcome: bool,
        resolved_at: datetime,
        notes: str = "",
    ) -> ResolvedPrediction:
        """Return the resolved form of this prediction."""
        return ResolvedPrediction(
            id=self.id,
            event=self.event,
            fear=self.fear,
            probability=self.probability,
            category=self.category,
            created_at=self.created_at,
            outcome=outcome,
            notes=notes,
            resolved_at=resolved_at,
        )


@dataclass(frozen=True, slots=True)
class ResolvedPrediction:
    """A prediction whose feared outcome either happened or did not."""

    id: str
    event: str
    fear: str
    probability: int
    category: PredictionCategory
    created_at: datetime
    outcome: bool
    resolved_at: datetime
    notes: str = ""

    def __post_init__(self) -> None:
        _validate_common(self)
        object.__setattr__(self, "category", PredictionCategory(self.category))
        object.__setattr__(self, "created_at", normalize_utc(self.created_at))
        object.__setattr__(self, "resolved_at", normalize_utc(self.resolved_at))
        object.__setattr__(self, "outcome", bool(self.outcome))

    @property
    def status(self) -> PredictionStatus:
        return PredictionStatus.RESOLVED


PredictionRecord: TypeAlias = PendingPrediction | ResolvedPrediction


def _validate_common(record: PendingPrediction | ResolvedPrediction) -> None:
    if not record.id:
        raise ValueError("Prediction id must not be empty")
    if not record.event.strip():
        raise ValueError("Prediction event must not be empty")
    if not record.fear.strip():
        raise ValueError("Prediction fear must not be empty")
    if isinstance(record.probability, bool) or not isinstance(record.probability, int):
        msg = f"Prediction probability must be an integer, got {record.probability!r}"
        raise ValueError(msg)
    if not 0 <= record.probability <= 100:
        msg = f"Prediction probability must be within [0, 100], got {record.probability}"
        raise ValueError(msg)


# =============================================================================
# Serialization
# =============================================================================


def record_to_dict(record: PredictionRecord) -> dict[str, Any]:
    """Serialize a record to the stored camelCase document shape."""
    payload: dict[str, Any] = {
        "id": record.id,
        "event": record.event,
        "fear": record.fear,
        "probability": record.probability,
        "category": record.category.value,
        "status": record.status.value,
        "createdAt": format_timestamp(record.created_at),
    }
    if isinstance(record, ResolvedPrediction):
        payload["outcome"] = record.outcome
        payload["notes"] = record.notes
        payload["resolvedAt"] = format_timestamp(record.resolved_at)
    return payload


def record_from_dict(payload: dict[str, Any]) -> PredictionRecord:
    """
    Build a record from its stored document shape.

    Raises KeyError for missing required keys and ValueError for invalid values.
    """
    common: dict[str, Any] = {
        "id": str(payload["id"]),
        "event": str(payload["event"]),
        "fear": str(payload["fear"]),
        "probability": int(payload["probability"]),
        "category": PredictionCategory(payload["category"]),
        "created_at": parse_timestamp(str(payload["createdAt"])),
    }
    status = PredictionStatus(payload.get("status", PredictionStatus.PENDING.value))
    if status == PredictionStatus.PENDING:
        return PendingPrediction(**common)
    return ResolvedPrediction(
        **common,
        outcome=bool(payload["outcome"]),
        notes=str(payload.get("notes") or ""),
        resolved_at=parse_timestamp(str(payload["resolvedAt"])),
    )
