"""
Export helpers for prediction backups and analysis payloads.
"""

from __future__ import annotations

import csv
import enum
import io
import json
from collections.abc import Sequence
from dataclasses import asdict, dataclass, is_dataclass
from datetime import UTC, date, datetime
from pathlib import Path
from typing import Any

from src.storage.models import PredictionRecord, ResolvedPrediction, record_to_dict

CSV_HEADERS = (
    "ID",
    "Event",
    "Fear",
    "Probability",
    "Category",
    "Status",
    "Outcome",
    "Created",
    "Resolved",
)


class ExportFormat(enum.StrEnum):
    JSON = "json"
    CSV = "csv"


@dataclass(frozen=True)
class ExportResult:
    """Paths written by a prediction export."""

    path: Path
    latest_path: Path
    record_count: int


def json_safe(value: Any) -> Any:
    """Convert dataclasses, enums and timestamps into JSON-compatible values."""
    if is_dataclass(value) and not isinstance(value, type):
        return json_safe(asdict(value))
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, datetime):
        return value.astimezone(UTC).isoformat().replace("+00:00", "Z")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, list | tuple):
        return [json_safe(item) for item in value]
    if isinstance(value, dict):
        return {str(json_safe(key)): json_safe(item) for key, item in value.items()}
    return value


def predictions_to_json(records: Sequence[PredictionRecord]) -> str:
    return json.dumps([record_to_dict(record) for record in records], indent=2)


def predictions_to_csv(records: Sequence[PredictionRecord]) -> str:
    """Render records as CSV; pending records leave outcome and resolved empty."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for record in records:
        payload = record_to_dict(record)
        resolved = isinstance(record, ResolvedPrediction)
        writer.writerow(
            [
                record.id,
                record.event,
                record.fear,
                record.probability,
                record.category.value,
                record.status.value,
                str(record.outcome).lower() if resolved else "",
                payload["createdAt"],
                payload.get("resolvedAt", ""),
            ]
        )
    return buffer.getvalue().rstrip("\n")


def render_predictions(records: Sequence[PredictionRecord], fmt: ExportFormat) -> str:
    if fmt == ExportFormat.CSV:
        return predictions_to_csv(records)
    return predictions_to_json(records)


def export_predictions(
    records: Sequence[PredictionRecord],
    *,
    output_dir: str | Path = "artifacts/exports",
    fmt: ExportFormat = ExportFormat.JSON,
    now: datetime | None = None,
) -> ExportResult:
    """
    Write a timestamped export file.

    Also refreshes a stable `predictions-latest.<fmt>` alias.
    """
    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)

    text = render_predictions(records, fmt) + "\n"
    timestamp = (now or datetime.now(tz=UTC)).astimezone(UTC).strftime("%Y%m%dT%H%M%SZ")
    path = output_path / f"predictions-{timestamp}.{fmt.value}"
    latest_path = output_path / f"predictions-latest.{fmt.value}"

    path.write_text(text, encoding="utf-8")
    latest_path.write_text(text, encoding="utf-8")
    return ExportResult(path=path, latest_path=latest_path, record_count=len(records))
