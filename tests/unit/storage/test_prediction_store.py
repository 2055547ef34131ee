from __future__ import annotations

import json
from concurrent.futures import ThreadPoolExecutor
from datetime import date, timedelta
from pathlib import Path

import pytest

from src.core.streaks import StreakState
from src.storage.models import PendingPrediction, PredictionCategory, ResolvedPrediction
from src.storage.prediction_store import (
    InMemoryBackend,
    JsonFileBackend,
    PredictionAlreadyResolvedError,
    PredictionNotFoundError,
    PredictionStore,
    PredictionStoreError,
)

pytestmark = pytest.mark.unit


def _add(store: PredictionStore, now, *, probability: int = 40, event: str = "Job interview"):
    return store.add(
        event=event,
        fear="Blank out on the first question",
        probability=probability,
        category=PredictionCategory.WORK,
        now=now,
    )


def test_empty_store_starts_at_version_zero(memory_store: PredictionStore) -> None:
    snapshot = memory_store.snapshot()

    assert snapshot.version == 0
    assert snapshot.records == ()


def test_add_prepends_and_bumps_version(memory_store: PredictionStore, fixed_now) -> None:
    first = _add(memory_store, fixed_now - timedelta(hours=1), event="First")
    second = _add(memory_store, fixed_now, event="Second")

    snapshot = memory_store.snapshot()

    assert isinstance(first, PendingPrediction)
    assert snapshot.version == 2
    assert [record.id for record in snapshot.records] == [second.id, first.id]
    assert first.id != second.id


def test_add_trims_text_and_validates(memory_store: PredictionStore, fixed_now) -> None:
    record = _add(memory_store, fixed_now, event="  Dinner party  ")

    assert record.event == "Dinner party"
    with pytest.raises(ValueError):
        _add(memory_store, fixed_now, probability=150)
    assert memory_store.snapshot().version == 1


def test_snapshots_are_not_affected_by_later_mutations(
    memory_store: PredictionStore, fixed_now
) -> None:
    _add(memory_store, fixed_now)
    before = memory_store.snapshot()

    _add(memory_store, fixed_now)

    assert len(before) == 1
    assert len(memory_store.snapshot()) == 2


def test_resolve_replaces_record_in_place(memory_store: PredictionStore, fixed_now) -> None:
    older = _add(memory_store, fixed_now - timedelta(days=1))
    newer = _add(memory_store, fixed_now)

    resolved = memory_store.resolve(older.id, outcome=True, notes="  rough  ", now=fixed_now)

    assert isinstance(resolved, ResolvedPrediction)
    assert resolved.notes == "rough"
    assert resolved.resolved_at == fixed_now
    records = memory_store.snapshot().records
    assert [record.id for record in records] == [newer.id, older.id]
    assert memory_store.get(older.id) == resolved


def test_resolve_twice_is_rejected(memory_store: PredictionStore, fixed_now) -> None:
    record = _add(memory_store, fixed_now)
    memory_store.resolve(record.id, outcome=False, now=fixed_now)
    version = memory_store.snapshot().version

    with pytest.raises(PredictionAlreadyResolvedError):
        memory_store.resolve(record.id, outcome=True, now=fixed_now)
    assert memory_store.snapshot().version == version


def test_unknown_ids_raise_not_found(memory_store: PredictionStore) -> None:
    with pytest.raises(PredictionNotFoundError, match="'missing' not found"):
        memory_store.get("missing")
    with pytest.raises(PredictionNotFoundError):
        memory_store.resolve("missing", outcome=True)
    with pytest.raises(PredictionNotFoundError):
        memory_store.delete("missing")


def test_delete_and_clear(memory_store: PredictionStore, fixed_now) -> None:
    keep = _add(memory_store, fixed_now)
    drop = _add(memory_store, fixed_now)

    memory_store.delete(drop.id)

    assert [record.id for record in memory_store.snapshot().records] == [keep.id]

    memory_store.clear()

    assert memory_store.snapshot().records == ()
    assert memory_store.snapshot().version == 4


def test_file_store_persists_across_instances(tmp_path: Path, fixed_now) -> None:
    store = PredictionStore(JsonFileBackend(tmp_path))
    record = _add(store, fixed_now)
    store.resolve(record.id, outcome=True, now=fixed_now)

    reopened = PredictionStore(JsonFileBackend(tmp_path))

    assert reopened.snapshot() == store.snapshot()
    assert reopened.verify() == 1
    document = json.loads((tmp_path / "predictions.json").read_text(encoding="utf-8"))
    assert document["version"] == 2
    assert document["predictions"][0]["resolvedAt"] == "2025-03-14T12:00:00Z"
    assert not list(tmp_path.glob("*.tmp"))


def test_corrupt_document_raises_store_error(tmp_path: Path) -> None:
    (tmp_path / "predictions.json").write_text("{not json", encoding="utf-8")

    with pytest.raises(PredictionStoreError, match="valid JSON"):
        PredictionStore(JsonFileBackend(tmp_path))


def test_invalid_record_raises_store_error(tmp_path: Path) -> None:
    document = {"version": 1, "predictions": [{"id": "x", "event": "e"}]}
    (tmp_path / "predictions.json").write_text(json.dumps(document), encoding="utf-8")

    with pytest.raises(PredictionStoreError, match="Invalid prediction record"):
        PredictionStore(JsonFileBackend(tmp_path))


def test_streak_advances_on_add(fixed_now) -> None:
    store = PredictionStore(InMemoryBackend())

    _add(store, fixed_now - timedelta(days=1))
    _add(store, fixed_now)
    _add(store, fixed_now)

    assert store.streak() == StreakState(current=2, longest=2, last_date=date(2025, 3, 14))


def test_corrupt_streak_document_leaves_store_unchanged(tmp_path: Path, fixed_now) -> None:
    store = PredictionStore(JsonFileBackend(tmp_path))
    (tmp_path / "streak.json").write_text("{not json", encoding="utf-8")

    with pytest.raises(PredictionStoreError):
        _add(store, fixed_now)

    assert store.snapshot().version == 0
    assert len(PredictionStore(JsonFileBackend(tmp_path)).snapshot()) == 0


def test_non_numeric_version_raises_store_error(tmp_path: Path) -> None:
    document = {"version": "latest", "predictions": []}
    (tmp_path / "predictions.json").write_text(json.dumps(document), encoding="utf-8")

    with pytest.raises(PredictionStoreError):
        PredictionStore(JsonFileBackend(tmp_path))


def test_concurrent_adds_keep_every_record(file_store: PredictionStore, fixed_now) -> None:
    with ThreadPoolExecutor(max_workers=8) as pool:
        added = list(
            pool.map(lambda n: _add(file_store, fixed_now, event=f"Event {n}"), range(20))
        )

    snapshot = file_store.snapshot()
    assert snapshot.version == 20
    assert {record.id for record in snapshot.records} == {record.id for record in added}
    assert file_store.verify() == 20
