from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path

import pytest

import src.cli as cli_module
from src.cli import (
    _build_parser,
    _format_brier,
    _format_bucket_line,
    _format_prediction_line,
    main,
)
from src.core.calibration import CalibrationBucket
from src.core.insights import InsightsResult
from src.storage.prediction_store import JsonFileBackend, PredictionStore

pytestmark = pytest.mark.unit


def _cli(tmp_path: Path, *args: str) -> int:
    return main(["--data-dir", str(tmp_path), *args])


def test_format_brier_uses_percent_scale() -> None:
    assert _format_brier(None) == "--"
    assert _format_brier(0.1234) == "12.3"


def test_format_prediction_line_shows_state(make_pending, make_resolved) -> None:
    pending_line = _format_prediction_line(make_pending(probability=40))
    resolved_line = _format_prediction_line(make_resolved(probability=70, outcome=False))

    assert " 40%" in pending_line
    assert pending_line.endswith("(pending)")
    assert resolved_line.endswith("(resolved: did not happen)")


def test_format_bucket_line_marks_empty_bucket() -> None:
    empty = CalibrationBucket(range="21-40", expected=31, observed=None, correct=0, total=0)
    full = CalibrationBucket(range="81-100", expected=91, observed=75.0, correct=3, total=4)

    assert "observed    -" in _format_bucket_line(empty)
    assert "observed  75%" in _format_bucket_line(full)
    assert "n=4" in _format_bucket_line(full)


def test_parser_resolve_requires_outcome_flag() -> None:
    parser = _build_parser()

    args = parser.parse_args(["resolve", "abc", "--did-not-happen"])

    assert args.outcome is False
    with pytest.raises(SystemExit):
        parser.parse_args(["resolve", "abc"])


def test_parser_rejects_probability_out_of_range() -> None:
    with pytest.raises(SystemExit):
        _build_parser().parse_args(
            ["add", "--event", "Speech", "--fear", "Stutter", "--probability", "120"]
        )


def test_main_without_command_prints_help(capsys) -> None:
    assert main([]) == 1
    assert "usage: brier" in capsys.readouterr().out


def test_add_resolve_and_list(tmp_path: Path, capsys) -> None:
    assert (
        _cli(
            tmp_path,
            "add",
            "--event",
            "Speech",
            "--fear",
            "Stutter",
            "--probability",
            "80",
            "--category",
            "work",
        )
        == 0
    )
    record = PredictionStore(JsonFileBackend(tmp_path)).snapshot().records[0]
    assert record.probability == 80

    assert _cli(tmp_path, "resolve", record.id, "--happened", "--notes", "a little") == 0
    capsys.readouterr()

    assert _cli(tmp_path, "list", "--status", "resolved") == 0
    output = capsys.readouterr().out
    assert record.id in output
    assert "resolved: happened" in output


def test_add_rejects_blank_fear(tmp_path: Path, capsys) -> None:
    code = _cli(tmp_path, "add", "--event", "Speech", "--fear", "  ", "--probability", "10")

    assert code == 1
    assert "must not be blank" in capsys.readouterr().out


def test_resolve_unknown_prediction_reports_error(tmp_path: Path, capsys) -> None:
    assert _cli(tmp_path, "resolve", "missing", "--happened") == 1
    assert "Error: Prediction 'missing' not found" in capsys.readouterr().out


def test_corrupt_store_reports_error(tmp_path: Path, capsys) -> None:
    (tmp_path / "predictions.json").write_text("not json", encoding="utf-8")

    assert _cli(tmp_path, "stats") == 1
    assert "Error:" in capsys.readouterr().out


def test_stats_json_on_empty_store(tmp_path: Path, capsys) -> None:
    assert _cli(tmp_path, "stats", "--json") == 0

    payload = json.loads(capsys.readouterr().out)
    assert payload["summary"]["total"] == 0
    assert payload["summary"]["brier_score"] is None
    assert len(payload["categories"]) == 6


def test_insights_locked_message(tmp_path: Path, capsys) -> None:
    store = PredictionStore(JsonFileBackend(tmp_path))
    record = store.add(event="Swim", fear="Cramp", probability=20, category="health")
    store.resolve(record.id, outcome=False)

    assert _cli(tmp_path, "insights") == 0
    output = capsys.readouterr().out
    assert output.startswith("Insights locked:")
    assert "at least 5" in output


def test_insights_ready_prints_buckets(tmp_path: Path, capsys) -> None:
    store = PredictionStore(JsonFileBackend(tmp_path))
    for _ in range(5):
        record = store.add(event="Swim", fear="Cramp", probability=90, category="health")
        store.resolve(record.id, outcome=True)

    assert _cli(tmp_path, "insights") == 0
    output = capsys.readouterr().out
    assert "Calibration score: 91%" in output
    assert "81-100%" in output
    assert "[action] Continue tracking" in output


def test_report_json(tmp_path: Path, capsys) -> None:
    store = PredictionStore(JsonFileBackend(tmp_path))
    store.add(event="Meet", fear="Awkward", probability=60, category="social")

    assert _cli(tmp_path, "report", "--period", "month", "--json") == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["period"] == "month"
    assert payload["total"] == 1
    assert payload["pending"] == 1


def test_challenges_show_streak(tmp_path: Path, capsys) -> None:
    store = PredictionStore(JsonFileBackend(tmp_path))
    store.add(
        event="Meet", fear="Awkward", probability=60, category="social", now=datetime.now(tz=UTC)
    )

    assert _cli(tmp_path, "challenges") == 0
    output = capsys.readouterr().out
    assert "[x] Make a prediction" in output
    assert "Streak: 1" in output


def test_export_writes_files(tmp_path: Path, capsys) -> None:
    store = PredictionStore(JsonFileBackend(tmp_path / "data"))
    store.add(event="Meet", fear="Awkward", probability=60, category="social")
    output_dir = tmp_path / "exports"

    code = main(
        [
            "--data-dir",
            str(tmp_path / "data"),
            "export",
            "--format",
            "csv",
            "--output-dir",
            str(output_dir),
        ]
    )

    assert code == 0
    assert "Exported 1 predictions" in capsys.readouterr().out
    assert (output_dir / "predictions-latest.csv").read_text(encoding="utf-8").startswith("ID,")


def test_insights_ready_without_sections_fails(tmp_path: Path, capsys, monkeypatch) -> None:
    monkeypatch.setattr(
        cli_module,
        "analyze_predictions",
        lambda _records: InsightsResult(ready=True, resolved_count=5, required_count=5),
    )

    assert _cli(tmp_path, "insights") == 1
    assert "incomplete" in capsys.readouterr().out


def test_clear_requires_confirmation(tmp_path: Path, capsys) -> None:
    store = PredictionStore(JsonFileBackend(tmp_path))
    store.add(event="Meet", fear="Awkward", probability=60, category="social")
    store.add(event="Call", fear="No answer", probability=30, category="work")

    assert _cli(tmp_path, "clear") == 1
    assert len(PredictionStore(JsonFileBackend(tmp_path)).snapshot()) == 2

    assert _cli(tmp_path, "clear", "--yes") == 0
    assert "Deleted 2 predictions" in capsys.readouterr().out
    assert len(PredictionStore(JsonFileBackend(tmp_path)).snapshot()) == 0
