"""
Brier command-line interface.
"""

from __future__ import annotations

import argparse
import json
from collections.abc import Sequence
from datetime import UTC, datetime

from src.core.calibration import CalibrationBucket
from src.core.challenges import check_challenge_progress
from src.core.config import settings
from src.core.data_export import ExportFormat, export_predictions, json_safe
from src.core.insights import analyze_predictions
from src.core.logging_setup import configure_logging
from src.core.periodic_report import ReportPeriod, build_periodic_report
from src.core.scoring import compute_category_stats, describe_brier_score, summarize_predictions
from src.storage.models import (
    PredictionCategory,
    PredictionRecord,
    PredictionStatus,
    ResolvedPrediction,
)
from src.storage.prediction_store import (
    JsonFileBackend,
    PredictionAlreadyResolvedError,
    PredictionNotFoundError,
    PredictionStore,
    PredictionStoreError,
)


def _format_brier(score: float | None) -> str:
    """Brier score shown on a 0-100 scale, as in the app."""
    if score is None:
        return "--"
    return f"{score * 100:.1f}"


def _format_prediction_line(record: PredictionRecord) -> str:
    if isinstance(record, ResolvedPrediction):
        verdict = "happened" if record.outcome else "did not happen"
        state = f"resolved: {verdict}"
    else:
        state = "pending"
    return (
        f"{record.id}  [{record.category.value}] {record.probability:>3}%  "
        f"{record.fear} ({state})"
    )


def _format_bucket_line(bucket: CalibrationBucket) -> str:
    observed = "-" if bucket.observed is None else f"{round(bucket.observed)}%"
    return (
        f"  {bucket.range:>7}%  observed {observed:>4}  "
        f"expected {bucket.expected}%  n={bucket.total}"
    )


def _print_json(value: object) -> None:
    print(json.dumps(json_safe(value), indent=2, sort_keys=True))


def _open_store(data_dir: str | None) -> PredictionStore:
    return PredictionStore(JsonFileBackend(data_dir or settings.DATA_DIR))


def _run_add(
    store: PredictionStore,
    *,
    event: str,
    fear: str,
    probability: int,
    category: str,
) -> int:
    if not event.strip() or not fear.strip():
        print("Event and fear must not be blank.")
        return 1
    record = store.add(event=event, fear=fear, probability=probability, category=category)
    print(f"Logged prediction {record.id}")
    return 0


def _run_resolve(store: PredictionStore, *, prediction_id: str, outcome: bool, notes: str) -> int:
    record = store.resolve(prediction_id, outcome=outcome, notes=notes)
    print(_format_prediction_line(record))
    return 0


def _run_delete(store: PredictionStore, *, prediction_id: str) -> int:
    store.delete(prediction_id)
    print(f"Deleted prediction {prediction_id}")
    return 0


def _run_clear(store: PredictionStore, *, confirmed: bool) -> int:
    if not confirmed:
        print("Refusing to delete every prediction without --yes.")
        return 1
    removed = len(store.snapshot())
    store.clear()
    print(f"Deleted {removed} predictions")
    return 0


def _run_list(store: PredictionStore, *, status: str | None, limit: int) -> int:
    records = [
        record
        for record in store.snapshot().records
        if status is None or record.status == PredictionStatus(status)
    ][:limit]
    if not records:
        print("No predictions found.")
        return 0
    for record in records:
        print(_format_prediction_line(record))
    return 0


def _run_stats(store: PredictionStore, *, as_json: bool) -> int:
    records = store.snapshot().records
    summary = summarize_predictions(records)
    categories = compute_category_stats(records)
    if as_json:
        _print_json({"summary": summary, "categories": categories})
        return 0

    print(
        f"Brier score: {_format_brier(summary.brier_score)} "
        f"({describe_brier_score(summary.brier_score)})"
    )
    print(f"Accuracy: {summary.accuracy:.0f}%")
    print(f"Predictions: {summary.total} ({summary.resolved} resolved, {summary.pending} pending)")
    for row in categories:
        accuracy = "" if row.accuracy is None else f", {row.accuracy:.0f}% acc"
        print(f"  {row.category.value}: {row.total} total{accuracy}")
    return 0


def _run_insights(store: PredictionStore, *, as_json: bool) -> int:
    result = analyze_predictions(store.snapshot().records)
    if as_json:
        _print_json(result)
        return 0
    if not result.ready:
        print(f"Insights locked: {result.message}")
        return 0

    calibration = result.calibration
    confidence_bias = result.confidence_bias
    if calibration is None or confidence_bias is None:
        print("Insights are incomplete.")
        return 1

    print(f"Calibration score: {calibration.calibration_score}%")
    for bucket in calibration.buckets:
        print(_format_bucket_line(bucket))
    print(f"Confidence: {confidence_bias.message}")
    if result.patterns:
        print("Patterns:")
        for pattern in result.patterns:
            print(f"  - {pattern}")
    print("Recommendations:")
    for recommendation in result.recommendations:
        print(f"  [{recommendation.type.value}] {recommendation.text}")
    return 0


def _run_report(store: PredictionStore, *, period: str, as_json: bool) -> int:
    report = build_periodic_report(
        store.snapshot().records,
        now=datetime.now(tz=UTC),
        period=ReportPeriod(period),
    )
    if as_json:
        _print_json(report)
        return 0
    print(
        f"{report.period.value.capitalize()} report "
        f"{report.period_start:%Y-%m-%d} - {report.period_end:%Y-%m-%d}"
    )
    print(f"  Predictions: {report.total} ({report.resolved} resolved, {report.pending} pending)")
    print(f"  Brier score: {_format_brier(report.brier_score)}")
    print(f"  Accuracy: {report.accuracy:.0f}%")
    for insight in report.insights:
        print(f"  * {insight}")
    return 0


def _run_challenges(store: PredictionStore) -> int:
    progress = check_challenge_progress(
        store.snapshot().records,
        now=datetime.now(tz=UTC),
        streak=store.streak(),
    )
    for challenge in progress.challenges:
        mark = "x" if challenge.completed else " "
        print(f"[{mark}] {challenge.name} ({challenge.cadence.value}, {challenge.xp} xp)")
    print(f"Total XP: {progress.total_xp}  Streak: {progress.streak}")
    return 0


def _run_export(store: PredictionStore, *, output_dir: str, fmt: str) -> int:
    result = export_predictions(
        store.snapshot().records,
        output_dir=output_dir,
        fmt=ExportFormat(fmt),
    )
    print(f"Exported {result.record_count} predictions: {result.path}")
    print(f"Latest: {result.latest_path}")
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="brier")
    parser.add_argument(
        "--data-dir",
        default=None,
        help="Directory holding prediction data (defaults to DATA_DIR setting)",
    )
    subparsers = parser.add_subparsers(dest="command")

    add_parser = subparsers.add_parser("add", help="Log a new prediction")
    add_parser.add_argument("--event", required=True, help="What you are about to do")
    add_parser.add_argument("--fear", required=True, help="What you fear will happen")
    add_parser.add_argument(
        "--probability",
        type=int,
        required=True,
        choices=range(0, 101),
        metavar="0-100",
        help="Chance the fear comes true",
    )
    add_parser.add_argument(
        "--category",
        choices=[category.value for category in PredictionCategory],
        default=PredictionCategory.SOCIAL.value,
    )

    resolve_parser = subparsers.add_parser("resolve", help="Record a prediction's outcome")
    resolve_parser.add_argument("prediction_id")
    outcome_group = resolve_parser.add_mutually_exclusive_group(required=True)
    outcome_group.add_argument("--happened", dest="outcome", action="store_true")
    outcome_group.add_argument("--did-not-happen", dest="outcome", action="store_false")
    resolve_parser.add_argument("--notes", default="")

    delete_parser = subparsers.add_parser("delete", help="Delete a prediction")
    delete_parser.add_argument("prediction_id")

    clear_parser = subparsers.add_parser("clear", help="Delete every prediction")
    clear_parser.add_argument("--yes", action="store_true", help="Confirm deleting everything")

    list_parser = subparsers.add_parser("list", help="List predictions, most recent first")
    list_parser.add_argument(
        "--status",
        choices=[status.value for status in PredictionStatus],
        default=None,
    )
    list_parser.add_argument("--limit", type=int, default=20)

    stats_parser = subparsers.add_parser("stats", help="Show Brier score and accuracy")
    stats_parser.add_argument("--json", dest="as_json", action="store_true")

    insights_parser = subparsers.add_parser("insights", help="Show calibration insights")
    insights_parser.add_argument("--json", dest="as_json", action="store_true")

    report_parser = subparsers.add_parser("report", help="Show a weekly or monthly report")
    report_parser.add_argument(
        "--period",
        choices=[period.value for period in ReportPeriod],
        default=ReportPeriod.WEEK.value,
    )
    report_parser.add_argument("--json", dest="as_json", action="store_true")

    subparsers.add_parser("challenges", help="Show challenge progress and streak")

    export_parser = subparsers.add_parser("export", help="Export predictions to a file")
    export_parser.add_argument(
        "--format",
        dest="fmt",
        choices=[fmt.value for fmt in ExportFormat],
        default=ExportFormat.JSON.value,
    )
    export_parser.add_argument("--output-dir", default="artifacts/exports")

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return 1

    configure_logging()
    try:
        store = _open_store(args.data_dir)
        if args.command == "add":
            return _run_add(
                store,
                event=args.event,
                fear=args.fear,
                probability=args.probability,
                category=args.category,
            )
        if args.command == "resolve":
            return _run_resolve(
                store,
                prediction_id=args.prediction_id,
                outcome=args.outcome,
                notes=args.notes,
            )
        if args.command == "delete":
            return _run_delete(store, prediction_id=args.prediction_id)
        if args.command == "clear":
            return _run_clear(store, confirmed=args.yes)
        if args.command == "list":
            return _run_list(store, status=args.status, limit=max(args.limit, 1))
        if args.command == "stats":
            return _run_stats(store, as_json=args.as_json)
        if args.command == "insights":
            return _run_insights(store, as_json=args.as_json)
        if args.command == "report":
            return _run_report(store, period=args.period, as_json=args.as_json)
        if args.command == "challenges":
            return _run_challenges(store)
        if args.command == "export":
            return _run_export(store, output_dir=args.output_dir, fmt=args.fmt)
    except (PredictionNotFoundError, PredictionAlreadyResolvedError, PredictionStoreError) as exc:
        print(f"Error: {exc}")
        return 1

    parser.print_help()
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
