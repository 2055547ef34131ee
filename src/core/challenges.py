"""
Daily and weekly challenges with experience points.
"""

from __future__ import annotations

import enum
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta

from src.core.config import settings
from src.core.periodic_report import records_in_window
from src.core.scoring import compute_brier_score, resolved_predictions
from src.core.streaks import StreakState
from src.storage.models import PredictionRecord, ResolvedPrediction, normalize_utc

PERFECT_WEEK_BRIER_BELOW = 0.2


class ChallengeCadence(enum.StrEnum):
    DAILY = "daily"
    WEEKLY = "weekly"


@dataclass(frozen=True, slots=True)
class ChallengeDefinition:
    id: str
    name: str
    xp: int
    cadence: ChallengeCadence


@dataclass(frozen=True, slots=True)
class ChallengeStatus:
    id: str
    name: str
    xp: int
    cadence: ChallengeCadence
    completed: bool


@dataclass(frozen=True, slots=True)
class ChallengeProgress:
    challenges: list[ChallengeStatus]
    total_xp: int
    streak: int


DAILY_CHALLENGES: tuple[ChallengeDefinition, ...] = (
    ChallengeDefinition("first_pred", "Make a prediction", 10, ChallengeCadence.DAILY),
    ChallengeDefinition("resolve_one", "Resolve a prediction", 15, ChallengeCadence.DAILY),
    ChallengeDefinition(
        "be_honest", "Log a fear that actually happened", 20, ChallengeCadence.DAILY
    ),
)

WEEKLY_CHALLENGES: tuple[ChallengeDefinition, ...] = (
    ChallengeDefinition("five_pred", "Make 5 predictions", 50, ChallengeCadence.WEEKLY),
    ChallengeDefinition(
        "perfect_week", "Get a Brier score under 0.2", 100, ChallengeCadence.WEEKLY
    ),
    ChallengeDefinition("all_cats", "Predict in 3+ categories", 30, ChallengeCadence.WEEKLY),
)


def _resolved_on_day(
    records: Sequence[PredictionRecord],
    now: datetime,
) -> list[ResolvedPrediction]:
    day = normalize_utc(now).date()
    return [
        record for record in resolved_predictions(records) if record.resolved_at.date() == day
    ]


def _daily_checks(
    records: Sequence[PredictionRecord],
    now: datetime,
) -> dict[str, Callable[[], bool]]:
    day = normalize_utc(now).date()
    return {
        "first_pred": lambda: any(record.created_at.date() == day for record in records),
        "resolve_one": lambda: bool(_resolved_on_day(records, now)),
        "be_honest": lambda: any(record.outcome for record in _resolved_on_day(records, now)),
    }


def _weekly_checks(window: Sequence[PredictionRecord]) -> dict[str, Callable[[], bool]]:
    def perfect_week() -> bool:
        score = compute_brier_score(window)
        return score is not None and score < PERFECT_WEEK_BRIER_BELOW

    return {
        "five_pred": lambda: len(window) >= 5,
        "perfect_week": perfect_week,
        "all_cats": lambda: len({record.category for record in window}) >= 3,
    }


def check_challenge_progress(
    records: Sequence[PredictionRecord],
    *,
    now: datetime,
    streak: StreakState | None = None,
) -> ChallengeProgress:
    """
    Evaluate every challenge as of `now`.

    Daily challenges look at the UTC calendar day of `now`; weekly challenges
    look at predictions created in the trailing weekly window.
    """
    period_end = normalize_utc(now)
    window = records_in_window(
        records,
        start=period_end - timedelta(days=settings.REPORT_WEEKLY_DAYS),
        end=period_end,
    )
    checks = {**_daily_checks(records, period_end), **_weekly_checks(window)}

    statuses = [
        ChallengeStatus(
            id=definition.id,
            name=definition.name,
            xp=definition.xp,
            cadence=definition.cadence,
            completed=checks[definition.id](),
        )
        for definition in (*DAILY_CHALLENGES, *WEEKLY_CHALLENGES)
    ]
    return ChallengeProgress(
        challenges=statuses,
        total_xp=sum(status.xp for status in statuses if status.completed),
        streak=streak.current if streak is not None else 0,
    )
