"""
Daily logging streaks.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any


@dataclass(frozen=True, slots=True)
class StreakState:
    current: int = 0
    longest: int = 0
    last_date: date | None = None


def advance_streak(state: StreakState, today: date) -> StreakState:
    """
    Register activity on `today`.

    Logging again on the same day keeps the streak; logging the day after the
    last active day extends it; any longer gap restarts it at one.
    """
    if state.last_date == today:
        return state

    current = 1
    if state.last_date is not None and state.last_date == today - timedelta(days=1):
        current = state.current + 1

    return StreakState(
        current=current,
        longest=max(state.longest, current),
        last_date=today,
    )


def streak_to_dict(state: StreakState) -> dict[str, Any]:
    return {
        "current": state.current,
        "longest": state.longest,
        "lastDate": state.last_date.isoformat() if state.last_date else None,
    }


def streak_from_dict(payload: dict[str, Any]) -> StreakState:
    last_date = payload.get("lastDate")
    return StreakState(
        current=int(payload.get("current", 0)),
        longest=int(payload.get("longest", 0)),
        last_date=date.fromisoformat(last_date) if last_date else None,
    )
