# src/vita_streak/core/streaks.py

from __future__ import annotations

from collections.abc import Collection

from .dates import DayKey, previous_day

MILESTONE_DAYS = 7


def compute_streak(completed_days: Collection[DayKey], today: DayKey) -> int:
    """
    Consecutive completed days ending today.

    Greedy backward scan from today; stops at the first missing day.
    Cost is proportional to the streak length, not to the history size.
    """
    days = completed_days if isinstance(completed_days, (set, frozenset)) else set(completed_days)

    streak = 0
    cur = today
    while cur in days:
        streak += 1
        cur = previous_day(cur)
    return streak


def is_milestone(streak_before: int, streak_after: int) -> bool:
    # Edge-triggered: only the step that lands exactly on the threshold.
    return streak_before < MILESTONE_DAYS and streak_after == MILESTONE_DAYS
