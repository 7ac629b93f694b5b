# src/vita_streak/core/ticker.py

from __future__ import annotations

import asyncio
import logging

from .tracker import HabitTracker

logger = logging.getLogger(__name__)


async def run_day_ticker(tracker: HabitTracker, *, interval_seconds: float = 60.0) -> None:
    """
    Periodic tick so "today" follows midnight while the app stays open.

    Only recomputes the current day (tracker emits day_changed on rollover).
    To stop the ticker, cancel the coroutine/task.
    """
    sleep_s = max(0.01, float(interval_seconds))
    logger.debug("Day ticker started (interval=%ss)", sleep_s)

    while True:
        await asyncio.sleep(sleep_s)
        tracker.refresh_today()
