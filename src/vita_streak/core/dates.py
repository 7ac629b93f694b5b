# src/vita_streak/core/dates.py

"""
Calendar-day keys.

A day key is the ISO date ("YYYY-MM-DD") of a local calendar day.
ISO strings sort lexicographically in calendar order, so plain string
comparison is the day-ordering comparator.

No timezone handling beyond "device local time at call time": aware datetimes
are converted to local time, naive ones are taken as local wall-clock.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from datetime import date, datetime, timedelta

DayKey = str
Clock = Callable[[], datetime]

# JavaScript Date.toDateString(), e.g. "Mon Oct 19 2026". Older data files use it.
_LEGACY_FORMAT = "%a %b %d %Y"
_ISO_DAY = re.compile(r"\d{4}-\d{2}-\d{2}")


def local_now() -> datetime:
    return datetime.now().astimezone()


def key_for(instant: datetime | date | None = None) -> DayKey:
    """Map an instant to the key of its local calendar day."""
    if instant is None:
        instant = local_now()
    if isinstance(instant, datetime):
        if instant.tzinfo is not None:
            instant = instant.astimezone()
        return instant.date().isoformat()
    return instant.isoformat()


def today_key(clock: Clock | None = None) -> DayKey:
    return key_for(clock() if clock is not None else None)


def parse_day_key(raw: str) -> date:
    """Strict parse; raises ValueError for anything that is not YYYY-MM-DD."""
    s = (raw or "").strip()
    if not _ISO_DAY.fullmatch(s):
        raise ValueError(f"not a day key: {raw!r}")
    return date.fromisoformat(s)


def try_parse_day_key(raw: object) -> DayKey | None:
    """
    Tolerant parse used when reading stored data.

    Accepts ISO day keys and the legacy toDateString() form; returns the
    normalized key or None.
    """
    if not isinstance(raw, str):
        return None
    s = raw.strip()
    try:
        return parse_day_key(s).isoformat()
    except ValueError:
        pass
    try:
        return datetime.strptime(s, _LEGACY_FORMAT).date().isoformat()
    except ValueError:
        return None


def previous_day(key: DayKey) -> DayKey:
    return (parse_day_key(key) - timedelta(days=1)).isoformat()
