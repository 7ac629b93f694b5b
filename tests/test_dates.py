# tests/test_dates.py

from __future__ import annotations

from datetime import date, datetime, timedelta

import pytest

from vita_streak.core.dates import (
    key_for,
    parse_day_key,
    previous_day,
    today_key,
    try_parse_day_key,
)

from .fakes import FixedClock


def test_same_local_day_maps_to_same_key() -> None:
    morning = datetime(2026, 10, 19, 0, 0, 1)
    night = datetime(2026, 10, 19, 23, 59, 59)
    assert key_for(morning) == key_for(night) == "2026-10-19"
    assert key_for(date(2026, 10, 19)) == "2026-10-19"


def test_aware_instant_uses_local_calendar_day() -> None:
    now = datetime.now().astimezone()
    assert key_for(now) == now.date().isoformat()


def test_today_key_uses_injected_clock() -> None:
    clock = FixedClock(datetime(2024, 2, 29, 23, 0))
    assert today_key(clock) == "2024-02-29"
    clock.advance(hours=2)
    assert today_key(clock) == "2024-03-01"


def test_previous_day_crosses_month_year_and_leap_day() -> None:
    assert previous_day("2024-03-01") == "2024-02-29"
    assert previous_day("2026-01-01") == "2025-12-31"


def test_keys_are_monotonic_with_calendar_order() -> None:
    day = date(2025, 12, 20)
    prev = key_for(day)
    for _ in range(400):
        day += timedelta(days=1)
        cur = key_for(day)
        assert cur > prev
        assert previous_day(cur) == prev
        prev = cur


@pytest.mark.parametrize("raw", ["", "2026-10-1", "20261019", "2026-W42-1", "2026-13-01", "yesterday"])
def test_parse_day_key_rejects_non_keys(raw: str) -> None:
    with pytest.raises(ValueError):
        parse_day_key(raw)


def test_try_parse_accepts_legacy_date_strings() -> None:
    assert try_parse_day_key("2026-10-19") == "2026-10-19"
    assert try_parse_day_key(" 2026-10-19 ") == "2026-10-19"
    assert try_parse_day_key("Mon Oct 19 2026") == "2026-10-19"
    assert try_parse_day_key("not a date") is None
    assert try_parse_day_key(None) is None
    assert try_parse_day_key(20261019) is None
