# tests/conftest.py

from __future__ import annotations

from collections.abc import Iterator
from datetime import datetime
from pathlib import Path
from types import SimpleNamespace

import pytest

from vita_streak.cli.bootstrap import create_initial_state
from vita_streak.core.state import AppState
from vita_streak.core.tracker import HabitTracker
from vita_streak.storage.item_store import TrackedItemStore

from .fakes import FakeKeyValueStore, FixedClock


@pytest.fixture()
def clock() -> FixedClock:
    # Mid-morning, well away from midnight.
    return FixedClock(datetime(2026, 10, 19, 10, 30))


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and bootstrap.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="Vita Streak",
        data_dir=tmp_path,
        store_db_path=tmp_path / "store.sqlite3",
        alarms_db_path=tmp_path / "alarms.sqlite3",
        reminders_enabled=True,
        reminder_hour=9,
        reminder_minute=0,
    )


@pytest.fixture()
def kv() -> FakeKeyValueStore:
    return FakeKeyValueStore()


@pytest.fixture()
def tracker(kv: FakeKeyValueStore, clock: FixedClock) -> Iterator[HabitTracker]:
    t = HabitTracker.load(TrackedItemStore(kv), clock=clock)
    yield t
    t.close()


@pytest.fixture()
def state(settings: SimpleNamespace, clock: FixedClock) -> Iterator[AppState]:
    """
    AppState wired with real SQLite stores under tmp_path.

    The permission prompt always says yes.
    """
    st = create_initial_state(settings=settings, asker=lambda: True, clock=clock)
    yield st
    st.tracker.close()
