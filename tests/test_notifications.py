# tests/test_notifications.py

from __future__ import annotations

import asyncio
import time
from datetime import datetime
from pathlib import Path
from types import SimpleNamespace

import pytest

from vita_streak.cli.bootstrap import create_initial_state
from vita_streak.core.models import PermissionStatus, ScheduleResult
from vita_streak.notifications.alarm_store import AlarmStore, next_fire_time
from vita_streak.notifications.center import LocalNotificationCenter
from vita_streak.notifications.dispatcher import dispatch_due_alarms, run_alarm_dispatcher

from .fakes import FakeDeliverer, FixedClock


def test_next_fire_time_later_today() -> None:
    assert next_fire_time(datetime(2026, 10, 19, 8, 15), 9, 0) == datetime(2026, 10, 19, 9, 0)


def test_next_fire_time_rolls_to_tomorrow() -> None:
    assert next_fire_time(datetime(2026, 10, 19, 9, 0), 9, 0) == datetime(2026, 10, 20, 9, 0)
    assert next_fire_time(datetime(2026, 10, 19, 23, 59), 9, 0) == datetime(2026, 10, 20, 9, 0)


def test_next_fire_time_crosses_month_and_year() -> None:
    assert next_fire_time(datetime(2026, 12, 31, 21, 0), 20, 30) == datetime(2027, 1, 1, 20, 30)


def test_alarm_store_rejects_invalid_time(tmp_path: Path) -> None:
    store = AlarmStore(tmp_path / "alarms.sqlite3")
    with pytest.raises(ValueError):
        store.add_alarm(title="t", body="b", hour=24, minute=0, next_fire_at=0.0)
    with pytest.raises(ValueError):
        store.add_alarm(title="t", body="b", hour=9, minute=60, next_fire_at=0.0)
    assert store.count_alarms() == 0


def test_alarm_store_permission_roundtrip(tmp_path: Path) -> None:
    db = tmp_path / "alarms.sqlite3"
    store = AlarmStore(db)
    assert store.get_permission() == PermissionStatus.UNDETERMINED

    store.set_permission(PermissionStatus.DENIED)
    store.set_permission(PermissionStatus.GRANTED)
    assert AlarmStore(db).get_permission() == PermissionStatus.GRANTED


@pytest.mark.asyncio
async def test_center_asks_and_remembers_answer(tmp_path: Path) -> None:
    asked = {"n": 0}

    async def asker() -> bool:
        asked["n"] += 1
        return True

    store = AlarmStore(tmp_path / "alarms.sqlite3")
    center = LocalNotificationCenter(store, asker=asker)

    assert await center.check_permission() == PermissionStatus.UNDETERMINED
    assert await center.request_permission() == PermissionStatus.GRANTED
    assert await center.check_permission() == PermissionStatus.GRANTED
    assert asked["n"] == 1


@pytest.mark.asyncio
async def test_center_without_asker_denies(tmp_path: Path) -> None:
    store = AlarmStore(tmp_path / "alarms.sqlite3")
    center = LocalNotificationCenter(store)

    assert await center.request_permission() == PermissionStatus.DENIED
    # nobody was asked, so nothing is remembered
    assert store.get_permission() == PermissionStatus.UNDETERMINED


@pytest.mark.asyncio
async def test_center_asker_failure_counts_as_denied(tmp_path: Path) -> None:
    def asker() -> bool:
        raise RuntimeError("no tty")

    store = AlarmStore(tmp_path / "alarms.sqlite3")
    center = LocalNotificationCenter(store, asker=asker)

    assert await center.request_permission() == PermissionStatus.DENIED
    assert store.get_permission() == PermissionStatus.DENIED


@pytest.mark.asyncio
async def test_schedule_requires_permission(tmp_path: Path) -> None:
    store = AlarmStore(tmp_path / "alarms.sqlite3")
    center = LocalNotificationCenter(store, asker=lambda: False)
    await center.request_permission()

    with pytest.raises(PermissionError):
        await center.schedule_recurring(title="t", body="b", hour=9, minute=0)
    assert store.count_alarms() == 0


@pytest.mark.asyncio
async def test_schedule_registers_first_occurrence(tmp_path: Path) -> None:
    clock = FixedClock(datetime(2026, 10, 19, 10, 30))
    store = AlarmStore(tmp_path / "alarms.sqlite3")
    center = LocalNotificationCenter(store, asker=lambda: True, clock=clock)
    await center.request_permission()

    alarm_id = await center.schedule_recurring(title="Vita", body="Take them", hour=9, minute=0)

    (alarm,) = store.list_alarms()
    assert alarm.id == alarm_id
    assert (alarm.title, alarm.body, alarm.hour, alarm.minute) == ("Vita", "Take them", 9, 0)
    assert alarm.next_fire_at == datetime(2026, 10, 20, 9, 0).timestamp()
    assert alarm.last_fired_at is None


@pytest.mark.asyncio
async def test_reminder_survives_restart(settings: SimpleNamespace, clock: FixedClock) -> None:
    first = create_initial_state(settings=settings, asker=lambda: True, clock=clock)
    try:
        assert await first.reminders.ensure_daily_reminder(9, 0) == ScheduleResult.SCHEDULED
    finally:
        first.tracker.close()

    def never_ask() -> bool:
        raise AssertionError("permission prompt shown after restart")

    second = create_initial_state(settings=settings, asker=never_ask, clock=clock)
    try:
        assert await second.reminders.ensure_daily_reminder(9, 0) == ScheduleResult.ALREADY_SCHEDULED
        assert second.alarms.count_alarms() == 1
    finally:
        second.tracker.close()


@pytest.mark.asyncio
async def test_dispatch_delivers_due_alarm_and_moves_it_forward(tmp_path: Path) -> None:
    store = AlarmStore(tmp_path / "alarms.sqlite3")
    now = datetime(2026, 10, 19, 9, 0, 5).timestamp()
    alarm_id = store.add_alarm(title="Vita", body="Take them", hour=9, minute=0, next_fire_at=now - 5)
    deliverer = FakeDeliverer()

    assert await dispatch_due_alarms(store, deliverer, now_ts=now) == 1
    assert [(d.title, d.body) for d in deliverer.delivered] == [("Vita", "Take them")]

    (alarm,) = store.list_alarms()
    assert alarm.id == alarm_id
    assert alarm.last_fired_at == now
    assert alarm.next_fire_at == datetime(2026, 10, 20, 9, 0).timestamp()

    # not due again until tomorrow
    assert await dispatch_due_alarms(store, deliverer, now_ts=now + 60) == 0
    assert len(deliverer.delivered) == 1


@pytest.mark.asyncio
async def test_dispatch_fires_missed_occurrence_once(tmp_path: Path) -> None:
    store = AlarmStore(tmp_path / "alarms.sqlite3")
    # last due three days ago; the process was not running since
    store.add_alarm(
        title="t",
        body="b",
        hour=9,
        minute=0,
        next_fire_at=datetime(2026, 10, 16, 9, 0).timestamp(),
    )
    deliverer = FakeDeliverer()
    now = datetime(2026, 10, 19, 12, 0).timestamp()

    assert await dispatch_due_alarms(store, deliverer, now_ts=now) == 1
    assert await dispatch_due_alarms(store, deliverer, now_ts=now + 1) == 0
    assert store.list_alarms()[0].next_fire_at == datetime(2026, 10, 20, 9, 0).timestamp()


@pytest.mark.asyncio
async def test_dispatch_postpones_on_delivery_failure(tmp_path: Path) -> None:
    store = AlarmStore(tmp_path / "alarms.sqlite3")
    now = time.time()
    store.add_alarm(title="t", body="b", hour=9, minute=0, next_fire_at=now - 1)
    deliverer = FakeDeliverer(fail=True)

    assert await dispatch_due_alarms(store, deliverer, now_ts=now, retry_delay_seconds=30) == 0

    (alarm,) = store.list_alarms()
    assert alarm.next_fire_at == now + 30
    assert alarm.last_fired_at is None

    deliverer.fail = False
    assert await dispatch_due_alarms(store, deliverer, now_ts=now + 31) == 1


@pytest.mark.asyncio
async def test_dispatcher_loop_fires_due_alarm_once(tmp_path: Path) -> None:
    store = AlarmStore(tmp_path / "alarms.sqlite3")
    store.add_alarm(title="Vita", body="ping", hour=9, minute=0, next_fire_at=time.time() - 1)
    deliverer = FakeDeliverer()

    runner = asyncio.create_task(
        run_alarm_dispatcher(
            store,
            deliverer,
            interval_seconds=0.01,
            retry_delay_seconds=0.01,
            batch_limit=10,
        )
    )

    await asyncio.sleep(0.05)
    runner.cancel()
    with pytest.raises(asyncio.CancelledError):
        await runner

    assert len(deliverer.delivered) == 1, "Dispatcher should deliver the due alarm exactly once"
    assert deliverer.delivered[0].body == "ping"
