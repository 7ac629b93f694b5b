# tests/test_tracker.py

from __future__ import annotations

import asyncio
import json

import pytest

from vita_streak.core.dates import previous_day
from vita_streak.core.models import TrackedItem, TrackerEvent, TrackerEventKind
from vita_streak.core.streaks import MILESTONE_DAYS
from vita_streak.core.ticker import run_day_ticker
from vita_streak.core.tracker import HabitTracker
from vita_streak.storage.item_store import ITEMS_KEY, TrackedItemStore, deserialize_items

from .fakes import FakeKeyValueStore, FixedClock

TODAY = "2026-10-19"


def _days_ending(day: str, n: int) -> set[str]:
    out: set[str] = set()
    for _ in range(n):
        out.add(day)
        day = previous_day(day)
    return out


def _tracker_with(kv: FakeKeyValueStore, clock: FixedClock, *items: TrackedItem) -> HabitTracker:
    return HabitTracker(TrackedItemStore(kv), items, clock=clock)


def test_load_seeds_and_persists_defaults(tracker: HabitTracker, kv: FakeKeyValueStore) -> None:
    assert [i.id for i in tracker.items()] == ["multi", "d3", "omega3"]
    assert ITEMS_KEY in kv.data
    stored = deserialize_items(kv.data[ITEMS_KEY])
    assert [i.name for i in stored] == ["Multivitamin", "Vitamin D3", "Omega-3"]


def test_fresh_item_first_completion(tracker: HabitTracker, kv: FakeKeyValueStore) -> None:
    result = tracker.mark_complete("multi")

    assert result.day == TODAY
    assert result.streak_before == 0
    assert result.streak_after == 1
    assert result.milestone_reached is False
    assert tracker.is_done_today("multi")
    assert tracker.streak_for("multi") == 1

    stored = {i.id: i for i in deserialize_items(kv.data[ITEMS_KEY])}
    assert stored["multi"].completed_days == {TODAY}


def test_six_day_run_reaches_milestone(kv: FakeKeyValueStore, clock: FixedClock) -> None:
    item = TrackedItem(id="d3", name="Vitamin D3", completed_days=_days_ending(previous_day(TODAY), 6))
    tracker = _tracker_with(kv, clock, item)

    result = tracker.mark_complete("d3", TODAY)

    assert result.streak_before == 6
    assert result.streak_after == MILESTONE_DAYS
    assert result.milestone_reached is True
    tracker.close()


def test_mark_complete_is_idempotent_per_day(tracker: HabitTracker, kv: FakeKeyValueStore) -> None:
    first = tracker.mark_complete("omega3")
    writes_after_first = kv.writes
    snapshot = kv.data[ITEMS_KEY]

    second = tracker.mark_complete("omega3")

    assert first.streak_after == 1
    assert second.streak_before == second.streak_after == 1
    assert second.milestone_reached is False
    assert second.changed is False
    assert kv.writes == writes_after_first
    assert kv.data[ITEMS_KEY] == snapshot
    assert tracker.get("omega3").completed_days == {TODAY}


def test_milestone_fires_once_per_crossing(tracker: HabitTracker, clock: FixedClock) -> None:
    flags: list[tuple[int, bool]] = []
    for _ in range(12):
        result = tracker.mark_complete("multi")
        tracker.mark_complete("multi")  # second tap the same day
        flags.append((result.streak_after, result.milestone_reached))
        clock.advance(days=1)

    assert [s for s, _ in flags] == list(range(1, 13))
    assert [s for s, hit in flags if hit] == [MILESTONE_DAYS]


def test_missed_day_resets_the_run(tracker: HabitTracker, clock: FixedClock) -> None:
    tracker.mark_complete("d3")
    clock.advance(days=2)
    result = tracker.mark_complete("d3")
    assert result.streak_before == 0
    assert result.streak_after == 1


def test_unknown_item_raises(tracker: HabitTracker) -> None:
    with pytest.raises(KeyError):
        tracker.mark_complete("nope")


def test_returned_items_are_copies(tracker: HabitTracker) -> None:
    item = tracker.get("multi")
    item.completed_days.add(TODAY)
    assert not tracker.is_done_today("multi")


def test_write_failure_keeps_in_memory_state(tracker: HabitTracker, kv: FakeKeyValueStore) -> None:
    kv.fail_writes = True

    result = tracker.mark_complete("multi")

    assert result.streak_after == 1
    assert tracker.write_failures == 1
    assert tracker.is_done_today("multi")
    # second tap still sees the completion
    assert tracker.mark_complete("multi").changed is False


def test_listeners_receive_completion_events(tracker: HabitTracker) -> None:
    events: list[TrackerEvent] = []
    unsubscribe = tracker.subscribe(events.append)

    tracker.mark_complete("d3")
    tracker.mark_complete("d3")
    unsubscribe()
    tracker.mark_complete("multi")

    assert len(events) == 1
    assert events[0].kind == TrackerEventKind.COMPLETED
    assert events[0].item_id == "d3"
    assert events[0].result is not None and events[0].result.streak_after == 1


def test_listener_failure_does_not_break_mutation(tracker: HabitTracker) -> None:
    def boom(event: TrackerEvent) -> None:
        raise RuntimeError("render failed")

    tracker.subscribe(boom)
    assert tracker.mark_complete("multi").streak_after == 1
    assert tracker.is_done_today("multi")


def test_refresh_today_emits_day_changed_once(tracker: HabitTracker, clock: FixedClock) -> None:
    events: list[TrackerEvent] = []
    tracker.subscribe(events.append)

    assert tracker.refresh_today() is False
    clock.advance(days=1)
    assert tracker.refresh_today() is True
    assert tracker.refresh_today() is False

    assert [e.kind for e in events] == [TrackerEventKind.DAY_CHANGED]
    assert events[0].today == "2026-10-20"


@pytest.mark.asyncio
async def test_background_writes_land_in_order(kv: FakeKeyValueStore, clock: FixedClock) -> None:
    tracker = HabitTracker.load(TrackedItemStore(kv), clock=clock)

    tracker.mark_complete("multi")
    tracker.mark_complete("d3")
    tracker.mark_complete("omega3")
    await tracker.flush()

    stored = {i.id: i for i in deserialize_items(kv.data[ITEMS_KEY])}
    assert all(stored[i].completed_days == {TODAY} for i in ("multi", "d3", "omega3"))
    records = json.loads(kv.data[ITEMS_KEY])
    assert [r["id"] for r in records] == ["multi", "d3", "omega3"]
    tracker.close()


@pytest.mark.asyncio
async def test_background_write_failure_is_logged_not_raised(kv: FakeKeyValueStore, clock: FixedClock) -> None:
    tracker = HabitTracker.load(TrackedItemStore(kv), clock=clock)
    await tracker.flush()
    kv.fail_writes = True

    result = tracker.mark_complete("multi")
    await tracker.flush()

    assert result.streak_after == 1
    assert tracker.write_failures == 1
    tracker.close()


@pytest.mark.asyncio
async def test_completion_after_close_is_written_inline(kv: FakeKeyValueStore, clock: FixedClock) -> None:
    tracker = HabitTracker.load(TrackedItemStore(kv), clock=clock)
    tracker.close()

    result = tracker.mark_complete("omega3")

    assert result.streak_after == 1
    stored = {i.id: i for i in deserialize_items(kv.data[ITEMS_KEY])}
    assert stored["omega3"].completed_days == {TODAY}


@pytest.mark.asyncio
async def test_day_ticker_follows_midnight(tracker: HabitTracker, clock: FixedClock) -> None:
    events: list[TrackerEvent] = []
    tracker.subscribe(events.append)

    runner = asyncio.create_task(run_day_ticker(tracker, interval_seconds=0.01))
    await asyncio.sleep(0.03)
    clock.advance(days=1)
    await asyncio.sleep(0.05)
    runner.cancel()
    with pytest.raises(asyncio.CancelledError):
        await runner

    assert [e.kind for e in events] == [TrackerEventKind.DAY_CHANGED]
    assert tracker.today() == "2026-10-20"
