# src/vita_streak/core/tracker.py

"""
Habit tracker: owner of the in-memory item collection.

All mutations go through mark_complete(). The in-memory update is synchronous,
so a second tap that arrives while the first write is still in flight already
sees today's completion. Each write serializes the whole collection at call
time and runs on a single background worker, so writes land in issue order and
the last one wins. Write failures are logged; the in-memory state stays
authoritative for the session.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor

from ..storage.item_store import TrackedItemStore, serialize_items
from .dates import Clock, DayKey, local_now, previous_day, today_key
from .models import CompletionResult, TrackedItem, TrackerEvent, TrackerEventKind
from .streaks import compute_streak, is_milestone

logger = logging.getLogger(__name__)

TrackerListener = Callable[[TrackerEvent], None]


class HabitTracker:
    def __init__(
        self,
        store: TrackedItemStore,
        items: Iterable[TrackedItem],
        *,
        clock: Clock | None = None,
    ) -> None:
        self._store = store
        self._items: dict[str, TrackedItem] = {}
        for item in items:
            self._items.setdefault(item.id, item.copy())

        self._clock: Clock = clock or local_now
        self._last_day = today_key(self._clock)
        self._listeners: list[TrackerListener] = []

        self._writer = ThreadPoolExecutor(max_workers=1, thread_name_prefix="vita-store")
        self._pending: set[asyncio.Future[None]] = set()
        self._closed = False
        self.write_failures = 0

    @classmethod
    def load(cls, store: TrackedItemStore, *, clock: Clock | None = None) -> HabitTracker:
        """Restore the collection from storage, seeding (and saving) defaults when needed."""
        items, seeded = store.load()
        tracker = cls(store, items, clock=clock)
        if seeded:
            tracker.persist()
        return tracker

    # ---- queries ----

    def today(self) -> DayKey:
        return today_key(self._clock)

    def items(self) -> list[TrackedItem]:
        return [item.copy() for item in self._items.values()]

    def get(self, item_id: str) -> TrackedItem:
        return self._items[item_id].copy()

    def has(self, item_id: str) -> bool:
        return item_id in self._items

    def streak_for(self, item_id: str, today: DayKey | None = None) -> int:
        day = today if today is not None else self.today()
        return compute_streak(self._items[item_id].completed_days, day)

    def is_done_today(self, item_id: str, today: DayKey | None = None) -> bool:
        day = today if today is not None else self.today()
        return self._items[item_id].is_done_on(day)

    # ---- mutations ----

    def mark_complete(self, item_id: str, today: DayKey | None = None) -> CompletionResult:
        """
        Mark an item as done for `today` (default: the clock's current day).

        Idempotent per day: a repeat call changes nothing, reports
        streak_before == streak_after and never reports a milestone.
        Raises KeyError for an unknown item id.
        """
        item = self._items[item_id]
        day = today if today is not None else self.today()

        if item.is_done_on(day):
            streak = compute_streak(item.completed_days, day)
            logger.debug("Item %s already done on %s (streak=%d)", item_id, day, streak)
            return CompletionResult(
                item=item.copy(),
                day=day,
                streak_before=streak,
                streak_after=streak,
                milestone_reached=False,
            )

        # Today is not in the set yet, so the live run is the one ending yesterday.
        streak_before = compute_streak(item.completed_days, previous_day(day))
        item.completed_days.add(day)
        streak_after = streak_before + 1
        milestone = is_milestone(streak_before, streak_after)

        logger.info(
            "Item %s done on %s streak %d -> %d%s",
            item_id,
            day,
            streak_before,
            streak_after,
            " (milestone)" if milestone else "",
        )

        result = CompletionResult(
            item=item.copy(),
            day=day,
            streak_before=streak_before,
            streak_after=streak_after,
            milestone_reached=milestone,
        )

        self.persist()
        self._emit(TrackerEvent(kind=TrackerEventKind.COMPLETED, today=day, item_id=item_id, result=result))
        return result

    def refresh_today(self) -> bool:
        """Recompute "today"; emit day_changed when the calendar day rolled over. No I/O."""
        day = self.today()
        if day == self._last_day:
            return False
        logger.info("Day changed %s -> %s", self._last_day, day)
        self._last_day = day
        self._emit(TrackerEvent(kind=TrackerEventKind.DAY_CHANGED, today=day))
        return True

    # ---- listeners ----

    def subscribe(self, listener: TrackerListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, event: TrackerEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Tracker listener failed for event %s", event.kind.value)

    # ---- persistence ----

    def persist(self) -> None:
        """
        Save the whole collection.

        Inside a running event loop the write is fire-and-forget on the worker
        thread; otherwise (or after close()) it runs inline. Never raises.
        """
        payload = serialize_items(self._items.values())

        if self._closed:
            self._write(payload)
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._write(payload)
            return

        fut = loop.run_in_executor(self._writer, self._write, payload)
        self._pending.add(fut)
        fut.add_done_callback(self._pending.discard)

    def _write(self, payload: str) -> None:
        try:
            self._store.save_raw(payload)
        except Exception:
            self.write_failures += 1
            logger.warning("Failed to persist items; keeping in-memory state", exc_info=True)

    async def flush(self) -> None:
        """Wait for writes already issued."""
        if self._pending:
            await asyncio.gather(*list(self._pending))

    def close(self) -> None:
        self._closed = True
        self._writer.shutdown(wait=True)
