# src/vita_streak/connectors/console_connector.py

from __future__ import annotations

import asyncio
import logging
import sys
import threading
from collections.abc import Awaitable, Callable
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.models import TrackedItem, TrackerEvent, TrackerEventKind
from ..core.state import AppState
from ..core.streaks import MILESTONE_DAYS, compute_streak
from ..core.tracker import HabitTracker

logger = logging.getLogger(__name__)

CONFETTI = "🎉 🎊 🎉  Nice! Logged for today.  🎉 🎊 🎉"
MILESTONE_TOAST = f"{MILESTONE_DAYS}-day streak! 🔰 Keep it going!"

Printer = Callable[[str], None]


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


def render_item(item: TrackedItem, today: str) -> str:
    taken = item.is_done_on(today)
    status = "✅ Taken today" if taken else "⬜ Not yet"
    streak = compute_streak(item.completed_days, today)
    return f"{item.name} [{item.id}]: {status} • Streak: {streak}🔥"


def render_items(tracker: HabitTracker) -> str:
    today = tracker.today()
    items = tracker.items()
    if not items:
        return "Nothing to track."
    lines = [f"Today is {today}:"]
    for i, item in enumerate(items, start=1):
        lines.append(f"  {i}. {render_item(item, today)}")
    return "\n".join(lines)


class ConsolePresenter:
    """
    Presentation adapter: turns tracker events into console output.

    - completed   -> confetti line, plus the milestone toast on the 7th day
    - day_changed -> re-render the list so "today" is current
    """

    def __init__(self, tracker: HabitTracker, *, out: Printer = _print_ts) -> None:
        self._tracker = tracker
        self._out = out

    def attach(self) -> Callable[[], None]:
        return self._tracker.subscribe(self.on_event)

    def on_event(self, event: TrackerEvent) -> None:
        if event.kind == TrackerEventKind.COMPLETED:
            self._out(CONFETTI)
            if event.result is not None and event.result.milestone_reached:
                self._out(MILESTONE_TOAST)
            return

        if event.kind == TrackerEventKind.DAY_CHANGED:
            self._out("A new day has started.\n" + render_items(self._tracker))


class ConsoleDeliverer:
    """AlarmDeliverer that rings in the terminal."""

    def __init__(self, *, out: Printer = _print_ts) -> None:
        self._out = out

    async def deliver(self, *, title: str, body: str) -> None:
        self._out(f"🔔 {title}: {body}")


class ConsoleInput:
    """
    Line reader backed by a daemon thread.

    A daemon thread keeps a pending input() from blocking interpreter shutdown.
    readline() returns None on EOF.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[str | None] | None = None
        self._thread: threading.Thread | None = None
        self._eof = False

    def _start(self) -> asyncio.Queue[str | None]:
        if self._queue is not None:
            return self._queue

        loop = asyncio.get_running_loop()
        queue: asyncio.Queue[str | None] = asyncio.Queue()

        def reader() -> None:
            while True:
                try:
                    line = sys.stdin.readline()
                except Exception:
                    logger.debug("stdin read failed", exc_info=True)
                    line = ""
                if not line:
                    loop.call_soon_threadsafe(queue.put_nowait, None)
                    return
                loop.call_soon_threadsafe(queue.put_nowait, line.rstrip("\n"))

        self._queue = queue
        self._thread = threading.Thread(target=reader, name="vita-stdin", daemon=True)
        self._thread.start()
        return queue

    async def readline(self, prompt: str = "") -> str | None:
        if self._eof:
            return None
        queue = self._start()
        if prompt:
            print(prompt, end="", flush=True)
        line = await queue.get()
        if line is None:
            self._eof = True
        return line


def make_permission_asker(console: ConsoleInput) -> Callable[[], Awaitable[bool]]:
    async def ask() -> bool:
        answer = await console.readline("Allow a daily reminder notification? [y/N] ")
        return (answer or "").strip().lower() in {"y", "yes"}

    return ask


async def run_console_loop(state: AppState, console: ConsoleInput) -> None:
    logger.info("Console connector started.")
    app_name = str(getattr(state.settings, "app_name", "Vita Streak"))

    _print_ts(f"[{app_name}] Use /take <id|number> to log an item, /help for commands, /exit to quit.")
    print(render_items(state.tracker), flush=True)

    def emit(text: str) -> None:
        _print_ts(text)

    while True:
        user_input = await console.readline(">>> ")
        if user_input is None:
            logger.info("Console EOF received, exiting.")
            break

        user_input = user_input.strip()
        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        try:
            cmd_response = command_registry.handle(state, user_input, emit=emit)
        except Exception:
            logger.exception("Command handler crashed.")
            cmd_response = "Internal error while handling a command."

        if cmd_response is None:
            cmd_response = "Commands start with '/'. Use /help to list them."

        _print_ts(cmd_response)

    logger.info("Console connector finished.")
