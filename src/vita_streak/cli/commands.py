# src/vita_streak/cli/commands.py

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from typing import cast

from ..core.state import AppState
from ..core.streaks import MILESTONE_DAYS

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console connector (/help, /take, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        if nparams >= 3:
            h3 = cast(CommandHandler3, handler)
            return h3(state, args, emit)

        h2 = cast(CommandHandler2, handler)
        return h2(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        lines.append("  /exit - Quit.")
        return "\n".join(lines)


registry = CommandRegistry()


def _resolve_item_id(state: AppState, ref: str) -> str | None:
    """Accept an item id, a 1-based list number, or a case-insensitive name."""
    ref = ref.strip()
    if state.tracker.has(ref):
        return ref

    items = state.tracker.items()
    if ref.isdigit():
        idx = int(ref)
        if 1 <= idx <= len(items):
            return items[idx - 1].id
        return None

    wanted = ref.lower()
    for item in items:
        if item.name.lower() == wanted:
            return item.id
    return None


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_list(state: AppState, args: list[str]) -> str:
    from ..connectors.console_connector import render_items

    return render_items(state.tracker)


def cmd_take(state: AppState, args: list[str]) -> str:
    """
    /take <id|number|name>  -> mark the item as taken today
    """
    if not args:
        return "Usage: /take <id|number>. See /list."

    ref = " ".join(args)
    item_id = _resolve_item_id(state, ref)
    if item_id is None:
        return f"No such item: {ref}. See /list."

    tracker = state.tracker
    if tracker.is_done_today(item_id):
        return f"Great! {tracker.get(item_id).name} is already taken today."

    result = tracker.mark_complete(item_id)
    left = MILESTONE_DAYS - result.streak_after
    tail = f" ({left} to go for the {MILESTONE_DAYS}-day badge)" if left > 0 else ""
    return f"{result.item.name}: streak {result.streak_after}🔥{tail}"


def cmd_streak(state: AppState, args: list[str]) -> str:
    """
    /streak          -> streaks for all items
    /streak <id>     -> streak for one item
    """
    tracker = state.tracker
    if args:
        item_id = _resolve_item_id(state, " ".join(args))
        if item_id is None:
            return f"No such item: {' '.join(args)}. See /list."
        ids = [item_id]
    else:
        ids = [item.id for item in tracker.items()]

    today = tracker.today()
    lines = [f"Streaks as of {today}:"]
    for item_id in ids:
        lines.append(f"  {tracker.get(item_id).name}: {tracker.streak_for(item_id, today)}🔥")
    return "\n".join(lines)


def cmd_status(state: AppState, args: list[str]) -> str:
    scheduled = "yes" if state.reminders.is_scheduled() else "no"
    last = state.last_schedule_result.value if state.last_schedule_result else "-"
    settings = state.settings
    hour = int(getattr(settings, "reminder_hour", 9))
    minute = int(getattr(settings, "reminder_minute", 0))
    return (
        "Status:\n"
        f"  Today: {state.tracker.today()}\n"
        f"  Items: {len(state.tracker.items())}\n"
        f"  Daily reminder: scheduled={scheduled} at {hour:02d}:{minute:02d} (last attempt: {last})\n"
        f"  Notification permission: {state.alarms.get_permission().value}\n"
        f"  Registered alarms: {state.alarms.count_alarms()}"
    )


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("list", cmd_list, help_text="Show today's checklist.", aliases=["ls"])
registry.register("take", cmd_take, help_text="Log an item for today: /take <id|number>.", aliases=["done", "took"])
registry.register("streak", cmd_streak, help_text="Show streaks: /streak [id].")
registry.register("status", cmd_status, help_text="Show reminder and storage status.")
