# src/vita_streak/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete stores and the notification center into AppState,
- picks the reminder delivery transport (console or Matrix).
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..connectors.console_connector import ConsoleDeliverer
from ..core.dates import Clock
from ..core.ports import AlarmDeliverer
from ..core.reminder import ReminderScheduler
from ..core.state import AppState
from ..core.tracker import HabitTracker
from ..notifications.alarm_store import AlarmStore
from ..notifications.center import LocalNotificationCenter, PermissionAsker
from ..storage.item_store import TrackedItemStore
from ..storage.kv_store import SQLiteKeyValueStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.store_db_path.parent.mkdir(parents=True, exist_ok=True)
    settings.alarms_db_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(
    *,
    settings=None,
    asker: PermissionAsker | None = None,
    clock: Clock | None = None,
) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    kv = SQLiteKeyValueStore(settings.store_db_path)
    tracker = HabitTracker.load(TrackedItemStore(kv), clock=clock)

    alarms = AlarmStore(settings.alarms_db_path)
    notifications = LocalNotificationCenter(alarms, asker=asker, clock=clock)

    return AppState(
        settings=settings,
        kv=kv,
        tracker=tracker,
        alarms=alarms,
        notifications=notifications,
        reminders=ReminderScheduler(
            kv,
            notifications,
            enabled=bool(getattr(settings, "reminders_enabled", True)),
        ),
    )


async def create_deliverer(settings) -> AlarmDeliverer:
    """Matrix when enabled and reachable; the console otherwise."""
    if getattr(settings, "matrix_enabled", False):
        from ..connectors.matrix_client import MatrixDeliverer, create_matrix_client

        try:
            client = await create_matrix_client(settings)
        except Exception:
            logger.exception("Matrix client creation crashed.")
            client = None

        if client is not None:
            logger.info("Reminders will be delivered via Matrix.")
            return MatrixDeliverer(client, rooms=list(getattr(settings, "matrix_rooms", []) or []))

        logger.warning("Matrix unavailable; reminders fall back to the console.")

    return ConsoleDeliverer()
