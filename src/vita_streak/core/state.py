# src/vita_streak/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..notifications.alarm_store import AlarmStore
from ..notifications.center import LocalNotificationCenter
from .models import ScheduleResult
from .ports import KeyValueStore
from .reminder import ReminderScheduler
from .tracker import HabitTracker


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules later.
    settings: Any

    kv: KeyValueStore
    tracker: HabitTracker
    alarms: AlarmStore
    notifications: LocalNotificationCenter
    reminders: ReminderScheduler

    last_schedule_result: ScheduleResult | None = None
