# src/vita_streak/core/reminder.py

"""
Daily reminder gating.

Registers one recurring local notification for the life of the install:
- Unscheduled -> permission check -> Scheduled | PermissionDenied
- Scheduled is terminal, guarded by a persisted flag (survives restarts)
- a denial leaves the flag unset, so the next launch asks again
"""

from __future__ import annotations

import logging

from ..storage.item_store import REMINDER_FLAG_KEY, REMINDER_FLAG_SET
from .models import PermissionStatus, ScheduleResult
from .ports import KeyValueStore, NotificationService

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Vita Streak"
DEFAULT_BODY = "Quick win: take your vitamins and keep the streak alive!"


class ReminderScheduler:
    def __init__(
        self,
        kv: KeyValueStore,
        notifications: NotificationService | None,
        *,
        enabled: bool = True,
    ) -> None:
        self._kv = kv
        self._notifications = notifications
        self._enabled = enabled

    def is_scheduled(self) -> bool:
        try:
            return self._kv.get(REMINDER_FLAG_KEY) == REMINDER_FLAG_SET
        except Exception:
            logger.warning("Failed to read reminder flag; assuming not scheduled", exc_info=True)
            return False

    async def ensure_daily_reminder(
        self,
        hour: int = 9,
        minute: int = 0,
        *,
        title: str = DEFAULT_TITLE,
        body: str = DEFAULT_BODY,
    ) -> ScheduleResult:
        if self.is_scheduled():
            logger.debug("Daily reminder already scheduled")
            return ScheduleResult.ALREADY_SCHEDULED

        if not self._enabled or self._notifications is None:
            logger.info("Daily reminder skipped (reminders disabled or no notification service)")
            return ScheduleResult.SKIPPED

        try:
            status = await self._notifications.check_permission()
            if status != PermissionStatus.GRANTED:
                status = await self._notifications.request_permission()
        except Exception:
            logger.warning("Notification permission lookup failed; reminder not scheduled", exc_info=True)
            return ScheduleResult.SKIPPED

        if status != PermissionStatus.GRANTED:
            logger.info("Notification permission %s; reminder not scheduled", status.value)
            return ScheduleResult.PERMISSION_DENIED

        try:
            handle = await self._notifications.schedule_recurring(
                title=title,
                body=body,
                hour=hour,
                minute=minute,
            )
        except Exception:
            logger.warning("Failed to schedule daily reminder", exc_info=True)
            return ScheduleResult.SKIPPED

        try:
            self._kv.set(REMINDER_FLAG_KEY, REMINDER_FLAG_SET)
        except Exception:
            logger.warning("Reminder scheduled but flag write failed", exc_info=True)

        logger.info("Daily reminder scheduled at %02d:%02d (alarm=%s)", hour, minute, handle)
        return ScheduleResult.SCHEDULED
