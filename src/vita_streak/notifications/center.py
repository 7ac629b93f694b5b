# src/vita_streak/notifications/center.py

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable

from ..core.dates import Clock, local_now
from ..core.models import PermissionStatus
from .alarm_store import AlarmStore, next_fire_time

logger = logging.getLogger(__name__)

PermissionAsker = Callable[[], bool | Awaitable[bool]]


class LocalNotificationCenter:
    """
    Local notification delivery subsystem (NotificationService port).

    Alarms are registered in the AlarmStore and fired by the dispatcher loop,
    so a scheduled reminder keeps firing across restarts without being
    scheduled again.

    Permission:
    - remembered in the store (granted / denied / undetermined)
    - request_permission() asks once per call through `asker`
    - without an asker every request is denied
    """

    def __init__(
        self,
        store: AlarmStore,
        *,
        asker: PermissionAsker | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._store = store
        self._asker = asker
        self._clock: Clock = clock or local_now

    async def check_permission(self) -> PermissionStatus:
        return self._store.get_permission()

    async def request_permission(self) -> PermissionStatus:
        if self._asker is None:
            logger.info("No permission prompt available; notifications denied")
            return PermissionStatus.DENIED

        try:
            answer = self._asker()
            if inspect.isawaitable(answer):
                answer = await answer
        except Exception:
            logger.exception("Permission prompt failed; treating as denied")
            answer = False

        status = PermissionStatus.GRANTED if answer else PermissionStatus.DENIED
        self._store.set_permission(status)
        logger.info("Notification permission %s", status.value)
        return status

    async def schedule_recurring(self, *, title: str, body: str, hour: int, minute: int) -> int:
        if self._store.get_permission() != PermissionStatus.GRANTED:
            raise PermissionError("notification permission not granted")

        first = next_fire_time(self._clock(), hour, minute)
        alarm_id = self._store.add_alarm(
            title=title,
            body=body,
            hour=hour,
            minute=minute,
            next_fire_at=first.timestamp(),
        )
        logger.info("Recurring alarm %s registered, first at %s", alarm_id, first.isoformat(timespec="minutes"))
        return alarm_id
