# src/vita_streak/notifications/dispatcher.py

from __future__ import annotations

"""
Alarm dispatcher.

A small polling loop that:
- fetches due alarms,
- delivers them via an injected deliverer port,
- moves each alarm to its next daily occurrence, or postpones it on failure.

A missed occurrence (process was not running) fires once on the next poll,
then the alarm resumes its daily cadence.
"""

import asyncio
import logging
import time
from datetime import datetime

from ..core.ports import AlarmDeliverer
from .alarm_store import AlarmStore, next_fire_time

logger = logging.getLogger(__name__)


async def dispatch_due_alarms(
        store: AlarmStore,
        deliverer: AlarmDeliverer,
        *,
        now_ts: float,
        retry_delay_seconds: float = 60.0,
        batch_limit: int = 32,
) -> int:
    """Deliver every alarm due at now_ts. Returns how many were delivered."""
    try:
        alarms = store.list_due_alarms(now_ts=now_ts, limit=int(batch_limit))
    except Exception:
        logger.exception("list_due_alarms failed")
        return 0

    delivered = 0
    for alarm in alarms:
        try:
            await deliverer.deliver(title=alarm.title, body=alarm.body)
        except Exception:
            logger.exception("alarm delivery failed alarm_id=%s", alarm.id)
            try:
                store.postpone(alarm.id, next_fire_at=now_ts + retry_delay_seconds)
            except Exception:
                logger.exception("postpone failed alarm_id=%s", alarm.id)
            continue

        delivered += 1
        nxt = next_fire_time(datetime.fromtimestamp(now_ts), alarm.hour, alarm.minute)
        try:
            store.mark_fired(alarm.id, fired_at=now_ts, next_fire_at=nxt.timestamp())
            logger.info("Alarm %s fired; next at %s", alarm.id, nxt.isoformat(timespec="minutes"))
        except Exception:
            logger.exception("mark_fired failed alarm_id=%s", alarm.id)

    return delivered


async def run_alarm_dispatcher(
        store: AlarmStore,
        deliverer: AlarmDeliverer,
        *,
        interval_seconds: float = 15.0,
        retry_delay_seconds: float = 60.0,
        batch_limit: int = 32,
) -> None:
    """
    Simple polling dispatcher.

    To stop the dispatcher, cancel the coroutine/task.
    """
    sleep_s = max(0.01, float(interval_seconds))
    retry_s = max(0.01, float(retry_delay_seconds))

    while True:
        await dispatch_due_alarms(
            store,
            deliverer,
            now_ts=time.time(),
            retry_delay_seconds=retry_s,
            batch_limit=batch_limit,
        )
        await asyncio.sleep(sleep_s)
