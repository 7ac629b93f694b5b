# src/vita_streak/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, makes sure the daily reminder is
registered, then runs in one event loop:
- alarm dispatcher (fires due reminders),
- day ticker (follows midnight while open),
- console checklist (optional; otherwise runs until a signal).
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal

from ..config import get_settings
from ..connectors.console_connector import ConsoleInput, ConsolePresenter, make_permission_asker, run_console_loop
from ..core.state import AppState
from ..core.ticker import run_day_ticker
from ..logging_setup import setup_logging
from ..notifications.dispatcher import run_alarm_dispatcher
from .bootstrap import create_deliverer, create_initial_state

logger = logging.getLogger(__name__)


async def _shutdown(state: AppState, deliverer, tasks: list[asyncio.Task]) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    for t in tasks:
        t.cancel()
    for t in tasks:
        with contextlib.suppress(asyncio.CancelledError, Exception):
            await t

    try:
        await state.tracker.flush()
    except Exception:
        logger.exception("Failed to flush pending writes.")
    state.tracker.close()

    close = getattr(deliverer, "close", None)
    if close is not None:
        try:
            await close()
        except Exception:
            logger.debug("Deliverer close failed.", exc_info=True)


async def _run(settings) -> None:
    console = ConsoleInput() if settings.console_enabled else None

    if console is not None:
        asker = make_permission_asker(console)
    else:
        # Headless: opting in via VITA_REMINDERS_ENABLED is the permission.
        def asker() -> bool:
            return bool(settings.reminders_enabled)

    state = create_initial_state(settings=settings, asker=asker)
    deliverer = await create_deliverer(settings)

    state.last_schedule_result = await state.reminders.ensure_daily_reminder(
        settings.reminder_hour,
        settings.reminder_minute,
        title=settings.reminder_title,
        body=settings.reminder_body,
    )
    logger.info("Daily reminder: %s", state.last_schedule_result.value)

    tasks = [
        asyncio.create_task(
            run_alarm_dispatcher(
                state.alarms,
                deliverer,
                interval_seconds=settings.alarm_poll_seconds,
                retry_delay_seconds=settings.alarm_retry_seconds,
            ),
            name="alarm-dispatcher",
        ),
        asyncio.create_task(
            run_day_ticker(state.tracker, interval_seconds=settings.tick_seconds),
            name="day-ticker",
        ),
    ]

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except (NotImplementedError, RuntimeError):
            # Windows event loops have no signal handlers.
            pass

    detach = ConsolePresenter(state.tracker).attach()
    try:
        if console is not None:
            console_task = asyncio.create_task(run_console_loop(state, console), name="console")
            stop_task = asyncio.create_task(stop.wait(), name="stop")
            _done, pending = await asyncio.wait({console_task, stop_task}, return_when=asyncio.FIRST_COMPLETED)
            for t in pending:
                t.cancel()
        else:
            logger.info("Console disabled. Running reminders only. Press Ctrl+C to stop.")
            await stop.wait()
    finally:
        detach()
        await _shutdown(state, deliverer, tasks)


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    log_file = setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s (log file: %s)...", settings.app_name, log_file)

    try:
        asyncio.run(_run(settings))
    except KeyboardInterrupt:
        logger.info("Interrupted.")
    logger.info("Bye.")


if __name__ == "__main__":
    main()
