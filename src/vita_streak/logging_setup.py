# src/vita_streak/logging_setup.py

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

_APP_PREFIX = "vita_streak."

# Third-party loggers that chatter at INFO on every sync/request.
_THIRD_PARTY_LEVELS = {
    "nio": logging.INFO,
    "aiohttp": logging.WARNING,
    "asyncio": logging.WARNING,
}


class _ConsoleNoiseFilter(logging.Filter):
    """
    The console shares the terminal with the checklist prompt, so only our own
    records get through below ERROR. The Matrix transport is held to WARNING.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if not record.name.startswith(_APP_PREFIX):
            return record.levelno >= logging.ERROR
        if record.name.startswith(_APP_PREFIX + "connectors.matrix"):
            return record.levelno >= logging.WARNING
        return True


def setup_logging(
    *,
    log_dir: str | Path = ".local/vita",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
    max_bytes: int = 1_000_000,
    backups: int = 3,
) -> Path:
    """
    Console (filtered, stderr) plus a rotating vita.log with everything.

    Call once, before the first record is emitted. Returns the log file path.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "vita.log"

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s %(levelname)-7s [%(threadName)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(fmt)
    console.addFilter(_ConsoleNoiseFilter())
    root.addHandler(console)

    to_file = RotatingFileHandler(log_file, maxBytes=max_bytes, backupCount=backups, encoding="utf-8")
    to_file.setLevel(file_level)
    to_file.setFormatter(fmt)
    root.addHandler(to_file)

    for name, level in _THIRD_PARTY_LEVELS.items():
        logging.getLogger(name).setLevel(max(level, console_level))

    logging.captureWarnings(True)
    return log_file
