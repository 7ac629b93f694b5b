# src/vita_streak/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- No secrets required at import time.
- Every consumer also accepts an injected settings object (tests use SimpleNamespace).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List

from dotenv import load_dotenv

ENV_PREFIX = "VITA"

load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default)
    parts = [p.strip() for p in raw.replace(",", " ").split() if p.strip()]
    return parts


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


def _clamp(value: int, lo: int, hi: int) -> int:
    return max(lo, min(hi, value))


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    store_db_path: Path
    alarms_db_path: Path

    # ---- Daily reminder ----
    reminders_enabled: bool
    reminder_hour: int
    reminder_minute: int
    reminder_title: str
    reminder_body: str

    # ---- Loops ----
    tick_seconds: float
    alarm_poll_seconds: float
    alarm_retry_seconds: float

    # ---- Connector flags ----
    console_enabled: bool
    matrix_enabled: bool

    # ---- Matrix (reminder delivery) ----
    matrix_homeserver: str
    matrix_user_id: str
    matrix_password: str
    matrix_rooms: List[str]
    matrix_store_path: Path

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "Vita Streak") or "Vita Streak"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/vita"))
        store_db_path = _env_path(_k("STORE_DB_PATH"), data_dir / "store.sqlite3")
        alarms_db_path = _env_path(_k("ALARMS_DB_PATH"), data_dir / "alarms.sqlite3")

        reminders_enabled = _env_bool(_k("REMINDERS_ENABLED"), True)
        reminder_hour = _clamp(_env_int(_k("REMINDER_HOUR"), 9), 0, 23)
        reminder_minute = _clamp(_env_int(_k("REMINDER_MINUTE"), 0), 0, 59)
        reminder_title = _env(_k("REMINDER_TITLE"), "Vita Streak")
        reminder_body = _env(
            _k("REMINDER_BODY"),
            "Quick win: take your vitamins and keep the streak alive!",
        )

        tick_seconds = max(1.0, _env_float(_k("TICK_SECONDS"), 60.0))
        alarm_poll_seconds = max(0.5, _env_float(_k("ALARM_POLL_SECONDS"), 15.0))
        alarm_retry_seconds = max(1.0, _env_float(_k("ALARM_RETRY_SECONDS"), 60.0))

        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)
        matrix_enabled = _env_bool(_k("MATRIX_ENABLED"), False)

        matrix_homeserver = _env(_k("MATRIX_HOMESERVER"), "").strip()
        matrix_user_id = _env(_k("MATRIX_USER_ID"), "").strip()
        matrix_password = _env(_k("MATRIX_PASSWORD"), "").strip()
        matrix_rooms = _env_list(_k("MATRIX_ROOMS"), [])
        matrix_store_path = _env_path(_k("MATRIX_STORE_PATH"), data_dir / "matrix_store")

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            store_db_path=store_db_path,
            alarms_db_path=alarms_db_path,
            reminders_enabled=reminders_enabled,
            reminder_hour=reminder_hour,
            reminder_minute=reminder_minute,
            reminder_title=reminder_title,
            reminder_body=reminder_body,
            tick_seconds=tick_seconds,
            alarm_poll_seconds=alarm_poll_seconds,
            alarm_retry_seconds=alarm_retry_seconds,
            console_enabled=console_enabled,
            matrix_enabled=matrix_enabled,
            matrix_homeserver=matrix_homeserver,
            matrix_user_id=matrix_user_id,
            matrix_password=matrix_password,
            matrix_rooms=matrix_rooms,
            matrix_store_path=matrix_store_path,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
