# src/vita_streak/notifications/alarm_store.py

from __future__ import annotations

import contextlib
import logging
import sqlite3
import time
from dataclasses import dataclass
from datetime import datetime, time as dtime, timedelta
from pathlib import Path

from ..core.models import PermissionStatus

logger = logging.getLogger(__name__)

_PERMISSION_KEY = "permission"


@dataclass(frozen=True, slots=True)
class Alarm:
    id: int
    title: str
    body: str
    hour: int
    minute: int
    created_at: float
    next_fire_at: float
    last_fired_at: float | None = None


def next_fire_time(now: datetime, hour: int, minute: int) -> datetime:
    """
    Next local wall-clock occurrence of hour:minute strictly after `now`.

    Works on calendar dates (not now + 86400s), so DST days still fire at the
    same wall-clock time. Returns a naive local datetime.
    """
    if now.tzinfo is not None:
        now = now.astimezone().replace(tzinfo=None)

    at = dtime(hour=int(hour), minute=int(minute))
    candidate = datetime.combine(now.date(), at)
    if candidate <= now:
        candidate = datetime.combine(now.date() + timedelta(days=1), at)
    return candidate


class AlarmStore:
    """
    SQLite registry of recurring local alarms, plus the remembered
    notification permission.

    The schema is intentionally simple and migration-safe:
    - create tables if missing
    - use PRAGMA table_info to detect missing columns
    - add columns with ALTER TABLE only when needed

    Thread-safety:
    - each method opens its own SQLite connection
    """

    def __init__(self, db_path: str | Path = "alarms.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        logger.info("AlarmStore ready db=%s total=%s", self._db_path, self.count_alarms())

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS alarms (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    title TEXT NOT NULL,
                    body TEXT NOT NULL,
                    hour INTEGER NOT NULL,
                    minute INTEGER NOT NULL,
                    created_at REAL NOT NULL,
                    next_fire_at REAL NOT NULL,
                    last_fired_at REAL
                )
                """
            )
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS meta (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
                """
            )

            cur.execute("PRAGMA table_info(alarms)")
            cols = {row["name"] for row in cur.fetchall()}
            if "last_fired_at" not in cols:
                cur.execute("ALTER TABLE alarms ADD COLUMN last_fired_at REAL")
                logger.info("AlarmStore migration: added column last_fired_at")

            cur.execute("CREATE INDEX IF NOT EXISTS idx_alarms_next ON alarms(next_fire_at)")
            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _row_to_alarm(row: sqlite3.Row) -> Alarm:
        return Alarm(
            id=int(row["id"]),
            title=str(row["title"] or ""),
            body=str(row["body"] or ""),
            hour=int(row["hour"]),
            minute=int(row["minute"]),
            created_at=float(row["created_at"] or 0.0),
            next_fire_at=float(row["next_fire_at"] or 0.0),
            last_fired_at=float(row["last_fired_at"]) if row["last_fired_at"] is not None else None,
        )

    # ---- alarms ----

    def count_alarms(self) -> int:
        conn = self._get_conn()
        try:
            (n,) = conn.execute("SELECT COUNT(*) FROM alarms").fetchone()
            return int(n)
        finally:
            conn.close()

    def add_alarm(
        self,
        *,
        title: str,
        body: str,
        hour: int,
        minute: int,
        next_fire_at: float,
    ) -> int:
        if not 0 <= int(hour) <= 23 or not 0 <= int(minute) <= 59:
            raise ValueError(f"invalid alarm time {hour}:{minute}")

        conn = self._get_conn()
        try:
            cur = conn.execute(
                """
                INSERT INTO alarms(title, body, hour, minute, created_at, next_fire_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (title, body, int(hour), int(minute), time.time(), float(next_fire_at)),
            )
            conn.commit()
            rowid = cur.lastrowid
            if rowid is None:
                raise RuntimeError("SQLite did not return lastrowid for alarms insert")
            logger.debug("Alarm added id=%s at %02d:%02d next=%s", rowid, hour, minute, next_fire_at)
            return int(rowid)
        finally:
            conn.close()

    def list_alarms(self) -> list[Alarm]:
        conn = self._get_conn()
        try:
            rows = conn.execute("SELECT * FROM alarms ORDER BY id ASC").fetchall()
            return [self._row_to_alarm(r) for r in rows]
        finally:
            conn.close()

    def list_due_alarms(self, *, now_ts: float, limit: int = 32) -> list[Alarm]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                """
                SELECT *
                FROM alarms
                WHERE next_fire_at <= ?
                ORDER BY next_fire_at ASC, id ASC
                    LIMIT ?
                """,
                (float(now_ts), int(limit)),
            ).fetchall()
            return [self._row_to_alarm(r) for r in rows]
        finally:
            conn.close()

    def mark_fired(self, alarm_id: int, *, fired_at: float, next_fire_at: float) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                "UPDATE alarms SET last_fired_at = ?, next_fire_at = ? WHERE id = ?",
                (float(fired_at), float(next_fire_at), int(alarm_id)),
            )
            conn.commit()
        finally:
            conn.close()

    def postpone(self, alarm_id: int, *, next_fire_at: float) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                "UPDATE alarms SET next_fire_at = ? WHERE id = ?",
                (float(next_fire_at), int(alarm_id)),
            )
            conn.commit()
        finally:
            conn.close()

    # ---- permission ----

    def get_permission(self) -> PermissionStatus:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT value FROM meta WHERE key = ?", (_PERMISSION_KEY,)).fetchone()
            return PermissionStatus.from_db(row["value"] if row is not None else None)
        finally:
            conn.close()

    def set_permission(self, status: PermissionStatus) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO meta(key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value
                """,
                (_PERMISSION_KEY, status.value),
            )
            conn.commit()
        finally:
            conn.close()
