# src/vita_streak/connectors/matrix_client.py

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from nio import AsyncClient, AsyncClientConfig, JoinedRoomsResponse, LoginResponse, RoomSendResponse

logger = logging.getLogger(__name__)


def _session_path(store_dir: Path) -> Path:
    return store_dir / "session.json"


def _safe_mkdir(path: Path) -> None:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.warning("Failed to create directory %s: %r", path, e)


def _load_json(path: Path) -> dict[str, Any]:
    raw = path.read_text("utf-8")
    val = json.loads(raw)
    if isinstance(val, dict):
        return val
    raise ValueError("Expected JSON object")


def _atomic_write_json(path: Path, data: dict[str, Any]) -> None:
    tmp = path.with_suffix(".tmp")
    tmp.write_text(json.dumps(data, ensure_ascii=False), "utf-8")
    os.replace(tmp, path)
    try:
        os.chmod(path, 0o600)
    except OSError:
        # Not critical on Windows or restricted FS.
        pass


async def create_matrix_client(settings) -> AsyncClient | None:
    """
    Create a Matrix AsyncClient used to deliver reminders.

    session.json keeps the access token/device id across restarts so the
    password is only needed once. It holds credentials: keep it under the
    gitignored data dir.
    """
    homeserver = (getattr(settings, "matrix_homeserver", "") or "").strip()
    user_id = (getattr(settings, "matrix_user_id", "") or "").strip()
    password = (getattr(settings, "matrix_password", "") or "").strip()
    store_dir = Path(getattr(settings, "matrix_store_path", Path(".local/vita/matrix_store")))

    if not homeserver or not user_id:
        logger.error("Matrix is not configured: set VITA_MATRIX_HOMESERVER and VITA_MATRIX_USER_ID")
        return None

    _safe_mkdir(store_dir)
    session_file = _session_path(store_dir)

    client = AsyncClient(
        homeserver,
        user_id,
        config=AsyncClientConfig(encryption_enabled=False, store_sync_tokens=False),
    )

    # ---- Session restore ----
    if session_file.exists():
        try:
            data = _load_json(session_file)

            access_token = data.get("access_token")
            sess_user_id = data.get("user_id")
            device_id = data.get("device_id")

            if not access_token or not sess_user_id or not device_id:
                raise ValueError("session.json is missing required fields")

            client.access_token = str(access_token)
            client.user_id = str(sess_user_id)
            client.device_id = str(device_id)
            logger.info("Matrix session restored for %s", client.user_id)
            return client
        except (OSError, ValueError) as e:
            logger.warning("Failed to restore Matrix session.json, will try password login: %r", e)

    # ---- Password login bootstrap ----
    if not password:
        logger.error(
            "Matrix session.json not found and password is not set. "
            "Set VITA_MATRIX_PASSWORD once to bootstrap a session."
        )
        await client.close()
        return None

    device_name = f"{getattr(settings, 'app_name', 'Vita Streak')} (Python)"
    logger.info("Logging in to Matrix to bootstrap a new session (device_name=%r)...", device_name)

    resp = await client.login(password=password, device_name=device_name)

    if not isinstance(resp, LoginResponse):
        logger.error("Matrix login failed: %r", resp)
        await client.close()
        return None

    session_data = {
        "access_token": resp.access_token,
        "user_id": resp.user_id,
        "device_id": resp.device_id,
    }

    try:
        _atomic_write_json(session_file, session_data)
        logger.info("Matrix session saved to %s (user=%s)", session_file, resp.user_id)
    except OSError as e:
        # The session still works for this run; next launch logs in again.
        logger.warning("Failed to write Matrix session.json (%s): %r", session_file, e)

    return client


class MatrixDeliverer:
    """
    AlarmDeliverer that posts reminders to a Matrix room.

    Room choice: first configured room, otherwise the first joined room.
    Raises on send failure so the dispatcher postpones and retries.
    """

    def __init__(self, client: AsyncClient, *, rooms: list[str] | None = None) -> None:
        self._client = client
        self._rooms = [r.strip() for r in (rooms or []) if str(r).strip()]

    async def _pick_room(self) -> str | None:
        if self._rooms:
            return self._rooms[0]

        resp = await self._client.joined_rooms()
        if isinstance(resp, JoinedRoomsResponse) and resp.rooms:
            return resp.rooms[0]
        logger.warning("No joined Matrix rooms: %r", resp)
        return None

    async def deliver(self, *, title: str, body: str) -> None:
        room_id = await self._pick_room()
        if not room_id:
            raise RuntimeError("no Matrix room to deliver the reminder to")

        resp = await self._client.room_send(
            room_id=room_id,
            message_type="m.room.message",
            content={"msgtype": "m.text", "body": f"{title}: {body}"},
            ignore_unverified_devices=True,
        )
        if not isinstance(resp, RoomSendResponse):
            raise RuntimeError(f"Matrix send failed: {resp!r}")
        logger.info("Reminder sent to Matrix room %s", room_id)

    async def close(self) -> None:
        await self._client.close()
