# src/vita_streak/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
This keeps storage/notification transports swappable and makes testing easier.
"""

from typing import Awaitable, Protocol

from .models import PermissionStatus


class KeyValueStore(Protocol):
    """Durable key -> string storage. Absent keys read as None."""

    def get(self, key: str) -> str | None: ...
    def set(self, key: str, value: str) -> None: ...


class NotificationService(Protocol):
    """
    Notification delivery subsystem.

    Once scheduled, a recurring notification fires on the device clock; the
    caller keeps no handle and never cancels it.
    """

    def check_permission(self) -> Awaitable[PermissionStatus]: ...
    def request_permission(self) -> Awaitable[PermissionStatus]: ...

    def schedule_recurring(
            self,
            *,
            title: str,
            body: str,
            hour: int,
            minute: int,
    ) -> Awaitable[int]: ...


class AlarmDeliverer(Protocol):
    """
    Transport-side port: how a fired alarm reaches the user.

    The console prints it; the Matrix connector posts it to a room.
    """

    def deliver(self, *, title: str, body: str) -> Awaitable[None]: ...
