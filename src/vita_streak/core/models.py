# src/vita_streak/core/models.py

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from .dates import DayKey


@dataclass(slots=True)
class TrackedItem:
    id: str
    name: str
    completed_days: set[DayKey] = field(default_factory=set)

    def is_done_on(self, day: DayKey) -> bool:
        return day in self.completed_days

    def copy(self) -> TrackedItem:
        return TrackedItem(id=self.id, name=self.name, completed_days=set(self.completed_days))


@dataclass(slots=True, frozen=True)
class CompletionResult:
    """Outcome of one "mark complete for today" action."""

    item: TrackedItem
    day: DayKey
    streak_before: int
    streak_after: int
    milestone_reached: bool

    @property
    def changed(self) -> bool:
        return self.streak_after != self.streak_before


class ScheduleResult(StrEnum):
    ALREADY_SCHEDULED = "already_scheduled"
    SCHEDULED = "scheduled"
    PERMISSION_DENIED = "permission_denied"
    SKIPPED = "skipped"


class PermissionStatus(StrEnum):
    """
    Notification permission as remembered by the delivery subsystem.

    UNDETERMINED means the user was never asked.
    """

    GRANTED = "granted"
    DENIED = "denied"
    UNDETERMINED = "undetermined"

    @classmethod
    def from_db(cls, raw: str | None) -> PermissionStatus:
        if not raw:
            return cls.UNDETERMINED
        try:
            return cls(raw)
        except ValueError:
            return cls.UNDETERMINED


class TrackerEventKind(StrEnum):
    COMPLETED = "completed"
    DAY_CHANGED = "day_changed"


@dataclass(slots=True, frozen=True)
class TrackerEvent:
    kind: TrackerEventKind
    today: DayKey
    item_id: str | None = None
    result: CompletionResult | None = None
