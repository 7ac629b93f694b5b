# src/vita_streak/storage/item_store.py

"""
Tracked item persistence.

The whole collection lives under one key as a JSON array of records:
    {"id": "...", "name": "...", "completedDays": ["YYYY-MM-DD", ...]}

There is no schema versioning: absent or unreadable data means
"seed the defaults".
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from typing import Any

from ..core.dates import try_parse_day_key
from ..core.models import TrackedItem
from ..core.ports import KeyValueStore

logger = logging.getLogger(__name__)

ITEMS_KEY = "vitamins:v1"
REMINDER_FLAG_KEY = "notif:scheduled:v1"
REMINDER_FLAG_SET = "1"

DEFAULT_ITEMS: tuple[tuple[str, str], ...] = (
    ("multi", "Multivitamin"),
    ("d3", "Vitamin D3"),
    ("omega3", "Omega-3"),
)


class StorageReadError(ValueError):
    """Stored collection is unparsable or holds no usable records."""


def default_items() -> list[TrackedItem]:
    return [TrackedItem(id=item_id, name=name) for item_id, name in DEFAULT_ITEMS]


def serialize_items(items: Iterable[TrackedItem]) -> str:
    records = [
        {
            "id": item.id,
            "name": item.name,
            "completedDays": sorted(item.completed_days),
        }
        for item in items
    ]
    return json.dumps(records, ensure_ascii=False)


def _record_to_item(rec: Any) -> TrackedItem | None:
    if not isinstance(rec, dict):
        return None

    item_id = rec.get("id")
    if not isinstance(item_id, str) or not item_id.strip():
        return None

    name = rec.get("name")
    if not isinstance(name, str):
        name = item_id

    # "takenDates" is the field name older data files used.
    raw_days = rec.get("completedDays", rec.get("takenDates", []))
    if not isinstance(raw_days, list):
        raw_days = []

    days: set[str] = set()
    for raw in raw_days:
        key = try_parse_day_key(raw)
        if key is None:
            logger.warning("Dropping invalid day %r for item %s", raw, item_id)
            continue
        days.add(key)

    return TrackedItem(id=item_id.strip(), name=name, completed_days=days)


def deserialize_items(raw: str) -> list[TrackedItem]:
    """Parse a stored collection; raises StorageReadError if it holds records but none are usable."""
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise StorageReadError(f"stored items are not JSON: {e}") from e

    if not isinstance(data, list):
        raise StorageReadError("stored items are not a list")

    out: list[TrackedItem] = []
    seen: set[str] = set()
    for rec in data:
        item = _record_to_item(rec)
        if item is None:
            logger.warning("Skipping malformed item record: %r", rec)
            continue
        if item.id in seen:
            logger.warning("Skipping duplicate item id=%s", item.id)
            continue
        seen.add(item.id)
        out.append(item)

    # A stored empty list is a valid (empty) collection; only garbage falls back.
    if data and not out:
        raise StorageReadError("stored items contain no valid records")
    return out


class TrackedItemStore:
    """Load/save/seed the item collection through a KeyValueStore."""

    def __init__(self, kv: KeyValueStore, *, key: str = ITEMS_KEY) -> None:
        self._kv = kv
        self._key = key

    def load(self) -> tuple[list[TrackedItem], bool]:
        """
        Return (items, seeded).

        seeded=True means the defaults were used and the caller should persist them.
        Never raises: every read problem falls back to the defaults.
        """
        try:
            raw = self._kv.get(self._key)
        except Exception:
            logger.warning("Failed to read %s; using defaults", self._key, exc_info=True)
            return default_items(), True

        if raw is None:
            logger.info("No stored items under %s; seeding defaults", self._key)
            return default_items(), True

        try:
            items = deserialize_items(raw)
        except StorageReadError as e:
            logger.warning("Unreadable items under %s (%s); using defaults", self._key, e)
            return default_items(), True

        logger.info("Loaded %d items from %s", len(items), self._key)
        return items, False

    def save(self, items: Iterable[TrackedItem]) -> None:
        """Serialize and write the entire collection. Errors propagate to the caller."""
        self.save_raw(serialize_items(items))

    def save_raw(self, payload: str) -> None:
        self._kv.set(self._key, payload)
