from __future__ import annotations

import logging
from typing import Optional

from ..core.exceptions import ValidationError
from .repository import ChangeEventRepository

logger = logging.getLogger(__name__)

# Tables whose changes invalidate each dashboard widget.
WIDGET_TABLES: dict[str, tuple[str, ...]] = {
    "attendance": ("sessions", "attendance_records"),
    "live_markets": ("sessions", "media"),
    "task_progress": ("sessions", "attendance_records", "media", "stall_confirmations", "collections"),
    "media": ("media",),
    "stalls": ("stall_confirmations",),
    "leaves": ("employee_leaves",),
    "stats": ("sessions", "attendance_records", "media", "stall_confirmations", "employee_leaves"),
    "markets": ("market_schedule",),
}
ALL_TABLES = tuple(sorted({t for tables in WIDGET_TABLES.values() for t in tables}))


class RealtimeService:
    """Cursor-based change feed over the trigger-maintained `change_events` table.

    Clients keep the returned cursor and poll with it; a widget re-fetches its
    data only when `changed` is true.
    """

    def __init__(self, events: ChangeEventRepository):
        self._events = events

    def poll(self, *, since: Optional[int] = None, widget: Optional[str] = None) -> dict:
        if widget and widget not in WIDGET_TABLES:
            raise ValidationError(f"Unknown widget: {widget}")
        tables = WIDGET_TABLES[widget] if widget else ALL_TABLES

        cursor = self._events.latest_event_id()
        if since is None:
            return {"cursor": cursor, "changed": False, "tables": []}
        if since < 0:
            raise ValidationError("since must not be negative")

        changed = list(self._events.changed_tables_since(since=since, tables=tables)) if cursor > since else []
        return {"cursor": cursor, "changed": bool(changed), "tables": changed}

    def prune(self, *, days: int = 1) -> int:
        deleted = self._events.delete_older_than(days=max(int(days), 1))
        logger.info("pruned %d change events older than %d day(s)", deleted, days)
        return deleted
