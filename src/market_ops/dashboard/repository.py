from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

# Per-market record kinds shown on the market detail page.
MARKET_RECORD_KINDS = (
    "stalls",
    "inspections",
    "allocations",
    "media",
    "offers",
    "commodities",
    "feedback",
    "collections",
)


class DashboardRepository(Protocol):
    """Read-only queries behind the admin dashboard widgets (one local date each)."""

    def attendance_rows(self, day: date) -> Sequence[dict]:
        raise NotImplementedError

    def live_market_rows(self, day: date) -> Sequence[dict]:
        """market_id, name, city, active_sessions, last_upload_time."""
        raise NotImplementedError

    def session_rows(self, day: date, market_id: Optional[int] = None) -> Sequence[dict]:
        raise NotImplementedError

    def media_counts(self, day: date) -> Sequence[dict]:
        """session_id, media_type, total, late."""
        raise NotImplementedError

    def stall_rows(self, day: date) -> Sequence[dict]:
        """One row per stall: session_id, market_id, market_name, full_name."""
        raise NotImplementedError

    def collection_market_ids(self, day: date) -> Sequence[int]:
        raise NotImplementedError

    def media_feed_rows(self, day: date, limit: int) -> Sequence[dict]:
        raise NotImplementedError

    def market_records(self, kind: str, *, market_id: int, day: date) -> Sequence[dict]:
        raise NotImplementedError
