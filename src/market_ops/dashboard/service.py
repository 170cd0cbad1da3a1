from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime
from typing import Optional

from ..core.constants import DEFAULT_FEED_LIMIT
from ..core.enums import MediaType, SessionStatus, TaskState, TaskType
from ..core.exceptions import NotFoundError, ValidationError
from ..leaves.service import LeaveService
from ..markets.service import MarketService
from ..media.storage import MediaStorage
from .repository import MARKET_RECORD_KINDS, DashboardRepository

# Task columns backed by an uploaded media type.
MEDIA_TASKS = {
    TaskType.OUTSIDE_RATES: MediaType.OUTSIDE_RATES,
    TaskType.SELFIE_GPS: MediaType.SELFIE_GPS,
    TaskType.RATE_BOARD: MediaType.RATE_BOARD,
    TaskType.MARKET_VIDEO: MediaType.MARKET_VIDEO,
    TaskType.CLEANING_VIDEO: MediaType.CLEANING_VIDEO,
}


def _fmt_time(value: Optional[datetime]) -> Optional[str]:
    return value.strftime("%H:%M") if value else None


def _fmt_datetime(value: Optional[datetime]) -> Optional[str]:
    return value.strftime("%Y-%m-%d %H:%M:%S") if value else None


def punch_task_state(row: dict) -> TaskState:
    if row.get("punch_out_time"):
        return TaskState.SUBMITTED
    if row.get("punch_in_time"):
        return TaskState.IN_PROGRESS
    return TaskState.PENDING


class DashboardService:
    """Admin dashboard widgets.

    Each widget reads one local date. Rows are plain dicts so the JSON
    endpoints and the server-rendered page share one shape.
    """

    def __init__(
        self,
        dashboard: DashboardRepository,
        markets: MarketService,
        leaves: LeaveService,
        storage: MediaStorage,
    ):
        self._dashboard = dashboard
        self._markets = markets
        self._leaves = leaves
        self._storage = storage

    def attendance_today(self, day: date) -> list[dict]:
        rows = sorted(
            self._dashboard.attendance_rows(day),
            key=lambda r: r.get("punch_in_time") or datetime.min,
            reverse=True,
        )
        out = []
        for r in rows:
            out.append(
                {
                    "attendance_id": r["attendance_id"],
                    "user_id": r["user_id"],
                    "full_name": r["full_name"],
                    "market_name": r.get("market_name") or "-",
                    "punch_in": _fmt_time(r.get("punch_in_time")),
                    "punch_out": _fmt_time(r.get("punch_out_time")),
                    "status": r["status"],
                    "is_late": bool(r.get("is_late")),
                    "label": "Punched Out" if r.get("punch_out_time") else "Present",
                }
            )
        return out

    def live_markets(self, day: date) -> list[dict]:
        rows = self._dashboard.live_market_rows(day)
        return [
            {
                "market_id": r["market_id"],
                "name": r["name"],
                "city": r.get("city") or "",
                "active_sessions": int(r["active_sessions"]),
                "last_upload_time": _fmt_time(r.get("last_upload_time")),
            }
            for r in sorted(rows, key=lambda r: r["name"])
        ]

    def task_progress(self, day: date, *, market_id: Optional[int] = None) -> list[dict]:
        media_by_session: dict[int, set[str]] = defaultdict(set)
        for r in self._dashboard.media_counts(day):
            if int(r["total"]) > 0:
                media_by_session[int(r["session_id"])].add(r["media_type"])

        stalls_by_session: dict[int, int] = defaultdict(int)
        for r in self._dashboard.stall_rows(day):
            stalls_by_session[int(r["session_id"])] += 1

        collected = set(self._dashboard.collection_market_ids(day))

        out = []
        for s in self._dashboard.session_rows(day, market_id):
            session_id = int(s["session_id"])
            uploaded = media_by_session.get(session_id, set())

            tasks = {TaskType.PUNCH.value: punch_task_state(s).value}
            tasks[TaskType.STALL_CONFIRM.value] = (
                TaskState.SUBMITTED if stalls_by_session.get(session_id) else TaskState.PENDING
            ).value
            for task, media_type in MEDIA_TASKS.items():
                tasks[task.value] = (TaskState.SUBMITTED if media_type.value in uploaded else TaskState.PENDING).value
            tasks[TaskType.COLLECTION.value] = (
                TaskState.SUBMITTED if s.get("market_id") in collected else TaskState.PENDING
            ).value

            done = sum(1 for v in tasks.values() if v == TaskState.SUBMITTED.value)
            out.append(
                {
                    "session_id": session_id,
                    "user_id": s["user_id"],
                    "full_name": s["full_name"],
                    "market_id": s.get("market_id"),
                    "market_name": s.get("market_name") or "-",
                    "status": s["status"],
                    "tasks": tasks,
                    "completed": done,
                    "total": len(tasks),
                }
            )
        out.sort(key=lambda r: (r["market_name"], r["full_name"]))
        return out

    def stall_confirmations_summary(self, day: date) -> list[dict]:
        by_market: dict = {}
        for r in self._dashboard.stall_rows(day):
            key = r.get("market_id")
            entry = by_market.get(key)
            if entry is None:
                entry = {
                    "market_id": key,
                    "market_name": r.get("market_name") or "-",
                    "stall_count": 0,
                    "employees": set(),
                }
                by_market[key] = entry
            entry["stall_count"] += 1
            entry["employees"].add(r["full_name"])

        out = []
        for entry in by_market.values():
            out.append({**entry, "employees": sorted(entry["employees"])})
        out.sort(key=lambda r: r["stall_count"], reverse=True)
        return out

    def media_feed(self, day: date, *, limit: int = DEFAULT_FEED_LIMIT) -> list[dict]:
        if limit < 1:
            raise ValidationError("limit must be positive")
        return [self._media_row(r) for r in self._dashboard.media_feed_rows(day, limit)]

    def _media_row(self, r: dict) -> dict:
        return {
            "media_id": r["media_id"],
            "media_type": r["media_type"],
            "file_name": r["file_name"],
            "content_type": r["content_type"],
            "full_name": r.get("full_name"),
            "market_name": r.get("market_name") or "-",
            "captured_at": _fmt_datetime(r.get("captured_at")),
            "is_late": bool(r.get("is_late")),
            "token": self._storage.sign(r["file_path"]),
        }

    def pending_leaves(self) -> list[dict]:
        return [
            {
                "leave_id": lv["leave_id"],
                "user_id": lv["user_id"],
                "full_name": lv["full_name"],
                "leave_date": lv["leave_date"].strftime("%Y-%m-%d"),
                "reason": lv["reason"],
            }
            for lv in self._leaves.list_pending()
        ]

    def stats(self, day: date) -> dict:
        sessions = self._dashboard.session_rows(day)
        media = self._dashboard.media_counts(day)
        return {
            "date": day.strftime("%Y-%m-%d"),
            "sessions": len(sessions),
            "active_sessions": sum(1 for s in sessions if s["status"] == SessionStatus.ACTIVE.value),
            "punched_in": sum(1 for s in sessions if s.get("punch_in_time")),
            "live_markets": len({s["market_id"] for s in sessions if s.get("market_id") is not None}),
            "stalls": len(self._dashboard.stall_rows(day)),
            "media": sum(int(r["total"]) for r in media),
            "late_media": sum(int(r.get("late") or 0) for r in media),
            "pending_leaves": len(self._leaves.list_pending()),
        }

    def market_detail(self, market_id: int, day: date) -> dict:
        market = self._markets.get(int(market_id))
        if not market:
            raise NotFoundError("Market does not exist")

        records = {
            kind: list(self._dashboard.market_records(kind, market_id=market.market_id, day=day))
            for kind in MARKET_RECORD_KINDS
        }
        records["media"] = [self._media_row(r) for r in records["media"]]
        return {
            "market": market,
            "date": day.strftime("%Y-%m-%d"),
            "organisers": self.task_progress(day, market_id=market.market_id),
            **records,
        }
