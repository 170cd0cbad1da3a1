from __future__ import annotations

from datetime import date, datetime

import pytest

from fakes import InMemoryAudit, InMemoryLeaves, InMemoryMarkets

from market_ops.audit.service import AuditService
from market_ops.core.enums import TaskState
from market_ops.core.exceptions import NotFoundError, ValidationError
from market_ops.dashboard.service import DashboardService
from market_ops.leaves.service import LeaveService
from market_ops.markets.model import Market
from market_ops.markets.service import MarketService
from market_ops.media.storage import MediaStorage

DAY = date(2026, 3, 2)


class FakeDashboardRepo:
    def __init__(self):
        self.sessions = [
            {
                "session_id": 1,
                "user_id": 7,
                "full_name": "Ravi",
                "market_id": 1,
                "market_name": "Aundh",
                "status": "active",
                "punch_in_time": datetime(2026, 3, 2, 6, 5),
                "punch_out_time": None,
            },
            {
                "session_id": 2,
                "user_id": 8,
                "full_name": "Asha",
                "market_id": 1,
                "market_name": "Aundh",
                "status": "completed",
                "punch_in_time": datetime(2026, 3, 2, 6, 30),
                "punch_out_time": datetime(2026, 3, 2, 14, 0),
            },
            {
                "session_id": 3,
                "user_id": 9,
                "full_name": "Bina",
                "market_id": 2,
                "market_name": "Baner",
                "status": "active",
                "punch_in_time": None,
                "punch_out_time": None,
            },
        ]
        self.media = [
            {"session_id": 1, "media_type": "outside_rates", "total": 2, "late": 1},
            {"session_id": 1, "media_type": "selfie_gps", "total": 1, "late": 0},
            {"session_id": 2, "media_type": "market_video", "total": 1, "late": 0},
        ]
        self.stalls = [
            {"session_id": 1, "market_id": 1, "market_name": "Aundh", "full_name": "Ravi"},
            {"session_id": 1, "market_id": 1, "market_name": "Aundh", "full_name": "Ravi"},
            {"session_id": 2, "market_id": 1, "market_name": "Aundh", "full_name": "Asha"},
            {"session_id": 3, "market_id": 2, "market_name": "Baner", "full_name": "Bina"},
        ]

    def attendance_rows(self, day):
        return [
            {
                "attendance_id": 1,
                "user_id": 7,
                "full_name": "Ravi",
                "market_name": "Aundh",
                "punch_in_time": datetime(2026, 3, 2, 6, 5),
                "punch_out_time": None,
                "status": "present",
                "is_late": 0,
            },
            {
                "attendance_id": 2,
                "user_id": 8,
                "full_name": "Asha",
                "market_name": None,
                "punch_in_time": datetime(2026, 3, 2, 6, 30),
                "punch_out_time": datetime(2026, 3, 2, 14, 0),
                "status": "full_day",
                "is_late": 1,
            },
        ]

    def live_market_rows(self, day):
        return [
            {"market_id": 2, "name": "Baner", "city": None, "active_sessions": 1, "last_upload_time": None},
            {"market_id": 1, "name": "Aundh", "city": "Pune", "active_sessions": 2, "last_upload_time": datetime(2026, 3, 2, 9, 15)},
        ]

    def session_rows(self, day, market_id=None):
        return [s for s in self.sessions if market_id is None or s["market_id"] == market_id]

    def media_counts(self, day):
        return self.media

    def stall_rows(self, day):
        return self.stalls

    def collection_market_ids(self, day):
        return [2]

    def media_feed_rows(self, day, limit):
        return [
            {
                "media_id": 11,
                "media_type": "outside_rates",
                "file_name": "rates.jpg",
                "content_type": "image/jpeg",
                "file_path": "outside_rates/7/1-rates.jpg",
                "full_name": "Ravi",
                "market_name": "Aundh",
                "captured_at": datetime(2026, 3, 2, 10, 30),
                "is_late": 1,
            }
        ][:limit]

    def market_records(self, kind, *, market_id, day):
        if kind == "media":
            return self.media_feed_rows(day, 10)
        return [{"kind": kind, "market_id": market_id}]


def _service(tmp_path):
    audit = AuditService(InMemoryAudit())
    leaves = LeaveService(InMemoryLeaves(), audit)
    markets = MarketService(InMemoryMarkets([Market(1, "Aundh", "Aundh")]), audit)
    storage = MediaStorage(tmp_path, secret_key="s3cret")
    return DashboardService(FakeDashboardRepo(), markets, leaves, storage), leaves, storage


def test_attendance_today_newest_first(tmp_path):
    svc, _, _ = _service(tmp_path)

    rows = svc.attendance_today(DAY)

    assert [r["full_name"] for r in rows] == ["Asha", "Ravi"]
    assert rows[0]["label"] == "Punched Out"
    assert rows[0]["market_name"] == "-"
    assert rows[0]["is_late"] is True
    assert rows[1]["punch_in"] == "06:05"
    assert rows[1]["label"] == "Present"


def test_live_markets_sorted_by_name(tmp_path):
    svc, _, _ = _service(tmp_path)

    rows = svc.live_markets(DAY)

    assert [r["name"] for r in rows] == ["Aundh", "Baner"]
    assert rows[0]["last_upload_time"] == "09:15"
    assert rows[1]["city"] == ""


def test_task_progress_states(tmp_path):
    svc, _, _ = _service(tmp_path)

    rows = {r["full_name"]: r for r in svc.task_progress(DAY)}

    ravi = rows["Ravi"]["tasks"]
    assert ravi["punch"] == TaskState.IN_PROGRESS.value
    assert ravi["stall_confirm"] == TaskState.SUBMITTED.value
    assert ravi["outside_rates"] == TaskState.SUBMITTED.value
    assert ravi["selfie_gps"] == TaskState.SUBMITTED.value
    assert ravi["market_video"] == TaskState.PENDING.value
    assert ravi["collection"] == TaskState.PENDING.value
    assert rows["Ravi"]["completed"] == 3
    assert rows["Ravi"]["total"] == 8
    assert rows["Asha"]["tasks"]["punch"] == TaskState.SUBMITTED.value
    assert rows["Bina"]["tasks"]["punch"] == TaskState.PENDING.value
    assert rows["Bina"]["tasks"]["collection"] == TaskState.SUBMITTED.value


def test_task_progress_sorted_and_filtered(tmp_path):
    svc, _, _ = _service(tmp_path)

    assert [r["full_name"] for r in svc.task_progress(DAY)] == ["Asha", "Ravi", "Bina"]
    assert [r["full_name"] for r in svc.task_progress(DAY, market_id=2)] == ["Bina"]


def test_stall_summary_per_market(tmp_path):
    svc, _, _ = _service(tmp_path)

    rows = svc.stall_confirmations_summary(DAY)

    assert rows[0] == {"market_id": 1, "market_name": "Aundh", "stall_count": 3, "employees": ["Asha", "Ravi"]}
    assert rows[1]["stall_count"] == 1


def test_media_feed_signs_files(tmp_path):
    svc, _, storage = _service(tmp_path)

    rows = svc.media_feed(DAY, limit=5)

    assert rows[0]["captured_at"] == "2026-03-02 10:30:00"
    assert rows[0]["is_late"] is True
    assert "file_path" not in rows[0]
    assert storage.resolve_token(rows[0]["token"]) == "outside_rates/7/1-rates.jpg"
    with pytest.raises(ValidationError):
        svc.media_feed(DAY, limit=0)


def test_stats(tmp_path):
    svc, leaves, _ = _service(tmp_path)
    leaves.create_leave(user_id=7, leave_date=date(2026, 3, 5), reason="Wedding", today=DAY)

    stats = svc.stats(DAY)

    assert stats == {
        "date": "2026-03-02",
        "sessions": 3,
        "active_sessions": 2,
        "punched_in": 2,
        "live_markets": 2,
        "stalls": 4,
        "media": 4,
        "late_media": 1,
        "pending_leaves": 1,
    }
    assert svc.pending_leaves()[0]["leave_date"] == "2026-03-05"


def test_market_detail(tmp_path):
    svc, _, _ = _service(tmp_path)

    detail = svc.market_detail(1, DAY)

    assert detail["market"].name == "Aundh"
    assert [r["full_name"] for r in detail["organisers"]] == ["Asha", "Ravi"]
    assert detail["offers"] == [{"kind": "offers", "market_id": 1}]
    assert detail["collections"] == [{"kind": "collections", "market_id": 1}]
    assert detail["inspections"] == [{"kind": "inspections", "market_id": 1}]
    assert detail["allocations"] == [{"kind": "allocations", "market_id": 1}]
    assert "token" in detail["media"][0]
    with pytest.raises(NotFoundError):
        svc.market_detail(99, DAY)
