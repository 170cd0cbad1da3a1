"""In-memory repositories shared by the service tests."""

from __future__ import annotations

import io
from dataclasses import replace
from datetime import datetime
from typing import Optional

from PIL import Image

from market_ops.attendance.model import AttendanceRecord
from market_ops.attendance.service import AttendanceService
from market_ops.audit.service import AuditService
from market_ops.core.enums import RequestStatus, SessionStatus
from market_ops.core.exceptions import ConflictError
from market_ops.leaves.model import LeaveRequest
from market_ops.markets.model import Market
from market_ops.media.model import Media, UploadedFile
from market_ops.media.service import MediaService
from market_ops.media.storage import MediaStorage
from market_ops.sessions.model import Session, SessionActivity
from market_ops.sessions.punch_service import PunchService
from market_ops.sessions.service import SessionService
from market_ops.settings.model import AppSettings
from market_ops.settings.service import SettingsService
from market_ops.users.model import User


def png_bytes() -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (2, 2), "white").save(buf, format="PNG")
    return buf.getvalue()


def png_file(name: str = "selfie.png") -> UploadedFile:
    return UploadedFile(filename=name, content_type="image/png", data=png_bytes())


class InMemoryAudit:
    def __init__(self):
        self.entries: list[dict] = []

    def create(self, *, actor_id, action, entity, entity_id, details):
        self.entries.append(
            {"actor_id": actor_id, "action": action, "entity": entity, "entity_id": entity_id, "details": details}
        )
        return len(self.entries)

    def list_recent(self, *, limit, entity=None):
        rows = [e for e in self.entries if entity is None or e["entity"] == entity]
        return list(reversed(rows))[:limit]


class InMemorySettings:
    def __init__(self, settings: Optional[AppSettings] = None):
        self.settings = settings

    def get(self):
        return self.settings

    def save(self, settings):
        self.settings = settings


class InMemoryMarkets:
    def __init__(self, markets=()):
        self._markets: dict[int, Market] = {m.market_id: m for m in markets}
        self._schedule: dict[int, list[int]] = {}
        self._next_id = max(self._markets, default=0) + 1

    def get_by_id(self, market_id):
        return self._markets.get(int(market_id))

    def list_all(self, *, active_only=False):
        return [m for m in self._markets.values() if m.is_active or not active_only]

    def list_for_weekday(self, day_of_week):
        return [
            m
            for m in self._markets.values()
            if m.day_of_week == day_of_week or day_of_week in self._schedule.get(m.market_id, [])
        ]

    def create(self, *, name, location, city, day_of_week):
        market_id = self._next_id
        self._next_id += 1
        self._markets[market_id] = Market(market_id, name, location, city, day_of_week)
        return market_id

    def update(self, *, market_id, name, location, city, day_of_week):
        m = self._markets.get(int(market_id))
        if not m:
            return False
        self._markets[m.market_id] = replace(m, name=name, location=location, city=city, day_of_week=day_of_week)
        return True

    def set_active(self, market_id, *, is_active):
        m = self._markets.get(int(market_id))
        if not m:
            return False
        self._markets[m.market_id] = replace(m, is_active=is_active)
        return True

    def delete(self, market_id):
        return self._markets.pop(int(market_id), None) is not None

    def get_schedule(self, market_id):
        return self._schedule.get(int(market_id), [])

    def set_schedule(self, market_id, days):
        self._schedule[int(market_id)] = list(days)


class InMemorySessions:
    def __init__(self):
        self._sessions: dict[int, Session] = {}
        self._next_id = 1
        self.activity: dict[int, SessionActivity] = {}
        self.comments: list[dict] = []

    def get_by_id(self, session_id):
        return self._sessions.get(int(session_id))

    def get_for_user_and_date(self, user_id, session_date):
        for s in self._sessions.values():
            if s.user_id == int(user_id) and s.session_date == session_date:
                return s
        return None

    def create(self, *, user_id, market_id, session_date):
        if self.get_for_user_and_date(user_id, session_date):
            raise ConflictError("You already have a session for today")
        session_id = self._next_id
        self._next_id += 1
        self._sessions[session_id] = Session(session_id, user_id, market_id, session_date, SessionStatus.ACTIVE)
        return session_id

    def set_punch_in(self, *, session_id, punch_in_time):
        s = self._sessions[session_id]
        if s.punch_in_time is not None or s.status != SessionStatus.ACTIVE:
            return False
        self._sessions[session_id] = replace(s, punch_in_time=punch_in_time)
        return True

    def clear_punch_in(self, *, session_id):
        s = self._sessions[session_id]
        if s.punch_out_time is None:
            self._sessions[session_id] = replace(s, punch_in_time=None)

    def set_punch_out(self, *, session_id, punch_out_time):
        s = self._sessions[session_id]
        if s.punch_in_time is None or s.punch_out_time is not None:
            return False
        if s.status not in (SessionStatus.ACTIVE, SessionStatus.COMPLETED):
            return False
        self._sessions[session_id] = replace(s, punch_out_time=punch_out_time, status=SessionStatus.COMPLETED)
        return True

    def clear_punch_out(self, *, session_id):
        s = self._sessions[session_id]
        if s.status == SessionStatus.COMPLETED:
            self._sessions[session_id] = replace(s, punch_out_time=None, status=SessionStatus.ACTIVE)

    def set_status(self, *, session_id, status, finalized_at=None):
        s = self._sessions[session_id]
        self._sessions[session_id] = replace(s, status=status, finalized_at=finalized_at or s.finalized_at)
        return True

    def get_activity(self, session_id):
        return self.activity.get(session_id, SessionActivity())

    def list_history(self, *, user_id, limit):
        rows = [s for s in self._sessions.values() if s.user_id == int(user_id)]
        rows.sort(key=lambda s: s.session_date, reverse=True)
        return [{"session_id": s.session_id, "session_date": s.session_date, "status": s.status.value} for s in rows][:limit]

    def list_for_date(self, *, session_date, market_id=None):
        return [
            {"session_id": s.session_id, "user_id": s.user_id, "market_id": s.market_id, "status": s.status.value}
            for s in self._sessions.values()
            if s.session_date == session_date and (market_id is None or s.market_id == market_id)
        ]

    def add_comment(self, *, session_id, user_id, body):
        self.comments.append({"session_id": session_id, "user_id": user_id, "body": body})
        return len(self.comments)

    def list_comments(self, session_id):
        return [c for c in self.comments if c["session_id"] == session_id]


class InMemoryAttendance:
    def __init__(self, records=()):
        self._records: dict[int, AttendanceRecord] = {r.attendance_id: r for r in records}
        self._next_id = max(self._records, default=0) + 1
        self.report_rows: list = []

    def get_for_user_and_date(self, user_id, attendance_date):
        for r in self._records.values():
            if r.user_id == int(user_id) and r.attendance_date == attendance_date:
                return r
        return None

    def get_recent_for_user(self, user_id, limit):
        rows = [r for r in self._records.values() if r.user_id == int(user_id)]
        return sorted(rows, key=lambda r: r.attendance_date, reverse=True)[:limit]

    def list_for_user_between(self, user_id, start_date, end_date):
        return [
            r
            for r in self._records.values()
            if r.user_id == int(user_id) and start_date <= r.attendance_date <= end_date
        ]

    def create_punch_in(self, *, user_id, session_id, attendance_date, punch_in_time, lat, lng, selfie_path, status, is_late):
        attendance_id = self._next_id
        self._next_id += 1
        self._records[attendance_id] = AttendanceRecord(
            attendance_id=attendance_id,
            user_id=user_id,
            session_id=session_id,
            attendance_date=attendance_date,
            punch_in_time=punch_in_time,
            punch_out_time=None,
            status=status,
            is_late=is_late,
            punch_in_lat=lat,
            punch_in_lng=lng,
            selfie_path=selfie_path,
        )
        return attendance_id

    def update_punch_out(self, *, attendance_id, punch_out_time, lat, lng, status):
        r = self._records[attendance_id]
        self._records[attendance_id] = replace(
            r, punch_out_time=punch_out_time, punch_out_lat=lat, punch_out_lng=lng, status=status
        )
        return True

    def get_report_rows(self, *, start_date, end_date, user_id=None, market_id=None):
        return [
            r
            for r in self.report_rows
            if start_date <= r.attendance_date <= end_date and (user_id is None or r.user_id == user_id)
        ]


class InMemoryMedia:
    def __init__(self):
        self._media: dict[int, Media] = {}
        self._next_id = 1

    def create(self, **fields):
        media_id = self._next_id
        self._next_id += 1
        self._media[media_id] = Media(media_id=media_id, **fields)
        return media_id

    def get_by_id(self, media_id):
        return self._media.get(int(media_id))

    def list_for_session(self, session_id):
        return [m for m in self._media.values() if m.session_id == session_id]

    def delete(self, media_id):
        return self._media.pop(int(media_id), None) is not None


class InMemoryUsers:
    def __init__(self, users=()):
        self._users: dict[int, User] = {u.user_id: u for u in users}
        self._next_id = max(self._users, default=0) + 1

    def get_by_id(self, user_id):
        return self._users.get(int(user_id))

    def get_by_username(self, username):
        for u in self._users.values():
            if u.username == username:
                return u
        return None

    def create_user(self, *, full_name, username, password_hash, email, phone):
        user_id = self._next_id
        self._next_id += 1
        self._users[user_id] = User(user_id, full_name, username, password_hash, email=email, phone=phone)
        return user_id

    def set_roles(self, user_id, roles):
        self._users[user_id] = replace(self._users[user_id], roles=tuple(roles))

    def set_active(self, user_id, *, is_active):
        u = self._users.get(int(user_id))
        if not u:
            return False
        self._users[u.user_id] = replace(u, is_active=is_active)
        return True

    def list_admin_view(self):
        return [{"user_id": u.user_id, "username": u.username} for u in self._users.values()]


class InMemoryLeaves:
    def __init__(self):
        self._leaves: dict[int, LeaveRequest] = {}
        self._next_id = 1

    def create(self, *, user_id, leave_date, reason):
        leave_id = self._next_id
        self._next_id += 1
        self._leaves[leave_id] = LeaveRequest(
            leave_id=leave_id,
            user_id=user_id,
            leave_date=leave_date,
            reason=reason,
            status=RequestStatus.PENDING,
            created_at=datetime(2026, 3, 2, 9, 0, 0),
        )
        return leave_id

    def get(self, leave_id):
        return self._leaves.get(int(leave_id))

    def find_pending(self, *, user_id, leave_date):
        for lv in self._leaves.values():
            if lv.user_id == user_id and lv.leave_date == leave_date and lv.status == RequestStatus.PENDING:
                return lv
        return None

    def list_requests(self, *, status=None, user_id=None, limit=200):
        return [
            {
                "leave_id": lv.leave_id,
                "user_id": lv.user_id,
                "full_name": f"User {lv.user_id}",
                "leave_date": lv.leave_date,
                "reason": lv.reason,
                "status": lv.status.value,
            }
            for lv in self._leaves.values()
            if (status is None or lv.status == status) and (user_id is None or lv.user_id == user_id)
        ][:limit]

    def decide(self, *, leave_id, status, decided_by, admin_note=None):
        lv = self._leaves.get(int(leave_id))
        if not lv or lv.status != RequestStatus.PENDING:
            return False
        self._leaves[lv.leave_id] = replace(
            lv,
            status=status,
            decided_by=decided_by,
            decided_at=datetime(2026, 3, 2, 10, 0, 0),
            admin_note=admin_note,
        )
        return True


def make_session_service(markets=(), *, settings: Optional[AppSettings] = None):
    """SessionService over fresh in-memory repositories; returns (service, sessions repo, audit repo)."""
    audit_repo = InMemoryAudit()
    audit = AuditService(audit_repo)
    session_repo = InMemorySessions()
    svc = SessionService(
        session_repo,
        InMemoryMarkets(markets),
        SettingsService(InMemorySettings(settings), audit),
        audit,
    )
    return svc, session_repo, audit_repo


def make_punch_service(tmp_path, markets=(), *, settings: Optional[AppSettings] = None):
    """PunchService with its collaborators exposed by name."""
    sessions, session_repo, _ = make_session_service(markets, settings=settings)
    settings_svc = SettingsService(InMemorySettings(settings), AuditService(InMemoryAudit()))
    storage = MediaStorage(tmp_path, secret_key="test-secret")
    media_repo = InMemoryMedia()
    attendance_repo = InMemoryAttendance()
    media = MediaService(media_repo, sessions, settings_svc, storage)
    attendance = AttendanceService(attendance_repo, settings_svc)
    punch = PunchService(sessions, media, attendance)
    return {
        "punch": punch,
        "sessions": sessions,
        "session_repo": session_repo,
        "media": media,
        "media_repo": media_repo,
        "attendance": attendance,
        "attendance_repo": attendance_repo,
        "storage": storage,
    }
