from __future__ import annotations

from datetime import date, datetime

import pytest

from fakes import InMemoryAttendance, InMemoryAudit, InMemorySettings

from market_ops.attendance.model import AttendanceRecord
from market_ops.attendance.service import AttendanceService, worked_minutes
from market_ops.audit.service import AuditService
from market_ops.core.enums import AttendanceStatus
from market_ops.core.exceptions import ValidationError
from market_ops.settings.model import AppSettings
from market_ops.settings.service import SettingsService


def _service(records=(), settings=None):
    repo = InMemoryAttendance(records)
    settings_svc = SettingsService(InMemorySettings(settings), AuditService(InMemoryAudit()))
    return AttendanceService(repo, settings_svc), repo


def _record(attendance_id, day, status, *, is_late=False, punch_in=None, punch_out=None):
    return AttendanceRecord(
        attendance_id=attendance_id,
        user_id=7,
        session_id=attendance_id,
        attendance_date=day,
        punch_in_time=punch_in,
        punch_out_time=punch_out,
        status=status,
        is_late=is_late,
    )


def test_worked_minutes_ignores_missing_or_reversed_times():
    start = datetime(2026, 3, 2, 6, 0)

    assert worked_minutes(start, datetime(2026, 3, 2, 14, 30)) == 510
    assert worked_minutes(start, None) == 0
    assert worked_minutes(start, datetime(2026, 3, 2, 5, 0)) == 0


def test_record_punch_in_twice_is_rejected():
    svc, _ = _service()
    kwargs = dict(
        user_id=7,
        session_id=1,
        attendance_date=date(2026, 3, 2),
        punch_in_time=datetime(2026, 3, 2, 6, 0),
        lat=18.5,
        lng=73.8,
        selfie_path="selfie_gps/7/1-a.png",
    )
    svc.record_punch_in(**kwargs)

    with pytest.raises(ValidationError):
        svc.record_punch_in(**kwargs)


def test_grace_period_comes_from_settings():
    svc, _ = _service(settings=AppSettings(grace_minutes=60))

    decision = svc.record_punch_in(
        user_id=7,
        session_id=1,
        attendance_date=date(2026, 3, 2),
        punch_in_time=datetime(2026, 3, 2, 6, 55),
        lat=None,
        lng=None,
        selfie_path=None,
    )

    assert decision.status == AttendanceStatus.PRESENT


def test_gps_accuracy_limit():
    svc, _ = _service(settings=AppSettings(gps_accuracy_meters=30))

    svc.check_gps_accuracy(None)
    svc.check_gps_accuracy("25.5")
    with pytest.raises(ValidationError):
        svc.check_gps_accuracy("31")
    with pytest.raises(ValidationError):
        svc.check_gps_accuracy("near")


def test_monthly_summary_counts_missing_past_days_as_absent():
    records = [
        _record(1, date(2026, 3, 1), AttendanceStatus.FULL_DAY),
        _record(2, date(2026, 3, 2), AttendanceStatus.HALF_DAY, is_late=True),
        _record(3, date(2026, 3, 4), AttendanceStatus.WEEKLY_OFF),
        _record(4, date(2026, 3, 5), AttendanceStatus.LATE, is_late=True),
    ]
    svc, _ = _service(records)

    summary = svc.monthly_summary(7, today=date(2026, 3, 6))

    assert summary == {
        "month": "2026-03",
        "full_day": 1,
        "half_day": 1,
        "present": 1,
        "late": 2,
        "weekly_off": 1,
        # 3rd only; today is not absent yet
        "absent": 1,
    }


def test_history_ui_rows():
    records = [
        _record(
            1,
            date(2026, 3, 2),
            AttendanceStatus.FULL_DAY,
            punch_in=datetime(2026, 3, 2, 6, 5),
            punch_out=datetime(2026, 3, 2, 14, 35),
        ),
        _record(2, date(2026, 3, 3), AttendanceStatus.LATE, is_late=True, punch_in=datetime(2026, 3, 3, 7, 0)),
    ]
    svc, _ = _service(records)

    rows = svc.get_history_ui(7)

    assert rows[0]["date"] == "2026-03-03"
    assert rows[0]["punch_out"] == "-"
    assert rows[0]["status"] == "Late"
    assert rows[1]["worked"] == "08:30"
    assert rows[1]["css_class"] == "bg-success"
