from __future__ import annotations

import io
from datetime import date, datetime

import pandas as pd
import pytest

from market_ops.attendance.model import AttendanceReportRow
from market_ops.core.enums import AttendanceStatus
from market_ops.core.exceptions import ValidationError
from market_ops.reports.export import REPORT_COLUMNS, report_csv_bytes, report_excel_bytes
from market_ops.reports.service import ReportService


class FakeAttendanceRepo:
    def __init__(self, rows):
        self._rows = rows
        self.last_args = None

    def get_report_rows(self, *, start_date: date, end_date: date, user_id=None, market_id=None):
        self.last_args = {
            "start_date": start_date,
            "end_date": end_date,
            "user_id": user_id,
            "market_id": market_id,
        }
        return self._rows


def _row(user_id, name, day, punch_in, punch_out, status, *, is_late=False):
    return AttendanceReportRow(
        user_id=user_id,
        full_name=name,
        username=name.lower(),
        market_name="Aundh Market",
        attendance_date=day,
        punch_in_time=punch_in,
        punch_out_time=punch_out,
        status=status,
        is_late=is_late,
    )


ROWS = [
    _row(1, "Ravi", date(2026, 3, 2), datetime(2026, 3, 2, 6, 0), datetime(2026, 3, 2, 14, 30), AttendanceStatus.FULL_DAY),
    _row(1, "Ravi", date(2026, 3, 3), datetime(2026, 3, 3, 7, 0), None, AttendanceStatus.LATE, is_late=True),
    _row(2, "Śrī", date(2026, 3, 2), datetime(2026, 3, 2, 6, 10), datetime(2026, 3, 2, 16, 10), AttendanceStatus.FULL_DAY),
]


def test_report_rows_and_summary():
    report = ReportService(FakeAttendanceRepo(ROWS)).build_attendance_report(start=date(2026, 3, 1), end=date(2026, 3, 31))

    assert report.rows[0]["worked_hours"] == "08:30"
    assert report.rows[1]["punch_out"] == "-"
    assert report.rows[1]["is_late"] == "yes"
    assert report.rows[1]["worked_hours"] == "00:00"
    assert [s["full_name"] for s in report.summary] == ["Śrī", "Ravi"]
    assert report.summary[1] == {
        "user_id": 1,
        "full_name": "Ravi",
        "username": "ravi",
        "days": 2,
        "late_days": 1,
        "total_hours": "08:30",
    }


def test_report_forwards_filters():
    repo = FakeAttendanceRepo([])

    ReportService(repo).build_attendance_report(start=date(2026, 3, 1), end=date(2026, 3, 7), user_id=5, market_id=2)

    assert repo.last_args["user_id"] == 5
    assert repo.last_args["market_id"] == 2


def test_report_rejects_reversed_range():
    with pytest.raises(ValidationError):
        ReportService(FakeAttendanceRepo([])).build_attendance_report(start=date(2026, 3, 7), end=date(2026, 3, 1))


def test_csv_has_bom_and_header():
    report = ReportService(FakeAttendanceRepo(ROWS)).build_attendance_report(start=date(2026, 3, 1), end=date(2026, 3, 31))

    data = report_csv_bytes(report)

    assert data.startswith(b"\xef\xbb\xbf")
    lines = data.decode("utf-8-sig").splitlines()
    assert lines[0] == ",".join(REPORT_COLUMNS)
    assert "Śrī" in lines[3]


def test_excel_has_both_sheets():
    report = ReportService(FakeAttendanceRepo(ROWS)).build_attendance_report(start=date(2026, 3, 1), end=date(2026, 3, 31))

    sheets = pd.read_excel(io.BytesIO(report_excel_bytes(report)), sheet_name=None)

    assert set(sheets) == {"Attendance", "Summary"}
    assert list(sheets["Attendance"].columns)[:3] == ["Date", "Employee ID", "Employee"]
    assert len(sheets["Summary"]) == 2
