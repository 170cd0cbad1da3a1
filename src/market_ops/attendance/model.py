from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one attendance row per user per local date."""

    attendance_id: int
    user_id: int
    session_id: Optional[int]
    attendance_date: date
    punch_in_time: Optional[datetime]
    punch_out_time: Optional[datetime]
    status: AttendanceStatus
    is_late: bool = False
    punch_in_lat: Optional[float] = None
    punch_in_lng: Optional[float] = None
    punch_out_lat: Optional[float] = None
    punch_out_lng: Optional[float] = None
    selfie_path: Optional[str] = None


@dataclass(frozen=True)
class AttendanceReportRow:
    """Read-model for reports/exports (joined with user and market)."""

    user_id: int
    full_name: str
    username: str
    market_name: Optional[str]
    attendance_date: date
    punch_in_time: Optional[datetime]
    punch_out_time: Optional[datetime]
    status: AttendanceStatus
    is_late: bool = False
