from __future__ import annotations

import logging
from collections import Counter
from datetime import date, datetime, timedelta
from typing import Optional

from ..common.datetime_utils import month_start
from ..core.constants import DEFAULT_HISTORY_LIMIT, FULL_DAY_MINUTES
from ..core.enums import AttendanceStatus
from ..core.exceptions import ValidationError
from ..settings.service import SettingsService
from .factory import AttendanceStrategyFactory
from .repository import AttendanceRepository
from .strategies.base import StatusDecision

logger = logging.getLogger(__name__)

_LABELS = {
    AttendanceStatus.PRESENT: "Present",
    AttendanceStatus.LATE: "Late",
    AttendanceStatus.FULL_DAY: "Full day",
    AttendanceStatus.HALF_DAY: "Half day",
    AttendanceStatus.ABSENT: "Absent",
    AttendanceStatus.WEEKLY_OFF: "Weekly off",
}

_CSS = {
    AttendanceStatus.PRESENT: "bg-success",
    AttendanceStatus.LATE: "bg-danger",
    AttendanceStatus.FULL_DAY: "bg-success",
    AttendanceStatus.HALF_DAY: "bg-warning text-dark",
    AttendanceStatus.ABSENT: "bg-secondary",
    AttendanceStatus.WEEKLY_OFF: "bg-info text-dark",
}


def worked_minutes(punch_in: Optional[datetime], punch_out: Optional[datetime]) -> int:
    if not punch_in or not punch_out or punch_out <= punch_in:
        return 0
    return int((punch_out - punch_in).total_seconds() // 60)


class AttendanceService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        settings: SettingsService,
        *,
        strategy_factory: AttendanceStrategyFactory | None = None,
        full_day_minutes: int = FULL_DAY_MINUTES,
    ):
        self._attendance = attendance
        self._settings = settings
        self._factory = strategy_factory or AttendanceStrategyFactory()
        self._full_day_minutes = int(full_day_minutes)

    def check_gps_accuracy(self, accuracy) -> None:
        if accuracy in (None, ""):
            return
        try:
            meters = float(accuracy)
        except (TypeError, ValueError):
            raise ValidationError("GPS accuracy must be a number")
        limit = self._settings.get().gps_accuracy_meters
        if limit and meters > limit:
            raise ValidationError(f"GPS accuracy is {meters:.0f} m; move to open sky (limit {limit} m)")

    def record_punch_in(
        self,
        *,
        user_id: int,
        session_id: Optional[int],
        attendance_date: date,
        punch_in_time: datetime,
        lat: Optional[float],
        lng: Optional[float],
        selfie_path: Optional[str],
    ) -> StatusDecision:
        if self._attendance.get_for_user_and_date(int(user_id), attendance_date):
            raise ValidationError("Attendance is already recorded for today")

        settings = self._settings.get()
        strategy = self._factory.for_punch_in(
            punch_in=punch_in_time,
            attendance_start=settings.attendance_start,
            grace_minutes=settings.grace_minutes,
        )
        decision = strategy.decide_punch_in(punch_in=punch_in_time)

        self._attendance.create_punch_in(
            user_id=int(user_id),
            session_id=session_id,
            attendance_date=attendance_date,
            punch_in_time=punch_in_time,
            lat=lat,
            lng=lng,
            selfie_path=selfie_path,
            status=decision.status,
            is_late=decision.is_late,
        )
        return decision

    def record_punch_out(
        self,
        *,
        user_id: int,
        attendance_date: date,
        punch_out_time: datetime,
        lat: Optional[float] = None,
        lng: Optional[float] = None,
    ) -> StatusDecision:
        record = self._attendance.get_for_user_and_date(int(user_id), attendance_date)
        if not record:
            raise ValidationError("You have not punched in today")
        if record.punch_out_time is not None:
            raise ValidationError("You have already punched out today")

        minutes = worked_minutes(record.punch_in_time, punch_out_time)
        strategy = self._factory.for_punch_out(worked_minutes=minutes, full_day_minutes=self._full_day_minutes)
        decision = strategy.decide_punch_out(worked_minutes=minutes, current=record.status)

        self._attendance.update_punch_out(
            attendance_id=record.attendance_id,
            punch_out_time=punch_out_time,
            lat=lat,
            lng=lng,
            status=decision.status,
        )
        return decision

    def get_today_record(self, user_id: int, today: date):
        return self._attendance.get_for_user_and_date(int(user_id), today)

    def get_history_ui(self, user_id: int, *, limit: int = DEFAULT_HISTORY_LIMIT):
        rows = self._attendance.get_recent_for_user(int(user_id), limit)
        return [self._to_ui(r) for r in rows]

    def monthly_summary(self, user_id: int, *, today: date) -> dict:
        """Status counts from the first of the month through today.

        Past days with no record count as absent; today is never absent yet.
        """
        start = month_start(today)
        records = self._attendance.list_for_user_between(int(user_id), start, today)
        counts = Counter(r.status for r in records)
        recorded_days = {r.attendance_date for r in records}

        absent = counts[AttendanceStatus.ABSENT]
        d = start
        while d < today:
            if d not in recorded_days:
                absent += 1
            d += timedelta(days=1)

        return {
            "month": start.strftime("%Y-%m"),
            "full_day": counts[AttendanceStatus.FULL_DAY],
            "half_day": counts[AttendanceStatus.HALF_DAY],
            "present": counts[AttendanceStatus.PRESENT] + counts[AttendanceStatus.LATE],
            "late": sum(1 for r in records if r.is_late),
            "weekly_off": counts[AttendanceStatus.WEEKLY_OFF],
            "absent": absent,
        }

    def _to_ui(self, r) -> dict:
        minutes = worked_minutes(r.punch_in_time, r.punch_out_time)
        return {
            "date": r.attendance_date.strftime("%Y-%m-%d"),
            "punch_in": r.punch_in_time.strftime("%H:%M:%S") if r.punch_in_time else "-",
            "punch_out": r.punch_out_time.strftime("%H:%M:%S") if r.punch_out_time else "-",
            "worked": f"{minutes // 60:02d}:{minutes % 60:02d}" if minutes else "-",
            "status": _LABELS.get(r.status, r.status.value),
            "late": r.is_late,
            "css_class": _CSS.get(r.status, "bg-secondary"),
        }
