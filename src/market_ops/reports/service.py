from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..attendance.repository import AttendanceRepository
from ..attendance.service import worked_minutes
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class ReportData:
    rows: list[dict]
    summary: list[dict]


def _hhmm(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


class ReportService:
    def __init__(self, attendance: AttendanceRepository):
        self._attendance = attendance

    def build_attendance_report(
        self,
        *,
        start: date,
        end: date,
        user_id: Optional[int] = None,
        market_id: Optional[int] = None,
    ) -> ReportData:
        if start > end:
            raise ValidationError("Start date must be on or before end date")

        query_rows = self._attendance.get_report_rows(
            start_date=start, end_date=end, user_id=user_id, market_id=market_id
        )

        summary_map: dict[int, dict] = {}
        out_rows: list[dict] = []

        for r in query_rows:
            minutes = worked_minutes(r.punch_in_time, r.punch_out_time)

            out_rows.append(
                {
                    "date": r.attendance_date.strftime("%Y-%m-%d"),
                    "user_id": r.user_id,
                    "full_name": r.full_name,
                    "username": r.username,
                    "market_name": r.market_name or "-",
                    "punch_in": r.punch_in_time.strftime("%H:%M") if r.punch_in_time else "-",
                    "punch_out": r.punch_out_time.strftime("%H:%M") if r.punch_out_time else "-",
                    "status": r.status.value,
                    "is_late": "yes" if r.is_late else "no",
                    "worked_hours": _hhmm(minutes),
                }
            )

            s = summary_map.get(r.user_id)
            if not s:
                s = {
                    "user_id": r.user_id,
                    "full_name": r.full_name,
                    "username": r.username,
                    "days": 0,
                    "late_days": 0,
                    "total_minutes": 0,
                }
                summary_map[r.user_id] = s
            s["days"] += 1
            s["late_days"] += 1 if r.is_late else 0
            s["total_minutes"] += minutes

        summary = []
        for s in sorted(summary_map.values(), key=lambda x: x["total_minutes"], reverse=True):
            summary.append(
                {
                    "user_id": s["user_id"],
                    "full_name": s["full_name"],
                    "username": s["username"],
                    "days": s["days"],
                    "late_days": s["late_days"],
                    "total_hours": _hhmm(int(s["total_minutes"])),
                }
            )

        return ReportData(rows=out_rows, summary=summary)
