from __future__ import annotations

from datetime import datetime

from ...core.enums import AttendanceStatus
from .base import AttendanceStrategy, StatusDecision


class HalfDayStrategy(AttendanceStrategy):
    """Punch-out before the full-day threshold."""

    def decide_punch_in(self, *, punch_in: datetime) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.PRESENT)

    def decide_punch_out(self, *, worked_minutes: int, current: AttendanceStatus) -> StatusDecision:
        hours, minutes = divmod(max(worked_minutes, 0), 60)
        return StatusDecision(status=AttendanceStatus.HALF_DAY, note=f"Worked {hours:02d}:{minutes:02d}")
