from __future__ import annotations

from datetime import datetime

from ...core.enums import AttendanceStatus
from .base import AttendanceStrategy, StatusDecision


class LateStrategy(AttendanceStrategy):
    """Late punch-in."""

    def decide_punch_in(self, *, punch_in: datetime) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.LATE, is_late=True, note=f"Punched in at {punch_in:%H:%M}")

    def decide_punch_out(self, *, worked_minutes: int, current: AttendanceStatus) -> StatusDecision:
        return StatusDecision(status=current, is_late=True)
