from __future__ import annotations

from datetime import datetime

from ...core.enums import AttendanceStatus
from .base import AttendanceStrategy, StatusDecision


class OnTimeStrategy(AttendanceStrategy):
    """Punch-in within the grace period."""

    def decide_punch_in(self, *, punch_in: datetime) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.PRESENT)

    def decide_punch_out(self, *, worked_minutes: int, current: AttendanceStatus) -> StatusDecision:
        return StatusDecision(status=current)
