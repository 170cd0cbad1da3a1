from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time, timedelta

from .strategies.base import AttendanceStrategy
from .strategies.full_day_strategy import FullDayStrategy
from .strategies.half_day_strategy import HalfDayStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.on_time_strategy import OnTimeStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose appropriate strategy based on rules.

    All datetimes are local wall-clock times in the business time zone.
    """

    def for_punch_in(self, *, punch_in: datetime, attendance_start: time, grace_minutes: int) -> AttendanceStrategy:
        start = datetime.combine(punch_in.date(), attendance_start)
        if punch_in <= start + timedelta(minutes=grace_minutes):
            return OnTimeStrategy()
        return LateStrategy()

    def for_punch_out(self, *, worked_minutes: int, full_day_minutes: int) -> AttendanceStrategy:
        if worked_minutes >= full_day_minutes:
            return FullDayStrategy()
        return HalfDayStrategy()
