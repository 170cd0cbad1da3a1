from datetime import datetime, time

from market_ops.attendance.factory import AttendanceStrategyFactory
from market_ops.attendance.strategies.full_day_strategy import FullDayStrategy
from market_ops.attendance.strategies.half_day_strategy import HalfDayStrategy
from market_ops.attendance.strategies.late_strategy import LateStrategy
from market_ops.attendance.strategies.on_time_strategy import OnTimeStrategy
from market_ops.core.enums import AttendanceStatus


def test_factory_punch_in_on_time_within_grace():
    factory = AttendanceStrategyFactory()
    strategy = factory.for_punch_in(punch_in=datetime(2026, 3, 2, 6, 15, 0), attendance_start=time(6, 0), grace_minutes=15)

    assert isinstance(strategy, OnTimeStrategy)
    assert strategy.decide_punch_in(punch_in=datetime(2026, 3, 2, 6, 15)).status == AttendanceStatus.PRESENT


def test_factory_punch_in_late_after_grace():
    factory = AttendanceStrategyFactory()
    punch_in = datetime(2026, 3, 2, 6, 15, 1)
    strategy = factory.for_punch_in(punch_in=punch_in, attendance_start=time(6, 0), grace_minutes=15)

    assert isinstance(strategy, LateStrategy)
    decision = strategy.decide_punch_in(punch_in=punch_in)
    assert decision.status == AttendanceStatus.LATE
    assert decision.is_late is True


def test_factory_punch_out_by_worked_minutes():
    factory = AttendanceStrategyFactory()

    assert isinstance(factory.for_punch_out(worked_minutes=480, full_day_minutes=480), FullDayStrategy)
    assert isinstance(factory.for_punch_out(worked_minutes=479, full_day_minutes=480), HalfDayStrategy)


def test_half_day_note_shows_worked_time():
    decision = HalfDayStrategy().decide_punch_out(worked_minutes=185, current=AttendanceStatus.LATE)

    assert decision.status == AttendanceStatus.HALF_DAY
    assert decision.note == "Worked 03:05"
