from datetime import datetime, time

from hostel_attendance.attendance.factory import DailyStatusStrategyFactory
from hostel_attendance.attendance.strategies.absent_strategy import AbsentStrategy
from hostel_attendance.attendance.strategies.late_strategy import LateStrategy
from hostel_attendance.attendance.strategies.present_strategy import PresentStrategy
from hostel_attendance.core.enums import AttendanceStatus


def test_factory_present_within_threshold():
    factory = DailyStatusStrategyFactory()

    strategy = factory.for_day(
        first_in=datetime(2024, 3, 4, 9, 14, 59),
        expected_check_in=time(9, 0),
        late_threshold_minutes=15,
    )

    assert isinstance(strategy, PresentStrategy)


def test_factory_late_after_threshold():
    factory = DailyStatusStrategyFactory()
    first_in = datetime(2024, 3, 4, 9, 15, 1)

    strategy = factory.for_day(first_in=first_in, expected_check_in=time(9, 0), late_threshold_minutes=15)
    decision = strategy.decide(first_in=first_in, expected_check_in=time(9, 0), late_threshold_minutes=15)

    assert isinstance(strategy, LateStrategy)
    assert decision.status == AttendanceStatus.LATE
    assert decision.note == "Checked in at 09:15, expected 09:00"


def test_factory_absent_without_in_and_present_without_expectation():
    factory = DailyStatusStrategyFactory()

    assert isinstance(factory.for_day(first_in=None, expected_check_in=time(9, 0), late_threshold_minutes=0), AbsentStrategy)
    assert isinstance(
        factory.for_day(first_in=datetime(2024, 3, 4, 13, 0), expected_check_in=None, late_threshold_minutes=0),
        PresentStrategy,
    )
