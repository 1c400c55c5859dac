from datetime import date, datetime

from hostel_attendance.attendance.model import DailyRecord
from hostel_attendance.core.enums import AttendanceStatus
from hostel_attendance.payroll.calculator.standard_calculator import StandardWorkedTimeCalculator


def _record(check_in, check_out):
    return DailyRecord(
        person_id=1,
        work_date=date(2024, 3, 4),
        entries=(1, 2),
        check_in_time=check_in,
        check_out_time=check_out,
        total_hours=0.0,
        status=AttendanceStatus.PRESENT,
    )


def test_worked_minutes_between_first_in_and_last_out():
    calc = StandardWorkedTimeCalculator()
    assert calc.worked_minutes(_record(datetime(2024, 3, 4, 8, 0), datetime(2024, 3, 4, 17, 30))) == 570


def test_missing_check_out_counts_nothing():
    calc = StandardWorkedTimeCalculator()
    assert calc.worked_minutes(_record(datetime(2024, 3, 4, 8, 0), None)) == 0
