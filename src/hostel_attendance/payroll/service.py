from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Dict, Optional

from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import iter_dates
from ..core.enums import AttendanceStatus, EventSource
from ..core.exceptions import ValidationError
from ..reconciliation.service import ReconciliationQueue
from .calculator.base import WorkedTimeCalculator
from .calculator.standard_calculator import StandardWorkedTimeCalculator


@dataclass(frozen=True)
class DayCount:
    person_id: int
    start: date
    end: date
    present: int
    absent: int
    late: int
    leave: int
    unmarked: int

    @property
    def total_days(self) -> int:
        return (self.end - self.start).days + 1

    def to_dict(self) -> dict:
        return {
            "personId": self.person_id,
            "from": self.start.isoformat(),
            "to": self.end.isoformat(),
            "present": self.present,
            "absent": self.absent,
            "late": self.late,
            "leave": self.leave,
            "unmarked": self.unmarked,
            "totalDays": self.total_days,
        }


@dataclass(frozen=True)
class ReportData:
    rows: list[dict]
    summary: list[dict]


class AttendanceDayCountService:
    """Attendance-derived day counts for salary processing.

    Refuses to count while any event in the range is unreconciled.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        *,
        calculator: Optional[WorkedTimeCalculator] = None,
    ):
        self._attendance = attendance
        self._calculator = calculator or StandardWorkedTimeCalculator()

    def count_days(self, person_id: int, start: date, end: date) -> DayCount:
        if start > end:
            raise ValidationError("'from' must not be after 'to'")

        events = self._attendance.list_for_person_in_range(person_id, start, end)
        ReconciliationQueue.require_reconciled(events)

        verdicts: Dict[date, AttendanceStatus] = {}
        for e in events:
            if e.status is not None and e.source == EventSource.AUTO:
                verdicts.setdefault(e.work_date, e.status)
        # A status set on a manual, bulk or biometric event outranks the sweep.
        for e in events:
            if e.status is not None and e.source != EventSource.AUTO:
                verdicts[e.work_date] = e.status

        # Employee records carry the late status derived from check-in times.
        for record in self._attendance.list_daily_records(start=start, end=end, person_id=person_id):
            if record.status == AttendanceStatus.LATE and verdicts.get(record.work_date) in (
                None,
                AttendanceStatus.PRESENT,
            ):
                verdicts[record.work_date] = AttendanceStatus.LATE

        counts = {s: 0 for s in AttendanceStatus}
        unmarked = 0
        for day in iter_dates(start, end):
            status = verdicts.get(day)
            if status is None or status == AttendanceStatus.UNKNOWN:
                unmarked += 1
            else:
                counts[status] += 1

        return DayCount(
            person_id=person_id,
            start=start,
            end=end,
            present=counts[AttendanceStatus.PRESENT] + counts[AttendanceStatus.LATE],
            absent=counts[AttendanceStatus.ABSENT],
            late=counts[AttendanceStatus.LATE],
            leave=counts[AttendanceStatus.ON_LEAVE],
            unmarked=unmarked,
        )

    def build_hours_report(
        self,
        *,
        start: date,
        end: date,
        person_id: Optional[int] = None,
    ) -> ReportData:
        records = self._attendance.list_daily_records(start=start, end=end, person_id=person_id)

        summary_map: dict[int, int] = {}
        out_rows: list[dict] = []

        for r in records:
            minutes = self._calculator.worked_minutes(r)
            out_rows.append(
                {
                    "person_id": r.person_id,
                    "work_date": r.work_date.strftime("%Y-%m-%d"),
                    "check_in": r.check_in_time.strftime("%H:%M") if r.check_in_time else "-",
                    "check_out": r.check_out_time.strftime("%H:%M") if r.check_out_time else "-",
                    "worked_hours": f"{minutes // 60:02d}:{minutes % 60:02d}",
                    "status": r.status.value,
                }
            )
            summary_map[r.person_id] = summary_map.get(r.person_id, 0) + minutes

        summary = [
            {
                "person_id": pid,
                "total_minutes": total,
                "total_hours": f"{total // 60:02d}:{total % 60:02d}",
            }
            for pid, total in summary_map.items()
        ]
        summary.sort(key=lambda x: x["total_minutes"], reverse=True)
        return ReportData(rows=out_rows, summary=summary)
