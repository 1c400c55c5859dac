from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..common.datetime_utils import parse_hhmm
from ..core.enums import AttendanceStatus, EntryType
from ..settings.model import AttendanceSettings
from .factory import DailyStatusStrategyFactory
from .model import AttendanceEvent, DailyRecord


class DailyRecordBuilder:
    """Derives an employee's DailyRecord from the day's events.

    check-in is the first IN, check-out the last OUT; hours are 0 unless
    both exist.
    """

    def __init__(self, factory: Optional[DailyStatusStrategyFactory] = None):
        self._factory = factory or DailyStatusStrategyFactory()

    def build(
        self,
        *,
        person_id: int,
        work_date: date,
        events: Sequence[AttendanceEvent],
        settings: AttendanceSettings,
    ) -> DailyRecord:
        transitions = sorted((e for e in events if e.is_transition), key=lambda e: (e.timestamp, e.event_id))
        ins = [e.timestamp for e in transitions if e.entry_type == EntryType.IN]
        outs = [e.timestamp for e in transitions if e.entry_type == EntryType.OUT]

        check_in = ins[0] if ins else None
        check_out = outs[-1] if outs else None
        total_hours = 0.0
        if check_in and check_out and check_out > check_in:
            total_hours = round((check_out - check_in).total_seconds() / 3600, 2)

        expected = parse_hhmm(settings.expected_check_in) if settings.expected_check_in else None
        strategy = self._factory.for_day(
            first_in=check_in,
            expected_check_in=expected,
            late_threshold_minutes=settings.late_threshold_minutes,
        )
        decision = strategy.decide(
            first_in=check_in,
            expected_check_in=expected,
            late_threshold_minutes=settings.late_threshold_minutes,
        )

        return DailyRecord(
            person_id=person_id,
            work_date=work_date,
            entries=tuple(e.event_id for e in transitions),
            check_in_time=check_in,
            check_out_time=check_out,
            total_hours=total_hours,
            status=decision.status,
        )

    @staticmethod
    def without_entries(*, person_id: int, work_date: date, status: AttendanceStatus) -> DailyRecord:
        return DailyRecord(
            person_id=person_id,
            work_date=work_date,
            entries=(),
            check_in_time=None,
            check_out_time=None,
            total_hours=0.0,
            status=status,
        )
