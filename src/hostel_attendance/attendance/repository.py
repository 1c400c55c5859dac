from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus, PersonKind
from .model import AttendanceEvent, DailyRecord, NewEvent


class AttendanceRepository(Protocol):
    """Event log plus the derived employee daily records.

    Voided events are never returned by the list/get-last queries.
    """

    def get(self, event_id: int) -> Optional[AttendanceEvent]:
        raise NotImplementedError

    def get_last_transition(self, person_id: int, *, as_of: Optional[date] = None) -> Optional[AttendanceEvent]:
        """Latest non-auto IN/OUT event, optionally limited to work_date <= as_of."""

        raise NotImplementedError

    def list_for_person_and_date(self, person_id: int, work_date: date) -> Sequence[AttendanceEvent]:
        """All events of the day (auto verdicts included), ordered by timestamp."""

        raise NotImplementedError

    def list_for_person_in_range(self, person_id: int, start: date, end: date) -> Sequence[AttendanceEvent]:
        raise NotImplementedError

    def list_for_date(self, work_date: date) -> Sequence[AttendanceEvent]:
        raise NotImplementedError

    def create_event(self, event: NewEvent) -> int:
        raise NotImplementedError

    def void_auto_events_for_leave(self, *, person_id: int, leave_id: int, from_date: date) -> int:
        raise NotImplementedError

    def list_for_reconciliation(
        self,
        *,
        work_date: Optional[date] = None,
        kind: Optional[PersonKind] = None,
        block: Optional[str] = None,
        include_reconciled: bool = False,
        limit: int = 500,
    ) -> Sequence[AttendanceEvent]:
        """Events with reconciled=false or status=unknown, in timestamp order."""

        raise NotImplementedError

    def mark_reconciled(
        self,
        event_id: int,
        *,
        notes: str,
        status: Optional[AttendanceStatus],
        reconciled_by: Optional[str],
        at: datetime,
    ) -> bool:
        """Flip reconciled false -> true. Returns False if it was already true."""

        raise NotImplementedError

    # Employee daily records
    def get_daily_record(self, person_id: int, work_date: date) -> Optional[DailyRecord]:
        raise NotImplementedError

    def upsert_daily_record(self, record: DailyRecord) -> None:
        raise NotImplementedError

    def list_daily_records(
        self,
        *,
        start: date,
        end: date,
        person_id: Optional[int] = None,
    ) -> Sequence[DailyRecord]:
        raise NotImplementedError
