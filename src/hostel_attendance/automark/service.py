from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional, Sequence

from ..attendance.daily import DailyRecordBuilder
from ..attendance.model import AttendanceEvent, NewEvent
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import end_of_day, iter_dates
from ..common.locks import PersonLocks
from ..core.constants import AUTO_RECONCILED_NOTE
from ..core.enums import AttendanceStatus, EventSource, HostelState, PersonKind
from ..core.exceptions import DomainError, ValidationError
from ..leaves.coordinator import LeaveOverrideCoordinator
from ..leaves.model import LeaveApplication
from ..persons.model import Person
from ..persons.repository import PersonRepository
from ..settings.model import AttendanceSettings
from ..settings.service import SettingsService
from .model import AutoMarkSummary, RangeSummary

logger = logging.getLogger(__name__)


def _has_verdict(events: Sequence[AttendanceEvent]) -> bool:
    for e in events:
        if e.source == EventSource.AUTO:
            return True
        if e.reconciled and e.status is not None:
            return True
    return False


class AutoMarkService:
    """Folds each person's day into one verdict.

    Running the same date twice writes nothing the second time: every
    person either already has a verdict, is still pending reconciliation,
    or gets exactly one auto event.
    """

    def __init__(
        self,
        persons: PersonRepository,
        attendance: AttendanceRepository,
        leaves: LeaveOverrideCoordinator,
        settings: SettingsService,
        *,
        locks: PersonLocks,
        daily_builder: DailyRecordBuilder | None = None,
    ):
        self._persons = persons
        self._attendance = attendance
        self._leaves = leaves
        self._settings = settings
        self._locks = locks
        self._daily = daily_builder or DailyRecordBuilder()

    def run_for_date(
        self,
        work_date: date,
        *,
        kind: Optional[PersonKind] = None,
        now: datetime | None = None,
    ) -> AutoMarkSummary:
        settings = self._settings.get()
        summary = AutoMarkSummary(work_date=work_date)

        for person in self._persons.list_active(kind=kind):
            try:
                with self._locks.hold(person.person_id):
                    outcome = self._mark_person(person, work_date, settings)
            except DomainError as exc:
                logger.warning("Auto-mark of person %s on %s failed: %s", person.person_id, work_date, exc)
                summary.failed += 1
                continue
            except Exception:
                logger.exception("Auto-mark of person %s on %s failed", person.person_id, work_date)
                summary.failed += 1
                continue
            setattr(summary, outcome, getattr(summary, outcome) + 1)

        self._settings.record_last_run(
            run_date=work_date,
            present=summary.present,
            absent=summary.absent,
            leave=summary.leave,
            ran_at=now,
        )
        logger.info(
            "Auto-mark %s: present=%s absent=%s leave=%s already=%s pending=%s failed=%s",
            work_date.isoformat(),
            summary.present,
            summary.absent,
            summary.leave,
            summary.already_marked,
            summary.pending,
            summary.failed,
        )
        return summary

    def run_for_range(
        self,
        start: date,
        end: date,
        *,
        kind: Optional[PersonKind] = None,
    ) -> RangeSummary:
        if start > end:
            raise ValidationError("'from' must not be after 'to'")

        result = RangeSummary(start=start, end=end)
        for day in iter_dates(start, end):
            try:
                result.days.append(self.run_for_date(day, kind=kind))
            except Exception as exc:
                logger.exception("Auto-mark for %s failed", day.isoformat())
                result.failed_dates.append({"date": day.isoformat(), "reason": str(exc)})
        return result

    def _mark_person(self, person: Person, work_date: date, settings: AttendanceSettings) -> str:
        """Returns the summary counter to bump."""

        events = self._attendance.list_for_person_and_date(person.person_id, work_date)

        check = self._leaves.check_leave(person.person_id, work_date)
        overridden = any(e.override_leave_id is not None for e in events if e.source != EventSource.AUTO)
        if check.on_leave and check.leave and not overridden:
            if not any(e.source == EventSource.AUTO for e in events):
                self._write_verdict(person, work_date, AttendanceStatus.ON_LEAVE, leave=check.leave)
            return "leave"

        if _has_verdict(events):
            return "already_marked"

        transitions = [e for e in events if e.is_transition]
        if any(not e.reconciled for e in transitions):
            return "pending"

        status = self._classify(person, work_date, transitions, settings)
        self._write_verdict(person, work_date, status)
        return "present" if status == AttendanceStatus.PRESENT else "absent"

    def _classify(
        self,
        person: Person,
        work_date: date,
        transitions: Sequence[AttendanceEvent],
        settings: AttendanceSettings,
    ) -> AttendanceStatus:
        if not settings.state_based_present_absent:
            return AttendanceStatus.PRESENT if transitions else AttendanceStatus.ABSENT

        last = self._attendance.get_last_transition(person.person_id, as_of=work_date)
        if last and last.entry_type:
            terminal = HostelState(last.entry_type.value)
        else:
            fresh = self._persons.get_by_id(person.person_id) or person
            # Never marked: residents are assumed in.
            terminal = fresh.current_state or HostelState.IN
        return AttendanceStatus.PRESENT if terminal == HostelState.IN else AttendanceStatus.ABSENT

    def _write_verdict(
        self,
        person: Person,
        work_date: date,
        status: AttendanceStatus,
        *,
        leave: Optional[LeaveApplication] = None,
    ) -> None:
        notes = f"Auto-marked {status.value}"
        if leave:
            notes = f"Auto-marked on leave (leave #{leave.leave_id})"

        self._attendance.create_event(
            NewEvent(
                person_id=person.person_id,
                work_date=work_date,
                entry_type=None,
                timestamp=end_of_day(work_date),
                source=EventSource.AUTO,
                reconciled=True,
                status=status,
                notes=notes,
                leave_id=leave.leave_id if leave else None,
                resolution_note=AUTO_RECONCILED_NOTE,
            )
        )

        if person.kind == PersonKind.EMPLOYEE:
            record = self._attendance.get_daily_record(person.person_id, work_date)
            if record is None or not record.entries:
                self._attendance.upsert_daily_record(
                    self._daily.without_entries(person_id=person.person_id, work_date=work_date, status=status)
                )
