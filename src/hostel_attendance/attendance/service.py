from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional

from ..common.locks import PersonLocks
from ..core.constants import AUTO_RECONCILED_NOTE
from ..core.enums import AttendanceStatus, EntryType, EventSource, HostelState, IssueSeverity, IssueType, PersonKind
from ..core.exceptions import ValidationError
from ..leaves.coordinator import LeaveOverrideCoordinator
from ..leaves.model import Cancel, EarlyReturn, LeaveConflict, LeaveDecision, Override
from ..persons.service import PersonStateStore
from ..settings.model import AttendanceSettings
from ..settings.service import SettingsService
from .daily import DailyRecordBuilder
from .model import NewEvent, ValidationIssue
from .repository import AttendanceRepository
from .results import MarkAccepted, MarkCancelled, MarkRejected, MarkResult
from .rules.base import RuleContext
from .rules.detector import IssueDetector
from .validator import EntryValidator, Rejected

logger = logging.getLogger(__name__)


def parse_entry_type(value) -> EntryType:
    if isinstance(value, EntryType):
        return value
    try:
        return EntryType(str(value or "").strip().upper())
    except ValueError:
        raise ValidationError("type must be IN or OUT")


class AttendanceService:
    """The mark path.

    Every mark for a person runs under that person's lock:
    validate against the event log, resolve leave collisions, persist the
    event, then move the cached state (and the employee daily record).
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        state_store: PersonStateStore,
        leaves: LeaveOverrideCoordinator,
        settings: SettingsService,
        *,
        locks: PersonLocks,
        validator: EntryValidator | None = None,
        detector: IssueDetector | None = None,
        daily_builder: DailyRecordBuilder | None = None,
    ):
        self._attendance = attendance
        self._state_store = state_store
        self._leaves = leaves
        self._settings = settings
        self._locks = locks
        self._validator = validator or EntryValidator()
        self._detector = detector or IssueDetector()
        self._daily = daily_builder or DailyRecordBuilder()

    def mark_attendance(
        self,
        person_id: int,
        entry_type,
        notes: Optional[str] = None,
        resolution: Optional[LeaveDecision] = None,
        *,
        now: datetime | None = None,
        work_date: date | None = None,
        source: EventSource = EventSource.MANUAL,
        settings: AttendanceSettings | None = None,
        actor: Optional[str] = None,
        device_id: Optional[str] = None,
    ) -> MarkResult:
        entry_type = parse_entry_type(entry_type)
        if source == EventSource.AUTO:
            raise ValidationError("Auto events are written by the auto-mark sweep only")

        with self._locks.hold(person_id):
            return self._mark_locked(
                person_id,
                entry_type,
                notes=notes,
                resolution=resolution,
                now=now or datetime.now(),
                work_date=work_date,
                source=source,
                settings=settings or self._settings.get(),
                actor=actor,
                device_id=device_id,
            )

    def record_scan(
        self,
        raw_id: str,
        device_id: str,
        *,
        person_id: Optional[int] = None,
        at: datetime | None = None,
    ) -> MarkResult:
        """Biometric swipe. The direction is the opposite of the last recorded one.

        Scans that cannot be mapped to a person are stored for reconciliation.
        """

        at = at or datetime.now()
        if person_id is None:
            return self._store_unmapped_scan(raw_id, device_id, at=at)

        notes = f"Biometric scan {raw_id} on {device_id}"
        with self._locks.hold(person_id):
            last = self._attendance.get_last_transition(person_id)
            entry_type = last.entry_type.opposite if last and last.entry_type else EntryType.IN
            return self._mark_locked(
                person_id,
                entry_type,
                notes=notes,
                resolution=None,
                now=at,
                work_date=None,
                source=EventSource.BIOMETRIC,
                settings=self._settings.get(),
                actor=None,
                device_id=device_id,
            )

    def recompute_daily_record(self, person_id: int, work_date: date, settings: AttendanceSettings) -> None:
        events = self._attendance.list_for_person_and_date(person_id, work_date)
        record = self._daily.build(person_id=person_id, work_date=work_date, events=events, settings=settings)
        self._attendance.upsert_daily_record(record)

    def _mark_locked(
        self,
        person_id: int,
        entry_type: EntryType,
        *,
        notes: Optional[str],
        resolution: Optional[LeaveDecision],
        now: datetime,
        work_date: date | None,
        source: EventSource,
        settings: AttendanceSettings,
        actor: Optional[str],
        device_id: Optional[str],
    ) -> MarkResult:
        work_date = work_date or now.date()
        person = self._state_store.get_person(person_id)
        if not person.is_active:
            raise ValidationError(f"Person {person_id} is inactive")

        last = self._attendance.get_last_transition(person_id)
        decision = self._validator.decide(last.entry_type if last else None, entry_type, settings)
        if isinstance(decision, Rejected):
            logger.info("Rejected %s for person %s: %s", entry_type.value, person_id, decision.reason.value)
            return MarkRejected(reason=decision.reason, current_state=decision.current_state, message=decision.message)

        override_leave_id = None
        early_return = None
        check = self._leaves.check_leave(person_id, work_date)
        if check.on_leave and check.leave:
            if resolution is None:
                return LeaveConflict(leave=check.leave)
            if isinstance(resolution, Cancel):
                return MarkCancelled()
            if isinstance(resolution, Override):
                notes = self._leaves.override_notes(check.leave, resolution, day=work_date, notes=notes)
                override_leave_id = check.leave.leave_id
            elif isinstance(resolution, EarlyReturn):
                if resolution.return_date > work_date:
                    raise ValidationError("Return date cannot be after the marked date")
                self._leaves.validate_early_return(check.leave, resolution, today=now.date())
                early_return = resolution
            else:
                raise ValidationError("Unknown leave decision")

        same_day = [e for e in self._attendance.list_for_person_and_date(person_id, work_date) if e.is_transition]
        issues = self._detector.detect(
            RuleContext(entry_type=entry_type, timestamp=now, last_transition=last, same_day=same_day)
        )
        has_errors = any(i.severity == IssueSeverity.ERROR for i in issues)
        reconciled = source != EventSource.BULK and not has_errors

        event_id = self._attendance.create_event(
            NewEvent(
                person_id=person_id,
                work_date=work_date,
                entry_type=entry_type,
                timestamp=now,
                source=source,
                reconciled=reconciled,
                notes=notes,
                override_leave_id=override_leave_id,
                issues=issues,
                resolution_note=AUTO_RECONCILED_NOTE if reconciled else None,
                device_id=device_id,
            )
        )
        # The leave only ends once the event that ends it is stored.
        if early_return is not None and check.leave:
            self._leaves.apply_early_return(check.leave, early_return, actor=actor, today=now.date())

        new_state = HostelState(entry_type.value)
        self._state_store.set_state(person_id, new_state, now)
        if person.kind == PersonKind.EMPLOYEE:
            self.recompute_daily_record(person_id, work_date, settings)

        if issues:
            logger.info(
                "Event %s for person %s flagged: %s",
                event_id,
                person_id,
                ", ".join(i.type.value for i in issues),
            )
        return self._accepted(event_id, new_state)

    def _store_unmapped_scan(self, raw_id: str, device_id: str, *, at: datetime) -> MarkAccepted:
        issue = ValidationIssue(
            type=IssueType.UNMAPPED_SCAN,
            severity=IssueSeverity.ERROR,
            message=f"Biometric id {raw_id} is not mapped to a person",
        )
        event_id = self._attendance.create_event(
            NewEvent(
                person_id=None,
                work_date=at.date(),
                entry_type=None,
                timestamp=at,
                source=EventSource.BIOMETRIC,
                reconciled=False,
                status=AttendanceStatus.UNKNOWN,
                notes=f"Unmapped biometric id {raw_id}",
                issues=(issue,),
                device_id=device_id,
            )
        )
        logger.warning("Unmapped biometric scan %s from device %s stored as event %s", raw_id, device_id, event_id)
        return self._accepted(event_id, HostelState.UNKNOWN)

    def _accepted(self, event_id: int, state: HostelState) -> MarkAccepted:
        event = self._attendance.get(event_id)
        if event is None:
            raise RuntimeError(f"Event {event_id} vanished after insert")
        return MarkAccepted(event=event, state=state)

