from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Optional

import pytest

from hostel_attendance.attendance.model import AttendanceEvent, DailyRecord, NewEvent
from hostel_attendance.audit.model import AuditEntry
from hostel_attendance.container import Container, build_services
from hostel_attendance.core.enums import AttendanceStatus, EventSource, HostelState, LeaveStatus, PersonKind
from hostel_attendance.leaves.model import LeaveApplication
from hostel_attendance.persons.model import Person
from hostel_attendance.settings.model import AttendanceSettings


class InMemoryPersons:
    def __init__(self):
        self.by_id: dict[int, Person] = {}
        self._lock = threading.Lock()

    def add(self, person: Person) -> Person:
        self.by_id[person.person_id] = person
        return person

    def get_by_id(self, person_id: int) -> Optional[Person]:
        return self.by_id.get(person_id)

    def list_active(self, *, kind=None, block=None):
        items = [p for p in self.by_id.values() if p.is_active]
        if kind is not None:
            items = [p for p in items if p.kind == kind]
        if block:
            items = [p for p in items if p.block == block]
        return sorted(items, key=lambda p: p.person_id)

    def update_state(self, person_id: int, *, state: HostelState, at: datetime) -> bool:
        with self._lock:
            person = self.by_id.get(person_id)
            if not person:
                return False
            self.by_id[person_id] = replace(person, current_state=state, last_state_update=at)
            return True

    def update_all_states(self, *, state: HostelState, at: datetime, kind=None) -> int:
        count = 0
        for person in self.list_active(kind=kind):
            self.update_state(person.person_id, state=state, at=at)
            count += 1
        return count


def _order(e: AttendanceEvent):
    return (e.timestamp, e.event_id)


class InMemoryAttendance:
    def __init__(self, persons: Optional[InMemoryPersons] = None):
        self.events: dict[int, AttendanceEvent] = {}
        self.daily: dict[tuple[int, date], DailyRecord] = {}
        self._persons = persons
        self._lock = threading.Lock()
        self._id = 0

    def _visible(self):
        return [e for e in self.events.values() if not e.voided]

    def get(self, event_id: int) -> Optional[AttendanceEvent]:
        return self.events.get(event_id)

    def get_last_transition(self, person_id: int, *, as_of: Optional[date] = None) -> Optional[AttendanceEvent]:
        with self._lock:
            items = [e for e in self._visible() if e.person_id == person_id and e.is_transition]
        if as_of is not None:
            items = [e for e in items if e.work_date <= as_of]
        return max(items, key=_order) if items else None

    def list_for_person_and_date(self, person_id: int, work_date: date):
        with self._lock:
            items = [e for e in self._visible() if e.person_id == person_id and e.work_date == work_date]
        return sorted(items, key=_order)

    def list_for_person_in_range(self, person_id: int, start: date, end: date):
        with self._lock:
            items = [e for e in self._visible() if e.person_id == person_id and start <= e.work_date <= end]
        return sorted(items, key=_order)

    def list_for_date(self, work_date: date):
        with self._lock:
            items = [e for e in self._visible() if e.work_date == work_date]
        return sorted(items, key=_order)

    def create_event(self, event: NewEvent) -> int:
        with self._lock:
            self._id += 1
            self.events[self._id] = AttendanceEvent(
                event_id=self._id,
                person_id=event.person_id,
                work_date=event.work_date,
                entry_type=event.entry_type,
                timestamp=event.timestamp,
                source=event.source,
                reconciled=event.reconciled,
                status=event.status,
                notes=event.notes,
                override_leave_id=event.override_leave_id,
                leave_id=event.leave_id,
                issues=tuple(event.issues),
                resolution_note=event.resolution_note,
                device_id=event.device_id,
            )
            return self._id

    def void_auto_events_for_leave(self, *, person_id: int, leave_id: int, from_date: date) -> int:
        count = 0
        with self._lock:
            for e in list(self.events.values()):
                if (
                    e.person_id == person_id
                    and e.leave_id == leave_id
                    and e.source == EventSource.AUTO
                    and e.work_date >= from_date
                    and not e.voided
                ):
                    self.events[e.event_id] = replace(e, voided=True)
                    count += 1
        return count

    def list_for_reconciliation(self, *, work_date=None, kind=None, block=None, include_reconciled=False, limit=500):
        with self._lock:
            items = self._visible()
        if include_reconciled:
            items = [e for e in items if not e.reconciled or e.status == AttendanceStatus.UNKNOWN]
        else:
            items = [e for e in items if not e.reconciled]
        if work_date is not None:
            items = [e for e in items if e.work_date == work_date]
        if kind is not None or block:
            def person_matches(e):
                p = self._persons.get_by_id(e.person_id) if (self._persons and e.person_id) else None
                if p is None:
                    return False
                return (kind is None or p.kind == kind) and (not block or p.block == block)

            items = [e for e in items if person_matches(e)]
        items.sort(key=lambda e: (-e.work_date.toordinal(), e.timestamp, e.event_id))
        return items[:limit]

    def mark_reconciled(self, event_id: int, *, notes, status, reconciled_by, at) -> bool:
        with self._lock:
            e = self.events.get(event_id)
            if not e or e.reconciled or e.voided:
                return False
            self.events[event_id] = replace(
                e,
                reconciled=True,
                resolution_note=notes,
                status=status or e.status,
                reconciled_by=reconciled_by,
                reconciled_at=at,
            )
            return True

    def get_daily_record(self, person_id: int, work_date: date) -> Optional[DailyRecord]:
        return self.daily.get((person_id, work_date))

    def upsert_daily_record(self, record: DailyRecord) -> None:
        with self._lock:
            self.daily[(record.person_id, record.work_date)] = record

    def list_daily_records(self, *, start: date, end: date, person_id: Optional[int] = None):
        items = [r for r in self.daily.values() if start <= r.work_date <= end]
        if person_id is not None:
            items = [r for r in items if r.person_id == person_id]
        return sorted(items, key=lambda r: (r.work_date, r.person_id), reverse=True)


class InMemoryLeaves:
    def __init__(self):
        self.by_id: dict[int, LeaveApplication] = {}

    def add(self, leave: LeaveApplication) -> LeaveApplication:
        self.by_id[leave.leave_id] = leave
        return leave

    def get_by_id(self, leave_id: int) -> Optional[LeaveApplication]:
        return self.by_id.get(leave_id)

    def get_active_for(self, person_id: int, day: date) -> Optional[LeaveApplication]:
        for leave in sorted(self.by_id.values(), key=lambda l: (l.from_date, l.leave_id)):
            if leave.person_id == person_id and leave.is_active_on(day):
                return leave
        return None

    def mark_early_return(self, leave_id: int, *, return_date: date, notes: str) -> bool:
        leave = self.by_id.get(leave_id)
        if not leave or leave.early_return:
            return False
        self.by_id[leave_id] = replace(
            leave, early_return=True, actual_return_date=return_date, early_return_notes=notes
        )
        return True


class InMemorySettings:
    def __init__(self, settings: Optional[AttendanceSettings] = None):
        self.settings = settings

    def get(self) -> Optional[AttendanceSettings]:
        return self.settings

    def save(self, settings: AttendanceSettings) -> None:
        self.settings = settings


class InMemoryAudit:
    def __init__(self):
        self.entries: list[AuditEntry] = []
        self._lock = threading.Lock()

    def log(self, entry: AuditEntry) -> int:
        with self._lock:
            self.entries.append(replace(entry, audit_id=len(self.entries) + 1))
            return len(self.entries)

    def list_recent(self, *, model=None, limit=100):
        items = [e for e in self.entries if model is None or e.model == model]
        return list(reversed(items))[:limit]


@dataclass
class World:
    persons: InMemoryPersons
    attendance: InMemoryAttendance
    leaves: InMemoryLeaves
    settings: InMemorySettings
    audit: InMemoryAudit
    container: Container

    def add_person(
        self,
        person_id: int,
        *,
        kind: PersonKind = PersonKind.STUDENT,
        block: Optional[str] = "A",
        state: Optional[HostelState] = None,
        is_active: bool = True,
    ) -> Person:
        return self.persons.add(
            Person(
                person_id=person_id,
                kind=kind,
                full_name=f"Person {person_id}",
                current_state=state,
                block=block,
                is_active=is_active,
            )
        )

    def add_leave(
        self,
        leave_id: int,
        person_id: int,
        from_date: date,
        to_date: date,
        *,
        status: LeaveStatus = LeaveStatus.APPROVED,
    ) -> LeaveApplication:
        return self.leaves.add(
            LeaveApplication(
                leave_id=leave_id,
                person_id=person_id,
                from_date=from_date,
                to_date=to_date,
                status=status,
                reason="Home visit",
            )
        )

    def configure(self, **changes) -> AttendanceSettings:
        self.settings.settings = replace(self.container.settings_service.get(), **changes)
        return self.settings.settings

    def events_for(self, person_id: int):
        return sorted(
            (e for e in self.attendance.events.values() if e.person_id == person_id),
            key=lambda e: (e.timestamp, e.event_id),
        )


@pytest.fixture
def fixed_now() -> datetime:
    # A Monday morning
    return datetime(2024, 3, 4, 9, 0, 0)


@pytest.fixture
def world() -> World:
    persons = InMemoryPersons()
    attendance = InMemoryAttendance(persons)
    leaves = InMemoryLeaves()
    settings = InMemorySettings()
    audit = InMemoryAudit()
    container = build_services(
        persons_repo=persons,
        attendance_repo=attendance,
        leaves_repo=leaves,
        settings_repo=settings,
        audit_repo=audit,
        lock_timeout=2.0,
        batch_max_workers=4,
    )
    return World(
        persons=persons,
        attendance=attendance,
        leaves=leaves,
        settings=settings,
        audit=audit,
        container=container,
    )
