from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

import pytest

from hostel_attendance.batch.model import BatchItem
from hostel_attendance.core.enums import AttendanceStatus, EntryType, IssueSeverity, IssueType, PersonKind
from hostel_attendance.core.exceptions import NotFoundError, ReconciliationRequiredError, ValidationError
from hostel_attendance.reconciliation.service import ReconciliationQueue


@pytest.fixture
def queued(world, fixed_now):
    world.add_person(1, block="A")
    world.add_person(2, block="B")
    world.add_person(3, kind=PersonKind.EMPLOYEE, block="A")
    world.container.batch_processor.bulk_mark(
        fixed_now.date(),
        [BatchItem(pid, EntryType.IN) for pid in (1, 2, 3)],
        now=fixed_now,
    )
    return world


def _error_event(world, fixed_now):
    world.add_person(4, block="C")
    world.configure(first_entry_must_be_in=False)
    result = world.container.attendance_service.mark_attendance(
        4, "OUT", now=fixed_now + timedelta(hours=1)
    )
    return result.event


def test_list_filters(queued, fixed_now):
    queue = queued.container.reconciliation_queue
    day = fixed_now.date()

    assert len(queue.list(day)) == 3
    assert [e.person_id for e in queue.list(day, kind=PersonKind.EMPLOYEE)] == [3]
    assert [e.person_id for e in queue.list(day, block="B")] == [2]
    assert queue.list(day - timedelta(days=1)) == []


def test_severity_filter(queued, fixed_now):
    event = _error_event(queued, fixed_now)
    queue = queued.container.reconciliation_queue

    errors = queue.list(fixed_now.date(), severity=IssueSeverity.ERROR)

    assert [e.event_id for e in errors] == [event.event_id]
    assert errors[0].issues[0].type == IssueType.MISSING_IN


def test_resolve_requires_notes(queued, fixed_now):
    queue = queued.container.reconciliation_queue
    event = queue.list(fixed_now.date())[0]

    with pytest.raises(ValidationError):
        queue.resolve(event.event_id, notes="   ")
    with pytest.raises(NotFoundError):
        queue.resolve(12345, notes="Checked")
    with pytest.raises(ValidationError):
        queue.resolve(event.event_id, notes="Checked", status="sleeping")


def test_resolve_is_applied_once(queued, fixed_now):
    queue = queued.container.reconciliation_queue
    event = queue.list(fixed_now.date())[0]

    first = queue.resolve(event.event_id, notes="Seen on CCTV", status="late", actor="warden")
    second = queue.resolve(event.event_id, notes="Changed my mind", status="absent", actor="warden")

    assert first.reconciled is True
    assert first.status == AttendanceStatus.LATE
    assert first.reconciled_by == "warden"
    assert second.resolution_note == "Seen on CCTV"
    assert second.status == AttendanceStatus.LATE
    assert [(a.action, a.ref_id) for a in queued.audit.entries] == [("RECONCILE", event.event_id)]
    assert len(queue.list(fixed_now.date())) == 2


def test_concurrent_resolves_flip_once(queued, fixed_now):
    queue = queued.container.reconciliation_queue
    event = queue.list(fixed_now.date())[0]

    with ThreadPoolExecutor(max_workers=8) as executor:
        results = list(executor.map(lambda n: queue.resolve(event.event_id, notes=f"note {n}"), range(8)))

    assert len({r.resolution_note for r in results}) == 1
    assert len(queued.audit.entries) == 1


def test_resolve_all_skips_errors_unless_asked(queued, fixed_now):
    _error_event(queued, fixed_now)
    queue = queued.container.reconciliation_queue

    first = queue.resolve_all(fixed_now.date(), actor="warden")
    second = queue.resolve_all(fixed_now.date(), include_errors=True, notes="Reviewed")

    assert (first.resolved, first.skipped, first.errors) == (3, 1, [])
    assert (second.resolved, second.skipped) == (1, 0)
    assert queue.list(fixed_now.date()) == []


def test_stats(queued, fixed_now):
    _error_event(queued, fixed_now)
    queue = queued.container.reconciliation_queue
    queue.resolve(queue.list(fixed_now.date())[0].event_id, notes="Ok")

    stats = queue.stats(fixed_now.date())

    assert stats.total == 4
    assert stats.reconciled == 1
    assert stats.unreconciled == 3
    assert stats.issue_types["MISSING_IN"] == 1
    assert stats.severity_counts["error"] == 1
    assert stats.oldest_unreconciled == fixed_now.isoformat()


def test_require_reconciled_lists_pending_events(queued, fixed_now):
    events = queued.attendance.list_for_date(fixed_now.date())

    with pytest.raises(ReconciliationRequiredError) as excinfo:
        ReconciliationQueue.require_reconciled(events)

    assert sorted(excinfo.value.event_ids) == sorted(e.event_id for e in events)
