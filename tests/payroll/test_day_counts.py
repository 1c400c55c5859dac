from __future__ import annotations

from datetime import date, datetime, timedelta

import pytest

from hostel_attendance.batch.model import BatchItem
from hostel_attendance.core.enums import EntryType, HostelState, PersonKind
from hostel_attendance.core.exceptions import ReconciliationRequiredError, ValidationError

DAY = date(2024, 3, 4)


def test_counts_per_verdict(world):
    world.add_person(1)
    world.add_leave(3, 1, DAY + timedelta(days=1), DAY + timedelta(days=1))
    world.container.attendance_service.mark_attendance(1, "IN", now=datetime(2024, 3, 4, 8, 0))
    world.container.automark_service.run_for_range(DAY, DAY + timedelta(days=1))

    counts = world.container.day_count_service.count_days(1, DAY, DAY + timedelta(days=2))

    assert counts.to_dict() == {
        "personId": 1,
        "from": "2024-03-04",
        "to": "2024-03-06",
        "present": 1,
        "absent": 0,
        "late": 0,
        "leave": 1,
        "unmarked": 1,
        "totalDays": 3,
    }


def test_late_employee_counts_as_present_and_late(world):
    world.configure(expected_check_in="09:00", late_threshold_minutes=15)
    world.add_person(1, kind=PersonKind.EMPLOYEE)
    world.container.attendance_service.mark_attendance(1, "IN", now=datetime(2024, 3, 4, 9, 30))
    world.container.automark_service.run_for_date(DAY)

    counts = world.container.day_count_service.count_days(1, DAY, DAY)

    assert (counts.present, counts.late, counts.absent) == (1, 1, 0)


def test_unreconciled_events_block_counting(world):
    world.add_person(1)
    world.container.batch_processor.bulk_mark(DAY, [BatchItem(1, EntryType.IN)], now=datetime(2024, 3, 4, 8, 0))

    with pytest.raises(ReconciliationRequiredError) as excinfo:
        world.container.day_count_service.count_days(1, DAY, DAY)

    assert len(excinfo.value.event_ids) == 1


def test_range_must_be_ordered(world):
    with pytest.raises(ValidationError):
        world.container.day_count_service.count_days(1, DAY, DAY - timedelta(days=1))


def test_hours_report(world):
    world.add_person(1, kind=PersonKind.EMPLOYEE)
    service = world.container.attendance_service
    service.mark_attendance(1, "IN", now=datetime(2024, 3, 4, 8, 0))
    service.mark_attendance(1, "OUT", now=datetime(2024, 3, 4, 17, 30))

    report = world.container.day_count_service.build_hours_report(start=DAY, end=DAY)

    assert report.rows == [
        {
            "person_id": 1,
            "work_date": "2024-03-04",
            "check_in": "08:00",
            "check_out": "17:30",
            "worked_hours": "09:30",
            "status": "present",
        }
    ]
    assert report.summary == [{"person_id": 1, "total_minutes": 570, "total_hours": "09:30"}]


def test_reconciled_status_outranks_the_auto_verdict(world):
    world.add_person(1, state=HostelState.OUT)
    world.container.automark_service.run_for_date(DAY)
    world.container.batch_processor.bulk_mark(DAY, [BatchItem(1, EntryType.IN)], now=datetime(2024, 3, 4, 21, 0))
    queue = world.container.reconciliation_queue
    queue.resolve(queue.list(DAY)[0].event_id, notes="Returned after roll call", status="present")

    counts = world.container.day_count_service.count_days(1, DAY, DAY)

    assert (counts.present, counts.absent) == (1, 0)
