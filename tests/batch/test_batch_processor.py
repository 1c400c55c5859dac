from __future__ import annotations

from datetime import date

from hostel_attendance.batch.model import BatchItem, ItemErr, ItemOk, ItemSkipped
from hostel_attendance.batch.service import BatchProcessor
from hostel_attendance.core.enums import EntryType, EventSource, HostelState


def _items(*pairs):
    return [BatchItem(person_id=pid, entry_type=EntryType(t)) for pid, t in pairs]


def test_mixed_batch_reports_each_item(world, fixed_now):
    for pid in (1, 2, 4):
        world.add_person(pid)
    world.add_leave(9, 4, date(2024, 3, 1), date(2024, 3, 10))

    result = world.container.batch_processor.bulk_mark(
        fixed_now.date(),
        _items((1, "IN"), (2, "IN"), (1, "IN"), (99, "IN"), (4, "IN"), (2, "OUT")),
        notes="Evening roll call",
        now=fixed_now,
    )

    assert [type(i) for i in result.items] == [ItemOk, ItemOk, ItemErr, ItemErr, ItemSkipped, ItemOk]
    assert [i.index for i in result.items] == list(range(6))
    assert result.inserted == 3
    assert result.skipped_on_leave == 1
    assert result.errors == [
        {"personId": 1, "reason": "DUPLICATE_STATE"},
        {"personId": 99, "reason": "Person 99 not found"},
    ]
    assert world.persons.get_by_id(2).current_state == HostelState.OUT
    assert world.events_for(4) == []


def test_bulk_events_wait_for_reconciliation(world, fixed_now):
    world.add_person(1)

    world.container.batch_processor.bulk_mark(fixed_now.date(), _items((1, "IN")), now=fixed_now)

    [event] = world.events_for(1)
    assert event.source == EventSource.BULK
    assert event.reconciled is False
    assert event.resolution_note is None


def test_item_notes_win_over_batch_notes(world, fixed_now):
    world.add_person(1)
    world.add_person(2)
    items = [BatchItem(person_id=1, entry_type=EntryType.IN, notes="Late bus"), BatchItem(2, EntryType.IN)]

    world.container.batch_processor.bulk_mark(fixed_now.date(), items, notes="Roll call", now=fixed_now)

    assert world.events_for(1)[0].notes == "Late bus"
    assert world.events_for(2)[0].notes == "Roll call"


def test_unexpected_failure_is_isolated(world, fixed_now, monkeypatch):
    world.add_person(1)
    world.add_person(2)
    original = world.persons.get_by_id

    def flaky(person_id):
        if person_id == 2:
            raise RuntimeError("connection reset")
        return original(person_id)

    monkeypatch.setattr(world.persons, "get_by_id", flaky)

    result = world.container.batch_processor.bulk_mark(fixed_now.date(), _items((1, "IN"), (2, "IN")), now=fixed_now)

    assert result.inserted == 1
    assert result.errors == [{"personId": 2, "reason": "INTERNAL_ERROR"}]


def test_empty_batch(world, fixed_now):
    result = world.container.batch_processor.bulk_mark(fixed_now.date(), [], now=fixed_now)

    assert result.to_dict() == {
        "date": "2024-03-04",
        "inserted": 0,
        "skippedOnLeave": 0,
        "errors": [],
        "items": [],
    }


def test_csv_rows_are_validated_individually(world, fixed_now):
    world.add_person(1)
    world.add_person(2)
    text = "Person_ID,Type,Notes\n1,in,Late bus\nabc,IN,\n2,SIDEWAYS,\n2,IN,\n"

    result = world.container.batch_processor.bulk_mark_csv(fixed_now.date(), text, now=fixed_now)

    assert [i.index for i in result.items] == [0, 1, 2, 3]
    assert isinstance(result.items[0], ItemOk)
    assert result.items[1].reason.startswith("INVALID_ROW")
    assert result.items[1].person_id is None
    assert result.items[2].reason.startswith("INVALID_ROW")
    assert isinstance(result.items[3], ItemOk)
    assert world.events_for(1)[0].notes == "Late bus"


def test_csv_without_rows(world, fixed_now):
    result = world.container.batch_processor.bulk_mark_csv(fixed_now.date(), "", now=fixed_now)

    assert result.items == []


def test_settings_are_read_once_per_batch(world, fixed_now, monkeypatch):
    world.add_person(1)
    world.add_person(2)
    service = world.container.attendance_service
    settings_service = world.container.settings_service
    original = service.mark_attendance

    def mark_then_relax_policy(*args, **kwargs):
        outcome = original(*args, **kwargs)
        settings_service.update(first_entry_must_be_in=False)
        return outcome

    monkeypatch.setattr(service, "mark_attendance", mark_then_relax_policy)
    processor = BatchProcessor(service, settings_service, max_workers=1)

    result = processor.bulk_mark(fixed_now.date(), _items((1, "IN"), (2, "OUT")), now=fixed_now)

    assert settings_service.get().first_entry_must_be_in is False
    assert isinstance(result.items[0], ItemOk)
    assert result.errors == [{"personId": 2, "reason": "FIRST_ENTRY_MUST_BE_IN"}]
    assert world.events_for(2) == []
