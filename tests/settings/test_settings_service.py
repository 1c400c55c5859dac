from __future__ import annotations

import pytest

from hostel_attendance.core.constants import DEFAULT_AUTO_MARK_TIME, DEFAULT_LATE_THRESHOLD_MINUTES
from hostel_attendance.core.exceptions import ValidationError


def test_defaults_when_nothing_is_stored(world):
    settings = world.container.settings_service.get()

    assert settings.auto_mark_enabled is True
    assert settings.auto_mark_time == DEFAULT_AUTO_MARK_TIME
    assert settings.first_entry_must_be_in is True
    assert settings.state_based_present_absent is True
    assert settings.expected_check_in is None
    assert settings.late_threshold_minutes == DEFAULT_LATE_THRESHOLD_MINUTES
    assert settings.last_run_info is None


def test_update_is_persisted_and_announced(world):
    seen = []
    service = world.container.settings_service
    service.add_listener(seen.append)

    updated = service.update(auto_mark_time=" 21:00 ", late_threshold_minutes="10", expected_check_in="08:30")

    assert world.settings.settings == updated
    assert updated.auto_mark_time == "21:00"
    assert updated.late_threshold_minutes == 10
    assert seen == [updated]


def test_blank_expected_check_in_clears_it(world):
    service = world.container.settings_service
    service.update(expected_check_in="08:30")

    assert service.update(expected_check_in="").expected_check_in is None


@pytest.mark.parametrize(
    "changes",
    [
        {"auto_mark_time": "25:00"},
        {"expected_check_in": "8am"},
        {"late_threshold_minutes": -1},
        {"late_threshold_minutes": "soon"},
        {"holiday_mode": True},
    ],
)
def test_invalid_updates_are_rejected(world, changes):
    with pytest.raises(ValidationError):
        world.container.settings_service.update(**changes)
    assert world.settings.settings is None


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(False, False), ("false", False), ("0", False), (0, False), ("true", True), ("1", True), (True, True)],
)
def test_flags_parse_text_values(world, raw, expected):
    updated = world.container.settings_service.update(first_entry_must_be_in=raw, state_based_present_absent=raw)

    assert updated.first_entry_must_be_in is expected
    assert updated.state_based_present_absent is expected


@pytest.mark.parametrize("raw", ["maybe", 2, None, ""])
def test_flags_reject_other_values(world, raw):
    with pytest.raises(ValidationError):
        world.container.settings_service.update(auto_mark_enabled=raw)
    assert world.settings.settings is None
