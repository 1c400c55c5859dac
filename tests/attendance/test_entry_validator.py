from __future__ import annotations

import pytest

from hostel_attendance.attendance.validator import Accepted, EntryValidator, Rejected
from hostel_attendance.core.enums import EntryType, HostelState, RejectionReason
from hostel_attendance.settings.model import AttendanceSettings

IN, OUT = EntryType.IN, EntryType.OUT


@pytest.mark.parametrize(
    "last, proposed, must_be_in, expected",
    [
        (None, IN, True, None),
        (None, IN, False, None),
        (None, OUT, True, RejectionReason.FIRST_ENTRY_MUST_BE_IN),
        (None, OUT, False, None),
        (IN, IN, True, RejectionReason.DUPLICATE_STATE),
        (IN, OUT, True, None),
        (OUT, OUT, False, RejectionReason.DUPLICATE_STATE),
        (OUT, IN, True, None),
    ],
)
def test_decision_table(last, proposed, must_be_in, expected):
    decision = EntryValidator().decide(last, proposed, AttendanceSettings(first_entry_must_be_in=must_be_in))

    if expected is None:
        assert isinstance(decision, Accepted)
    else:
        assert isinstance(decision, Rejected)
        assert decision.reason == expected


def test_duplicate_rejection_reports_current_state():
    decision = EntryValidator().decide(OUT, OUT, AttendanceSettings())

    assert decision == Rejected(reason=RejectionReason.DUPLICATE_STATE, current_state=HostelState.OUT)
    assert decision.message == "Already OUT"
