from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.constants import DEFAULT_AUTO_MARK_TIME, DEFAULT_LATE_THRESHOLD_MINUTES


@dataclass(frozen=True)
class LastRunInfo:
    run_date: date
    present: int
    absent: int
    leave: int
    ran_at: datetime

    def to_dict(self) -> dict:
        return {
            "date": self.run_date.isoformat(),
            "present": self.present,
            "absent": self.absent,
            "leave": self.leave,
            "ranAt": self.ran_at.isoformat(),
        }


@dataclass(frozen=True)
class AttendanceSettings:
    """Hostel-wide attendance settings document.

    Instances are immutable, so a batch or sweep that grabs one at its start
    keeps a consistent view even if an administrator saves new settings.
    """

    auto_mark_enabled: bool = True
    auto_mark_time: str = DEFAULT_AUTO_MARK_TIME
    first_entry_must_be_in: bool = True
    state_based_present_absent: bool = True
    expected_check_in: Optional[str] = None
    late_threshold_minutes: int = DEFAULT_LATE_THRESHOLD_MINUTES
    last_run_info: Optional[LastRunInfo] = None

    def to_dict(self) -> dict:
        return {
            "autoMarkEnabled": self.auto_mark_enabled,
            "autoMarkTime": self.auto_mark_time,
            "firstEntryMustBeIn": self.first_entry_must_be_in,
            "stateBasedPresentAbsent": self.state_based_present_absent,
            "expectedCheckIn": self.expected_check_in,
            "lateThresholdMinutes": self.late_threshold_minutes,
            "lastRunInfo": self.last_run_info.to_dict() if self.last_run_info else None,
        }
