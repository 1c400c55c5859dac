from __future__ import annotations

from datetime import datetime, time
from typing import Optional

from ...core.enums import AttendanceStatus
from .base import DailyStatusStrategy, StatusDecision


class LateStrategy(DailyStatusStrategy):
    """Late check-in."""

    def decide(
        self,
        *,
        first_in: Optional[datetime],
        expected_check_in: Optional[time],
        late_threshold_minutes: int,
    ) -> StatusDecision:
        note = None
        if first_in and expected_check_in:
            note = f"Checked in at {first_in.strftime('%H:%M')}, expected {expected_check_in.strftime('%H:%M')}"
        return StatusDecision(status=AttendanceStatus.LATE, note=note)
