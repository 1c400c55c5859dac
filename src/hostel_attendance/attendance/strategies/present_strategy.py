from __future__ import annotations

from datetime import datetime, time
from typing import Optional

from ...core.enums import AttendanceStatus
from .base import DailyStatusStrategy, StatusDecision


class PresentStrategy(DailyStatusStrategy):
    """Checked in on time (or no expected check-in configured)."""

    def decide(
        self,
        *,
        first_in: Optional[datetime],
        expected_check_in: Optional[time],
        late_threshold_minutes: int,
    ) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.PRESENT)
