from __future__ import annotations

from ...attendance.model import DailyRecord
from .base import WorkedTimeCalculator


class StandardWorkedTimeCalculator(WorkedTimeCalculator):
    """Standard rule: last OUT - first IN, 0 when either is missing."""

    def worked_minutes(self, record: DailyRecord) -> int:
        if not record.check_in_time or not record.check_out_time:
            return 0
        minutes = int((record.check_out_time - record.check_in_time).total_seconds() // 60)
        return max(minutes, 0)
