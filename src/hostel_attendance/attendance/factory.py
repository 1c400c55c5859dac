from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time, timedelta
from typing import Optional

from .strategies.absent_strategy import AbsentStrategy
from .strategies.base import DailyStatusStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.present_strategy import PresentStrategy


@dataclass
class DailyStatusStrategyFactory:
    """Factory Pattern: choose appropriate strategy based on rules."""

    def for_day(
        self,
        *,
        first_in: Optional[datetime],
        expected_check_in: Optional[time],
        late_threshold_minutes: int,
    ) -> DailyStatusStrategy:
        if first_in is None:
            return AbsentStrategy()
        if expected_check_in is None:
            return PresentStrategy()

        deadline = datetime.combine(first_in.date(), expected_check_in) + timedelta(minutes=late_threshold_minutes)
        if first_in <= deadline:
            return PresentStrategy()
        return LateStrategy()
