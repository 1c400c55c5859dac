from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, time
from typing import Optional

from ...core.enums import AttendanceStatus


@dataclass(frozen=True)
class StatusDecision:
    status: AttendanceStatus
    note: Optional[str] = None


class DailyStatusStrategy(ABC):
    """Strategy Pattern: encapsulate how we decide an employee's daily status."""

    @abstractmethod
    def decide(
        self,
        *,
        first_in: Optional[datetime],
        expected_check_in: Optional[time],
        late_threshold_minutes: int,
    ) -> StatusDecision:
        raise NotImplementedError
