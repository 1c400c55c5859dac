from __future__ import annotations

from abc import ABC, abstractmethod

from ...attendance.model import DailyRecord


class WorkedTimeCalculator(ABC):
    """Calculator interface (Strategy Pattern for worked time)."""

    @abstractmethod
    def worked_minutes(self, record: DailyRecord) -> int:
        raise NotImplementedError
