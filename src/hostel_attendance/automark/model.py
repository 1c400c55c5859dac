from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import List


@dataclass
class AutoMarkSummary:
    work_date: date
    present: int = 0
    absent: int = 0
    leave: int = 0
    already_marked: int = 0
    pending: int = 0
    failed: int = 0

    def to_dict(self) -> dict:
        return {
            "date": self.work_date.isoformat(),
            "present": self.present,
            "absent": self.absent,
            "leave": self.leave,
            "alreadyMarked": self.already_marked,
            "pending": self.pending,
            "failed": self.failed,
        }


@dataclass
class RangeSummary:
    start: date
    end: date
    days: List[AutoMarkSummary] = field(default_factory=list)
    failed_dates: List[dict] = field(default_factory=list)

    def total(self, attr: str) -> int:
        return sum(int(getattr(d, attr)) for d in self.days)

    def to_dict(self) -> dict:
        return {
            "from": self.start.isoformat(),
            "to": self.end.isoformat(),
            "totals": {
                "present": self.total("present"),
                "absent": self.total("absent"),
                "leave": self.total("leave"),
                "alreadyMarked": self.total("already_marked"),
                "pending": self.total("pending"),
                "failed": self.total("failed"),
            },
            "days": [d.to_dict() for d in self.days],
            "failedDates": self.failed_dates,
        }
