from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Union

from ..core.enums import EntryType


@dataclass(frozen=True)
class BatchItem:
    person_id: int
    entry_type: EntryType
    notes: Optional[str] = None


@dataclass(frozen=True)
class ItemOk:
    index: int
    person_id: int
    event_id: int
    entry_type: EntryType

    def to_dict(self) -> dict:
        return {"index": self.index, "personId": self.person_id, "eventId": self.event_id, "type": self.entry_type.value, "result": "OK"}


@dataclass(frozen=True)
class ItemErr:
    index: int
    person_id: Optional[int]
    reason: str

    def to_dict(self) -> dict:
        return {"index": self.index, "personId": self.person_id, "reason": self.reason, "result": "ERROR"}


@dataclass(frozen=True)
class ItemSkipped:
    index: int
    person_id: int
    leave_id: int

    def to_dict(self) -> dict:
        return {"index": self.index, "personId": self.person_id, "leaveId": self.leave_id, "result": "SKIPPED_ON_LEAVE"}


ItemResult = Union[ItemOk, ItemErr, ItemSkipped]


@dataclass
class BatchResult:
    work_date: date
    items: List[ItemResult] = field(default_factory=list)

    @property
    def inserted(self) -> int:
        return sum(1 for i in self.items if isinstance(i, ItemOk))

    @property
    def skipped_on_leave(self) -> int:
        return sum(1 for i in self.items if isinstance(i, ItemSkipped))

    @property
    def errors(self) -> List[dict]:
        return [{"personId": i.person_id, "reason": i.reason} for i in self.items if isinstance(i, ItemErr)]

    def to_dict(self) -> dict:
        return {
            "date": self.work_date.isoformat(),
            "inserted": self.inserted,
            "skippedOnLeave": self.skipped_on_leave,
            "errors": self.errors,
            "items": [i.to_dict() for i in self.items],
        }
