from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional, Union

from ..core.enums import LeaveStatus


@dataclass(frozen=True)
class LeaveApplication:
    leave_id: int
    person_id: int
    from_date: date
    to_date: date
    status: LeaveStatus
    reason: str = ""
    is_paid: bool = False
    early_return: bool = False
    actual_return_date: Optional[date] = None
    early_return_notes: Optional[str] = None

    def is_active_on(self, day: date) -> bool:
        """Approved and covering `day`. The early return date itself is not a leave day."""
        if self.status != LeaveStatus.APPROVED or self.from_date > day:
            return False
        if self.early_return and self.actual_return_date is not None:
            return self.actual_return_date > day
        return self.to_date >= day

    def to_dict(self) -> dict:
        return {
            "id": self.leave_id,
            "personId": self.person_id,
            "fromDate": self.from_date.isoformat(),
            "toDate": self.to_date.isoformat(),
            "status": self.status.value,
            "reason": self.reason,
            "isPaid": self.is_paid,
            "earlyReturn": self.early_return,
            "actualReturnDate": self.actual_return_date.isoformat() if self.actual_return_date else None,
            "earlyReturnNotes": self.early_return_notes,
        }


@dataclass(frozen=True)
class LeaveCheck:
    on_leave: bool
    leave: Optional[LeaveApplication] = None

    def to_dict(self) -> dict:
        return {"onLeave": self.on_leave, "leave": self.leave.to_dict() if self.leave else None}


# Caller decisions for a mark that collides with an active leave.
@dataclass(frozen=True)
class Override:
    reason: str


@dataclass(frozen=True)
class EarlyReturn:
    return_date: date
    notes: str = ""


@dataclass(frozen=True)
class Cancel:
    pass


LeaveDecision = Union[Override, EarlyReturn, Cancel]


@dataclass(frozen=True)
class LeaveConflict:
    """Returned instead of an event when the person is on leave and no decision was given."""

    leave: LeaveApplication

    def to_dict(self) -> dict:
        return {
            "result": "LEAVE_CONFLICT",
            "message": f"Person is on approved leave #{self.leave.leave_id}",
            "leave": self.leave.to_dict(),
            "options": ["override", "early_return", "cancel"],
        }
