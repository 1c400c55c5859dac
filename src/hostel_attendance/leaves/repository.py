from __future__ import annotations

from datetime import date
from typing import Optional, Protocol

from .model import LeaveApplication


class LeaveRepository(Protocol):
    def get_by_id(self, leave_id: int) -> Optional[LeaveApplication]:
        raise NotImplementedError

    def get_active_for(self, person_id: int, day: date) -> Optional[LeaveApplication]:
        """Approved leave of the person covering `day`, honouring early returns."""

        raise NotImplementedError

    def mark_early_return(self, leave_id: int, *, return_date: date, notes: str) -> bool:
        """Set early_return once. Returns False if the leave was already returned from."""

        raise NotImplementedError
