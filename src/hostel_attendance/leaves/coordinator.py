from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional

from ..attendance.repository import AttendanceRepository
from ..audit.model import AuditEntry
from ..audit.repository import AuditRepository
from ..common.locks import PersonLocks
from ..common.validators import require_non_empty
from ..core.exceptions import NotFoundError, ValidationError
from .model import EarlyReturn, LeaveApplication, LeaveCheck, Override
from .repository import LeaveRepository

logger = logging.getLogger(__name__)


class LeaveOverrideCoordinator:
    """Detects marks that collide with an approved leave and applies the caller's decision."""

    def __init__(
        self,
        leaves: LeaveRepository,
        attendance: AttendanceRepository,
        audit: AuditRepository,
        *,
        locks: PersonLocks,
    ):
        self._leaves = leaves
        self._attendance = attendance
        self._audit = audit
        self._locks = locks

    def check_leave(self, person_id: int, day: date) -> LeaveCheck:
        leave = self._leaves.get_active_for(person_id, day)
        if leave and leave.is_active_on(day):
            return LeaveCheck(on_leave=True, leave=leave)
        return LeaveCheck(on_leave=False)

    def override_notes(self, leave: LeaveApplication, decision: Override, *, day: date, notes: Optional[str]) -> str:
        """Validate an override against `leave` and build the event notes."""

        reason = require_non_empty(decision.reason, "Override reason")
        if not leave.is_active_on(day):
            raise ValidationError(f"Leave #{leave.leave_id} is not an approved leave covering {day.isoformat()}")

        prefix = f"Override from leave #{leave.leave_id}: {reason}"
        return f"{prefix} | {notes}" if notes else prefix

    def process_early_return(
        self,
        leave_id: int,
        *,
        return_date: date,
        notes: str = "",
        actor: Optional[str] = None,
        today: date | None = None,
    ) -> LeaveApplication:
        leave = self._leaves.get_by_id(leave_id)
        if not leave:
            raise NotFoundError(f"Leave #{leave_id} not found")

        with self._locks.hold(leave.person_id):
            return self.apply_early_return(
                leave, EarlyReturn(return_date=return_date, notes=notes), actor=actor, today=today
            )

    @staticmethod
    def validate_early_return(leave: LeaveApplication, decision: EarlyReturn, *, today: date) -> None:
        return_date = decision.return_date
        if leave.early_return:
            raise ValidationError(f"Leave #{leave.leave_id} already ended early; apply for a new leave instead")
        if return_date > today:
            raise ValidationError("Return date cannot be in the future")
        if not (leave.from_date <= return_date <= leave.to_date):
            raise ValidationError("Return date must be within the leave period")

    def apply_early_return(
        self,
        leave: LeaveApplication,
        decision: EarlyReturn,
        *,
        actor: Optional[str] = None,
        today: date | None = None,
    ) -> LeaveApplication:
        """End `leave` on `decision.return_date`.

        Caller must hold the person's lock. Auto verdicts written for the
        leave from the return date on are voided; they are never restored.
        """

        today = today or date.today()
        self.validate_early_return(leave, decision, today=today)
        return_date = decision.return_date

        notes = (decision.notes or "").strip()
        if not self._leaves.mark_early_return(leave.leave_id, return_date=return_date, notes=notes):
            raise ValidationError(f"Leave #{leave.leave_id} already ended early; apply for a new leave instead")

        voided = self._attendance.void_auto_events_for_leave(
            person_id=leave.person_id, leave_id=leave.leave_id, from_date=return_date
        )
        self._audit.log(
            AuditEntry(
                model="LeaveApplication",
                action="EARLY_RETURN",
                reason=notes or "Early return",
                ref_id=leave.leave_id,
                actor=actor,
                payload={
                    "personId": leave.person_id,
                    "returnDate": return_date.isoformat(),
                    "originalToDate": leave.to_date.isoformat(),
                    "voidedEvents": voided,
                },
                created_at=datetime.now(),
            )
        )
        logger.info(
            "Leave #%s of person %s ended early on %s (%s auto event(s) voided)",
            leave.leave_id,
            leave.person_id,
            return_date.isoformat(),
            voided,
        )

        updated = self._leaves.get_by_id(leave.leave_id)
        if updated is None:
            raise NotFoundError(f"Leave #{leave.leave_id} not found")
        return updated
