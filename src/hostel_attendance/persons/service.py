from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from ..attendance.repository import AttendanceRepository
from ..audit.model import AuditEntry
from ..audit.repository import AuditRepository
from ..common.locks import PersonLocks
from ..common.validators import require_non_empty
from ..core.enums import HostelState, PersonKind
from ..core.exceptions import NotFoundError, ValidationError
from .model import Person, StateDrift
from .repository import PersonRepository

logger = logging.getLogger(__name__)


class PersonStateStore:
    """Cached IN/OUT state per person.

    The event log is the source of truth; `current_state` is a projection of
    its last transition event. Only the mark path writes it during normal
    operation, and only while holding the person's lock.
    """

    def __init__(
        self,
        persons: PersonRepository,
        attendance: AttendanceRepository,
        audit: AuditRepository,
        *,
        locks: PersonLocks,
    ):
        self._persons = persons
        self._attendance = attendance
        self._audit = audit
        self._locks = locks

    def get_person(self, person_id: int) -> Person:
        person = self._persons.get_by_id(person_id)
        if not person:
            raise NotFoundError(f"Person {person_id} not found")
        return person

    def get_state(self, person_id: int) -> HostelState:
        return self.get_person(person_id).state

    def set_state(self, person_id: int, new_state: HostelState, at: datetime) -> None:
        if new_state == HostelState.UNKNOWN:
            raise ValidationError("State must be IN or OUT")
        if not self._persons.update_state(person_id, state=new_state, at=at):
            raise NotFoundError(f"Person {person_id} not found")

    def check_consistency(self, person_id: int) -> Optional[StateDrift]:
        person = self.get_person(person_id)
        return self._drift_for(person)

    def check_all(self, *, kind: Optional[PersonKind] = None) -> List[StateDrift]:
        drifts: List[StateDrift] = []
        for person in self._persons.list_active(kind=kind):
            drift = self._drift_for(person)
            if drift:
                drifts.append(drift)
        if drifts:
            logger.warning("State consistency check found %s drifted person(s)", len(drifts))
        return drifts

    def _drift_for(self, person: Person) -> Optional[StateDrift]:
        last = self._attendance.get_last_transition(person.person_id)
        if last is None or last.entry_type is None:
            return None
        if person.current_state is not None and person.current_state.value == last.entry_type.value:
            return None
        return StateDrift(
            person_id=person.person_id,
            current_state=person.state,
            last_event_type=last.entry_type,
            last_event_date=last.work_date,
            last_event_time=last.timestamp,
        )

    def reset_state(
        self,
        person_id: int,
        *,
        reason: str,
        actor: Optional[str] = None,
        new_state: Optional[HostelState] = None,
        now: datetime | None = None,
    ) -> HostelState:
        """Correct one person's cached state, by default to what the log says."""

        reason = require_non_empty(reason, "reason")
        now = now or datetime.now()

        with self._locks.hold(person_id):
            person = self.get_person(person_id)
            if new_state is None:
                last = self._attendance.get_last_transition(person_id)
                if last is None or last.entry_type is None:
                    raise ValidationError(f"Person {person_id} has no events to recompute a state from")
                new_state = HostelState(last.entry_type.value)
            self.set_state(person_id, new_state, now)

        self._audit.log(
            AuditEntry(
                model="Person",
                action="RESET_STATE",
                reason=reason,
                ref_id=person_id,
                actor=actor,
                payload={"from": person.state.value, "to": new_state.value},
                created_at=now,
            )
        )
        logger.warning(
            "State of person %s reset %s -> %s by %s: %s",
            person_id,
            person.state.value,
            new_state.value,
            actor or "system",
            reason,
        )
        return new_state

    def reset_all(
        self,
        new_state: HostelState,
        *,
        actor: Optional[str] = None,
        kind: Optional[PersonKind] = None,
        reason: str = "Bulk state reset",
        now: datetime | None = None,
    ) -> int:
        """Administrative bypass: overwrite every active person's state.

        No event is validated or written; the audit row is the only trace.
        """

        if new_state not in (HostelState.IN, HostelState.OUT):
            raise ValidationError("State must be IN or OUT")
        now = now or datetime.now()

        count = self._persons.update_all_states(state=new_state, at=now, kind=kind)
        self._audit.log(
            AuditEntry(
                model="Person",
                action="RESET_ALL_STATES",
                reason=reason,
                actor=actor,
                payload={"state": new_state.value, "kind": kind.value if kind else None, "count": count},
                created_at=now,
            )
        )
        logger.warning(
            "Bulk state reset to %s for %s person(s) by %s", new_state.value, count, actor or "system"
        )
        return count
