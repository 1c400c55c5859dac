from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import EntryType, HostelState, IssueType, PersonKind


@dataclass(frozen=True)
class Person:
    """A student or employee living/working in the hostel.

    `current_state` is a cached projection of the event log, None when the
    person has never been marked.
    """

    person_id: int
    kind: PersonKind
    full_name: str
    current_state: Optional[HostelState] = None
    last_state_update: Optional[datetime] = None
    block: Optional[str] = None
    is_active: bool = True

    @property
    def state(self) -> HostelState:
        return self.current_state or HostelState.UNKNOWN

    def to_dict(self) -> dict:
        return {
            "id": self.person_id,
            "kind": self.kind.value,
            "fullName": self.full_name,
            "block": self.block,
            "isActive": self.is_active,
            "state": self.state.value,
            "lastStateUpdate": self.last_state_update.isoformat() if self.last_state_update else None,
        }


@dataclass(frozen=True)
class StateDrift:
    """Cached state disagrees with the last transition event."""

    person_id: int
    current_state: HostelState
    last_event_type: EntryType
    last_event_date: date
    last_event_time: datetime
    type: IssueType = IssueType.STATE_DRIFT

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "personId": self.person_id,
            "currentState": self.current_state.value,
            "lastEventType": self.last_event_type.value,
            "lastEventDate": self.last_event_date.isoformat(),
            "lastEventTime": self.last_event_time.isoformat(),
        }
