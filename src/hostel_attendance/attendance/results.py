from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from ..core.enums import HostelState, RejectionReason
from ..leaves.model import LeaveConflict
from .model import AttendanceEvent


@dataclass(frozen=True)
class MarkAccepted:
    event: AttendanceEvent
    state: HostelState

    def to_dict(self) -> dict:
        return {
            "result": "ACCEPTED",
            "event": self.event.to_dict(),
            "state": self.state.value if self.event.person_id is not None else None,
        }


@dataclass(frozen=True)
class MarkRejected:
    reason: RejectionReason
    current_state: HostelState
    message: str

    def to_dict(self) -> dict:
        return {
            "result": "REJECTED",
            "reason": self.reason.value,
            "currentState": self.current_state.value,
            "message": self.message,
        }


@dataclass(frozen=True)
class MarkCancelled:
    def to_dict(self) -> dict:
        return {"result": "CANCELLED"}


MarkResult = Union[MarkAccepted, MarkRejected, LeaveConflict, MarkCancelled]
