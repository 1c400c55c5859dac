from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from ..core.enums import EntryType, HostelState, RejectionReason
from ..settings.model import AttendanceSettings


@dataclass(frozen=True)
class Accepted:
    pass


@dataclass(frozen=True)
class Rejected:
    reason: RejectionReason
    current_state: HostelState

    @property
    def message(self) -> str:
        if self.reason == RejectionReason.FIRST_ENTRY_MUST_BE_IN:
            return "First entry must be IN"
        return f"Already {self.current_state.value}"


Decision = Union[Accepted, Rejected]


class EntryValidator:
    """Accept/reject rule for a proposed IN/OUT event.

    `last_type` must come from the event log, not the cached person state.
    The same rule runs for manual, bulk, CSV and biometric marks.
    """

    def decide(
        self,
        last_type: Optional[EntryType],
        proposed: EntryType,
        settings: AttendanceSettings,
    ) -> Decision:
        if last_type is None:
            if proposed == EntryType.OUT and settings.first_entry_must_be_in:
                return Rejected(reason=RejectionReason.FIRST_ENTRY_MUST_BE_IN, current_state=HostelState.UNKNOWN)
            return Accepted()

        if last_type == proposed:
            return Rejected(reason=RejectionReason.DUPLICATE_STATE, current_state=HostelState(last_type.value))
        return Accepted()
