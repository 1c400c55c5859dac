from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence

from ...core.enums import EntryType
from ..model import AttendanceEvent, ValidationIssue


@dataclass(frozen=True)
class RuleContext:
    """What an issue rule sees about an accepted, not yet stored event."""

    entry_type: EntryType
    timestamp: datetime
    last_transition: Optional[AttendanceEvent]
    same_day: Sequence[AttendanceEvent] = ()

    @property
    def previous_same_day(self) -> Optional[AttendanceEvent]:
        return self.same_day[-1] if self.same_day else None


class IssueRule(ABC):
    """One check that can send an accepted event to reconciliation."""

    @abstractmethod
    def check(self, ctx: RuleContext) -> Optional[ValidationIssue]:
        raise NotImplementedError
