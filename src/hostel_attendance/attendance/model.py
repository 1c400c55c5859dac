from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceStatus, EntryType, EventSource, IssueSeverity, IssueType


@dataclass(frozen=True)
class ValidationIssue:
    """A reason an event cannot be trusted automatically."""

    type: IssueType
    severity: IssueSeverity
    message: str

    def to_dict(self) -> dict:
        return {"type": self.type.value, "severity": self.severity.value, "message": self.message}

    @classmethod
    def from_dict(cls, data: dict) -> "ValidationIssue":
        return cls(
            type=IssueType(data["type"]),
            severity=IssueSeverity(data["severity"]),
            message=str(data.get("message") or ""),
        )


@dataclass(frozen=True)
class AttendanceEvent:
    """Domain entity: one IN/OUT event (or auto verdict) for a person.

    `person_id` and `entry_type` are only None for biometric scans that
    could not be mapped to a person.
    """

    event_id: int
    person_id: Optional[int]
    work_date: date
    entry_type: Optional[EntryType]
    timestamp: datetime
    source: EventSource
    reconciled: bool
    status: Optional[AttendanceStatus] = None
    notes: Optional[str] = None
    override_leave_id: Optional[int] = None
    leave_id: Optional[int] = None
    issues: tuple[ValidationIssue, ...] = ()
    voided: bool = False
    resolution_note: Optional[str] = None
    reconciled_by: Optional[str] = None
    reconciled_at: Optional[datetime] = None
    device_id: Optional[str] = None

    @property
    def is_transition(self) -> bool:
        """True when the event takes part in the person's IN/OUT sequence."""
        return not self.voided and self.source != EventSource.AUTO and self.entry_type is not None

    @property
    def has_errors(self) -> bool:
        return any(i.severity == IssueSeverity.ERROR for i in self.issues)

    def to_dict(self) -> dict:
        return {
            "id": self.event_id,
            "personId": self.person_id,
            "date": self.work_date.isoformat(),
            "type": self.entry_type.value if self.entry_type else None,
            "timestamp": self.timestamp.isoformat(),
            "source": self.source.value,
            "status": self.status.value if self.status else None,
            "notes": self.notes or "",
            "overrideLeaveId": self.override_leave_id,
            "leaveId": self.leave_id,
            "reconciled": self.reconciled,
            "resolutionNote": self.resolution_note,
            "reconciledBy": self.reconciled_by,
            "reconciledAt": self.reconciled_at.isoformat() if self.reconciled_at else None,
            "issues": [i.to_dict() for i in self.issues],
            "deviceId": self.device_id,
        }


@dataclass(frozen=True)
class NewEvent:
    """Input for AttendanceRepository.create_event."""

    person_id: Optional[int]
    work_date: date
    entry_type: Optional[EntryType]
    timestamp: datetime
    source: EventSource
    reconciled: bool
    status: Optional[AttendanceStatus] = None
    notes: Optional[str] = None
    override_leave_id: Optional[int] = None
    leave_id: Optional[int] = None
    issues: tuple[ValidationIssue, ...] = ()
    resolution_note: Optional[str] = None
    device_id: Optional[str] = None


@dataclass(frozen=True)
class DailyRecord:
    """Employee read-model: one row per person per date, derived from entries."""

    person_id: int
    work_date: date
    entries: tuple[int, ...]
    check_in_time: Optional[datetime]
    check_out_time: Optional[datetime]
    total_hours: float
    status: AttendanceStatus

    def to_dict(self) -> dict:
        return {
            "personId": self.person_id,
            "date": self.work_date.isoformat(),
            "entries": list(self.entries),
            "checkInTime": self.check_in_time.isoformat() if self.check_in_time else None,
            "checkOutTime": self.check_out_time.isoformat() if self.check_out_time else None,
            "totalHours": self.total_hours,
            "status": self.status.value,
        }
