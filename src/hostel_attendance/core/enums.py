from __future__ import annotations

from enum import Enum


class PersonKind(str, Enum):
    """The two populations tracked inside a hostel."""

    STUDENT = "student"
    EMPLOYEE = "employee"


class HostelState(str, Enum):
    """Cached presence state of a person."""

    IN = "IN"
    OUT = "OUT"
    UNKNOWN = "UNKNOWN"


class EntryType(str, Enum):
    IN = "IN"
    OUT = "OUT"

    @property
    def opposite(self) -> "EntryType":
        return EntryType.OUT if self is EntryType.IN else EntryType.IN


class EventSource(str, Enum):
    MANUAL = "manual"
    BIOMETRIC = "biometric"
    BULK = "bulk"
    AUTO = "auto"


class AttendanceStatus(str, Enum):
    """Daily verdict stored on events and daily records."""

    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    ON_LEAVE = "on_leave"
    UNKNOWN = "unknown"


class LeaveStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class IssueSeverity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class IssueType(str, Enum):
    DUPLICATE_ENTRY = "DUPLICATE_ENTRY"
    SHORT_DURATION = "SHORT_DURATION"
    LONG_DURATION = "LONG_DURATION"
    MISSING_OUT = "MISSING_OUT"
    MISSING_IN = "MISSING_IN"
    EXCESSIVE_ENTRIES = "EXCESSIVE_ENTRIES"
    UNUSUAL_TIME = "UNUSUAL_TIME"
    WEEKEND_ENTRY = "WEEKEND_ENTRY"
    UNMAPPED_SCAN = "UNMAPPED_SCAN"
    STATE_DRIFT = "STATE_DRIFT"


class RejectionReason(str, Enum):
    FIRST_ENTRY_MUST_BE_IN = "FIRST_ENTRY_MUST_BE_IN"
    DUPLICATE_STATE = "DUPLICATE_STATE"
