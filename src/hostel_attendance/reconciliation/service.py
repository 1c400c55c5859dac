from __future__ import annotations

import logging
from collections import Counter
from datetime import date, datetime
from typing import Iterable, List, Optional

from ..attendance.model import AttendanceEvent
from ..attendance.repository import AttendanceRepository
from ..audit.model import AuditEntry
from ..audit.repository import AuditRepository
from ..common.validators import require_non_empty
from ..core.constants import BULK_RESOLUTION_NOTE, DEFAULT_QUEUE_LIMIT
from ..core.enums import AttendanceStatus, IssueSeverity, PersonKind
from ..core.exceptions import DomainError, NotFoundError, ReconciliationRequiredError, ValidationError
from .model import QueueStats, ResolveAllResult

logger = logging.getLogger(__name__)


def _as_status(value) -> Optional[AttendanceStatus]:
    if value is None or isinstance(value, AttendanceStatus):
        return value
    try:
        return AttendanceStatus(str(value).strip().lower())
    except ValueError:
        raise ValidationError(f"Unknown status {value!r}")


class ReconciliationQueue:
    """Surfaces events that cannot be trusted automatically and records their resolution.

    An event is resolved at most once; resolving requires a note and only the
    status may be corrected at the same time.
    """

    def __init__(self, attendance: AttendanceRepository, audit: AuditRepository):
        self._attendance = attendance
        self._audit = audit

    def list(
        self,
        work_date: Optional[date] = None,
        *,
        kind: Optional[PersonKind] = None,
        block: Optional[str] = None,
        severity: Optional[IssueSeverity] = None,
        include_reconciled: bool = False,
        limit: int = DEFAULT_QUEUE_LIMIT,
    ) -> List[AttendanceEvent]:
        events = self._attendance.list_for_reconciliation(
            work_date=work_date,
            kind=kind,
            block=block,
            include_reconciled=include_reconciled,
            limit=limit,
        )
        if severity is not None:
            events = [e for e in events if any(i.severity == severity for i in e.issues)]
        return list(events)

    def resolve(
        self,
        event_id: int,
        *,
        notes: str,
        status=None,
        actor: Optional[str] = None,
        now: datetime | None = None,
    ) -> AttendanceEvent:
        notes = require_non_empty(notes, "notes")
        status = _as_status(status)

        event = self._attendance.get(event_id)
        if not event:
            raise NotFoundError(f"Attendance event {event_id} not found")
        if event.voided:
            raise ValidationError(f"Attendance event {event_id} was voided")

        now = now or datetime.now()
        flipped = self._attendance.mark_reconciled(
            event_id, notes=notes, status=status, reconciled_by=actor, at=now
        )
        if flipped:
            self._audit.log(
                AuditEntry(
                    model="AttendanceEvent",
                    action="RECONCILE",
                    reason=notes,
                    ref_id=event_id,
                    actor=actor,
                    payload={
                        "personId": event.person_id,
                        "date": event.work_date.isoformat(),
                        "status": status.value if status else None,
                        "issues": [i.type.value for i in event.issues],
                    },
                    created_at=now,
                )
            )
            logger.info("Event %s reconciled by %s", event_id, actor or "system")

        stored = self._attendance.get(event_id)
        if stored is None:
            raise NotFoundError(f"Attendance event {event_id} not found")
        return stored

    def resolve_all(
        self,
        work_date: date,
        *,
        status=None,
        notes: str = BULK_RESOLUTION_NOTE,
        kind: Optional[PersonKind] = None,
        block: Optional[str] = None,
        include_errors: bool = False,
        actor: Optional[str] = None,
        now: datetime | None = None,
    ) -> ResolveAllResult:
        notes = require_non_empty(notes, "notes")
        status = _as_status(status)
        result = ResolveAllResult()

        for event in self.list(work_date, kind=kind, block=block):
            if event.has_errors and not include_errors:
                result.skipped += 1
                continue
            try:
                self.resolve(event.event_id, notes=notes, status=status, actor=actor, now=now)
                result.resolved += 1
            except DomainError as exc:
                result.errors.append({"eventId": event.event_id, "reason": str(exc)})

        logger.info(
            "Resolve-all for %s: %s resolved, %s skipped, %s error(s)",
            work_date.isoformat(),
            result.resolved,
            result.skipped,
            len(result.errors),
        )
        return result

    def stats(self, work_date: date) -> QueueStats:
        events = [e for e in self._attendance.list_for_date(work_date) if not e.voided]
        issue_types: Counter = Counter()
        severities: Counter = Counter()
        for e in events:
            for issue in e.issues:
                issue_types[issue.type.value] += 1
                severities[issue.severity.value] += 1

        unreconciled = [e for e in events if not e.reconciled]
        oldest = min((e.timestamp for e in unreconciled), default=None)
        return QueueStats(
            total=len(events),
            reconciled=len(events) - len(unreconciled),
            unreconciled=len(unreconciled),
            with_issues=sum(1 for e in events if e.issues),
            issue_types=dict(issue_types),
            severity_counts=dict(severities),
            oldest_unreconciled=oldest.isoformat() if oldest else None,
        )

    @staticmethod
    def require_reconciled(events: Iterable[AttendanceEvent]) -> None:
        pending = tuple(e.event_id for e in events if not e.voided and not e.reconciled)
        if pending:
            raise ReconciliationRequiredError(
                f"{len(pending)} attendance event(s) still need reconciliation", event_ids=pending
            )
