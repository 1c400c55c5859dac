from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, Optional, Sequence

from ..core.enums import AttendanceStatus, EntryType, EventSource, PersonKind
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_json, to_json
from .model import AttendanceEvent, DailyRecord, NewEvent, ValidationIssue
from .repository import AttendanceRepository

_EVENT_COLUMNS = """
    e.event_id, e.person_id, e.work_date, e.entry_type, e.event_time, e.source, e.status,
    e.notes, e.override_leave_id, e.leave_id, e.reconciled, e.issues, e.voided,
    e.resolution_note, e.reconciled_by, e.reconciled_at, e.device_id
"""


def _to_event(r: Dict[str, Any]) -> AttendanceEvent:
    return AttendanceEvent(
        event_id=int(r["event_id"]),
        person_id=int(r["person_id"]) if r.get("person_id") is not None else None,
        work_date=r["work_date"],
        entry_type=EntryType(r["entry_type"]) if r.get("entry_type") else None,
        timestamp=r["event_time"],
        source=EventSource(r["source"]),
        reconciled=bool(r["reconciled"]),
        status=AttendanceStatus(r["status"]) if r.get("status") else None,
        notes=r.get("notes"),
        override_leave_id=r.get("override_leave_id"),
        leave_id=r.get("leave_id"),
        issues=tuple(ValidationIssue.from_dict(i) for i in from_json(r.get("issues"), [])),
        voided=bool(r.get("voided")),
        resolution_note=r.get("resolution_note"),
        reconciled_by=r.get("reconciled_by"),
        reconciled_at=r.get("reconciled_at"),
        device_id=r.get("device_id"),
    )


def _to_daily_record(r: Dict[str, Any]) -> DailyRecord:
    return DailyRecord(
        person_id=int(r["person_id"]),
        work_date=r["work_date"],
        entries=tuple(int(x) for x in from_json(r.get("entries"), [])),
        check_in_time=r.get("check_in_time"),
        check_out_time=r.get("check_out_time"),
        total_hours=float(r.get("total_hours") or 0),
        status=AttendanceStatus(r["status"]),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, event_id: int) -> Optional[AttendanceEvent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_EVENT_COLUMNS} FROM attendance_events e WHERE e.event_id=%s", (int(event_id),))
            r = fetchone(cur)
            return _to_event(r) if r else None

    def get_last_transition(self, person_id: int, *, as_of: Optional[date] = None) -> Optional[AttendanceEvent]:
        clauses = ["e.person_id=%s", "e.voided=0", "e.source<>%s", "e.entry_type IS NOT NULL"]
        params: list[object] = [int(person_id), EventSource.AUTO.value]
        if as_of is not None:
            clauses.append("e.work_date<=%s")
            params.append(as_of)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_EVENT_COLUMNS}
                FROM attendance_events e
                WHERE {" AND ".join(clauses)}
                ORDER BY e.event_time DESC, e.event_id DESC
                LIMIT 1
                """,
                tuple(params),
            )
            r = fetchone(cur)
            return _to_event(r) if r else None

    def list_for_person_and_date(self, person_id: int, work_date: date) -> Sequence[AttendanceEvent]:
        return self.list_for_person_in_range(person_id, work_date, work_date)

    def list_for_person_in_range(self, person_id: int, start: date, end: date) -> Sequence[AttendanceEvent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_EVENT_COLUMNS}
                FROM attendance_events e
                WHERE e.person_id=%s AND e.work_date BETWEEN %s AND %s AND e.voided=0
                ORDER BY e.event_time ASC, e.event_id ASC
                """,
                (int(person_id), start, end),
            )
            return [_to_event(r) for r in fetchall(cur)]

    def list_for_date(self, work_date: date) -> Sequence[AttendanceEvent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_EVENT_COLUMNS}
                FROM attendance_events e
                WHERE e.work_date=%s AND e.voided=0
                ORDER BY e.event_time ASC, e.event_id ASC
                """,
                (work_date,),
            )
            return [_to_event(r) for r in fetchall(cur)]

    def create_event(self, event: NewEvent) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_events(
                    person_id, work_date, entry_type, event_time, source, status, notes,
                    override_leave_id, leave_id, reconciled, issues, resolution_note, device_id
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    event.person_id,
                    event.work_date,
                    event.entry_type.value if event.entry_type else None,
                    event.timestamp,
                    event.source.value,
                    event.status.value if event.status else None,
                    event.notes,
                    event.override_leave_id,
                    event.leave_id,
                    int(event.reconciled),
                    to_json([i.to_dict() for i in event.issues]),
                    event.resolution_note,
                    event.device_id,
                ),
            )
            return int(cur.lastrowid)

    def void_auto_events_for_leave(self, *, person_id: int, leave_id: int, from_date: date) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_events
                SET voided=1
                WHERE person_id=%s AND leave_id=%s AND source=%s AND work_date>=%s AND voided=0
                """,
                (int(person_id), int(leave_id), EventSource.AUTO.value, from_date),
            )
            return int(cur.rowcount)

    def list_for_reconciliation(
        self,
        *,
        work_date: Optional[date] = None,
        kind: Optional[PersonKind] = None,
        block: Optional[str] = None,
        include_reconciled: bool = False,
        limit: int = 500,
    ) -> Sequence[AttendanceEvent]:
        clauses = ["e.voided=0"]
        params: list[object] = []

        if include_reconciled:
            clauses.append("(e.reconciled=0 OR e.status=%s)")
            params.append(AttendanceStatus.UNKNOWN.value)
        else:
            clauses.append("e.reconciled=0")
        if work_date is not None:
            clauses.append("e.work_date=%s")
            params.append(work_date)
        if kind is not None:
            clauses.append("p.kind=%s")
            params.append(kind.value)
        if block:
            clauses.append("p.block=%s")
            params.append(block)
        params.append(int(limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_EVENT_COLUMNS}
                FROM attendance_events e
                LEFT JOIN persons p ON p.person_id = e.person_id
                WHERE {" AND ".join(clauses)}
                ORDER BY e.work_date DESC, e.event_time ASC, e.event_id ASC
                LIMIT %s
                """,
                tuple(params),
            )
            return [_to_event(r) for r in fetchall(cur)]

    def mark_reconciled(
        self,
        event_id: int,
        *,
        notes: str,
        status: Optional[AttendanceStatus],
        reconciled_by: Optional[str],
        at: datetime,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            # The reconciled=0 guard makes the flip happen at most once.
            cur.execute(
                """
                UPDATE attendance_events
                SET reconciled=1, resolution_note=%s, status=COALESCE(%s, status),
                    reconciled_by=%s, reconciled_at=%s
                WHERE event_id=%s AND reconciled=0 AND voided=0
                """,
                (notes, status.value if status else None, reconciled_by, at, int(event_id)),
            )
            return cur.rowcount > 0

    def get_daily_record(self, person_id: int, work_date: date) -> Optional[DailyRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT person_id, work_date, entries, check_in_time, check_out_time, total_hours, status
                FROM daily_records
                WHERE person_id=%s AND work_date=%s
                """,
                (int(person_id), work_date),
            )
            r = fetchone(cur)
            return _to_daily_record(r) if r else None

    def upsert_daily_record(self, record: DailyRecord) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO daily_records(person_id, work_date, entries, check_in_time, check_out_time, total_hours, status)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    entries=VALUES(entries),
                    check_in_time=VALUES(check_in_time),
                    check_out_time=VALUES(check_out_time),
                    total_hours=VALUES(total_hours),
                    status=VALUES(status)
                """,
                (
                    record.person_id,
                    record.work_date,
                    to_json(list(record.entries)),
                    record.check_in_time,
                    record.check_out_time,
                    record.total_hours,
                    record.status.value,
                ),
            )

    def list_daily_records(
        self,
        *,
        start: date,
        end: date,
        person_id: Optional[int] = None,
    ) -> Sequence[DailyRecord]:
        clauses = ["work_date BETWEEN %s AND %s"]
        params: list[object] = [start, end]
        if person_id is not None:
            clauses.append("person_id=%s")
            params.append(int(person_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT person_id, work_date, entries, check_in_time, check_out_time, total_hours, status
                FROM daily_records
                WHERE {" AND ".join(clauses)}
                ORDER BY work_date DESC, person_id ASC
                """,
                tuple(params),
            )
            return [_to_daily_record(r) for r in fetchall(cur)]
