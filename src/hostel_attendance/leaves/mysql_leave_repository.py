from __future__ import annotations

from datetime import date
from typing import Any, Dict, Optional

from ..core.enums import LeaveStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import LeaveApplication
from .repository import LeaveRepository

_COLUMNS = """
    leave_id, person_id, from_date, to_date, status, reason, is_paid,
    early_return, actual_return_date, early_return_notes
"""


def _to_leave(r: Dict[str, Any]) -> LeaveApplication:
    return LeaveApplication(
        leave_id=int(r["leave_id"]),
        person_id=int(r["person_id"]),
        from_date=r["from_date"],
        to_date=r["to_date"],
        status=LeaveStatus(r["status"]),
        reason=r.get("reason") or "",
        is_paid=bool(r.get("is_paid")),
        early_return=bool(r.get("early_return")),
        actual_return_date=r.get("actual_return_date"),
        early_return_notes=r.get("early_return_notes"),
    )


class MySQLLeaveRepository(LeaveRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, leave_id: int) -> Optional[LeaveApplication]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM leave_applications WHERE leave_id=%s", (int(leave_id),))
            r = fetchone(cur)
            return _to_leave(r) if r else None

    def get_active_for(self, person_id: int, day: date) -> Optional[LeaveApplication]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM leave_applications
                WHERE person_id=%s
                  AND status='approved'
                  AND from_date <= %s
                  AND (
                    (early_return=0 AND to_date >= %s)
                    OR (early_return=1 AND actual_return_date > %s)
                  )
                ORDER BY from_date ASC, leave_id ASC
                LIMIT 1
                """,
                (int(person_id), day, day, day),
            )
            r = fetchone(cur)
            return _to_leave(r) if r else None

    def mark_early_return(self, leave_id: int, *, return_date: date, notes: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_applications
                SET early_return=1, actual_return_date=%s, early_return_notes=%s
                WHERE leave_id=%s AND early_return=0
                """,
                (return_date, notes, int(leave_id)),
            )
            return cur.rowcount > 0
