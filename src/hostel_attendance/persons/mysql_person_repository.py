from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional, Sequence

from ..core.enums import HostelState, PersonKind
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Person
from .repository import PersonRepository


def _to_person(r: Dict[str, Any]) -> Person:
    return Person(
        person_id=int(r["person_id"]),
        kind=PersonKind(r["kind"]),
        full_name=r["full_name"],
        current_state=HostelState(r["current_state"]) if r.get("current_state") else None,
        last_state_update=r.get("last_state_update"),
        block=r.get("block"),
        is_active=bool(r.get("is_active", 1)),
    )


class MySQLPersonRepository(PersonRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, person_id: int) -> Optional[Person]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT person_id, kind, full_name, current_state, last_state_update, block, is_active
                FROM persons
                WHERE person_id=%s
                """,
                (int(person_id),),
            )
            r = fetchone(cur)
            return _to_person(r) if r else None

    def list_active(self, *, kind: Optional[PersonKind] = None, block: Optional[str] = None) -> Sequence[Person]:
        clauses = ["is_active=1"]
        params: list[object] = []
        if kind is not None:
            clauses.append("kind=%s")
            params.append(kind.value)
        if block:
            clauses.append("block=%s")
            params.append(block)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT person_id, kind, full_name, current_state, last_state_update, block, is_active
                FROM persons
                WHERE {" AND ".join(clauses)}
                ORDER BY person_id ASC
                """,
                tuple(params),
            )
            return [_to_person(r) for r in fetchall(cur)]

    def update_state(self, person_id: int, *, state: HostelState, at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE persons SET current_state=%s, last_state_update=%s WHERE person_id=%s",
                (state.value, at, int(person_id)),
            )
            return cur.rowcount > 0

    def update_all_states(self, *, state: HostelState, at: datetime, kind: Optional[PersonKind] = None) -> int:
        clauses = ["is_active=1"]
        params: list[object] = [state.value, at]
        if kind is not None:
            clauses.append("kind=%s")
            params.append(kind.value)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE persons SET current_state=%s, last_state_update=%s WHERE {' AND '.join(clauses)}",
                tuple(params),
            )
            return int(cur.rowcount)
