from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, from_json, to_json
from .model import AuditEntry
from .repository import AuditRepository


class MySQLAuditRepository(AuditRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def log(self, entry: AuditEntry) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO audit_logs(model, ref_id, action, actor, payload, reason, created_at)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    entry.model,
                    entry.ref_id,
                    entry.action,
                    entry.actor,
                    to_json(entry.payload),
                    entry.reason,
                    entry.created_at or datetime.now(),
                ),
            )
            return int(cur.lastrowid)

    def list_recent(self, *, model: Optional[str] = None, limit: int = 100) -> Sequence[AuditEntry]:
        where = "WHERE model=%s" if model else ""
        params: list[object] = [model] if model else []
        params.append(int(limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT audit_id, model, ref_id, action, actor, payload, reason, created_at
                FROM audit_logs
                {where}
                ORDER BY created_at DESC, audit_id DESC
                LIMIT %s
                """,
                tuple(params),
            )
            return [
                AuditEntry(
                    audit_id=int(r["audit_id"]),
                    model=r["model"],
                    ref_id=r.get("ref_id"),
                    action=r["action"],
                    actor=r.get("actor"),
                    payload=from_json(r.get("payload"), {}),
                    reason=r["reason"],
                    created_at=r.get("created_at"),
                )
                for r in fetchall(cur)
            ]
