from __future__ import annotations

import json
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

import mysql.connector

from ..core.exceptions import TransientError
from .connection import DatabaseConnection

# Connector failures a caller may retry: lost connections, timeouts, pool exhaustion.
_TRANSIENT_ERRORS = (
    mysql.connector.errors.OperationalError,
    mysql.connector.errors.InterfaceError,
    mysql.connector.errors.PoolError,
)


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True) -> Iterator[tuple]:
    try:
        conn = conn_factory.connect()
    except _TRANSIENT_ERRORS as exc:
        raise TransientError(f"Database unavailable: {exc}") from exc

    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except _TRANSIENT_ERRORS as exc:
        conn.rollback()
        raise TransientError(f"Database operation failed: {exc}") from exc
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def to_json(value: Any) -> Optional[str]:
    if value is None:
        return None
    return json.dumps(value, default=str)


def from_json(value: Any, default: Any = None) -> Any:
    """Decode a JSON column; mysql-connector may hand back str, bytes or None."""

    if value is None or value == "":
        return default
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    if isinstance(value, str):
        return json.loads(value)
    return value
