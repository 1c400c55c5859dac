from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone, from_json, to_json
from .model import AttendanceSettings, LastRunInfo
from .repository import SettingsRepository

_SETTINGS_ROW_ID = 1


class MySQLSettingsRepository(SettingsRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self) -> Optional[AttendanceSettings]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT auto_mark_enabled, auto_mark_time, first_entry_must_be_in,
                       state_based_present_absent, expected_check_in,
                       late_threshold_minutes, last_run_info
                FROM attendance_settings
                WHERE settings_id=%s
                """,
                (_SETTINGS_ROW_ID,),
            )
            r = fetchone(cur)
            if not r:
                return None

            last_run = from_json(r.get("last_run_info"))
            return AttendanceSettings(
                auto_mark_enabled=bool(r["auto_mark_enabled"]),
                auto_mark_time=str(r["auto_mark_time"]),
                first_entry_must_be_in=bool(r["first_entry_must_be_in"]),
                state_based_present_absent=bool(r["state_based_present_absent"]),
                expected_check_in=r.get("expected_check_in"),
                late_threshold_minutes=int(r.get("late_threshold_minutes") or 0),
                last_run_info=_last_run_from_dict(last_run) if last_run else None,
            )

    def save(self, settings: AttendanceSettings) -> None:
        last_run = settings.last_run_info.to_dict() if settings.last_run_info else None
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_settings(
                    settings_id, auto_mark_enabled, auto_mark_time, first_entry_must_be_in,
                    state_based_present_absent, expected_check_in, late_threshold_minutes, last_run_info
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    auto_mark_enabled=VALUES(auto_mark_enabled),
                    auto_mark_time=VALUES(auto_mark_time),
                    first_entry_must_be_in=VALUES(first_entry_must_be_in),
                    state_based_present_absent=VALUES(state_based_present_absent),
                    expected_check_in=VALUES(expected_check_in),
                    late_threshold_minutes=VALUES(late_threshold_minutes),
                    last_run_info=VALUES(last_run_info)
                """,
                (
                    _SETTINGS_ROW_ID,
                    int(settings.auto_mark_enabled),
                    settings.auto_mark_time,
                    int(settings.first_entry_must_be_in),
                    int(settings.state_based_present_absent),
                    settings.expected_check_in,
                    int(settings.late_threshold_minutes),
                    to_json(last_run),
                ),
            )


def _last_run_from_dict(data: dict) -> LastRunInfo:
    return LastRunInfo(
        run_date=date.fromisoformat(data["date"]),
        present=int(data.get("present", 0)),
        absent=int(data.get("absent", 0)),
        leave=int(data.get("leave", 0)),
        ran_at=datetime.fromisoformat(data["ranAt"]),
    )
