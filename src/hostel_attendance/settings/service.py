from __future__ import annotations

import logging
import threading
from dataclasses import replace
from datetime import date, datetime
from typing import Callable, List, Optional

from ..common.validators import require_bool, require_hhmm, require_non_negative
from ..core.exceptions import ValidationError
from .model import AttendanceSettings, LastRunInfo
from .repository import SettingsRepository

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = {
    "auto_mark_enabled",
    "auto_mark_time",
    "first_entry_must_be_in",
    "state_based_present_absent",
    "expected_check_in",
    "late_threshold_minutes",
}


class SettingsService:
    """Read-mostly access to the settings document.

    `get()` returns an immutable snapshot; writers are serialized so two
    concurrent updates cannot interleave their read-modify-write.
    """

    def __init__(self, settings: SettingsRepository):
        self._settings = settings
        self._write_lock = threading.Lock()
        self._listeners: List[Callable[[AttendanceSettings], None]] = []

    def get(self) -> AttendanceSettings:
        return self._settings.get() or AttendanceSettings()

    def add_listener(self, listener: Callable[[AttendanceSettings], None]) -> None:
        self._listeners.append(listener)

    def update(self, **changes) -> AttendanceSettings:
        unknown = set(changes) - _UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown settings: {', '.join(sorted(unknown))}")

        if "auto_mark_time" in changes:
            changes["auto_mark_time"] = require_hhmm(changes["auto_mark_time"], "autoMarkTime")
        if changes.get("expected_check_in"):
            changes["expected_check_in"] = require_hhmm(changes["expected_check_in"], "expectedCheckIn")
        elif "expected_check_in" in changes:
            changes["expected_check_in"] = None
        if "late_threshold_minutes" in changes:
            changes["late_threshold_minutes"] = require_non_negative(
                changes["late_threshold_minutes"], "lateThresholdMinutes"
            )
        for flag in ("auto_mark_enabled", "first_entry_must_be_in", "state_based_present_absent"):
            if flag in changes:
                changes[flag] = require_bool(changes[flag], flag)

        with self._write_lock:
            updated = replace(self.get(), **changes)
            self._settings.save(updated)

        logger.info("Attendance settings updated: %s", sorted(changes))
        for listener in self._listeners:
            listener(updated)
        return updated

    def record_last_run(
        self,
        *,
        run_date: date,
        present: int,
        absent: int,
        leave: int,
        ran_at: Optional[datetime] = None,
    ) -> None:
        info = LastRunInfo(
            run_date=run_date,
            present=int(present),
            absent=int(absent),
            leave=int(leave),
            ran_at=ran_at or datetime.now(),
        )
        with self._write_lock:
            self._settings.save(replace(self.get(), last_run_info=info))
