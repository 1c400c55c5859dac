from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler

from ..common.datetime_utils import now_local, parse_hhmm
from ..settings.model import AttendanceSettings
from ..settings.service import SettingsService
from .service import AutoMarkService

logger = logging.getLogger(__name__)

JOB_ID = "attendance-auto-mark"


class AutoMarkScheduler:
    """Daily cron job running the auto-mark sweep at the configured time.

    A run firing at noon or later marks the current day; one firing before
    noon (e.g. "00:30") marks the previous day.
    """

    def __init__(
        self,
        automark: AutoMarkService,
        settings: SettingsService,
        *,
        timezone: Optional[str] = None,
        scheduler: Optional[BackgroundScheduler] = None,
        clock: Callable = now_local,
    ):
        self._automark = automark
        self._settings = settings
        self._clock = clock
        self._scheduler = scheduler or BackgroundScheduler(
            timezone=timezone,
            job_defaults={"coalesce": True, "misfire_grace_time": 3600},
        )

    def start(self) -> None:
        self.reschedule(self._settings.get())
        if not self._scheduler.running:
            self._scheduler.start()
            logger.info("Auto-mark scheduler started")

    def stop(self) -> None:
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            logger.info("Auto-mark scheduler stopped")

    def reschedule(self, settings: AttendanceSettings) -> None:
        if self._scheduler.get_job(JOB_ID):
            self._scheduler.remove_job(JOB_ID)

        if not settings.auto_mark_enabled:
            logger.info("Auto-mark disabled; no job scheduled")
            return

        at = parse_hhmm(settings.auto_mark_time)
        self._scheduler.add_job(
            self.run_job,
            "cron",
            hour=at.hour,
            minute=at.minute,
            id=JOB_ID,
            replace_existing=True,
        )
        logger.info("Auto-mark scheduled daily at %s", settings.auto_mark_time)

    def target_date(self) -> date:
        now = self._clock()
        # Before noon the sweep is a catch-up for yesterday.
        if now.hour < 12:
            return now.date() - timedelta(days=1)
        return now.date()

    def run_job(self) -> None:
        if not self._settings.get().auto_mark_enabled:
            logger.info("Auto-mark disabled; skipping scheduled run")
            return
        self._automark.run_for_date(self.target_date())

    def status(self) -> dict:
        job = self._scheduler.get_job(JOB_ID)
        next_run = getattr(job, "next_run_time", None) if job else None
        return {
            "running": bool(self._scheduler.running),
            "scheduled": job is not None,
            "nextRunTime": next_run.isoformat() if next_run else None,
        }
