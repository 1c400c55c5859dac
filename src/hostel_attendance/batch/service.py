from __future__ import annotations

import logging
from collections import OrderedDict
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import date, datetime
from typing import Iterable, List, Optional, Sequence

from ..attendance.results import MarkAccepted, MarkRejected
from ..attendance.service import AttendanceService
from ..core.constants import DEFAULT_BATCH_MAX_WORKERS
from ..core.enums import EventSource
from ..core.exceptions import DomainError
from ..leaves.model import LeaveConflict
from ..settings.model import AttendanceSettings
from ..settings.service import SettingsService
from .csv_parser import parse_marks_csv
from .model import BatchItem, BatchResult, ItemErr, ItemOk, ItemResult, ItemSkipped

logger = logging.getLogger(__name__)


class BatchProcessor:
    """Applies many marks for one date, each item on its own.

    Items of one person run in input order; different persons run in
    parallel. A failing item never rolls back or aborts another.
    """

    def __init__(
        self,
        attendance: AttendanceService,
        settings: SettingsService,
        *,
        max_workers: int = DEFAULT_BATCH_MAX_WORKERS,
    ):
        self._attendance = attendance
        self._settings = settings
        self._max_workers = max(1, int(max_workers))

    def bulk_mark(
        self,
        work_date: date,
        items: Sequence[BatchItem],
        notes: Optional[str] = None,
        *,
        now: datetime | None = None,
    ) -> BatchResult:
        return self._run(work_date, list(enumerate(items)), notes=notes, now=now)

    def bulk_mark_csv(
        self,
        work_date: date,
        text: str,
        notes: Optional[str] = None,
        *,
        now: datetime | None = None,
    ) -> BatchResult:
        parsed = parse_marks_csv(text)
        result = self._run(work_date, parsed.items, notes=notes, now=now)
        result.items.extend(parsed.errors)
        result.items.sort(key=lambda i: i.index)
        return result

    def _run(
        self,
        work_date: date,
        indexed: Iterable[tuple[int, BatchItem]],
        *,
        notes: Optional[str],
        now: datetime | None,
    ) -> BatchResult:
        settings = self._settings.get()
        now = now or datetime.now()

        groups: "OrderedDict[int, List[tuple[int, BatchItem]]]" = OrderedDict()
        for index, item in indexed:
            groups.setdefault(item.person_id, []).append((index, item))

        result = BatchResult(work_date=work_date)
        if not groups:
            return result

        with ThreadPoolExecutor(max_workers=min(self._max_workers, len(groups))) as executor:
            futures = {
                executor.submit(self._run_group, group, work_date=work_date, notes=notes, settings=settings, now=now): pid
                for pid, group in groups.items()
            }
            for future in as_completed(futures):
                result.items.extend(future.result())

        result.items.sort(key=lambda i: i.index)
        logger.info(
            "Bulk mark for %s: %s inserted, %s skipped on leave, %s error(s)",
            work_date.isoformat(),
            result.inserted,
            result.skipped_on_leave,
            len(result.errors),
        )
        return result

    def _run_group(
        self,
        group: Sequence[tuple[int, BatchItem]],
        *,
        work_date: date,
        notes: Optional[str],
        settings: AttendanceSettings,
        now: datetime,
    ) -> List[ItemResult]:
        return [
            self._run_item(index, item, work_date=work_date, notes=notes, settings=settings, now=now)
            for index, item in group
        ]

    def _run_item(
        self,
        index: int,
        item: BatchItem,
        *,
        work_date: date,
        notes: Optional[str],
        settings: AttendanceSettings,
        now: datetime,
    ) -> ItemResult:
        try:
            outcome = self._attendance.mark_attendance(
                item.person_id,
                item.entry_type,
                item.notes or notes,
                now=now,
                work_date=work_date,
                source=EventSource.BULK,
                settings=settings,
            )
        except DomainError as exc:
            return ItemErr(index=index, person_id=item.person_id, reason=str(exc))
        except Exception:
            logger.exception("Bulk item %s for person %s failed", index, item.person_id)
            return ItemErr(index=index, person_id=item.person_id, reason="INTERNAL_ERROR")

        if isinstance(outcome, MarkAccepted):
            return ItemOk(index=index, person_id=item.person_id, event_id=outcome.event.event_id, entry_type=item.entry_type)
        if isinstance(outcome, LeaveConflict):
            return ItemSkipped(index=index, person_id=item.person_id, leave_id=outcome.leave.leave_id)
        if isinstance(outcome, MarkRejected):
            return ItemErr(index=index, person_id=item.person_id, reason=outcome.reason.value)
        return ItemErr(index=index, person_id=item.person_id, reason="CANCELLED")
