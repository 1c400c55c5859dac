from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.daily import DailyRecordBuilder
from .attendance.factory import DailyStatusStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .audit.mysql_audit_repository import MySQLAuditRepository
from .audit.repository import AuditRepository
from .automark.scheduler import AutoMarkScheduler
from .automark.service import AutoMarkService
from .batch.service import BatchProcessor
from .common.locks import PersonLocks
from .core.constants import DEFAULT_BATCH_MAX_WORKERS, DEFAULT_LOCK_TIMEOUT_SECONDS
from .database.connection import DBConfig, DatabaseConnection
from .leaves.coordinator import LeaveOverrideCoordinator
from .leaves.mysql_leave_repository import MySQLLeaveRepository
from .leaves.repository import LeaveRepository
from .payroll.service import AttendanceDayCountService
from .persons.mysql_person_repository import MySQLPersonRepository
from .persons.repository import PersonRepository
from .persons.service import PersonStateStore
from .reconciliation.service import ReconciliationQueue
from .settings.mysql_settings_repository import MySQLSettingsRepository
from .settings.repository import SettingsRepository
from .settings.service import SettingsService


@dataclass(frozen=True)
class Container:
    persons_repo: PersonRepository
    attendance_repo: AttendanceRepository
    leaves_repo: LeaveRepository
    settings_repo: SettingsRepository
    audit_repo: AuditRepository
    locks: PersonLocks

    settings_service: SettingsService
    state_store: PersonStateStore
    leave_coordinator: LeaveOverrideCoordinator
    attendance_service: AttendanceService
    batch_processor: BatchProcessor
    reconciliation_queue: ReconciliationQueue
    automark_service: AutoMarkService
    scheduler: AutoMarkScheduler
    day_count_service: AttendanceDayCountService

    conn: Optional[DatabaseConnection] = None


def build_services(
    *,
    persons_repo: PersonRepository,
    attendance_repo: AttendanceRepository,
    leaves_repo: LeaveRepository,
    settings_repo: SettingsRepository,
    audit_repo: AuditRepository,
    lock_timeout: float = DEFAULT_LOCK_TIMEOUT_SECONDS,
    batch_max_workers: int = DEFAULT_BATCH_MAX_WORKERS,
    timezone: Optional[str] = None,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    locks = PersonLocks(timeout=lock_timeout)
    daily_builder = DailyRecordBuilder(DailyStatusStrategyFactory())

    settings_service = SettingsService(settings_repo)
    state_store = PersonStateStore(persons_repo, attendance_repo, audit_repo, locks=locks)
    leave_coordinator = LeaveOverrideCoordinator(leaves_repo, attendance_repo, audit_repo, locks=locks)
    attendance_service = AttendanceService(
        attendance_repo,
        state_store,
        leave_coordinator,
        settings_service,
        locks=locks,
        daily_builder=daily_builder,
    )
    batch_processor = BatchProcessor(attendance_service, settings_service, max_workers=batch_max_workers)
    reconciliation_queue = ReconciliationQueue(attendance_repo, audit_repo)
    automark_service = AutoMarkService(
        persons_repo,
        attendance_repo,
        leave_coordinator,
        settings_service,
        locks=locks,
        daily_builder=daily_builder,
    )
    scheduler = AutoMarkScheduler(automark_service, settings_service, timezone=timezone)
    day_count_service = AttendanceDayCountService(attendance_repo)

    return Container(
        persons_repo=persons_repo,
        attendance_repo=attendance_repo,
        leaves_repo=leaves_repo,
        settings_repo=settings_repo,
        audit_repo=audit_repo,
        locks=locks,
        settings_service=settings_service,
        state_store=state_store,
        leave_coordinator=leave_coordinator,
        attendance_service=attendance_service,
        batch_processor=batch_processor,
        reconciliation_queue=reconciliation_queue,
        automark_service=automark_service,
        scheduler=scheduler,
        day_count_service=day_count_service,
        conn=conn,
    )


def build_container(
    *,
    db_config: dict,
    lock_timeout: float = DEFAULT_LOCK_TIMEOUT_SECONDS,
    batch_max_workers: int = DEFAULT_BATCH_MAX_WORKERS,
    timezone: Optional[str] = None,
) -> Container:
    config = DBConfig(
        host=str(db_config["host"]),
        port=int(db_config.get("port", 3306)),
        user=str(db_config["user"]),
        password=str(db_config["password"]),
        database=str(db_config["database"]),
        connection_timeout=int(db_config.get("connection_timeout", 10)),
        pool_size=int(db_config.get("pool_size", 8)),
    )
    conn = DatabaseConnection.get_instance(config)

    return build_services(
        persons_repo=MySQLPersonRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        leaves_repo=MySQLLeaveRepository(conn),
        settings_repo=MySQLSettingsRepository(conn),
        audit_repo=MySQLAuditRepository(conn),
        lock_timeout=lock_timeout,
        batch_max_workers=batch_max_workers,
        timezone=timezone,
        conn=conn,
    )
