from __future__ import annotations

from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable, Mapping, Optional

from .attendance.aggregator import DailyAttendanceAggregator
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceReconciliationService
from .common.cache import TTLCache
from .common.datetime_utils import now_local
from .common.locks import KeyedLock
from .core.policy import EnginePolicy
from .database.connection import DBConfig, DatabaseConnection
from .employees.mysql_employee_repository import MySQLEmployeeRepository
from .employees.repository import EmployeeRepository
from .metrics.model import DailyMetricsSnapshot
from .metrics.mysql_metrics_repository import MySQLMetricsSnapshotRepository
from .metrics.repository import MetricsSnapshotRepository
from .metrics.service import MetricsService
from .punches.classifier import PunchTypeClassifier
from .punches.mysql_punch_repository import MySQLPunchRepository
from .punches.repository import PunchRepository
from .resolver.resolver import MissingPunchOutResolver
from .shifts.mysql_shift_repository import MySQLShiftRepository
from .shifts.repository import ShiftRepository


@dataclass(frozen=True)
class Container:
    policy: EnginePolicy
    clock: Callable[[], datetime]
    locks: KeyedLock

    employees_repo: EmployeeRepository
    shifts_repo: ShiftRepository
    punches_repo: PunchRepository
    attendance_repo: AttendanceRepository
    snapshots_repo: MetricsSnapshotRepository

    metrics_cache: TTLCache[date, DailyMetricsSnapshot]
    reconciliation_service: AttendanceReconciliationService
    resolver: MissingPunchOutResolver
    metrics_service: MetricsService

    conn: Optional[DatabaseConnection] = None


def assemble_container(
    *,
    employees_repo: EmployeeRepository,
    shifts_repo: ShiftRepository,
    punches_repo: PunchRepository,
    attendance_repo: AttendanceRepository,
    snapshots_repo: MetricsSnapshotRepository,
    policy: Optional[EnginePolicy] = None,
    clock: Callable[[], datetime] = now_local,
    cache_clock: Optional[Callable[[], float]] = None,
    cache_executor: Optional[Executor] = None,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    """Wire services over any set of repositories (MySQL or in-memory)."""

    policy = policy or EnginePolicy()
    locks = KeyedLock()

    cache_kwargs: dict[str, Any] = {"ttl_seconds": policy.metrics_cache_ttl_seconds, "executor": cache_executor}
    if cache_clock is not None:
        cache_kwargs["clock"] = cache_clock
    metrics_cache: TTLCache[date, DailyMetricsSnapshot] = TTLCache(**cache_kwargs)

    classifier = PunchTypeClassifier(policy)
    reconciliation_service = AttendanceReconciliationService(
        attendance_repo,
        punches_repo,
        employees_repo,
        shifts_repo,
        policy=policy,
        locks=locks,
        aggregator=DailyAttendanceAggregator(policy, classifier=classifier),
        classifier=classifier,
    )
    resolver = MissingPunchOutResolver(
        attendance_repo,
        policy=policy,
        locks=locks,
        clock=clock,
        on_adjusted=metrics_cache.invalidate,
    )
    metrics_service = MetricsService(
        attendance_repo,
        employees_repo,
        snapshots_repo,
        reconciliation_service,
        policy=policy,
        cache=metrics_cache,
        clock=clock,
    )

    return Container(
        policy=policy,
        clock=clock,
        locks=locks,
        employees_repo=employees_repo,
        shifts_repo=shifts_repo,
        punches_repo=punches_repo,
        attendance_repo=attendance_repo,
        snapshots_repo=snapshots_repo,
        metrics_cache=metrics_cache,
        reconciliation_service=reconciliation_service,
        resolver=resolver,
        metrics_service=metrics_service,
        conn=conn,
    )


def build_container(*, db_config: Mapping[str, Any], policy: Optional[EnginePolicy] = None) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))
    return assemble_container(
        employees_repo=MySQLEmployeeRepository(conn),
        shifts_repo=MySQLShiftRepository(conn),
        punches_repo=MySQLPunchRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        snapshots_repo=MySQLMetricsSnapshotRepository(conn),
        policy=policy,
        cache_executor=ThreadPoolExecutor(max_workers=1, thread_name_prefix="metrics-refresh"),
        conn=conn,
    )
