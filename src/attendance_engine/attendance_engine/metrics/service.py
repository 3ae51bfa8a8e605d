from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Callable, Optional

from ..attendance.repository import AttendanceRepository
from ..attendance.service import AttendanceReconciliationService
from ..common.cache import TTLCache
from ..common.datetime_utils import iter_dates, now_local
from ..core.exceptions import DomainError, ValidationError
from ..core.policy import EnginePolicy
from ..employees.repository import EmployeeRepository
from .calculator import MetricsCalculator
from .estimator import ExpectedHeadcountEstimator
from .model import DailyMetricsSnapshot, RangeRecompute, TEEMetrics
from .repository import MetricsSnapshotRepository

logger = logging.getLogger(__name__)


class MetricsService:
    """Dashboard-facing entry point for daily metrics and TEE.

    A metrics request first reconciles the day's raw punches, then composes
    the snapshot from the stored records and persists it. Snapshots are
    served through a TTL cache; failures propagate so the caller can report
    an explicit computation failure.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        employees: EmployeeRepository,
        snapshots: MetricsSnapshotRepository,
        reconciliation: AttendanceReconciliationService,
        *,
        policy: EnginePolicy,
        cache: TTLCache[date, DailyMetricsSnapshot],
        estimator: Optional[ExpectedHeadcountEstimator] = None,
        calculator: Optional[MetricsCalculator] = None,
        clock: Callable[[], datetime] = now_local,
    ):
        self._attendance = attendance
        self._employees = employees
        self._snapshots = snapshots
        self._reconciliation = reconciliation
        self._policy = policy
        self._cache = cache
        self._clock = clock
        self._estimator = estimator or ExpectedHeadcountEstimator(attendance, policy=policy, clock=clock)
        self._calculator = calculator or MetricsCalculator(policy)

    def compute_daily(self, work_date: date) -> DailyMetricsSnapshot:
        self._reconciliation.reconcile(work_date, work_date)

        active = self._employees.list_active()
        records = self._attendance.list_between(work_date, work_date)
        snapshot = self._calculator.calculate(
            work_date=work_date,
            total_active_employees=len(active),
            non_bio_exempt=self._calculator.non_bio_exempt_count(active),
            records=records,
            expected_employees=self._estimator.tee_for(work_date),
            calculated_at=self._clock(),
        )
        self._snapshots.save(snapshot)
        logger.info(
            "Metrics %s: %d/%d attended (%s), TEE %d",
            work_date, snapshot.total_attendance, snapshot.total_active_employees,
            snapshot.system_health.value, snapshot.expected_employees,
        )
        return snapshot

    def get_daily_metrics(self, work_date: date, *, refresh: bool = False) -> DailyMetricsSnapshot:
        if refresh:
            self._cache.invalidate(work_date)
        return self._cache.get_or_load(work_date, lambda: self.compute_daily(work_date))

    def get_tee(self, work_date: date) -> int:
        return self._estimator.tee_for(work_date)

    def get_tee_metrics(self, work_date: date) -> TEEMetrics:
        return self._estimator.compute(work_date)

    def get_stored_snapshot(self, work_date: date) -> Optional[DailyMetricsSnapshot]:
        return self._snapshots.get(work_date)

    def recompute_range(self, start_date: date, end_date: date) -> RangeRecompute:
        if end_date < start_date:
            raise ValidationError("end date must not be before start date")

        computed: list[date] = []
        failed: list[date] = []
        for day in iter_dates(start_date, end_date):
            try:
                snapshot = self.compute_daily(day)
            except DomainError:
                logger.exception("Metrics recomputation failed for %s; continuing", day)
                failed.append(day)
                continue
            self._cache.put(day, snapshot)
            computed.append(day)

        logger.info("Recomputed metrics %s..%s: %d ok, %d failed", start_date, end_date, len(computed), len(failed))
        return RangeRecompute(computed=tuple(computed), failed=tuple(failed))

    def invalidate(self, work_date: Optional[date] = None) -> None:
        self._cache.invalidate(work_date)
