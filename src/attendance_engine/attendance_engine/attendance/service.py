from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Callable, Optional

from ..common.batching import chunked
from ..common.locks import KeyedLock
from ..core.exceptions import ComputationError, ValidationError
from ..core.policy import EnginePolicy
from ..employees.repository import EmployeeRepository
from ..punches.classifier import ClassificationRun, PunchTypeClassifier
from ..punches.model import PunchFetch
from ..punches.repository import PunchRepository
from ..shifts.model import Shift
from ..shifts.repository import ShiftRepository
from .aggregator import DailyAttendanceAggregator
from .model import ReconciliationSummary
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


class AttendanceReconciliationService:
    """Re-reads raw punches and rewrites the affected attendance records.

    Safe to run repeatedly: unchanged records are not written, and every
    read-modify-write holds the per-(employee, date) lock shared with the
    missing punch-out resolver.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        punches: PunchRepository,
        employees: EmployeeRepository,
        shifts: ShiftRepository,
        *,
        policy: EnginePolicy,
        locks: KeyedLock,
        aggregator: Optional[DailyAttendanceAggregator] = None,
        classifier: Optional[PunchTypeClassifier] = None,
    ):
        self._attendance = attendance
        self._punches = punches
        self._employees = employees
        self._shifts = shifts
        self._policy = policy
        self._locks = locks
        self._classifier = classifier or PunchTypeClassifier(policy)
        self._aggregator = aggregator or DailyAttendanceAggregator(policy, classifier=self._classifier)

    def _shift_lookup(self, employees) -> Callable[[str], Optional[Shift]]:
        shifts = {s.shift_id: s for s in self._shifts.list_all()}
        assigned = {e.employee_code: e.shift_id for e in employees}

        def shift_for(employee_code: str) -> Optional[Shift]:
            shift_id = assigned.get(employee_code)
            if shift_id is None:
                return self._policy.default_shift
            # A dangling shift reference leaves boundaries unknown.
            return shifts.get(shift_id)

        return shift_for

    def _fetch(self, start_date: date, end_date: date) -> PunchFetch:
        # Night-shift check-outs land on the morning after the last work date.
        return self._punches.list_between(start_date, end_date + timedelta(days=1))

    def reconcile(self, start_date: date, end_date: date) -> ReconciliationSummary:
        if end_date < start_date:
            raise ValidationError("end date must not be before start date")

        fetch = self._fetch(start_date, end_date)
        employees = self._employees.list_active()
        drafts = self._aggregator.aggregate(
            fetch.events,
            employees=employees,
            shift_for=self._shift_lookup(employees),
            start_date=start_date,
            end_date=end_date,
        )

        written = unchanged = 0
        try:
            for batch in chunked(drafts, self._policy.batch_size):
                for draft in batch:
                    with self._locks.hold(draft.key):
                        existing = self._attendance.get(draft.employee_code, draft.work_date)
                        merged = self._aggregator.merge(existing, draft)
                        if merged is None:
                            unchanged += 1
                            continue
                        self._attendance.save(
                            merged,
                            expected_version=existing.version if existing else None,
                        )
                        written += 1
                logger.info("Reconciled %d/%d attendance records", written + unchanged, len(drafts))
        except ComputationError as exc:
            exc.skipped += fetch.skipped
            logger.error("Reconciliation %s..%s failed after %d writes: %s", start_date, end_date, written, exc)
            raise

        summary = ReconciliationSummary(
            start_date=start_date,
            end_date=end_date,
            punches_read=len(fetch.events),
            skipped_punches=fetch.skipped,
            records_written=written,
            records_unchanged=unchanged,
        )
        logger.info(
            "Reconciliation %s..%s: %d written, %d unchanged, %d punches skipped",
            start_date, end_date, written, unchanged, fetch.skipped,
        )
        return summary

    def classify(self, start_date: date, end_date: date) -> ClassificationRun:
        """Label every punch in range; used for punch-type reports."""

        fetch = self._fetch(start_date, end_date)
        employees = self._employees.list_active()
        return self._classifier.classify(
            list(fetch.events),
            self._shift_lookup(employees),
            start_date=start_date,
            end_date=end_date,
        )
