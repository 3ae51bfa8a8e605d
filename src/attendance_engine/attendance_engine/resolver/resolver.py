from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Callable, Optional

from ..attendance.model import AttendanceRecord
from ..attendance.repository import AttendanceRepository
from ..common.batching import chunked
from ..common.datetime_utils import hours_between, now_local
from ..common.locks import KeyedLock
from ..core.constants import ANTI_OVERBILLING_NOTE
from ..core.exceptions import AdjustmentFailure, ComputationError, ValidationError
from ..core.policy import EnginePolicy
from .model import PunchOutAdjustment, ResolutionSummary

logger = logging.getLogger(__name__)


class MissingPunchOutResolver:
    """Caps the hours of records that have a check-in but no check-out.

    An open record accrues hours until its elapsed time passes the configured
    credit; from then on it is closed with a synthetic check-out at
    check-in + credit and the excess is reported as hours saved. Each record
    is handled independently: a failure is logged and the record is left
    untouched for the next pass.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        *,
        policy: EnginePolicy,
        locks: KeyedLock,
        clock: Callable[[], datetime] = now_local,
        on_adjusted: Optional[Callable[[date], None]] = None,
    ):
        self._attendance = attendance
        self._policy = policy
        self._locks = locks
        self._clock = clock
        self._on_adjusted = on_adjusted

    def evaluate(self, record: AttendanceRecord, *, as_of: datetime) -> PunchOutAdjustment:
        if record.check_in is None:
            raise ValidationError(f"Record {record.employee_code}/{record.work_date} has no check-in")

        credit = self._policy.missing_punch_out_credit_hours
        raw_hours = round(max(hours_between(record.check_in, as_of), 0.0), 2)

        if raw_hours <= credit:
            return PunchOutAdjustment(
                employee_code=record.employee_code,
                work_date=record.work_date,
                check_in=record.check_in,
                estimated_check_out=None,
                raw_hours=raw_hours,
                corrected_hours=raw_hours,
                hours_saved=0.0,
                adjusted=False,
                reason=f"Open for {raw_hours}h, within {credit}h credit",
            )

        return PunchOutAdjustment(
            employee_code=record.employee_code,
            work_date=record.work_date,
            check_in=record.check_in,
            estimated_check_out=record.check_in + timedelta(hours=credit),
            raw_hours=raw_hours,
            corrected_hours=credit,
            hours_saved=round(raw_hours - credit, 2),
            adjusted=True,
            reason=f"No punch-out: {credit}h credited of {raw_hours}h elapsed",
        )

    def _apply(self, adjustment: PunchOutAdjustment, record: AttendanceRecord, *, as_of: datetime) -> None:
        corrected = replace(
            record,
            check_out=adjustment.estimated_check_out,
            total_hours=adjustment.corrected_hours,
            adjusted=True,
        ).with_note(f"{ANTI_OVERBILLING_NOTE} {as_of:%Y-%m-%d %H:%M}: {adjustment.reason}")
        try:
            self._attendance.save(corrected, expected_version=record.version)
        except ComputationError as exc:
            raise AdjustmentFailure(
                f"Could not write correction for {record.employee_code}/{record.work_date}: {exc}"
            ) from exc

    def _resolve_one(self, key: tuple[str, date], *, as_of: datetime) -> Optional[PunchOutAdjustment]:
        with self._locks.hold(key):
            # Re-read under the lock; the record may have been closed meanwhile.
            current = self._attendance.get(*key)
            if current is None or not current.is_open:
                return None
            adjustment = self.evaluate(current, as_of=as_of)
            if adjustment.adjusted:
                self._apply(adjustment, current, as_of=as_of)
            return adjustment

    def run(self, start_date: date, end_date: date, *, as_of: Optional[datetime] = None) -> ResolutionSummary:
        if end_date < start_date:
            raise ValidationError("end date must not be before start date")
        as_of = as_of or self._clock()

        open_records = self._attendance.list_open(start_date, end_date)
        results: list[PunchOutAdjustment] = []
        failed = 0
        adjusted_dates: set[date] = set()

        for batch in chunked(open_records, self._policy.batch_size):
            for record in batch:
                try:
                    adjustment = self._resolve_one(record.key, as_of=as_of)
                except AdjustmentFailure as exc:
                    failed += 1
                    logger.error("%s; will retry on next pass", exc)
                    continue
                except Exception:
                    failed += 1
                    logger.exception("Missing punch-out resolution failed for %s/%s", *record.key)
                    continue
                if adjustment is None:
                    continue
                results.append(adjustment)
                if adjustment.adjusted:
                    adjusted_dates.add(adjustment.work_date)
                    logger.info(
                        "Capped %s on %s: %sh -> %sh",
                        adjustment.employee_code, adjustment.work_date,
                        adjustment.raw_hours, adjustment.corrected_hours,
                    )

        if self._on_adjusted:
            for day in sorted(adjusted_dates):
                self._on_adjusted(day)

        adjustments = [r for r in results if r.adjusted]
        summary = ResolutionSummary(
            processed_records=len(results),
            adjustments_made=len(adjustments),
            hours_saved=round(sum(r.hours_saved for r in adjustments), 2),
            failed=failed,
            results=tuple(results),
        )
        logger.info(
            "Missing punch-out pass %s..%s: %d processed, %d adjusted, %.2fh saved, %d failed",
            start_date, end_date, summary.processed_records, summary.adjustments_made,
            summary.hours_saved, summary.failed,
        )
        return summary

    def run_for_today(self) -> ResolutionSummary:
        """Periodic pass over yesterday's and today's open records.

        Yesterday is included so a check-in late in the day, still under the
        credit at midnight, is capped on the following day's passes.
        """
        now = self._clock()
        return self.run(now.date() - timedelta(days=1), now.date(), as_of=now)
