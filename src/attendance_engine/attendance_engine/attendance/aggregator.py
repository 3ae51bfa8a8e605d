from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Callable, Iterable, Optional, Sequence

from ..common.datetime_utils import iter_dates
from ..core.enums import AttendanceStatus, PunchState, ShiftStatus
from ..core.policy import EnginePolicy
from ..employees.model import Employee
from ..punches.classifier import PunchTypeClassifier
from ..punches.model import RawPunchEvent, dedupe_punches
from ..shifts.model import Shift
from .calculator.base import HoursCalculator
from .calculator.standard_calculator import StandardHoursCalculator
from .model import AttendanceRecord, append_note, remove_note

logger = logging.getLogger(__name__)

NON_BIO_EXEMPT_NOTE = "Non-biometric exempt: counted present by policy"


class DailyAttendanceAggregator:
    """Collapses raw punches into one AttendanceRecord per employee-day.

    Canonical check-in is the earliest check-in punch and canonical check-out
    the latest check-out punch; these drive hours. The classifier's label for
    the canonical check-in (or check-out when there is none) is kept on the
    record for reporting only.
    """

    def __init__(
        self,
        policy: EnginePolicy,
        *,
        classifier: Optional[PunchTypeClassifier] = None,
        calculator: Optional[HoursCalculator] = None,
    ):
        self._policy = policy
        self._classifier = classifier or PunchTypeClassifier(policy)
        self._calculator = calculator or StandardHoursCalculator()

    def _late_after(self, work_date: date, shift: Optional[Shift]) -> datetime:
        """Policy cutoff, or shift start plus grace for shifts starting after it."""
        cutoff = datetime.combine(work_date, self._policy.lateness_cutoff)
        if shift is None:
            return cutoff
        start, _ = shift.window_for(work_date)
        return max(cutoff, start + timedelta(minutes=shift.grace_minutes))

    def build_day(
        self,
        *,
        employee_code: str,
        work_date: date,
        punches: Iterable[RawPunchEvent],
        shift: Optional[Shift],
        non_bio_exempt: bool = False,
    ) -> AttendanceRecord:
        unique = dedupe_punches(punches)
        labels = {
            c.punch: c for c in self._classifier.classify_day(unique, shift=shift, work_date=work_date)
        } if unique else {}

        ins = [p for p in unique if p.punch_state == PunchState.CHECK_IN]
        outs = [p for p in unique if p.punch_state == PunchState.CHECK_OUT]
        first_in = ins[0] if ins else None
        last_out = outs[-1] if outs else None
        check_in = first_in.punch_time if first_in else None
        check_out = last_out.punch_time if last_out else None

        hours = self._calculator.worked_hours(check_in, check_out)
        completed = hours is not None and hours <= self._policy.max_shift_hours
        if completed:
            shift_status = ShiftStatus.COMPLETED
        elif unique:
            shift_status = ShiftStatus.INCOMPLETE
        else:
            shift_status = ShiftStatus.NONE

        is_late = check_in is not None and check_in > self._late_after(work_date, shift)
        if is_late:
            status = AttendanceStatus.LATE
        elif unique or non_bio_exempt:
            status = AttendanceStatus.PRESENT
        else:
            status = AttendanceStatus.ABSENT

        labelled = first_in or last_out
        overtime = (
            self._calculator.overtime_hours(hours, shift or self._policy.default_shift) if completed else 0.0
        )

        return AttendanceRecord(
            employee_code=employee_code,
            work_date=work_date,
            check_in=check_in,
            check_out=check_out,
            total_hours=hours,
            status=status,
            punch_type=labels[labelled].punch_type if labelled else None,
            shift_status=shift_status,
            is_late=is_late,
            overtime_hours=overtime,
            punch_count=len(unique),
            notes=NON_BIO_EXEMPT_NOTE if non_bio_exempt and not unique else None,
        )

    def aggregate(
        self,
        punches: Sequence[RawPunchEvent],
        *,
        employees: Sequence[Employee],
        shift_for: Callable[[str], Optional[Shift]],
        start_date: date,
        end_date: date,
    ) -> list[AttendanceRecord]:
        """Build records for every active employee and every punching employee in range."""

        groups: dict[tuple[str, date], list[RawPunchEvent]] = defaultdict(list)
        for p in punches:
            work_date = self._classifier.work_date_for(p, shift_for(p.employee_code))
            if start_date <= work_date <= end_date:
                groups[(p.employee_code, work_date)].append(p)

        exempt = {e.employee_code: e.non_bio_exempt for e in employees}
        keys = set(groups)
        for day in iter_dates(start_date, end_date):
            keys.update((code, day) for code in exempt)

        unknown = {code for code, _ in groups if code not in exempt}
        if unknown:
            logger.info("Punches from %d employees outside the active roster", len(unknown))

        return [
            self.build_day(
                employee_code=code,
                work_date=day,
                punches=groups.get((code, day), ()),
                shift=shift_for(code),
                non_bio_exempt=exempt.get(code, False),
            )
            for code, day in sorted(keys, key=lambda k: (k[1], k[0]))
        ]

    def merge(self, existing: Optional[AttendanceRecord], fresh: AttendanceRecord) -> Optional[AttendanceRecord]:
        """Fold a freshly built record onto the stored one.

        Returns None when nothing changed, so re-running on unchanged punches
        writes nothing. A resolver-synthesised check-out survives until a real
        check-out punch arrives.
        """

        if existing is None:
            return fresh

        notes = existing.notes
        if fresh.punch_count:
            notes = remove_note(notes, NON_BIO_EXEMPT_NOTE)
        if fresh.notes:
            notes = append_note(notes, fresh.notes)
        merged = replace(fresh, notes=notes, version=existing.version, updated_at=existing.updated_at)

        if existing.adjusted:
            if fresh.check_out is None and fresh.check_in == existing.check_in:
                merged = replace(
                    merged,
                    check_out=existing.check_out,
                    total_hours=existing.total_hours,
                    adjusted=True,
                )
            elif fresh.check_out is not None:
                merged = merged.with_note(f"Synthetic check-out superseded by punch at {fresh.check_out:%H:%M}")
            else:
                merged = merged.with_note("Synthetic check-out dropped after check-in changed")

        if merged == existing:
            return None
        return merged
