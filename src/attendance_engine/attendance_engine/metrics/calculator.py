from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, Sequence

from ..attendance.model import AttendanceRecord
from ..core.enums import ShiftStatus, SystemHealth
from ..core.policy import EnginePolicy
from ..employees.model import Employee
from .model import DailyMetricsSnapshot


def clamp_rate(value: float) -> float:
    return min(max(value, 0.0), 1.0)


class MetricsCalculator:
    """Pure composition of one day's records into a DailyMetricsSnapshot."""

    def __init__(self, policy: EnginePolicy):
        self._policy = policy

    def non_bio_exempt_count(self, active_employees: Sequence[Employee]) -> int:
        capacity = self._policy.biometric_capacity
        if capacity is not None:
            return max(0, len(active_employees) - capacity)
        return sum(1 for e in active_employees if e.non_bio_exempt)

    def health(self, attendance_rate: float) -> SystemHealth:
        if attendance_rate < self._policy.health_critical_rate:
            return SystemHealth.CRITICAL
        if attendance_rate < self._policy.health_warning_rate:
            return SystemHealth.WARNING
        return SystemHealth.HEALTHY

    def calculate(
        self,
        *,
        work_date: date,
        total_active_employees: int,
        non_bio_exempt: int,
        records: Iterable[AttendanceRecord],
        expected_employees: int,
        calculated_at: datetime,
    ) -> DailyMetricsSnapshot:
        day_records = [r for r in records if r.work_date == work_date]

        checked_in = {r.employee_code for r in day_records if r.check_in is not None}
        checked_out = {r.employee_code for r in day_records if r.check_out is not None}
        unique_in = len(checked_in)
        unique_out = len(checked_out)

        completed = len({r.employee_code for r in day_records if r.shift_status == ShiftStatus.COMPLETED})
        incomplete = len({r.employee_code for r in day_records if r.shift_status == ShiftStatus.INCOMPLETE})
        late = len({r.employee_code for r in day_records if r.is_late})

        total_attendance = unique_in + non_bio_exempt
        if total_active_employees > 0:
            rate = clamp_rate(total_attendance / total_active_employees)
        else:
            rate = 0.0
        punctuality = clamp_rate((unique_in - late) / unique_in) if unique_in else 0.0

        return DailyMetricsSnapshot(
            work_date=work_date,
            total_active_employees=total_active_employees,
            non_bio_exempt=non_bio_exempt,
            unique_check_ins=unique_in,
            unique_check_outs=unique_out,
            total_attendance=total_attendance,
            present=max(0, unique_in - unique_out),
            absent=max(0, total_active_employees - total_attendance),
            completed=completed,
            incomplete=incomplete,
            late_arrivals=late,
            attendance_rate=round(rate, 4),
            system_health=self.health(rate),
            expected_employees=expected_employees,
            tee_absentees=max(0, expected_employees - unique_in),
            total_hours=round(sum(r.total_hours or 0.0 for r in day_records), 2),
            overtime_hours=round(sum(r.overtime_hours for r in day_records), 2),
            punctuality_rate=round(punctuality, 4),
            calculated_at=calculated_at,
        )
