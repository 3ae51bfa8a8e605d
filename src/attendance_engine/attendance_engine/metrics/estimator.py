from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Callable, Iterable

from ..attendance.model import AttendanceRecord
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import now_local
from ..core.policy import EnginePolicy
from .model import TEEMetrics, WeekdayBaseline

logger = logging.getLogger(__name__)


def unique_check_ins_by_date(records: Iterable[AttendanceRecord]) -> dict[date, int]:
    employees: dict[date, set[str]] = defaultdict(set)
    for r in records:
        if r.check_in is not None:
            employees[r.work_date].add(r.employee_code)
    return {day: len(codes) for day, codes in employees.items()}


def baselines_from_counts(counts: dict[date, int]) -> tuple[WeekdayBaseline, ...]:
    """AA and MA per weekday; weekdays without any check-in day get zeros."""

    per_weekday: dict[int, list[int]] = defaultdict(list)
    for day, count in counts.items():
        per_weekday[day.weekday()].append(count)

    baselines = []
    for weekday in range(7):
        samples = per_weekday.get(weekday, [])
        baselines.append(
            WeekdayBaseline(
                weekday=weekday,
                average=round(sum(samples) / len(samples), 2) if samples else 0.0,
                maximum=max(samples) if samples else 0,
                samples=len(samples),
            )
        )
    return tuple(baselines)


class ExpectedHeadcountEstimator:
    """Total Expected Employees (TEE) from trailing unique check-in counts.

    The window is the ``tee_window_days`` days before the target date; the
    target day itself is excluded so a partially punched day cannot lower
    its own baseline.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        *,
        policy: EnginePolicy,
        clock: Callable[[], datetime] = now_local,
    ):
        self._attendance = attendance
        self._policy = policy
        self._clock = clock

    def window_for(self, target: date) -> tuple[date, date]:
        return target - timedelta(days=self._policy.tee_window_days), target - timedelta(days=1)

    def compute(self, target: date) -> TEEMetrics:
        window_start, window_end = self.window_for(target)
        records = self._attendance.list_between(window_start, window_end)
        counts = unique_check_ins_by_date(r for r in records if window_start <= r.work_date <= window_end)
        metrics = TEEMetrics(
            window_start=window_start,
            window_end=window_end,
            baselines=baselines_from_counts(counts),
            calculated_at=self._clock(),
        )
        logger.debug(
            "TEE window %s..%s: %s",
            window_start, window_end,
            " ".join(f"{b.name[:3]} AA={b.average} MA={b.maximum}" for b in metrics.baselines),
        )
        return metrics

    def tee_for(self, target: date) -> int:
        return self.compute(target).expected_for(target)

    def absentees(self, target: date, unique_check_ins: int) -> int:
        return max(0, self.tee_for(target) - unique_check_ins)
