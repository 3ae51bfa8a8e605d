from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Mapping

from ..core.constants import WEEKDAY_NAMES
from ..core.enums import SystemHealth


@dataclass(frozen=True)
class WeekdayBaseline:
    """AA/MA for one weekday (0=Monday) over the trailing window."""

    weekday: int
    average: float
    maximum: int
    samples: int

    @property
    def name(self) -> str:
        return WEEKDAY_NAMES[self.weekday]


@dataclass(frozen=True)
class TEEMetrics:
    window_start: date
    window_end: date
    baselines: tuple[WeekdayBaseline, ...]
    calculated_at: datetime = field(compare=False)

    def for_weekday(self, weekday: int) -> WeekdayBaseline:
        return self.baselines[weekday]

    def expected_for(self, day: date) -> int:
        """Expected headcount is the historical maximum, never the average."""
        return self.baselines[day.weekday()].maximum

    def to_dict(self) -> dict:
        return {
            "windowStart": self.window_start.isoformat(),
            "windowEnd": self.window_end.isoformat(),
            "weekdays": [
                {
                    "weekday": b.name,
                    "averageUniqueAttendance": b.average,
                    "maximumUniqueAttendance": b.maximum,
                    "expectedEmployees": b.maximum,
                    "daysAnalyzed": b.samples,
                }
                for b in self.baselines
            ],
            "calculatedAt": self.calculated_at.isoformat(),
        }


@dataclass(frozen=True)
class DailyMetricsSnapshot:
    """Aggregate attendance counts for one date.

    ``attendance_rate`` and ``punctuality_rate`` are fractions in [0, 1];
    the JSON form reports them as percentages.
    """

    work_date: date
    total_active_employees: int
    non_bio_exempt: int
    unique_check_ins: int
    unique_check_outs: int
    total_attendance: int
    present: int
    absent: int
    completed: int
    incomplete: int
    late_arrivals: int
    attendance_rate: float
    system_health: SystemHealth
    expected_employees: int
    tee_absentees: int
    total_hours: float
    overtime_hours: float
    punctuality_rate: float
    calculated_at: datetime

    def to_dict(self) -> dict:
        return {
            "date": self.work_date.isoformat(),
            "totalActiveEmployees": self.total_active_employees,
            "nonBioExempt": self.non_bio_exempt,
            "totalPunchIn": self.unique_check_ins,
            "totalPunchOut": self.unique_check_outs,
            "totalAttendance": self.total_attendance,
            "presentToday": self.present,
            "absentToday": self.absent,
            "completedToday": self.completed,
            "incompleteToday": self.incomplete,
            "lateArrivals": self.late_arrivals,
            "attendanceRate": round(self.attendance_rate * 100, 2),
            "systemHealth": self.system_health.value,
            "expectedEmployees": self.expected_employees,
            "teeAbsentees": self.tee_absentees,
            "totalHours": self.total_hours,
            "overtimeHours": self.overtime_hours,
            "punctualityRate": round(self.punctuality_rate * 100, 2),
            "calculatedAt": self.calculated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "DailyMetricsSnapshot":
        return cls(
            work_date=date.fromisoformat(payload["date"]),
            total_active_employees=int(payload["totalActiveEmployees"]),
            non_bio_exempt=int(payload["nonBioExempt"]),
            unique_check_ins=int(payload["totalPunchIn"]),
            unique_check_outs=int(payload["totalPunchOut"]),
            total_attendance=int(payload["totalAttendance"]),
            present=int(payload["presentToday"]),
            absent=int(payload["absentToday"]),
            completed=int(payload["completedToday"]),
            incomplete=int(payload["incompleteToday"]),
            late_arrivals=int(payload["lateArrivals"]),
            attendance_rate=float(payload["attendanceRate"]) / 100,
            system_health=SystemHealth(payload["systemHealth"]),
            expected_employees=int(payload["expectedEmployees"]),
            tee_absentees=int(payload["teeAbsentees"]),
            total_hours=float(payload["totalHours"]),
            overtime_hours=float(payload["overtimeHours"]),
            punctuality_rate=float(payload["punctualityRate"]) / 100,
            calculated_at=datetime.fromisoformat(payload["calculatedAt"]),
        )


@dataclass(frozen=True)
class RangeRecompute:
    computed: tuple[date, ...]
    failed: tuple[date, ...]

    def to_dict(self) -> dict:
        return {
            "computed": [d.isoformat() for d in self.computed],
            "failed": [d.isoformat() for d in self.failed],
        }
