from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, time
from typing import Any, Mapping, Optional, Sequence

import pytest

from attendance_engine.attendance.model import AttendanceRecord
from attendance_engine.container import Container, assemble_container
from attendance_engine.core.exceptions import ConcurrentUpdateError
from attendance_engine.core.policy import EnginePolicy
from attendance_engine.employees.model import Employee
from attendance_engine.metrics.model import DailyMetricsSnapshot
from attendance_engine.punches.model import PunchFetch, parse_punch_rows
from attendance_engine.shifts.model import Shift


class InMemoryEmployees:
    def __init__(self, employees: Sequence[Employee] = ()):
        self.employees = {e.employee_code: e for e in employees}

    def list_active(self) -> list[Employee]:
        return sorted((e for e in self.employees.values() if e.is_active), key=lambda e: e.employee_code)

    def get_by_code(self, employee_code: str) -> Optional[Employee]:
        return self.employees.get(employee_code)


class InMemoryShifts:
    def __init__(self, shifts: Sequence[Shift] = ()):
        self.shifts = {s.shift_id: s for s in shifts}

    def list_all(self) -> list[Shift]:
        return list(self.shifts.values())

    def get_by_id(self, shift_id: int) -> Optional[Shift]:
        return self.shifts.get(shift_id)


class InMemoryPunches:
    """Raw punch rows as the ingestion pipeline stores them (may be malformed)."""

    def __init__(self, rows: Sequence[Mapping[str, Any]] = ()):
        self.rows = list(rows)

    def add(self, employee_code: str, punch_time: datetime, punch_state: str, terminal_id: str = "T1") -> None:
        self.rows.append(
            {"employee_code": employee_code, "punch_time": punch_time, "punch_state": punch_state, "terminal_id": terminal_id}
        )

    def list_between(self, start_date: date, end_date: date, *, employee_codes=None) -> PunchFetch:
        fetch = parse_punch_rows(self.rows)
        events = tuple(
            e for e in fetch.events
            if start_date <= e.work_date <= end_date and (not employee_codes or e.employee_code in employee_codes)
        )
        return PunchFetch(events=events, skipped=fetch.skipped)


class InMemoryAttendance:
    """Attendance store with the same optimistic version check as MySQL."""

    def __init__(self, records: Sequence[AttendanceRecord] = ()):
        self.records: dict[tuple[str, date], AttendanceRecord] = {}
        self.saves = 0
        for r in records:
            self.records[r.key] = replace(r, version=max(r.version, 1))

    def get(self, employee_code: str, work_date: date) -> Optional[AttendanceRecord]:
        return self.records.get((employee_code, work_date))

    def list_between(self, start_date: date, end_date: date) -> list[AttendanceRecord]:
        return sorted(
            (r for r in self.records.values() if start_date <= r.work_date <= end_date),
            key=lambda r: (r.work_date, r.employee_code),
        )

    def list_open(self, start_date: date, end_date: date) -> list[AttendanceRecord]:
        return [r for r in self.list_between(start_date, end_date) if r.is_open]

    def save(self, record: AttendanceRecord, *, expected_version: Optional[int]) -> AttendanceRecord:
        current = self.records.get(record.key)
        if expected_version is None:
            if current is not None:
                raise ConcurrentUpdateError(f"Record {record.key} already exists")
            version = 1
        else:
            if current is None or current.version != expected_version:
                raise ConcurrentUpdateError(f"Record {record.key} changed concurrently")
            version = expected_version + 1
        stored = replace(record, version=version)
        self.records[record.key] = stored
        self.saves += 1
        return stored


class InMemorySnapshots:
    def __init__(self):
        self.snapshots: dict[date, DailyMetricsSnapshot] = {}

    def save(self, snapshot: DailyMetricsSnapshot) -> None:
        self.snapshots[snapshot.work_date] = snapshot

    def get(self, work_date: date) -> Optional[DailyMetricsSnapshot]:
        return self.snapshots.get(work_date)

    def list_between(self, start_date: date, end_date: date) -> list[DailyMetricsSnapshot]:
        return [s for d, s in sorted(self.snapshots.items()) if start_date <= d <= end_date]


class FakeClock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


MORNING = Shift(shift_id=1, shift_name="Morning", start_time=time(9, 0), end_time=time(17, 0), grace_minutes=30)
NIGHT = Shift(shift_id=2, shift_name="Night", start_time=time(22, 0), end_time=time(6, 0), grace_minutes=30)


@pytest.fixture
def policy() -> EnginePolicy:
    return EnginePolicy()


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2024, 3, 4, 18, 0, 0)


@pytest.fixture
def clock(fixed_now) -> FakeClock:
    return FakeClock(fixed_now)


@pytest.fixture
def employees_repo() -> InMemoryEmployees:
    return InMemoryEmployees(
        [
            Employee("E001", shift_id=1, full_name="Ana"),
            Employee("E002", shift_id=1, full_name="Binh"),
            Employee("E003", shift_id=1, full_name="Chi"),
            Employee("E004", non_bio_exempt=True, full_name="Dung"),
            Employee("E005", is_active=False, shift_id=1, full_name="Em"),
        ]
    )


@pytest.fixture
def shifts_repo() -> InMemoryShifts:
    return InMemoryShifts([MORNING, NIGHT])


@pytest.fixture
def punches_repo() -> InMemoryPunches:
    return InMemoryPunches()


@pytest.fixture
def attendance_repo() -> InMemoryAttendance:
    return InMemoryAttendance()


@pytest.fixture
def snapshots_repo() -> InMemorySnapshots:
    return InMemorySnapshots()


@pytest.fixture
def container(employees_repo, shifts_repo, punches_repo, attendance_repo, snapshots_repo, policy, clock) -> Container:
    return assemble_container(
        employees_repo=employees_repo,
        shifts_repo=shifts_repo,
        punches_repo=punches_repo,
        attendance_repo=attendance_repo,
        snapshots_repo=snapshots_repo,
        policy=policy,
        clock=clock,
        cache_clock=lambda: 0.0,
    )
