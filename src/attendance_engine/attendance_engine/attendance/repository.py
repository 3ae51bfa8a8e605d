from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    def get(self, employee_code: str, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def list_between(self, start_date: date, end_date: date) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_open(self, start_date: date, end_date: date) -> Sequence[AttendanceRecord]:
        """Records with a check-in and no check-out."""

        raise NotImplementedError

    def save(self, record: AttendanceRecord, *, expected_version: Optional[int]) -> AttendanceRecord:
        """Insert (expected_version None) or update guarded by version.

        Raises ConcurrentUpdateError when the stored version differs, and
        returns the record with its new version.
        """

        raise NotImplementedError
