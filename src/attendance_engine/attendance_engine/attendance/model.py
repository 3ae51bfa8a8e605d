from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Optional

from ..core.constants import NOTE_SEPARATOR
from ..core.enums import AttendanceStatus, PunchType, ShiftStatus


def append_note(existing: Optional[str], note: str) -> str:
    """Append an audit note, never overwriting earlier ones."""
    if not existing:
        return note
    if note in existing.split(NOTE_SEPARATOR):
        return existing
    return f"{existing}{NOTE_SEPARATOR}{note}"


def remove_note(existing: Optional[str], note: str) -> Optional[str]:
    """Drop one standing note; audit entries around it are kept."""
    if not existing:
        return existing
    kept = [n for n in existing.split(NOTE_SEPARATOR) if n != note]
    return NOTE_SEPARATOR.join(kept) or None


@dataclass(frozen=True)
class AttendanceRecord:
    """Canonical attendance for one employee on one work date (the shift start date)."""

    employee_code: str
    work_date: date
    check_in: Optional[datetime]
    check_out: Optional[datetime]
    total_hours: Optional[float]
    status: AttendanceStatus
    punch_type: Optional[PunchType] = None
    shift_status: ShiftStatus = ShiftStatus.NONE
    is_late: bool = False
    overtime_hours: float = 0.0
    punch_count: int = 0
    # True when check_out was synthesised by the missing punch-out resolver.
    adjusted: bool = False
    notes: Optional[str] = None
    version: int = field(default=0, compare=False)
    updated_at: Optional[datetime] = field(default=None, compare=False)

    @property
    def key(self) -> tuple[str, date]:
        return (self.employee_code, self.work_date)

    @property
    def is_open(self) -> bool:
        return self.check_in is not None and self.check_out is None

    def with_note(self, note: str) -> "AttendanceRecord":
        return replace(self, notes=append_note(self.notes, note))


@dataclass(frozen=True)
class ReconciliationSummary:
    start_date: date
    end_date: date
    punches_read: int
    skipped_punches: int
    records_written: int
    records_unchanged: int

    def to_dict(self) -> dict:
        return {
            "start": self.start_date.isoformat(),
            "end": self.end_date.isoformat(),
            "punchesRead": self.punches_read,
            "skippedPunches": self.skipped_punches,
            "recordsWritten": self.records_written,
            "recordsUnchanged": self.records_unchanged,
        }
