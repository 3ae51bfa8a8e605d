from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional


@dataclass(frozen=True)
class PunchOutAdjustment:
    """Outcome of evaluating one open record against the credit policy."""

    employee_code: str
    work_date: date
    check_in: datetime
    estimated_check_out: Optional[datetime]
    raw_hours: float
    corrected_hours: float
    hours_saved: float
    adjusted: bool
    reason: str

    def to_dict(self) -> dict:
        return {
            "employeeCode": self.employee_code,
            "date": self.work_date.isoformat(),
            "checkIn": self.check_in.isoformat(),
            "estimatedCheckOut": self.estimated_check_out.isoformat() if self.estimated_check_out else None,
            "rawHours": self.raw_hours,
            "correctedHours": self.corrected_hours,
            "hoursSaved": self.hours_saved,
            "adjusted": self.adjusted,
            "reason": self.reason,
        }


@dataclass(frozen=True)
class ResolutionSummary:
    processed_records: int
    adjustments_made: int
    hours_saved: float
    failed: int
    results: tuple[PunchOutAdjustment, ...] = ()

    def to_dict(self, *, include_results: bool = False) -> dict:
        payload = {
            "processedRecords": self.processed_records,
            "adjustmentsMade": self.adjustments_made,
            "hoursSaved": self.hours_saved,
            "failed": self.failed,
        }
        if include_results:
            payload["results"] = [r.to_dict() for r in self.results]
        return payload
