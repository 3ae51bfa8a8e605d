from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta


@dataclass(frozen=True)
class Shift:
    """Working window shared by many employees."""

    shift_id: int
    shift_name: str
    start_time: time
    end_time: time
    grace_minutes: int = 30

    @property
    def is_overnight(self) -> bool:
        return self.end_time <= self.start_time

    def window_for(self, work_date: date) -> tuple[datetime, datetime]:
        """Absolute start/end for a calendar date; overnight ends fall on the next day."""
        start = datetime.combine(work_date, self.start_time)
        end = datetime.combine(work_date, self.end_time)
        if self.is_overnight:
            end += timedelta(days=1)
        return start, end

    def length_hours(self) -> float:
        start, end = self.window_for(date(2000, 1, 3))
        return (end - start).total_seconds() / 3600

    def work_date_for_checkout(self, moment: datetime, *, allowance_minutes: int = 0) -> date:
        """Calendar date of the shift a check-out at ``moment`` closes.

        For overnight shifts a check-out before end time (plus allowance) on
        the next morning belongs to the shift that started the day before.
        """
        if self.is_overnight and self.start_time != self.end_time:
            cutoff = datetime.combine(moment.date(), self.end_time) + timedelta(minutes=allowance_minutes)
            if moment < cutoff:
                return moment.date() - timedelta(days=1)
        return moment.date()
