from __future__ import annotations

from datetime import datetime
from typing import Optional

from ...common.datetime_utils import hours_between
from ...shifts.model import Shift
from .base import HoursCalculator


class StandardHoursCalculator(HoursCalculator):
    """Standard rule: out - in, in hours, two decimals; overtime beyond shift length."""

    def worked_hours(self, check_in: Optional[datetime], check_out: Optional[datetime]) -> Optional[float]:
        if check_in is None or check_out is None or check_out <= check_in:
            return None
        return round(hours_between(check_in, check_out), 2)

    def overtime_hours(self, worked_hours: Optional[float], shift: Optional[Shift]) -> float:
        if worked_hours is None or shift is None:
            return 0.0
        return round(max(worked_hours - shift.length_hours(), 0.0), 2)
