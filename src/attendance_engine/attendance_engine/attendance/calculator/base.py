from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from ...shifts.model import Shift


class HoursCalculator(ABC):
    """Calculator interface (Strategy Pattern for worked hours)."""

    @abstractmethod
    def worked_hours(self, check_in: Optional[datetime], check_out: Optional[datetime]) -> Optional[float]:
        raise NotImplementedError

    @abstractmethod
    def overtime_hours(self, worked_hours: Optional[float], shift: Optional[Shift]) -> float:
        raise NotImplementedError
