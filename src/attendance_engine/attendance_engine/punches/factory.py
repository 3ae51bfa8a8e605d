from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from ..core.enums import PunchState
from ..core.exceptions import ClassificationAmbiguityError
from ..shifts.model import Shift
from .model import RawPunchEvent
from .strategies.base import PunchTypeStrategy
from .strategies.checkin_strategy import CheckInStrategy
from .strategies.checkout_strategy import CheckOutStrategy
from .strategies.fallback_strategy import FallbackCheckoutStrategy


@dataclass
class PunchStrategyFactory:
    """Factory Pattern: choose the labelling strategy for a punch."""

    checkin: PunchTypeStrategy = field(default_factory=CheckInStrategy)
    checkout: PunchTypeStrategy = field(default_factory=CheckOutStrategy)
    fallback: PunchTypeStrategy = field(default_factory=FallbackCheckoutStrategy)

    def for_punch(self, punch: RawPunchEvent, shift: Optional[Shift]) -> PunchTypeStrategy:
        if shift is None:
            raise ClassificationAmbiguityError(f"No shift boundaries for employee {punch.employee_code}")
        if shift.start_time == shift.end_time:
            raise ClassificationAmbiguityError(f"Shift {shift.shift_name!r} has no duration")
        if punch.punch_state == PunchState.CHECK_IN:
            return self.checkin
        if punch.punch_state == PunchState.CHECK_OUT:
            return self.checkout
        raise ClassificationAmbiguityError(
            f"Unknown punch state for employee {punch.employee_code} at {punch.punch_time:%Y-%m-%d %H:%M:%S}"
        )
