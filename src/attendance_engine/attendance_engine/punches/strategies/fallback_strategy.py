from __future__ import annotations

from typing import Optional

from ...core.enums import PunchState, PunchType
from ..model import RawPunchEvent
from .base import PunchDecision, PunchTypeStrategy, ShiftWindow


class FallbackCheckoutStrategy(PunchTypeStrategy):
    """Default for punches that cannot be placed against a shift.

    Counts as a check-out so the one-standard-checkout-per-day rule still holds.
    """

    direction = PunchState.CHECK_OUT

    def decide(self, *, punch: RawPunchEvent, window: Optional[ShiftWindow], standard_taken: bool) -> PunchDecision:
        if standard_taken:
            return PunchDecision(PunchType.INTERIM_CHECKOUT, "Unclassifiable punch after standard check-out")
        return PunchDecision(PunchType.STANDARD_CHECKOUT, "Default standard checkout", claims_standard=True)
