from __future__ import annotations

from typing import Optional

from ...core.enums import PunchState, PunchType
from ..model import RawPunchEvent
from .base import PunchDecision, PunchTypeStrategy, ShiftWindow, minutes_from


class CheckOutStrategy(PunchTypeStrategy):
    """Labels check-out punches against shift end."""

    direction = PunchState.CHECK_OUT

    def decide(self, *, punch: RawPunchEvent, window: Optional[ShiftWindow], standard_taken: bool) -> PunchDecision:
        if standard_taken:
            return PunchDecision(PunchType.INTERIM_CHECKOUT, "Additional check-out after standard check-out")

        diff = minutes_from(punch.punch_time, window.end)
        if diff < -window.grace_minutes:
            return PunchDecision(PunchType.EARLY_CHECKOUT, f"Check-out {round(abs(diff))} min before shift end")
        if diff > window.late_checkout_minutes:
            return PunchDecision(PunchType.LATE_CHECKOUT, f"Check-out {round(diff)} min after shift end")
        return PunchDecision(
            PunchType.STANDARD_CHECKOUT,
            f"Standard check-out ({round(diff)} min from shift end)",
            claims_standard=True,
        )
