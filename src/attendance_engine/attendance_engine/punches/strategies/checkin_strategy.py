from __future__ import annotations

from typing import Optional

from ...core.enums import PunchState, PunchType
from ..model import RawPunchEvent
from .base import PunchDecision, PunchTypeStrategy, ShiftWindow, minutes_from


class CheckInStrategy(PunchTypeStrategy):
    """Labels check-in punches against shift start.

    Late arrivals still get ``standard_checkin``; lateness is a separate flag
    on the daily record. An early check-in does not take the standard slot.
    """

    direction = PunchState.CHECK_IN

    def decide(self, *, punch: RawPunchEvent, window: Optional[ShiftWindow], standard_taken: bool) -> PunchDecision:
        if standard_taken:
            return PunchDecision(PunchType.INTERIM_CHECKIN, "Additional check-in after standard check-in")

        diff = minutes_from(punch.punch_time, window.start)
        grace = window.grace_minutes
        if -grace <= diff <= grace:
            return PunchDecision(
                PunchType.STANDARD_CHECKIN,
                f"Check-in within ±{grace} minutes of shift start ({round(diff)} min)",
                claims_standard=True,
            )
        if diff < -grace:
            return PunchDecision(
                PunchType.EARLY_CHECKIN,
                f"Check-in {round(abs(diff))} min before shift start",
            )
        return PunchDecision(
            PunchType.STANDARD_CHECKIN,
            f"Late check-in treated as standard ({round(diff)} min late)",
            claims_standard=True,
        )
