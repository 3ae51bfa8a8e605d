from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ...core.enums import PunchState, PunchType
from ..model import RawPunchEvent


@dataclass(frozen=True)
class PunchDecision:
    punch_type: PunchType
    reason: str
    # True when this punch takes the day's single standard slot for its direction.
    claims_standard: bool = False


@dataclass(frozen=True)
class ShiftWindow:
    start: datetime
    end: datetime
    grace_minutes: int
    late_checkout_minutes: int


class PunchTypeStrategy(ABC):
    """Strategy Pattern: encapsulate how one punch direction is labelled."""

    direction: PunchState

    @abstractmethod
    def decide(self, *, punch: RawPunchEvent, window: Optional[ShiftWindow], standard_taken: bool) -> PunchDecision:
        raise NotImplementedError


def minutes_from(moment: datetime, reference: datetime) -> float:
    return (moment - reference).total_seconds() / 60
