from __future__ import annotations

import logging
from collections import Counter, defaultdict
from dataclasses import dataclass
from datetime import date
from typing import Callable, Iterable, Optional, Sequence

from ..core.enums import PunchState
from ..core.exceptions import ClassificationAmbiguityError
from ..core.policy import EnginePolicy
from ..shifts.model import Shift
from .factory import PunchStrategyFactory
from .model import PunchClassification, RawPunchEvent, dedupe_punches
from .strategies.base import ShiftWindow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClassificationRun:
    classifications: tuple[PunchClassification, ...]
    stats: dict[str, int]
    fallbacks: int


class PunchTypeClassifier:
    """Labels every punch of an employee-day relative to the employee's shift.

    Punches are walked in time order; each direction has a single standard
    slot per day, and later punches of that direction become interim.
    Punches that cannot be placed fall back to the default checkout label.
    """

    def __init__(self, policy: EnginePolicy, *, factory: Optional[PunchStrategyFactory] = None):
        self._policy = policy
        self._factory = factory or PunchStrategyFactory()

    def _window(self, shift: Optional[Shift], work_date: date) -> Optional[ShiftWindow]:
        if shift is None:
            return None
        start, end = shift.window_for(work_date)
        return ShiftWindow(
            start=start,
            end=end,
            grace_minutes=shift.grace_minutes,
            late_checkout_minutes=self._policy.late_checkout_minutes,
        )

    def work_date_for(self, punch: RawPunchEvent, shift: Optional[Shift]) -> date:
        """Work date a punch counts towards; night-shift check-outs roll back a day."""
        if shift is not None and punch.punch_state == PunchState.CHECK_OUT:
            return shift.work_date_for_checkout(
                punch.punch_time, allowance_minutes=self._policy.late_checkout_minutes
            )
        return punch.work_date

    def classify_day(
        self,
        punches: Iterable[RawPunchEvent],
        *,
        shift: Optional[Shift],
        work_date: date,
    ) -> list[PunchClassification]:
        window = self._window(shift, work_date)
        standard_taken = {PunchState.CHECK_IN: False, PunchState.CHECK_OUT: False}
        out: list[PunchClassification] = []

        for punch in dedupe_punches(punches):
            fallback = False
            try:
                strategy = self._factory.for_punch(punch, shift)
            except ClassificationAmbiguityError as exc:
                logger.warning("Falling back to default checkout label: %s", exc)
                strategy = self._factory.fallback
                fallback = True

            decision = strategy.decide(
                punch=punch,
                window=window,
                standard_taken=standard_taken[strategy.direction],
            )
            if decision.claims_standard:
                standard_taken[strategy.direction] = True
            out.append(
                PunchClassification(
                    punch=punch,
                    punch_type=decision.punch_type,
                    reason=decision.reason,
                    fallback=fallback,
                )
            )
        return out

    def classify(
        self,
        punches: Sequence[RawPunchEvent],
        shift_for: Callable[[str], Optional[Shift]],
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> ClassificationRun:
        """Classify a batch of punches spanning many employees and days.

        Punches are grouped by the work date they count towards; groups outside
        the optional date range are left out.
        """

        groups: dict[tuple[str, date], list[RawPunchEvent]] = defaultdict(list)
        for p in punches:
            work_date = self.work_date_for(p, shift_for(p.employee_code))
            if start_date is not None and work_date < start_date:
                continue
            if end_date is not None and work_date > end_date:
                continue
            groups[(p.employee_code, work_date)].append(p)

        results: list[PunchClassification] = []
        for (code, work_date) in sorted(groups):
            results.extend(self.classify_day(groups[(code, work_date)], shift=shift_for(code), work_date=work_date))

        stats = Counter(c.punch_type.value for c in results)
        fallbacks = sum(1 for c in results if c.fallback)
        logger.info("Classified %d punches (%d fallbacks): %s", len(results), fallbacks, dict(stats))
        return ClassificationRun(classifications=tuple(results), stats=dict(stats), fallbacks=fallbacks)
