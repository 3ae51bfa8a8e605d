from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Iterable, Mapping, Optional

from ..core.enums import PunchState, PunchType
from ..core.exceptions import DataIntegrityError

logger = logging.getLogger(__name__)

# Terminal punch-state codes (ZKTeco/BioTime style) plus textual variants.
CHECK_IN_CODES = frozenset({"0", "3", "4", "in", "i", "checkin", "check-in", "check_in"})
CHECK_OUT_CODES = frozenset({"1", "2", "5", "out", "o", "checkout", "check-out", "check_out"})


def normalize_punch_state(raw: Any) -> PunchState:
    if isinstance(raw, PunchState):
        return raw
    if raw is None:
        return PunchState.UNKNOWN
    code = str(raw).strip().lower()
    if code in CHECK_IN_CODES:
        return PunchState.CHECK_IN
    if code in CHECK_OUT_CODES:
        return PunchState.CHECK_OUT
    return PunchState.UNKNOWN


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).strip())
    except ValueError:
        return None


@dataclass(frozen=True)
class RawPunchEvent:
    """A single terminal punch, immutable once stored."""

    employee_code: str
    punch_time: datetime
    punch_state: PunchState
    terminal_id: str = ""

    @property
    def work_date(self) -> date:
        return self.punch_time.date()

    @property
    def dedup_key(self) -> tuple[str, datetime, PunchState]:
        return (self.employee_code, self.punch_time, self.punch_state)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "RawPunchEvent":
        code = row.get("employee_code")
        code = str(code).strip() if code is not None else ""
        if not code:
            raise DataIntegrityError(f"Punch row without employee code: {dict(row)!r}")

        punch_time = _parse_timestamp(row.get("punch_time"))
        if punch_time is None:
            raise DataIntegrityError(f"Punch row without a valid timestamp for employee {code}")

        return cls(
            employee_code=code,
            punch_time=punch_time,
            punch_state=normalize_punch_state(row.get("punch_state")),
            terminal_id=str(row.get("terminal_id") or ""),
        )


@dataclass(frozen=True)
class PunchFetch:
    """Valid punches read from storage plus the count of rejected rows."""

    events: tuple[RawPunchEvent, ...]
    skipped: int = 0


def parse_punch_rows(rows: Iterable[Mapping[str, Any]]) -> PunchFetch:
    events: list[RawPunchEvent] = []
    skipped = 0
    for row in rows:
        try:
            events.append(RawPunchEvent.from_row(row))
        except DataIntegrityError as exc:
            skipped += 1
            logger.warning("Skipping raw punch: %s", exc)
    return PunchFetch(events=tuple(events), skipped=skipped)


def dedupe_punches(punches: Iterable[RawPunchEvent]) -> list[RawPunchEvent]:
    """Drop repeated punches (same employee, time and state) and sort by time."""

    seen: set[tuple[str, datetime, PunchState]] = set()
    unique: list[RawPunchEvent] = []
    for p in sorted(punches, key=lambda p: (p.punch_time, p.punch_state.value, p.terminal_id)):
        if p.dedup_key in seen:
            continue
        seen.add(p.dedup_key)
        unique.append(p)
    return unique


@dataclass(frozen=True)
class PunchClassification:
    punch: RawPunchEvent
    punch_type: PunchType
    reason: str
    fallback: bool = False
