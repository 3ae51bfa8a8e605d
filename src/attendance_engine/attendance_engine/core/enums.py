from __future__ import annotations

from enum import Enum


class PunchState(str, Enum):
    """Direction of a raw punch as reported by the terminal."""

    CHECK_IN = "CHECK_IN"
    CHECK_OUT = "CHECK_OUT"
    UNKNOWN = "UNKNOWN"


class PunchType(str, Enum):
    """Fine-grained label of a punch relative to the employee's shift."""

    STANDARD_CHECKIN = "standard_checkin"
    EARLY_CHECKIN = "early_checkin"
    INTERIM_CHECKIN = "interim_checkin"
    STANDARD_CHECKOUT = "standard_checkout"
    EARLY_CHECKOUT = "early_checkout"
    LATE_CHECKOUT = "late_checkout"
    INTERIM_CHECKOUT = "interim_checkout"


class AttendanceStatus(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"


class ShiftStatus(str, Enum):
    COMPLETED = "completed"
    INCOMPLETE = "incomplete"
    NONE = "none"


class SystemHealth(str, Enum):
    HEALTHY = "healthy"
    WARNING = "warning"
    CRITICAL = "critical"
