"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from datetime import time

DEFAULT_GRACE_MINUTES = 30
DEFAULT_LATE_CHECKOUT_MINUTES = 60
DEFAULT_LATENESS_CUTOFF = time(9, 30)
DEFAULT_TEE_WINDOW_DAYS = 30
DEFAULT_MISSING_PUNCH_OUT_CREDIT_HOURS = 7.5
DEFAULT_RESOLVER_INTERVAL_MINUTES = 5
DEFAULT_BATCH_SIZE = 50
DEFAULT_MAX_SHIFT_HOURS = 12

DEFAULT_SHIFT_START = time(9, 0)
DEFAULT_SHIFT_END = time(17, 0)

DEFAULT_HEALTH_WARNING_RATE = 0.80
DEFAULT_HEALTH_CRITICAL_RATE = 0.50
DEFAULT_METRICS_CACHE_TTL_SECONDS = 60

WEEKDAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

ANTI_OVERBILLING_NOTE = "ANTI-OVERBILLING"
NOTE_SEPARATOR = " | "
