from __future__ import annotations

from dataclasses import dataclass, field
from datetime import time
from typing import Any, Mapping, Optional

from ..common.datetime_utils import parse_time_of_day
from ..shifts.model import Shift
from . import constants
from .exceptions import ValidationError


def _default_shift() -> Shift:
    return Shift(
        shift_id=0,
        shift_name="Default",
        start_time=constants.DEFAULT_SHIFT_START,
        end_time=constants.DEFAULT_SHIFT_END,
        grace_minutes=constants.DEFAULT_GRACE_MINUTES,
    )


@dataclass(frozen=True)
class EnginePolicy:
    """Tunable business rules for reconciliation and metrics.

    ``biometric_capacity`` is a policy input, not a physical constant: when
    set, every active employee beyond it is counted as non-bio-exempt. It
    should be reviewed whenever terminals or headcount change.
    """

    grace_minutes: int = constants.DEFAULT_GRACE_MINUTES
    late_checkout_minutes: int = constants.DEFAULT_LATE_CHECKOUT_MINUTES
    lateness_cutoff: time = constants.DEFAULT_LATENESS_CUTOFF
    tee_window_days: int = constants.DEFAULT_TEE_WINDOW_DAYS
    missing_punch_out_credit_hours: float = constants.DEFAULT_MISSING_PUNCH_OUT_CREDIT_HOURS
    resolver_interval_minutes: int = constants.DEFAULT_RESOLVER_INTERVAL_MINUTES
    batch_size: int = constants.DEFAULT_BATCH_SIZE
    max_shift_hours: float = constants.DEFAULT_MAX_SHIFT_HOURS
    default_shift: Shift = field(default_factory=_default_shift)
    biometric_capacity: Optional[int] = None
    health_warning_rate: float = constants.DEFAULT_HEALTH_WARNING_RATE
    health_critical_rate: float = constants.DEFAULT_HEALTH_CRITICAL_RATE
    metrics_cache_ttl_seconds: int = constants.DEFAULT_METRICS_CACHE_TTL_SECONDS

    def __post_init__(self) -> None:
        if self.grace_minutes < 0 or self.late_checkout_minutes < 0:
            raise ValidationError("Grace and late-checkout minutes must not be negative")
        if self.tee_window_days < 1:
            raise ValidationError("TEE window must cover at least one day")
        if self.missing_punch_out_credit_hours <= 0:
            raise ValidationError("Missing punch-out credit must be positive")
        if self.resolver_interval_minutes < 1:
            raise ValidationError("Resolver interval must be at least one minute")
        if self.batch_size < 1:
            raise ValidationError("Batch size must be at least 1")
        if self.max_shift_hours <= 0:
            raise ValidationError("Maximum shift length must be positive")
        if self.biometric_capacity is not None and self.biometric_capacity < 0:
            raise ValidationError("Biometric capacity must not be negative")
        if not 0 <= self.health_critical_rate <= self.health_warning_rate <= 1:
            raise ValidationError("Health thresholds must satisfy 0 <= critical <= warning <= 1")

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any] | None) -> "EnginePolicy":
        """Build a policy from settings values (strings allowed), ignoring blanks."""

        values = {k: v for k, v in (values or {}).items() if v is not None and str(v).strip() != ""}
        kwargs: dict[str, Any] = {}
        try:
            for name in ("grace_minutes", "late_checkout_minutes", "tee_window_days",
                         "resolver_interval_minutes", "batch_size", "metrics_cache_ttl_seconds"):
                if name in values:
                    kwargs[name] = int(values[name])
            for name in ("missing_punch_out_credit_hours", "max_shift_hours",
                         "health_warning_rate", "health_critical_rate"):
                if name in values:
                    kwargs[name] = float(values[name])
            if "biometric_capacity" in values:
                kwargs["biometric_capacity"] = int(values["biometric_capacity"])
        except (TypeError, ValueError) as exc:
            raise ValidationError(f"Invalid engine policy value: {exc}") from exc

        if "lateness_cutoff" in values:
            kwargs["lateness_cutoff"] = parse_time_of_day(values["lateness_cutoff"])

        if {"default_shift_start", "default_shift_end"} & values.keys() or "grace_minutes" in kwargs:
            base = _default_shift()
            kwargs["default_shift"] = Shift(
                shift_id=base.shift_id,
                shift_name=base.shift_name,
                start_time=parse_time_of_day(values.get("default_shift_start", base.start_time)),
                end_time=parse_time_of_day(values.get("default_shift_end", base.end_time)),
                grace_minutes=kwargs.get("grace_minutes", base.grace_minutes),
            )

        return cls(**kwargs)
