from __future__ import annotations

from datetime import date
from typing import Any, Mapping, Optional

from ..core.exceptions import ValidationError
from .datetime_utils import parse_iso_date


def optional_date(value: Optional[str], default: date) -> date:
    if value is None or not str(value).strip():
        return default
    return parse_iso_date(str(value).strip())


def require_date_range(payload: Optional[Mapping[str, Any]], *, default: date) -> tuple[date, date]:
    """Read ``start``/``end`` from a JSON body; both default to ``default``."""

    if payload is not None and not isinstance(payload, Mapping):
        raise ValidationError("Request body must be a JSON object")
    payload = payload or {}
    start = optional_date(payload.get("start"), default)
    end = optional_date(payload.get("end"), start)
    if end < start:
        raise ValidationError("end date must not be before start date")
    return start, end


def parse_flag(value: Optional[str]) -> bool:
    return str(value or "").strip().lower() in {"1", "true", "yes", "on"}
