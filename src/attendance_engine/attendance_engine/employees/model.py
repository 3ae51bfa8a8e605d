from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Employee:
    """Employee as seen by the reconciliation engine (read-only, owned by HR)."""

    employee_code: str
    is_active: bool = True
    non_bio_exempt: bool = False
    shift_id: Optional[int] = None
    full_name: Optional[str] = None
