from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import PunchFetch


class PunchRepository(Protocol):
    """Append-only punch store filled by the ingestion pipeline."""

    def list_between(
        self,
        start_date: date,
        end_date: date,
        *,
        employee_codes: Optional[Sequence[str]] = None,
    ) -> PunchFetch:
        raise NotImplementedError
