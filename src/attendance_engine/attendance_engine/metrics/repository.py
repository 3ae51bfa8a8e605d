from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import DailyMetricsSnapshot


class MetricsSnapshotRepository(Protocol):
    def save(self, snapshot: DailyMetricsSnapshot) -> None:
        """Insert or replace the snapshot stored for its date."""

        raise NotImplementedError

    def get(self, work_date: date) -> Optional[DailyMetricsSnapshot]:
        raise NotImplementedError

    def list_between(self, start_date: date, end_date: date) -> Sequence[DailyMetricsSnapshot]:
        raise NotImplementedError
