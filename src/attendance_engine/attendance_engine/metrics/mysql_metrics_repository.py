from __future__ import annotations

import json
from datetime import date
from typing import Any, Dict, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import DailyMetricsSnapshot
from .repository import MetricsSnapshotRepository


def _to_snapshot(r: Dict[str, Any]) -> DailyMetricsSnapshot:
    payload = r["payload"]
    if isinstance(payload, (bytes, bytearray)):
        payload = payload.decode("utf-8")
    if isinstance(payload, str):
        payload = json.loads(payload)
    return DailyMetricsSnapshot.from_dict(payload)


class MySQLMetricsSnapshotRepository(MetricsSnapshotRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def save(self, snapshot: DailyMetricsSnapshot) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO daily_metrics(metric_date, payload, calculated_at)
                VALUES(%s,%s,%s)
                ON DUPLICATE KEY UPDATE payload=VALUES(payload), calculated_at=VALUES(calculated_at)
                """,
                (snapshot.work_date, json.dumps(snapshot.to_dict()), snapshot.calculated_at),
            )

    def get(self, work_date: date) -> Optional[DailyMetricsSnapshot]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT payload FROM daily_metrics WHERE metric_date=%s", (work_date,))
            r = fetchone(cur)
            return _to_snapshot(r) if r else None

    def list_between(self, start_date: date, end_date: date) -> Sequence[DailyMetricsSnapshot]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT payload FROM daily_metrics
                WHERE metric_date BETWEEN %s AND %s
                ORDER BY metric_date
                """,
                (start_date, end_date),
            )
            return [_to_snapshot(r) for r in fetchall(cur)]
