from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..common.datetime_utils import day_bounds
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, placeholders
from .model import PunchFetch, parse_punch_rows
from .repository import PunchRepository


class MySQLPunchRepository(PunchRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_between(
        self,
        start_date: date,
        end_date: date,
        *,
        employee_codes: Optional[Sequence[str]] = None,
    ) -> PunchFetch:
        start, _ = day_bounds(start_date)
        _, end = day_bounds(end_date)

        sql = """
            SELECT employee_code, punch_time, punch_state, terminal_id
            FROM raw_punches
            WHERE punch_time >= %s AND punch_time < %s
        """
        params: list = [start, end]
        if employee_codes:
            sql += f" AND employee_code IN ({placeholders(len(employee_codes))})"
            params.extend(employee_codes)
        sql += " ORDER BY punch_time, punch_id"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return parse_punch_rows(fetchall(cur))
