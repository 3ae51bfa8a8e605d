from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Employee
from .repository import EmployeeRepository

_COLUMNS = "employee_code, full_name, is_active, non_bio_exempt, shift_id"


def _to_employee(r: Dict[str, Any]) -> Employee:
    return Employee(
        employee_code=str(r["employee_code"]).strip(),
        full_name=r.get("full_name"),
        is_active=bool(r.get("is_active")),
        non_bio_exempt=bool(r.get("non_bio_exempt")),
        shift_id=int(r["shift_id"]) if r.get("shift_id") is not None else None,
    )


class MySQLEmployeeRepository(EmployeeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_active(self) -> Sequence[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM employees WHERE is_active=1 ORDER BY employee_code")
            return [_to_employee(r) for r in fetchall(cur)]

    def get_by_code(self, employee_code: str) -> Optional[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM employees WHERE employee_code=%s", (employee_code,))
            r = fetchone(cur)
            return _to_employee(r) if r else None
