from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from typing import Any, Dict, Optional, Sequence

import mysql.connector

from ..core.enums import AttendanceStatus, PunchType, ShiftStatus
from ..core.exceptions import ConcurrentUpdateError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import AttendanceRecord
from .repository import AttendanceRepository

_COLUMNS = """
    employee_code, work_date, check_in, check_out, total_hours, overtime_hours, status,
    punch_type, shift_status, is_late, punch_count, adjusted, notes, version, updated_at
"""


def _to_record(r: Dict[str, Any]) -> AttendanceRecord:
    return AttendanceRecord(
        employee_code=str(r["employee_code"]),
        work_date=r["work_date"],
        check_in=r.get("check_in"),
        check_out=r.get("check_out"),
        total_hours=float(r["total_hours"]) if r.get("total_hours") is not None else None,
        status=AttendanceStatus(r["status"]),
        punch_type=PunchType(r["punch_type"]) if r.get("punch_type") else None,
        shift_status=ShiftStatus(r.get("shift_status") or ShiftStatus.NONE.value),
        is_late=bool(r.get("is_late")),
        overtime_hours=float(r.get("overtime_hours") or 0),
        punch_count=int(r.get("punch_count") or 0),
        adjusted=bool(r.get("adjusted")),
        notes=r.get("notes"),
        version=int(r.get("version") or 0),
        updated_at=r.get("updated_at"),
    )


def _values(record: AttendanceRecord) -> tuple:
    return (
        record.check_in,
        record.check_out,
        record.total_hours,
        record.overtime_hours,
        record.status.value,
        record.punch_type.value if record.punch_type else None,
        record.shift_status.value,
        int(record.is_late),
        record.punch_count,
        int(record.adjusted),
        record.notes,
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, employee_code: str, work_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_records WHERE employee_code=%s AND work_date=%s",
                (employee_code, work_date),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def list_between(self, start_date: date, end_date: date) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM attendance_records
                WHERE work_date BETWEEN %s AND %s
                ORDER BY work_date, employee_code
                """,
                (start_date, end_date),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def list_open(self, start_date: date, end_date: date) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM attendance_records
                WHERE work_date BETWEEN %s AND %s
                  AND check_in IS NOT NULL AND check_out IS NULL
                ORDER BY work_date, employee_code
                """,
                (start_date, end_date),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def save(self, record: AttendanceRecord, *, expected_version: Optional[int]) -> AttendanceRecord:
        now = datetime.now()
        with db_cursor(self._conn_factory) as (_, cur):
            if expected_version is None:
                try:
                    cur.execute(
                        """
                        INSERT INTO attendance_records(
                            check_in, check_out, total_hours, overtime_hours, status, punch_type,
                            shift_status, is_late, punch_count, adjusted, notes,
                            employee_code, work_date, version, updated_at
                        )
                        VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,1,%s)
                        """,
                        _values(record) + (record.employee_code, record.work_date, now),
                    )
                except mysql.connector.errors.IntegrityError as exc:
                    raise ConcurrentUpdateError(
                        f"Attendance record {record.employee_code}/{record.work_date} was created concurrently"
                    ) from exc
                new_version = 1
            else:
                cur.execute(
                    """
                    UPDATE attendance_records
                    SET check_in=%s, check_out=%s, total_hours=%s, overtime_hours=%s, status=%s,
                        punch_type=%s, shift_status=%s, is_late=%s, punch_count=%s, adjusted=%s,
                        notes=%s, version=version+1, updated_at=%s
                    WHERE employee_code=%s AND work_date=%s AND version=%s
                    """,
                    _values(record) + (now, record.employee_code, record.work_date, expected_version),
                )
                if cur.rowcount == 0:
                    raise ConcurrentUpdateError(
                        f"Attendance record {record.employee_code}/{record.work_date} "
                        f"changed since version {expected_version}"
                    )
                new_version = expected_version + 1

        return replace(record, version=new_version, updated_at=now)
