from datetime import date, datetime

import pytest

from attendance_engine.core.enums import AttendanceStatus, PunchType, ShiftStatus
from attendance_engine.core.exceptions import ComputationError, ValidationError
from attendance_engine.employees.model import Employee

DAY = date(2024, 3, 4)


def test_reconcile_writes_one_record_per_active_employee(container, punches_repo, attendance_repo):
    punches_repo.add("E001", datetime(2024, 3, 4, 8, 55), "0")
    punches_repo.add("E001", datetime(2024, 3, 4, 17, 5), "1")
    punches_repo.add("E002", datetime(2024, 3, 4, 9, 45), "0")

    summary = container.reconciliation_service.reconcile(DAY, DAY)

    assert summary.records_written == 4
    assert summary.punches_read == 3
    assert attendance_repo.get("E001", DAY).total_hours == 8.17
    assert attendance_repo.get("E002", DAY).status == AttendanceStatus.LATE
    assert attendance_repo.get("E003", DAY).status == AttendanceStatus.ABSENT
    assert attendance_repo.get("E004", DAY).status == AttendanceStatus.PRESENT
    assert attendance_repo.get("E005", DAY) is None


def test_reconcile_twice_is_idempotent(container, punches_repo, attendance_repo):
    punches_repo.add("E001", datetime(2024, 3, 4, 8, 55), "0")
    punches_repo.add("E001", datetime(2024, 3, 4, 17, 5), "1")

    container.reconciliation_service.reconcile(DAY, DAY)
    before = dict(attendance_repo.records)
    saves = attendance_repo.saves

    second = container.reconciliation_service.reconcile(DAY, DAY)

    assert second.records_written == 0
    assert second.records_unchanged == 4
    assert attendance_repo.saves == saves
    assert attendance_repo.records == before


def test_new_punch_updates_record_with_version_bump(container, punches_repo, attendance_repo):
    punches_repo.add("E001", datetime(2024, 3, 4, 8, 55), "0")
    container.reconciliation_service.reconcile(DAY, DAY)
    assert attendance_repo.get("E001", DAY).version == 1

    punches_repo.add("E001", datetime(2024, 3, 4, 17, 0), "1")
    container.reconciliation_service.reconcile(DAY, DAY)

    record = attendance_repo.get("E001", DAY)
    assert record.version == 2
    assert record.check_out == datetime(2024, 3, 4, 17, 0)


def test_malformed_rows_are_skipped_and_counted(container, punches_repo):
    punches_repo.rows.append({"employee_code": "", "punch_time": datetime(2024, 3, 4, 9, 0), "punch_state": "0"})
    punches_repo.add("E001", datetime(2024, 3, 4, 9, 0), "0")

    summary = container.reconciliation_service.reconcile(DAY, DAY)

    assert summary.skipped_punches == 1
    assert summary.punches_read == 1


def test_dangling_shift_reference_falls_back(container, employees_repo, punches_repo, attendance_repo):
    employees_repo.employees["E003"] = Employee("E003", shift_id=99)
    punches_repo.add("E003", datetime(2024, 3, 4, 9, 0), "0")

    container.reconciliation_service.reconcile(DAY, DAY)

    assert attendance_repo.get("E003", DAY).punch_type == PunchType.STANDARD_CHECKOUT


def test_storage_failure_propagates_with_counts(container, punches_repo, attendance_repo, monkeypatch):
    punches_repo.rows.append({"employee_code": None, "punch_time": None})

    def broken_save(record, *, expected_version):
        raise ComputationError("disk full", errored=1)

    monkeypatch.setattr(attendance_repo, "save", broken_save)

    with pytest.raises(ComputationError) as excinfo:
        container.reconciliation_service.reconcile(DAY, DAY)
    assert excinfo.value.skipped == 1
    assert excinfo.value.errored == 1


def test_reversed_range_rejected(container):
    with pytest.raises(ValidationError):
        container.reconciliation_service.reconcile(DAY, date(2024, 3, 1))


def test_classify_reports_label_stats(container, punches_repo):
    punches_repo.add("E001", datetime(2024, 3, 4, 8, 20), "0")
    punches_repo.add("E001", datetime(2024, 3, 4, 9, 0), "0")
    punches_repo.add("E001", datetime(2024, 3, 4, 17, 0), "1")

    run = container.reconciliation_service.classify(DAY, DAY)

    assert run.stats == {"early_checkin": 1, "standard_checkin": 1, "standard_checkout": 1}
    assert run.fallbacks == 0


def test_night_shift_checkout_next_morning_closes_previous_day(container, employees_repo, punches_repo, attendance_repo):
    employees_repo.employees["E003"] = Employee("E003", shift_id=2)
    punches_repo.add("E003", datetime(2024, 3, 4, 22, 0), "0")
    punches_repo.add("E003", datetime(2024, 3, 5, 6, 10), "1")

    container.reconciliation_service.reconcile(DAY, DAY)

    record = attendance_repo.get("E003", DAY)
    assert record.check_out == datetime(2024, 3, 5, 6, 10)
    assert record.total_hours == 8.17
    assert record.shift_status == ShiftStatus.COMPLETED
    assert record.is_late is False
    assert record.status == AttendanceStatus.PRESENT

    container.reconciliation_service.reconcile(date(2024, 3, 5), date(2024, 3, 5))
    assert attendance_repo.get("E003", date(2024, 3, 5)).check_out is None


def test_night_shift_labels_through_classify(container, employees_repo, punches_repo):
    employees_repo.employees["E003"] = Employee("E003", shift_id=2)
    punches_repo.add("E003", datetime(2024, 3, 4, 22, 0), "0")
    punches_repo.add("E003", datetime(2024, 3, 5, 6, 10), "1")

    run = container.reconciliation_service.classify(DAY, DAY)

    assert [(c.punch.punch_time, c.punch_type) for c in run.classifications] == [
        (datetime(2024, 3, 4, 22, 0), PunchType.STANDARD_CHECKIN),
        (datetime(2024, 3, 5, 6, 10), PunchType.STANDARD_CHECKOUT),
    ]
    assert container.reconciliation_service.classify(date(2024, 3, 5), date(2024, 3, 5)).classifications == ()


def test_exempt_policy_note_cleared_by_later_punches(container, punches_repo, attendance_repo):
    container.reconciliation_service.reconcile(DAY, DAY)
    assert attendance_repo.get("E004", DAY).notes is not None

    punches_repo.add("E004", datetime(2024, 3, 4, 9, 0), "0")
    container.reconciliation_service.reconcile(DAY, DAY)

    record = attendance_repo.get("E004", DAY)
    assert record.punch_count == 1
    assert record.notes is None
