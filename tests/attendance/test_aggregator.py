from dataclasses import replace
from datetime import date, datetime, time

from attendance_engine.attendance.aggregator import NON_BIO_EXEMPT_NOTE, DailyAttendanceAggregator
from attendance_engine.core.enums import AttendanceStatus, PunchState, PunchType, ShiftStatus
from attendance_engine.core.policy import EnginePolicy
from attendance_engine.employees.model import Employee
from attendance_engine.punches.model import RawPunchEvent
from attendance_engine.shifts.model import Shift

DAY = date(2024, 3, 4)
SHIFT = Shift(shift_id=1, shift_name="Morning", start_time=time(9, 0), end_time=time(17, 0))


def _punch(hh, mm, state, code="E001"):
    return RawPunchEvent(code, datetime.combine(DAY, time(hh, mm)), state)


def _build(punches, **kwargs):
    aggregator = DailyAttendanceAggregator(EnginePolicy())
    return aggregator.build_day(employee_code="E001", work_date=DAY, punches=punches, shift=SHIFT, **kwargs)


def test_earliest_in_and_latest_out_drive_hours():
    record = _build(
        [
            _punch(8, 20, PunchState.CHECK_IN),
            _punch(9, 0, PunchState.CHECK_IN),
            _punch(12, 0, PunchState.CHECK_OUT),
            _punch(18, 20, PunchState.CHECK_OUT),
        ]
    )

    assert record.check_in == datetime(2024, 3, 4, 8, 20)
    assert record.check_out == datetime(2024, 3, 4, 18, 20)
    assert record.total_hours == 10.0
    assert record.overtime_hours == 2.0
    assert record.shift_status == ShiftStatus.COMPLETED
    assert record.status == AttendanceStatus.PRESENT
    # Label of the canonical check-in is informational only.
    assert record.punch_type == PunchType.EARLY_CHECKIN
    assert record.punch_count == 4


def test_check_in_after_cutoff_is_late():
    record = _build([_punch(9, 31, PunchState.CHECK_IN), _punch(17, 0, PunchState.CHECK_OUT)])

    assert record.is_late is True
    assert record.status == AttendanceStatus.LATE


def test_check_in_without_check_out_is_incomplete():
    record = _build([_punch(9, 0, PunchState.CHECK_IN)])

    assert record.check_out is None
    assert record.total_hours is None
    assert record.shift_status == ShiftStatus.INCOMPLETE
    assert record.is_open


def test_overlong_span_is_not_completed():
    record = _build([_punch(6, 0, PunchState.CHECK_IN), _punch(19, 0, PunchState.CHECK_OUT)])

    assert record.total_hours == 13.0
    assert record.shift_status == ShiftStatus.INCOMPLETE
    assert record.overtime_hours == 0.0


def test_no_punches_absent_unless_exempt():
    absent = _build([])
    exempt = _build([], non_bio_exempt=True)

    assert absent.status == AttendanceStatus.ABSENT
    assert absent.shift_status == ShiftStatus.NONE
    assert exempt.status == AttendanceStatus.PRESENT
    assert exempt.notes == NON_BIO_EXEMPT_NOTE


def test_aggregate_covers_roster_and_unknown_punchers():
    aggregator = DailyAttendanceAggregator(EnginePolicy())
    employees = [Employee("E001"), Employee("E002")]
    punches = [_punch(9, 0, PunchState.CHECK_IN), _punch(9, 10, PunchState.CHECK_IN, code="X999")]

    records = aggregator.aggregate(
        punches,
        employees=employees,
        shift_for=lambda code: SHIFT,
        start_date=DAY,
        end_date=DAY,
    )

    assert [r.employee_code for r in records] == ["E001", "E002", "X999"]
    assert [r.status for r in records] == [
        AttendanceStatus.PRESENT, AttendanceStatus.ABSENT, AttendanceStatus.PRESENT,
    ]


def test_aggregate_is_deterministic():
    aggregator = DailyAttendanceAggregator(EnginePolicy())
    punches = [_punch(17, 0, PunchState.CHECK_OUT), _punch(9, 0, PunchState.CHECK_IN)]
    kwargs = dict(employees=[Employee("E001")], shift_for=lambda code: SHIFT, start_date=DAY, end_date=DAY)

    assert aggregator.aggregate(punches, **kwargs) == aggregator.aggregate(list(reversed(punches)), **kwargs)


def test_merge_unchanged_returns_none():
    aggregator = DailyAttendanceAggregator(EnginePolicy())
    record = _build([_punch(9, 0, PunchState.CHECK_IN), _punch(17, 0, PunchState.CHECK_OUT)])

    assert aggregator.merge(None, record) == record
    assert aggregator.merge(replace(record, version=3), record) is None


def test_merge_keeps_synthetic_checkout_until_real_one_arrives():
    aggregator = DailyAttendanceAggregator(EnginePolicy())
    open_record = _build([_punch(9, 0, PunchState.CHECK_IN)])
    adjusted = replace(
        open_record,
        check_out=datetime(2024, 3, 4, 16, 30),
        total_hours=7.5,
        adjusted=True,
        notes="ANTI-OVERBILLING 2024-03-04 18:00: capped",
        version=2,
    )

    assert aggregator.merge(adjusted, open_record) is None

    closed = _build([_punch(9, 0, PunchState.CHECK_IN), _punch(17, 0, PunchState.CHECK_OUT)])
    merged = aggregator.merge(adjusted, closed)

    assert merged.check_out == datetime(2024, 3, 4, 17, 0)
    assert merged.adjusted is False
    assert merged.version == 2
    assert merged.notes.startswith("ANTI-OVERBILLING")
    assert "superseded by punch at 17:00" in merged.notes


def test_exempt_note_dropped_once_punches_arrive():
    aggregator = DailyAttendanceAggregator(EnginePolicy())
    exempt = replace(_build([], non_bio_exempt=True), version=1)
    audited = exempt.with_note("ANTI-OVERBILLING 2024-03-03 18:00: capped")

    punched = aggregator.merge(audited, _build([_punch(9, 0, PunchState.CHECK_IN)], non_bio_exempt=True))

    assert punched.status == AttendanceStatus.PRESENT
    assert punched.punch_count == 1
    assert punched.notes == "ANTI-OVERBILLING 2024-03-03 18:00: capped"
    assert NON_BIO_EXEMPT_NOTE not in punched.notes

    only_policy = aggregator.merge(exempt, _build([_punch(9, 0, PunchState.CHECK_IN)], non_bio_exempt=True))
    assert only_policy.notes is None
