from datetime import date, datetime, time

from attendance_engine.core.enums import PunchState, PunchType
from attendance_engine.core.policy import EnginePolicy
from attendance_engine.punches.classifier import PunchTypeClassifier
from attendance_engine.punches.model import RawPunchEvent
from attendance_engine.shifts.model import Shift

DAY = date(2024, 3, 4)
SHIFT = Shift(shift_id=1, shift_name="Morning", start_time=time(9, 0), end_time=time(17, 0), grace_minutes=30)


def _punch(hh: int, mm: int, state: PunchState, code: str = "E001", day: date = DAY) -> RawPunchEvent:
    return RawPunchEvent(code, datetime.combine(day, time(hh, mm)), state)


def _labels(punches, shift=SHIFT, day=DAY):
    classifier = PunchTypeClassifier(EnginePolicy())
    return [c.punch_type for c in classifier.classify_day(punches, shift=shift, work_date=day)]


def test_checkin_ten_minutes_early_is_standard():
    assert _labels([_punch(8, 50, PunchState.CHECK_IN)]) == [PunchType.STANDARD_CHECKIN]


def test_checkin_forty_minutes_early_is_early():
    assert _labels([_punch(8, 20, PunchState.CHECK_IN)]) == [PunchType.EARLY_CHECKIN]


def test_late_checkin_still_takes_standard_slot():
    assert _labels([_punch(10, 15, PunchState.CHECK_IN)]) == [PunchType.STANDARD_CHECKIN]


def test_checkout_labels_relative_to_shift_end():
    assert _labels([_punch(16, 0, PunchState.CHECK_OUT)]) == [PunchType.EARLY_CHECKOUT]
    assert _labels([_punch(17, 10, PunchState.CHECK_OUT)]) == [PunchType.STANDARD_CHECKOUT]
    assert _labels([_punch(18, 30, PunchState.CHECK_OUT)]) == [PunchType.LATE_CHECKOUT]


def test_at_most_one_standard_per_direction():
    punches = [
        _punch(8, 55, PunchState.CHECK_IN),
        _punch(9, 5, PunchState.CHECK_IN),
        _punch(12, 0, PunchState.CHECK_OUT),
        _punch(16, 50, PunchState.CHECK_OUT),
        _punch(17, 5, PunchState.CHECK_OUT),
    ]
    labels = _labels(punches)

    assert labels.count(PunchType.STANDARD_CHECKIN) == 1
    assert labels.count(PunchType.STANDARD_CHECKOUT) == 1
    assert labels == [
        PunchType.STANDARD_CHECKIN,
        PunchType.INTERIM_CHECKIN,
        PunchType.EARLY_CHECKOUT,
        PunchType.STANDARD_CHECKOUT,
        PunchType.INTERIM_CHECKOUT,
    ]


def test_early_checkin_leaves_standard_slot_open():
    labels = _labels([_punch(8, 0, PunchState.CHECK_IN), _punch(9, 0, PunchState.CHECK_IN)])
    assert labels == [PunchType.EARLY_CHECKIN, PunchType.STANDARD_CHECKIN]


def test_missing_shift_falls_back_to_standard_checkout():
    classifier = PunchTypeClassifier(EnginePolicy())
    result = classifier.classify_day(
        [_punch(9, 0, PunchState.CHECK_IN), _punch(17, 0, PunchState.CHECK_OUT)],
        shift=None,
        work_date=DAY,
    )

    assert [c.punch_type for c in result] == [PunchType.STANDARD_CHECKOUT, PunchType.INTERIM_CHECKOUT]
    assert all(c.fallback for c in result)


def test_unknown_state_falls_back_without_breaking_standard_rule():
    labels = _labels([_punch(12, 0, PunchState.UNKNOWN), _punch(17, 0, PunchState.CHECK_OUT)])
    assert labels == [PunchType.STANDARD_CHECKOUT, PunchType.INTERIM_CHECKOUT]


def test_overnight_shift_checkout_on_next_morning():
    night = Shift(shift_id=2, shift_name="Night", start_time=time(22, 0), end_time=time(6, 0))
    classifier = PunchTypeClassifier(EnginePolicy())
    punch = RawPunchEvent("E001", datetime(2024, 3, 5, 6, 10), PunchState.CHECK_OUT)

    [result] = classifier.classify_day([punch], shift=night, work_date=DAY)

    assert result.punch_type == PunchType.STANDARD_CHECKOUT


def test_duplicates_collapse_and_batch_stats():
    classifier = PunchTypeClassifier(EnginePolicy())
    punches = [
        _punch(8, 55, PunchState.CHECK_IN),
        _punch(8, 55, PunchState.CHECK_IN),
        _punch(17, 0, PunchState.CHECK_OUT),
        _punch(9, 0, PunchState.CHECK_IN, code="E002"),
    ]

    run = classifier.classify(punches, lambda code: SHIFT)

    assert len(run.classifications) == 3
    assert run.stats == {"standard_checkin": 2, "standard_checkout": 1}
    assert run.fallbacks == 0
    assert "shift start" in run.classifications[0].reason


def test_night_checkout_counts_towards_shift_start_date():
    night = Shift(shift_id=2, shift_name="Night", start_time=time(22, 0), end_time=time(6, 0))
    classifier = PunchTypeClassifier(EnginePolicy())
    check_out = RawPunchEvent("E001", datetime(2024, 3, 5, 6, 10), PunchState.CHECK_OUT)
    after_allowance = RawPunchEvent("E001", datetime(2024, 3, 5, 7, 30), PunchState.CHECK_OUT)
    morning_check_in = RawPunchEvent("E001", datetime(2024, 3, 5, 5, 0), PunchState.CHECK_IN)

    assert classifier.work_date_for(check_out, night) == DAY
    assert classifier.work_date_for(after_allowance, night) == date(2024, 3, 5)
    assert classifier.work_date_for(morning_check_in, night) == date(2024, 3, 5)
    assert classifier.work_date_for(check_out, SHIFT) == date(2024, 3, 5)


def test_classify_groups_night_shift_by_work_date():
    night = Shift(shift_id=2, shift_name="Night", start_time=time(22, 0), end_time=time(6, 0))
    classifier = PunchTypeClassifier(EnginePolicy())
    punches = [
        RawPunchEvent("E001", datetime(2024, 3, 4, 22, 5), PunchState.CHECK_IN),
        RawPunchEvent("E001", datetime(2024, 3, 5, 6, 10), PunchState.CHECK_OUT),
    ]

    run = classifier.classify(punches, lambda code: night, start_date=DAY, end_date=DAY)

    assert [c.punch_type for c in run.classifications] == [PunchType.STANDARD_CHECKIN, PunchType.STANDARD_CHECKOUT]
    assert classifier.classify(punches, lambda code: night, start_date=date(2024, 3, 5)).classifications == ()
