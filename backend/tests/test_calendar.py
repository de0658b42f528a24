from timetabler.services.calendar import Calendar, SlotSegment, build_slots
from timetabler.services.schedule_model import Assignment, ScheduleConstraints


def _busy(start: int, end: int) -> Assignment:
    return Assignment(day="Monday", start=start, end=end, course_id="c1", faculty_id="f1", room_id="r1")


def test_default_day_skips_lunch_hour():
    slots = build_slots((480, 1020), 60, (720, 780))

    assert [slot.start for slot in slots] == [480, 540, 600, 660, 780, 840, 900, 960]
    assert slots[-1] == SlotSegment(start=960, end=1020)


def test_slot_must_fit_before_window_end():
    slots = build_slots((480, 630), 60)

    assert slots == [SlotSegment(480, 540), SlotSegment(540, 600)]


def test_grid_realigns_after_off_hour_lunch():
    slots = build_slots((480, 1020), 60, (750, 810))

    assert [slot.start for slot in slots] == [480, 540, 600, 660, 810, 870, 930]
    assert all(not (slot.start < 810 and 750 < slot.end) for slot in slots)


def test_is_deterministic():
    assert build_slots((480, 1020), 45, (720, 780)) == build_slots((480, 1020), 45, (720, 780))


def test_two_slot_windows_never_cross_lunch():
    calendar = Calendar(ScheduleConstraints())

    assert calendar.windows(2) == [(480, 600), (540, 660), (600, 720), (780, 900), (840, 960), (900, 1020)]


def test_free_windows_exclude_busy_intervals():
    calendar = Calendar(ScheduleConstraints())
    busy = [_busy(540, 600)]

    single = calendar.free_windows(busy, 1)
    double = calendar.free_windows(busy, 2)

    assert (540, 600) not in single
    assert (480, 540) in single and (600, 660) in single
    assert (480, 600) not in double and (540, 660) not in double
    assert (600, 720) in double


def test_min_gap_blocks_adjacent_slots():
    calendar = Calendar(ScheduleConstraints(min_gap_minutes=10))

    free = calendar.free_windows([_busy(540, 600)], 1)

    assert (480, 540) not in free
    assert (600, 660) not in free
    assert (660, 720) in free


def test_contains_rejects_lunch_and_out_of_hours():
    calendar = Calendar(ScheduleConstraints())

    assert calendar.contains(780, 840)
    assert not calendar.contains(720, 780)
    assert not calendar.contains(690, 750)
    assert not calendar.contains(1020, 1080)
    assert not calendar.contains(420, 480)
