import pytest
from pydantic import ValidationError

from timetabler.schemas.course import CourseRequirementPayload
from timetabler.schemas.settings import (
    ScheduleConstraintsPayload,
    minutes_to_time,
    normalize_day,
    parse_time_to_minutes,
)


@pytest.mark.parametrize("value", ["Monday", "monday", "Mon", " mon "])
def test_normalize_day_accepts_common_spellings(value):
    assert normalize_day(value) == "Monday"


@pytest.mark.parametrize("value", ["Mo", "Mondays", "Funday"])
def test_normalize_day_rejects_unknown_values(value):
    with pytest.raises(ValueError):
        normalize_day(value)


def test_time_conversion():
    assert parse_time_to_minutes("08:30") == 510
    assert minutes_to_time(510) == "08:30"
    with pytest.raises(ValueError):
        parse_time_to_minutes("24:00")


def test_duplicate_working_days_are_rejected():
    with pytest.raises(ValidationError):
        ScheduleConstraintsPayload(working_days=["Monday", "mon"])


def test_working_hours_shorter_than_a_slot_are_rejected():
    with pytest.raises(ValidationError):
        ScheduleConstraintsPayload(working_hours={"start_time": "08:00", "end_time": "08:30"}, slot_minutes=60)


def test_lunch_break_can_be_disabled():
    assert ScheduleConstraintsPayload(lunch_break=None).lunch_break is None


def test_practical_courses_default_to_double_slots():
    practical = CourseRequirementPayload(id="c1", code="cs301", department="CSE", semester=3, type="practical", hours_per_week=4)
    theory = CourseRequirementPayload(id="c2", code="cs302", department="CSE", semester=3, hours_per_week=3)

    assert practical.code == "CS301"
    assert practical.resolved_session_slots() == 2
    assert theory.resolved_session_slots() == 1
