from __future__ import annotations

import re

from pydantic import BaseModel, Field, field_validator, model_validator

WEEKDAYS = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)
DAY_VALUES = set(WEEKDAYS)
DEFAULT_WORKING_DAYS = WEEKDAYS[:6]

DAY_SHORT_MAP = {day[:3].lower(): day for day in WEEKDAYS}

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def parse_time_to_minutes(value: str) -> int:
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM 24-hour format")
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def minutes_to_time(value: int) -> str:
    hours = value // 60
    minutes = value % 60
    return f"{hours:02d}:{minutes:02d}"


def normalize_day(value: str) -> str:
    cleaned = value.strip()
    if cleaned in DAY_VALUES:
        return cleaned
    lowered = cleaned.lower()
    if lowered[:3] in DAY_SHORT_MAP and (len(lowered) == 3 or DAY_SHORT_MAP[lowered[:3]].lower() == lowered):
        return DAY_SHORT_MAP[lowered[:3]]
    raise ValueError(f"Invalid day value: {value}")


class TimeWindowEntry(BaseModel):
    start_time: str
    end_time: str

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, value: str) -> str:
        if not TIME_PATTERN.match(value):
            raise ValueError("Time must be in HH:MM 24-hour format")
        return value

    @model_validator(mode="after")
    def validate_time_order(self) -> "TimeWindowEntry":
        if parse_time_to_minutes(self.end_time) <= parse_time_to_minutes(self.start_time):
            raise ValueError("End time must be after start time")
        return self

    def bounds(self) -> tuple[int, int]:
        return parse_time_to_minutes(self.start_time), parse_time_to_minutes(self.end_time)


class DayTimeWindowEntry(TimeWindowEntry):
    day: str
    reason: str | None = Field(default=None, max_length=200)

    @field_validator("day")
    @classmethod
    def validate_day(cls, value: str) -> str:
        return normalize_day(value)


class ScheduleConstraintsPayload(BaseModel):
    working_days: list[str] = Field(default_factory=lambda: list(DEFAULT_WORKING_DAYS), min_length=1, max_length=7)
    working_hours: TimeWindowEntry = Field(
        default_factory=lambda: TimeWindowEntry(start_time="08:00", end_time="17:00")
    )
    lunch_break: TimeWindowEntry | None = Field(
        default_factory=lambda: TimeWindowEntry(start_time="12:00", end_time="13:00")
    )
    slot_minutes: int = Field(default=60, ge=10, le=240)
    max_sessions_per_day: int = Field(default=6, ge=1, le=24)
    min_gap_minutes: int = Field(default=0, ge=0, le=120)

    @field_validator("working_days")
    @classmethod
    def validate_working_days(cls, value: list[str]) -> list[str]:
        normalized = [normalize_day(day) for day in value]
        duplicates = sorted({day for day in normalized if normalized.count(day) > 1})
        if duplicates:
            raise ValueError(f"Duplicate day entries: {', '.join(duplicates)}")
        # Calendar order, regardless of the order the caller listed them in.
        return sorted(normalized, key=WEEKDAYS.index)

    @model_validator(mode="after")
    def validate_window_fits_slot(self) -> "ScheduleConstraintsPayload":
        start, end = self.working_hours.bounds()
        if end - start < self.slot_minutes:
            raise ValueError("Working hours must be at least one slot long")
        return self


DEFAULT_SCHEDULE_CONSTRAINTS = ScheduleConstraintsPayload()
