from __future__ import annotations

from collections import Counter
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field, replace
import math
from typing import Literal

from timetabler.schemas.settings import DEFAULT_WORKING_DAYS

SessionType = Literal["theory", "practical", "tutorial", "project"]
ConflictKind = Literal["faculty-conflict", "room-conflict", "time-conflict", "student-conflict"]
Severity = Literal["low", "medium", "high"]

LAB_ROOM_TYPE = "laboratory"
GENERIC_ROOM_TYPE = "classroom"


@dataclass(frozen=True)
class TimeRange:
    day: str
    start: int
    end: int
    reason: str | None = None

    def overlaps(self, day: str, start: int, end: int) -> bool:
        return self.day == day and start < self.end and self.start < end


@dataclass(frozen=True)
class FacultyPreference:
    faculty_id: str
    priority: int = 1


@dataclass(frozen=True)
class CourseRequirement:
    id: str
    department: str
    semester: int
    hours_per_week: int
    session_type: SessionType = "theory"
    session_slots: int | None = None
    batch_size: int = 60
    is_lab_required: bool = False
    faculty_preferences: tuple[FacultyPreference, ...] = ()
    code: str = ""

    def __post_init__(self) -> None:
        if self.session_slots is None:
            object.__setattr__(self, "session_slots", 2 if self.is_lab else 1)

    @property
    def is_lab(self) -> bool:
        return self.session_type == "practical"

    @property
    def required_room_type(self) -> str:
        return LAB_ROOM_TYPE if self.is_lab_required else GENERIC_ROOM_TYPE

    def session_minutes(self, slot_minutes: int) -> int:
        return self.session_slots * slot_minutes

    def required_sessions(self, slot_minutes: int) -> int:
        return math.ceil(self.hours_per_week * 60 / self.session_minutes(slot_minutes))


@dataclass(frozen=True)
class FacultyProfile:
    id: str
    department: str
    max_hours_per_week: int = 40
    preferred_course_ids: frozenset[str] = frozenset()
    unavailable: tuple[TimeRange, ...] = ()

    def is_unavailable(self, day: str, start: int, end: int) -> bool:
        return any(item.overlaps(day, start, end) for item in self.unavailable)


@dataclass(frozen=True)
class RoomProfile:
    id: str
    capacity: int
    room_type: str = GENERIC_ROOM_TYPE
    departments: frozenset[str] = frozenset()
    unavailable: tuple[TimeRange, ...] = ()

    def is_unavailable(self, day: str, start: int, end: int) -> bool:
        return any(item.overlaps(day, start, end) for item in self.unavailable)


@dataclass(frozen=True)
class ScheduleConstraints:
    working_days: tuple[str, ...] = DEFAULT_WORKING_DAYS
    day_start: int = 8 * 60
    day_end: int = 17 * 60
    lunch_start: int | None = 12 * 60
    lunch_end: int | None = 13 * 60
    slot_minutes: int = 60
    max_sessions_per_day: int = 6
    min_gap_minutes: int = 0

    @property
    def lunch_break(self) -> tuple[int, int] | None:
        if self.lunch_start is None or self.lunch_end is None:
            return None
        return self.lunch_start, self.lunch_end

    def intersects_lunch(self, start: int, end: int) -> bool:
        window = self.lunch_break
        return window is not None and start < window[1] and window[0] < end


@dataclass
class Assignment:
    day: str
    start: int
    end: int
    course_id: str
    faculty_id: str | None
    room_id: str | None
    batch: str = "A"
    is_lab: bool = False

    def clone(self) -> "Assignment":
        return replace(self)

    def overlaps(self, start: int, end: int, gap: int = 0) -> bool:
        return start < self.end + gap and self.start < end + gap


@dataclass(frozen=True)
class ConflictRecord:
    kind: ConflictKind
    description: str
    severity: Severity
    day: str | None = None
    start: int | None = None
    course_id: str | None = None
    faculty_id: str | None = None
    room_id: str | None = None


@dataclass(frozen=True)
class UnresolvedPlacement:
    course_id: str
    reason: str


@dataclass
class ScheduleCandidate:
    """One proposed weekly timetable: the chromosome the engine evolves.

    ``fitness`` is ``None`` until the candidate has been scored and is reset
    whenever an operator changes the schedule, so stale scores and conflict
    lists are never read.
    """

    schedule: dict[str, list[Assignment]]
    constraints: ScheduleConstraints
    required_sessions: Mapping[str, int]
    fitness: int | None = None
    conflicts: list[ConflictRecord] = field(default_factory=list)
    unresolved: list[UnresolvedPlacement] = field(default_factory=list)

    @classmethod
    def empty(cls, constraints: ScheduleConstraints, required_sessions: Mapping[str, int]) -> "ScheduleCandidate":
        return cls(
            schedule={day: [] for day in constraints.working_days},
            constraints=constraints,
            required_sessions=required_sessions,
        )

    @property
    def days(self) -> list[str]:
        return list(self.schedule)

    @property
    def total_sessions(self) -> int:
        return sum(len(items) for items in self.schedule.values())

    @property
    def is_scored(self) -> bool:
        return self.fitness is not None

    def day_assignments(self, day: str) -> list[Assignment]:
        return sorted(self.schedule[day], key=lambda item: item.start)

    def iter_assignments(self) -> Iterator[Assignment]:
        for day in self.schedule:
            yield from self.day_assignments(day)

    def course_counts(self) -> Counter[str]:
        return Counter(item.course_id for items in self.schedule.values() for item in items)

    def invalidate(self) -> None:
        self.fitness = None
        self.conflicts = []

    def clone(self) -> "ScheduleCandidate":
        # Constraints, conflict records and unresolved entries are frozen; only
        # the assignment lists need fresh copies.
        return ScheduleCandidate(
            schedule={day: [item.clone() for item in items] for day, items in self.schedule.items()},
            constraints=self.constraints,
            required_sessions=self.required_sessions,
            fitness=self.fitness,
            conflicts=list(self.conflicts),
            unresolved=list(self.unresolved),
        )
