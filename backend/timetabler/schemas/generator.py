from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, model_validator

from timetabler.schemas.course import CourseRequirementPayload
from timetabler.schemas.faculty import FacultyProfilePayload
from timetabler.schemas.room import RoomProfilePayload
from timetabler.schemas.settings import ScheduleConstraintsPayload

ConflictKind = Literal["faculty-conflict", "room-conflict", "time-conflict", "student-conflict"]
ConflictSeverity = Literal["low", "medium", "high"]
StopReason = Literal["optimum", "generation_limit", "time_budget"]


class GenerationSettingsBase(BaseModel):
    population_size: int = Field(default=50, ge=1, le=2000)
    max_generations: int = Field(default=100, ge=0, le=5000)
    mutation_rate: float = Field(default=0.10, ge=0.0, le=1.0)
    tournament_size: int = Field(default=3, ge=1, le=50)
    max_placement_attempts: int = Field(default=50, ge=1, le=10_000)
    evaluation_workers: int = Field(default=1, ge=1, le=64)
    time_budget_seconds: float | None = Field(default=None, gt=0.0, le=3600.0)
    batch_split_size: int = Field(default=60, ge=1, le=1000)
    detect_batch_conflicts: bool = False
    random_seed: int | None = Field(default=None, ge=0, le=2_000_000_000)


class GenerateTimetableRequest(BaseModel):
    department_id: str = Field(min_length=1, max_length=64)
    semester: int = Field(ge=1, le=8)
    academic_year: str = Field(min_length=1, max_length=20)
    courses: list[CourseRequirementPayload] = Field(default_factory=list)
    faculties: list[FacultyProfilePayload] = Field(default_factory=list)
    rooms: list[RoomProfilePayload] = Field(default_factory=list)
    constraints: ScheduleConstraintsPayload | None = None
    settings_override: GenerationSettingsBase | None = None

    @model_validator(mode="after")
    def validate_unique_ids(self) -> "GenerateTimetableRequest":
        for label, items in (("course", self.courses), ("faculty", self.faculties), ("room", self.rooms)):
            seen: set[str] = set()
            duplicates: set[str] = set()
            for item in items:
                if item.id in seen:
                    duplicates.add(item.id)
                seen.add(item.id)
            if duplicates:
                raise ValueError(f"Duplicate {label} id(s): {', '.join(sorted(duplicates))}")
        return self


class AssignmentOut(BaseModel):
    start_time: str
    end_time: str
    course_id: str
    faculty_id: str | None = None
    room_id: str | None = None
    batch: str
    is_lab_session: bool = False


class DayScheduleOut(BaseModel):
    day: str
    time_slots: list[AssignmentOut] = Field(default_factory=list)


class ConflictOut(BaseModel):
    type: ConflictKind
    description: str
    severity: ConflictSeverity
    day: str | None = None
    start_time: str | None = None
    course_id: str | None = None
    faculty_id: str | None = None
    room_id: str | None = None


class UnresolvedPlacementOut(BaseModel):
    course_id: str
    reason: str


class GenerationStatsOut(BaseModel):
    generation: int
    best_score: int
    generation_best: int
    mean_score: float


class GenerateTimetableResponse(BaseModel):
    name: str
    department_id: str
    semester: int
    academic_year: str
    schedule: list[DayScheduleOut]
    constraints: ScheduleConstraintsPayload
    fitness_score: int = Field(ge=0, le=100)
    conflicts: list[ConflictOut] = Field(default_factory=list)
    unresolved: list[UnresolvedPlacementOut] = Field(default_factory=list)
    total_sessions: int
    utilization_rate: float
    generations_run: int
    stop_reason: StopReason
    history: list[GenerationStatsOut] = Field(default_factory=list)
    runtime_ms: int
    settings_used: GenerationSettingsBase


class GenerationDefaultsResponse(BaseModel):
    constraints: ScheduleConstraintsPayload
    settings: GenerationSettingsBase
