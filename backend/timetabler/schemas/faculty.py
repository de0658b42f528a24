from __future__ import annotations

from pydantic import BaseModel, Field

from timetabler.schemas.settings import DayTimeWindowEntry


class FacultyProfilePayload(BaseModel):
    id: str = Field(min_length=1, max_length=64)
    name: str = Field(default="", max_length=200)
    department: str = Field(min_length=1, max_length=64)
    max_hours_per_week: int = Field(default=40, ge=0, le=60)
    preferred_subjects: list[str] = Field(default_factory=list)
    unavailable_slots: list[DayTimeWindowEntry] = Field(default_factory=list)
    is_active: bool = True
