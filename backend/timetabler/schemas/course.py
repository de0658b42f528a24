from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator

SessionType = Literal["theory", "practical", "tutorial", "project"]


class FacultyPreferenceEntry(BaseModel):
    faculty_id: str = Field(min_length=1, max_length=64)
    priority: int = Field(default=1, ge=1, le=5)


class CourseRequirementPayload(BaseModel):
    id: str = Field(min_length=1, max_length=64)
    code: str = Field(min_length=1, max_length=50)
    name: str = Field(default="", max_length=200)
    department: str = Field(min_length=1, max_length=64)
    semester: int = Field(ge=1, le=8)
    type: SessionType = "theory"
    hours_per_week: int = Field(ge=1, le=10)
    session_slots: int | None = Field(default=None, ge=1, le=4)
    batch_size: int = Field(default=60, ge=1)
    is_lab_required: bool = False
    faculty_preferences: list[FacultyPreferenceEntry] = Field(default_factory=list)
    is_active: bool = True

    @field_validator("code")
    @classmethod
    def normalize_code(cls, value: str) -> str:
        return value.strip().upper()

    def resolved_session_slots(self) -> int:
        if self.session_slots is not None:
            return self.session_slots
        return 2 if self.type == "practical" else 1
