from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from timetabler.schemas.settings import DayTimeWindowEntry

RoomType = Literal["classroom", "laboratory", "seminar-hall", "auditorium"]


class RoomProfilePayload(BaseModel):
    id: str = Field(min_length=1, max_length=64)
    code: str = Field(default="", max_length=50)
    capacity: int = Field(ge=1)
    type: RoomType = "classroom"
    available_for: list[str] = Field(default_factory=list)
    unavailable_slots: list[DayTimeWindowEntry] = Field(default_factory=list)
    is_active: bool = True
