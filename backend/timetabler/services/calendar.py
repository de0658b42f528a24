from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from functools import lru_cache

from timetabler.services.schedule_model import Assignment, ScheduleConstraints


@dataclass(frozen=True)
class SlotSegment:
    start: int
    end: int


def build_slots(
    working_hours: tuple[int, int],
    slot_minutes: int,
    lunch_break: tuple[int, int] | None = None,
) -> list[SlotSegment]:
    """Lay out the base slots of one working day.

    A slot is kept only when it ends at or before the end of the working
    window and does not touch the lunch break. Slots that would overlap lunch
    are skipped and the grid restarts at the end of the break.
    """
    if slot_minutes <= 0:
        raise ValueError("slot_minutes must be positive")
    day_start, day_end = working_hours
    slots: list[SlotSegment] = []
    cursor = day_start
    while cursor + slot_minutes <= day_end:
        end = cursor + slot_minutes
        if lunch_break is not None and cursor < lunch_break[1] and end > lunch_break[0]:
            cursor = max(cursor + 1, lunch_break[1])
            continue
        slots.append(SlotSegment(start=cursor, end=end))
        cursor = end
    return slots


class Calendar:
    """Slot grid shared by every working day of a constraints block."""

    def __init__(self, constraints: ScheduleConstraints) -> None:
        self.constraints = constraints
        self.slots: tuple[SlotSegment, ...] = tuple(
            build_slots(
                (constraints.day_start, constraints.day_end),
                constraints.slot_minutes,
                constraints.lunch_break,
            )
        )

    def windows(self, span: int) -> list[tuple[int, int]]:
        """Every run of ``span`` back-to-back slots as a (start, end) pair."""
        if span <= 0:
            return []
        runs: list[tuple[int, int]] = []
        for index in range(len(self.slots) - span + 1):
            block = self.slots[index : index + span]
            if all(left.end == right.start for left, right in zip(block, block[1:])):
                runs.append((block[0].start, block[-1].end))
        return runs

    def free_windows(self, busy: Iterable[Assignment], span: int) -> list[tuple[int, int]]:
        gap = self.constraints.min_gap_minutes
        occupied = list(busy)
        return [
            (start, end)
            for start, end in self.windows(span)
            if not any(item.overlaps(start, end, gap) for item in occupied)
        ]

    def span_for(self, start: int, end: int) -> int:
        return max(1, (end - start) // self.constraints.slot_minutes)

    def contains(self, start: int, end: int) -> bool:
        return (
            self.constraints.day_start <= start < end <= self.constraints.day_end
            and not self.constraints.intersects_lunch(start, end)
        )


@lru_cache(maxsize=32)
def calendar_for(constraints: ScheduleConstraints) -> Calendar:
    return Calendar(constraints)
