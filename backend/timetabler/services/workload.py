from __future__ import annotations

from collections import defaultdict

from timetabler.services.schedule_model import FacultyProfile, ScheduleCandidate


def weekly_limit_minutes(faculty: FacultyProfile) -> int:
    return max(0, faculty.max_hours_per_week) * 60


class WorkloadLedger:
    """Assigned teaching minutes per faculty within a single candidate."""

    def __init__(self) -> None:
        self._minutes: dict[str, int] = defaultdict(int)

    @classmethod
    def from_candidate(cls, candidate: ScheduleCandidate) -> "WorkloadLedger":
        ledger = cls()
        for items in candidate.schedule.values():
            for item in items:
                if item.faculty_id is not None:
                    ledger.add(item.faculty_id, item.end - item.start)
        return ledger

    def add(self, faculty_id: str, minutes: int) -> None:
        self._minutes[faculty_id] += minutes

    def load(self, faculty_id: str) -> int:
        return self._minutes.get(faculty_id, 0)

    def can_take(self, faculty: FacultyProfile, minutes: int) -> bool:
        return self.load(faculty.id) + minutes <= weekly_limit_minutes(faculty)

    def overloaded(self, faculty: FacultyProfile) -> bool:
        return self.load(faculty.id) > weekly_limit_minutes(faculty)

    def faculty_ids(self) -> list[str]:
        return sorted(faculty_id for faculty_id, minutes in self._minutes.items() if minutes > 0)
