from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass
import logging
import random

from timetabler.core.exceptions import InvariantViolationError
from timetabler.services.calendar import Calendar, calendar_for
from timetabler.services.schedule_model import (
    Assignment,
    CourseRequirement,
    FacultyProfile,
    RoomProfile,
    ScheduleCandidate,
    ScheduleConstraints,
    UnresolvedPlacement,
)
from timetabler.services.workload import WorkloadLedger

logger = logging.getLogger(__name__)

UNRANKED_PRIORITY = 6


@dataclass(frozen=True)
class Placed:
    assignment: Assignment


@dataclass(frozen=True)
class Unresolved:
    reason: str


PlacementResult = Placed | Unresolved


def batch_label(batch_size: int, split_size: int) -> str:
    return "A" if batch_size <= split_size else "Multiple"


class CandidateBuilder:
    def __init__(
        self,
        *,
        rng: random.Random,
        max_placement_attempts: int = 50,
        batch_split_size: int = 60,
    ) -> None:
        if max_placement_attempts < 1:
            raise ValueError("max_placement_attempts must be at least 1")
        self.random = rng
        self.max_placement_attempts = max_placement_attempts
        self.batch_split_size = batch_split_size

    def build(
        self,
        requirements: Sequence[CourseRequirement],
        faculties: Sequence[FacultyProfile],
        rooms: Sequence[RoomProfile],
        constraints: ScheduleConstraints,
    ) -> ScheduleCandidate:
        calendar = calendar_for(constraints)
        required = {req.id: req.required_sessions(constraints.slot_minutes) for req in requirements}
        candidate = ScheduleCandidate.empty(constraints, required)
        ledger = WorkloadLedger()

        for req in requirements:
            for _ in range(required[req.id]):
                result = self.place_session(candidate, calendar, req, faculties, rooms, ledger)
                if isinstance(result, Unresolved):
                    candidate.unresolved.append(UnresolvedPlacement(course_id=req.id, reason=result.reason))

        if candidate.unresolved:
            logger.warning(
                "Candidate built with %d unresolved session(s) across %d course(s)",
                len(candidate.unresolved),
                len({item.course_id for item in candidate.unresolved}),
            )
        self._verify(candidate, calendar)
        return candidate

    def place_session(
        self,
        candidate: ScheduleCandidate,
        calendar: Calendar,
        req: CourseRequirement,
        faculties: Sequence[FacultyProfile],
        rooms: Sequence[RoomProfile],
        ledger: WorkloadLedger,
    ) -> PlacementResult:
        constraints = candidate.constraints
        full_days: set[str] = set()
        for _attempt in range(self.max_placement_attempts):
            open_days = [
                day
                for day in candidate.schedule
                if day not in full_days and len(candidate.schedule[day]) < constraints.max_sessions_per_day
            ]
            if not open_days:
                return Unresolved(
                    reason=(
                        f"No working day has a free {req.session_slots}-slot window "
                        f"within the cap of {constraints.max_sessions_per_day} sessions per day"
                    )
                )
            day = self.random.choice(open_days)
            windows = calendar.free_windows(candidate.schedule[day], req.session_slots)
            if not windows:
                full_days.add(day)
                continue

            start, end = self.random.choice(windows)
            faculty = self.select_faculty(req, faculties, ledger, day=day, start=start, end=end)
            room = self.select_room(req, rooms, day=day, start=start, end=end)
            assignment = Assignment(
                day=day,
                start=start,
                end=end,
                course_id=req.id,
                faculty_id=faculty.id if faculty else None,
                room_id=room.id if room else None,
                batch=batch_label(req.batch_size, self.batch_split_size),
                is_lab=req.is_lab,
            )
            candidate.schedule[day].append(assignment)
            if faculty is not None:
                ledger.add(faculty.id, end - start)
            return Placed(assignment=assignment)

        return Unresolved(reason=f"No free slot found after {self.max_placement_attempts} attempts")

    def select_faculty(
        self,
        req: CourseRequirement,
        faculties: Sequence[FacultyProfile],
        ledger: WorkloadLedger,
        *,
        day: str,
        start: int,
        end: int,
    ) -> FacultyProfile | None:
        """Pick who teaches a session.

        Faculty who list the course among their preferred subjects, or whom the
        course ranks, come first in the course's ranking order. Otherwise the
        least loaded faculty of the course's department is used. Within either
        group a faculty who is free at that time and under their weekly cap
        wins over one who is not.
        """
        ranks = {pref.faculty_id: pref.priority for pref in req.faculty_preferences}
        preferred = [
            item
            for item in faculties
            if req.id in item.preferred_course_ids or item.id in ranks
        ]
        preferred.sort(key=lambda item: (ranks.get(item.id, UNRANKED_PRIORITY), ledger.load(item.id), item.id))
        same_department = sorted(
            (item for item in faculties if item.department == req.department),
            key=lambda item: (ledger.load(item.id), item.id),
        )

        minutes = end - start

        def compliant(item: FacultyProfile) -> bool:
            return not item.is_unavailable(day, start, end) and ledger.can_take(item, minutes)

        for group in (preferred, same_department):
            for item in group:
                if compliant(item):
                    return item
        if preferred:
            return preferred[0]
        if same_department:
            return same_department[0]
        return None

    def select_room(
        self,
        req: CourseRequirement,
        rooms: Sequence[RoomProfile],
        *,
        day: str,
        start: int,
        end: int,
    ) -> RoomProfile | None:
        matches = [
            room
            for room in rooms
            if room.capacity >= req.batch_size
            and room.room_type == req.required_room_type
            and req.department in room.departments
        ]
        available = [room for room in matches if not room.is_unavailable(day, start, end)]
        # Tightest fit first.
        return min(available or matches, key=lambda room: (room.capacity, room.id), default=None)

    def _verify(self, candidate: ScheduleCandidate, calendar: Calendar) -> None:
        counts = candidate.course_counts()
        unresolved = Counter(item.course_id for item in candidate.unresolved)
        for course_id, required in candidate.required_sessions.items():
            accounted = counts.get(course_id, 0) + unresolved.get(course_id, 0)
            if accounted != required:
                raise InvariantViolationError(
                    message="Built candidate does not account for every required session",
                    details={"course_id": course_id, "required": required, "accounted": accounted},
                )
        for item in candidate.iter_assignments():
            if not calendar.contains(item.start, item.end):
                raise InvariantViolationError(
                    message="Assignment placed outside the working calendar",
                    details={"course_id": item.course_id, "day": item.day, "start": item.start, "end": item.end},
                )
