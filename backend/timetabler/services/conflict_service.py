from __future__ import annotations

from collections.abc import Iterable

from timetabler.schemas.settings import minutes_to_time
from timetabler.services.schedule_model import (
    Assignment,
    ConflictRecord,
    FacultyProfile,
    RoomProfile,
    ScheduleCandidate,
)
from timetabler.services.workload import WorkloadLedger, weekly_limit_minutes


class ConflictDetector:
    """Scans a candidate and reports every conflict it contains.

    Per-session findings come out in day order then start-time order, followed
    by faculty overloads and finally per-course session shortfalls/surpluses.
    The result depends only on the candidate's assignments.
    """

    def __init__(
        self,
        faculties: Iterable[FacultyProfile] = (),
        rooms: Iterable[RoomProfile] = (),
        *,
        detect_batch_conflicts: bool = False,
    ) -> None:
        self.faculties = {item.id: item for item in faculties}
        self.rooms = {item.id: item for item in rooms}
        self.detect_batch_conflicts = detect_batch_conflicts

    def detect(self, candidate: ScheduleCandidate) -> list[ConflictRecord]:
        conflicts: list[ConflictRecord] = []
        seen_faculty: set[tuple[str, int, str]] = set()
        seen_room: set[tuple[str, int, str]] = set()
        seen_batch: set[tuple[str, int, str]] = set()

        for day in candidate.schedule:
            for item in candidate.day_assignments(day):
                conflicts.extend(self._faculty_conflicts(item, seen_faculty))
                conflicts.extend(self._room_conflicts(item, seen_room))
                if self.detect_batch_conflicts:
                    key = (item.day, item.start, item.batch)
                    if key in seen_batch:
                        conflicts.append(
                            self._record(
                                item,
                                "student-conflict",
                                f"Batch {item.batch} has more than one class on {item.day} at {minutes_to_time(item.start)}",
                                "high",
                            )
                        )
                    seen_batch.add(key)

        conflicts.extend(self._workload_conflicts(candidate))
        conflicts.extend(self._session_count_conflicts(candidate))
        return conflicts

    def _faculty_conflicts(self, item: Assignment, seen: set[tuple[str, int, str]]) -> list[ConflictRecord]:
        at = f"{item.day} {minutes_to_time(item.start)}"
        if item.faculty_id is None:
            return [self._record(item, "faculty-conflict", f"No eligible faculty for course {item.course_id} on {at}", "medium")]

        found: list[ConflictRecord] = []
        key = (item.day, item.start, item.faculty_id)
        if key in seen:
            found.append(
                self._record(item, "faculty-conflict", f"Faculty {item.faculty_id} assigned to multiple classes on {at}", "high")
            )
        seen.add(key)
        profile = self.faculties.get(item.faculty_id)
        if profile is not None and profile.is_unavailable(item.day, item.start, item.end):
            found.append(
                self._record(item, "faculty-conflict", f"Faculty {item.faculty_id} is unavailable on {at}", "medium")
            )
        return found

    def _room_conflicts(self, item: Assignment, seen: set[tuple[str, int, str]]) -> list[ConflictRecord]:
        at = f"{item.day} {minutes_to_time(item.start)}"
        if item.room_id is None:
            return [self._record(item, "room-conflict", f"No suitable room for course {item.course_id} on {at}", "medium")]

        found: list[ConflictRecord] = []
        key = (item.day, item.start, item.room_id)
        if key in seen:
            found.append(self._record(item, "room-conflict", f"Room {item.room_id} double booked on {at}", "high"))
        seen.add(key)
        profile = self.rooms.get(item.room_id)
        if profile is not None and profile.is_unavailable(item.day, item.start, item.end):
            found.append(self._record(item, "room-conflict", f"Room {item.room_id} is unavailable on {at}", "medium"))
        return found

    def _workload_conflicts(self, candidate: ScheduleCandidate) -> list[ConflictRecord]:
        ledger = WorkloadLedger.from_candidate(candidate)
        found: list[ConflictRecord] = []
        for faculty_id in ledger.faculty_ids():
            profile = self.faculties.get(faculty_id)
            if profile is None or not ledger.overloaded(profile):
                continue
            found.append(
                ConflictRecord(
                    kind="faculty-conflict",
                    description=(
                        f"Faculty {faculty_id} assigned {ledger.load(faculty_id)} minutes, "
                        f"above the weekly limit of {weekly_limit_minutes(profile)}"
                    ),
                    severity="low",
                    faculty_id=faculty_id,
                )
            )
        return found

    def _session_count_conflicts(self, candidate: ScheduleCandidate) -> list[ConflictRecord]:
        counts = candidate.course_counts()
        reasons = {item.course_id: item.reason for item in candidate.unresolved}
        found: list[ConflictRecord] = []
        for course_id, required in candidate.required_sessions.items():
            placed = counts.get(course_id, 0)
            for _ in range(required - placed):
                reason = reasons.get(course_id, "session missing from schedule")
                found.append(
                    ConflictRecord(
                        kind="time-conflict",
                        description=f"Course {course_id}: unresolved session ({reason})",
                        severity="high",
                        course_id=course_id,
                    )
                )
            for _ in range(placed - required):
                found.append(
                    ConflictRecord(
                        kind="time-conflict",
                        description=f"Course {course_id}: {placed} sessions scheduled, {required} required",
                        severity="medium",
                        course_id=course_id,
                    )
                )
        return found

    @staticmethod
    def _record(item: Assignment, kind, description: str, severity) -> ConflictRecord:
        return ConflictRecord(
            kind=kind,
            description=description,
            severity=severity,
            day=item.day,
            start=item.start,
            course_id=item.course_id,
            faculty_id=item.faculty_id,
            room_id=item.room_id,
        )
