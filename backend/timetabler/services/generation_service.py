from __future__ import annotations

import logging
import random
from time import perf_counter

from pydantic import ValidationError

from timetabler.core.config import Settings
from timetabler.core.exceptions import ConfigurationError, SchedulerError
from timetabler.schemas.course import CourseRequirementPayload
from timetabler.schemas.faculty import FacultyProfilePayload
from timetabler.schemas.generator import (
    AssignmentOut,
    ConflictOut,
    DayScheduleOut,
    GenerateTimetableRequest,
    GenerateTimetableResponse,
    GenerationDefaultsResponse,
    GenerationSettingsBase,
    GenerationStatsOut,
    UnresolvedPlacementOut,
)
from timetabler.schemas.room import RoomProfilePayload
from timetabler.schemas.settings import (
    DEFAULT_SCHEDULE_CONSTRAINTS,
    DayTimeWindowEntry,
    ScheduleConstraintsPayload,
    minutes_to_time,
)
from timetabler.services.calendar import calendar_for
from timetabler.services.candidate_builder import CandidateBuilder
from timetabler.services.conflict_service import ConflictDetector
from timetabler.services.evolution_scheduler import EvolutionEngine
from timetabler.services.fitness import FitnessEvaluator
from timetabler.services.operators import CrossoverOperator, MutationOperator, SelectionOperator
from timetabler.services.schedule_model import (
    CourseRequirement,
    FacultyPreference,
    FacultyProfile,
    RoomProfile,
    ScheduleCandidate,
    ScheduleConstraints,
    TimeRange,
)

logger = logging.getLogger(__name__)


def default_generation_settings(settings: Settings) -> GenerationSettingsBase:
    try:
        return _settings_from_config(settings)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid generation defaults in configuration: {exc}") from exc


def _settings_from_config(settings: Settings) -> GenerationSettingsBase:
    return GenerationSettingsBase(
        population_size=settings.population_size,
        max_generations=settings.max_generations,
        mutation_rate=settings.mutation_rate,
        tournament_size=settings.tournament_size,
        max_placement_attempts=settings.max_placement_attempts,
        evaluation_workers=settings.evaluation_workers,
        time_budget_seconds=settings.time_budget_seconds,
        batch_split_size=settings.batch_split_size,
        detect_batch_conflicts=settings.detect_batch_conflicts,
        random_seed=settings.random_seed,
    )


def resolve_generation_settings(
    settings: Settings,
    override: GenerationSettingsBase | None,
) -> GenerationSettingsBase:
    base = default_generation_settings(settings)
    if override is None:
        return base
    # Only fields the caller actually sent replace the configured defaults.
    return base.model_copy(update=override.model_dump(exclude_unset=True))


def to_schedule_constraints(payload: ScheduleConstraintsPayload) -> ScheduleConstraints:
    day_start, day_end = payload.working_hours.bounds()
    lunch_start, lunch_end = payload.lunch_break.bounds() if payload.lunch_break else (None, None)
    return ScheduleConstraints(
        working_days=tuple(payload.working_days),
        day_start=day_start,
        day_end=day_end,
        lunch_start=lunch_start,
        lunch_end=lunch_end,
        slot_minutes=payload.slot_minutes,
        max_sessions_per_day=payload.max_sessions_per_day,
        min_gap_minutes=payload.min_gap_minutes,
    )


def _time_ranges(entries: list[DayTimeWindowEntry]) -> tuple[TimeRange, ...]:
    ranges = []
    for entry in entries:
        start, end = entry.bounds()
        ranges.append(TimeRange(day=entry.day, start=start, end=end, reason=entry.reason))
    return tuple(ranges)


def to_course_requirement(payload: CourseRequirementPayload) -> CourseRequirement:
    return CourseRequirement(
        id=payload.id,
        code=payload.code,
        department=payload.department,
        semester=payload.semester,
        hours_per_week=payload.hours_per_week,
        session_type=payload.type,
        session_slots=payload.resolved_session_slots(),
        batch_size=payload.batch_size,
        is_lab_required=payload.is_lab_required,
        faculty_preferences=tuple(
            FacultyPreference(faculty_id=item.faculty_id, priority=item.priority)
            for item in sorted(payload.faculty_preferences, key=lambda item: item.priority)
        ),
    )


def to_faculty_profile(payload: FacultyProfilePayload) -> FacultyProfile:
    return FacultyProfile(
        id=payload.id,
        department=payload.department,
        max_hours_per_week=payload.max_hours_per_week,
        preferred_course_ids=frozenset(payload.preferred_subjects),
        unavailable=_time_ranges(payload.unavailable_slots),
    )


def to_room_profile(payload: RoomProfilePayload) -> RoomProfile:
    return RoomProfile(
        id=payload.id,
        capacity=payload.capacity,
        room_type=payload.type,
        departments=frozenset(payload.available_for),
        unavailable=_time_ranges(payload.unavailable_slots),
    )


class TimetableGenerationService:
    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def defaults(self) -> GenerationDefaultsResponse:
        return GenerationDefaultsResponse(
            constraints=DEFAULT_SCHEDULE_CONSTRAINTS,
            settings=default_generation_settings(self.settings),
        )

    def generate(self, request: GenerateTimetableRequest) -> GenerateTimetableResponse:
        start = perf_counter()
        options = resolve_generation_settings(self.settings, request.settings_override)
        constraints_payload = request.constraints or DEFAULT_SCHEDULE_CONSTRAINTS
        constraints = to_schedule_constraints(constraints_payload)

        requirements, faculties, rooms = self._load_inputs(request)
        if not calendar_for(constraints).slots:
            raise SchedulerError(
                message="Working hours leave no room for a single slot outside the lunch break",
                details={"slot_minutes": constraints.slot_minutes},
            )

        logger.info(
            "Generating timetable for department %s semester %d: %d course(s), %d faculty, %d room(s)",
            request.department_id,
            request.semester,
            len(requirements),
            len(faculties),
            len(rooms),
        )

        rng = random.Random(options.random_seed)
        builder = CandidateBuilder(
            rng=rng,
            max_placement_attempts=options.max_placement_attempts,
            batch_split_size=options.batch_split_size,
        )
        population = [
            builder.build(requirements, faculties, rooms, constraints)
            for _ in range(options.population_size)
        ]

        detector = ConflictDetector(faculties, rooms, detect_batch_conflicts=options.detect_batch_conflicts)
        engine = EvolutionEngine(
            evaluator=FitnessEvaluator(detector),
            selection=SelectionOperator(rng, options.tournament_size),
            crossover=CrossoverOperator(rng),
            mutation=MutationOperator(rng, options.mutation_rate),
            rng=rng,
            time_budget_seconds=options.time_budget_seconds,
            evaluation_workers=options.evaluation_workers,
        )
        best = engine.evolve(population, options.max_generations)

        runtime_ms = int((perf_counter() - start) * 1000)
        logger.info(
            "Timetable for department %s semester %d scored %d with %d conflict(s) in %d ms",
            request.department_id,
            request.semester,
            best.fitness,
            len(best.conflicts),
            runtime_ms,
        )
        return self._to_response(
            request,
            best,
            constraints_payload=constraints_payload,
            engine=engine,
            options=options,
            runtime_ms=runtime_ms,
        )

    def _load_inputs(
        self,
        request: GenerateTimetableRequest,
    ) -> tuple[list[CourseRequirement], list[FacultyProfile], list[RoomProfile]]:
        courses = [
            item for item in request.courses if item.is_active and item.semester == request.semester
        ]
        dropped = len(request.courses) - len(courses)
        if dropped:
            logger.warning(
                "Ignoring %d course(s) that are inactive or outside semester %d",
                dropped,
                request.semester,
            )
        faculties = [item for item in request.faculties if item.is_active]
        rooms = [item for item in request.rooms if item.is_active]

        if not courses:
            raise SchedulerError(
                message=f"No active courses for semester {request.semester}",
                details={"department_id": request.department_id, "semester": request.semester},
            )
        if not faculties:
            raise SchedulerError(message="No active faculty available for generation")
        if not rooms:
            raise SchedulerError(message="No active rooms available for generation")

        return (
            [to_course_requirement(item) for item in courses],
            [to_faculty_profile(item) for item in faculties],
            [to_room_profile(item) for item in rooms],
        )

    def _to_response(
        self,
        request: GenerateTimetableRequest,
        best: ScheduleCandidate,
        *,
        constraints_payload: ScheduleConstraintsPayload,
        engine: EvolutionEngine,
        options: GenerationSettingsBase,
        runtime_ms: int,
    ) -> GenerateTimetableResponse:
        schedule = [
            DayScheduleOut(
                day=day,
                time_slots=[
                    AssignmentOut(
                        start_time=minutes_to_time(item.start),
                        end_time=minutes_to_time(item.end),
                        course_id=item.course_id,
                        faculty_id=item.faculty_id,
                        room_id=item.room_id,
                        batch=item.batch,
                        is_lab_session=item.is_lab,
                    )
                    for item in best.day_assignments(day)
                ],
            )
            for day in best.days
        ]
        conflicts = [
            ConflictOut(
                type=item.kind,
                description=item.description,
                severity=item.severity,
                day=item.day,
                start_time=minutes_to_time(item.start) if item.start is not None else None,
                course_id=item.course_id,
                faculty_id=item.faculty_id,
                room_id=item.room_id,
            )
            for item in best.conflicts
        ]
        capacity = len(best.days) * best.constraints.max_sessions_per_day
        utilization = (best.total_sessions / capacity) * 100 if capacity > 0 else 0.0

        return GenerateTimetableResponse(
            name=f"Timetable - {request.department_id} - Sem {request.semester} - {request.academic_year}",
            department_id=request.department_id,
            semester=request.semester,
            academic_year=request.academic_year,
            schedule=schedule,
            constraints=constraints_payload,
            fitness_score=best.fitness,
            conflicts=conflicts,
            unresolved=[
                UnresolvedPlacementOut(course_id=item.course_id, reason=item.description)
                for item in best.conflicts
                if item.kind == "time-conflict" and item.severity == "high" and item.course_id is not None
            ],
            total_sessions=best.total_sessions,
            utilization_rate=round(utilization, 2),
            generations_run=engine.generations_run,
            stop_reason=engine.stop_reason,
            history=[
                GenerationStatsOut(
                    generation=item.generation,
                    best_score=item.best_score,
                    generation_best=item.generation_best,
                    mean_score=item.mean_score,
                )
                for item in engine.history
            ],
            runtime_ms=runtime_ms,
            settings_used=options,
        )
