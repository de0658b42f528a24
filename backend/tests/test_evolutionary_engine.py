import random

import pytest

from timetabler.core.exceptions import SchedulerError
from timetabler.services.candidate_builder import CandidateBuilder
from timetabler.services.conflict_service import ConflictDetector
from timetabler.services.evolution_scheduler import EvolutionEngine
from timetabler.services.fitness import FitnessEvaluator
from timetabler.services.operators import CrossoverOperator, MutationOperator, SelectionOperator
from timetabler.services.schedule_model import (
    CourseRequirement,
    FacultyProfile,
    RoomProfile,
    ScheduleConstraints,
)


class CountingEvaluator(FitnessEvaluator):
    def __init__(self, detector: ConflictDetector) -> None:
        super().__init__(detector)
        self.calls = 0

    def score(self, candidate):
        self.calls += 1
        return super().score(candidate)


FACULTIES = [
    FacultyProfile(id="f1", department="CSE"),
    FacultyProfile(id="f2", department="CSE"),
    FacultyProfile(id="f3", department="ECE"),
]
ROOMS = [
    RoomProfile(id="r1", capacity=70, departments=frozenset({"CSE"})),
    RoomProfile(id="lab1", capacity=70, room_type="laboratory", departments=frozenset({"CSE"})),
]
FEASIBLE = [
    CourseRequirement(id="c1", department="CSE", semester=3, hours_per_week=3),
    CourseRequirement(
        id="c2",
        department="CSE",
        semester=3,
        hours_per_week=4,
        session_type="practical",
        session_slots=2,
        is_lab_required=True,
    ),
]
# No room belongs to ECE, so each of its three sessions is left without a room.
ROOMLESS = [CourseRequirement(id="e1", department="ECE", semester=3, hours_per_week=3)]


def _population(requirements, size=6, seed=1, constraints=None):
    builder = CandidateBuilder(rng=random.Random(seed))
    constraints = constraints or ScheduleConstraints()
    return [builder.build(requirements, FACULTIES, ROOMS, constraints) for _ in range(size)]


def _engine(seed=5, evaluator=None, **kwargs):
    rng = random.Random(seed)
    return EvolutionEngine(
        evaluator=evaluator or FitnessEvaluator(ConflictDetector(FACULTIES, ROOMS)),
        selection=SelectionOperator(rng),
        crossover=CrossoverOperator(rng),
        mutation=MutationOperator(rng, rate=0.5),
        rng=rng,
        **kwargs,
    )


def test_zero_generations_returns_best_initial_candidate():
    population = _population(ROOMLESS)
    engine = _engine()

    best = engine.evolve(population, max_generations=0)

    assert any(best is item for item in population)
    assert best.fitness == max(item.fitness for item in population)
    assert engine.generations_run == 0
    assert engine.stop_reason == "generation_limit"
    assert [item.generation for item in engine.history] == [0]


def test_feasible_population_stops_at_the_optimum():
    engine = _engine()

    best = engine.evolve(_population(FEASIBLE), max_generations=50)

    assert best.fitness == 100
    assert best.conflicts == []
    assert engine.stop_reason == "optimum"
    assert engine.generations_run == 0
    assert best.course_counts() == {"c1": 3, "c2": 2}


def test_best_score_never_decreases():
    engine = _engine()

    engine.evolve(_population(ROOMLESS + FEASIBLE, size=8), max_generations=10)

    scores = [item.best_score for item in engine.history]
    assert scores == sorted(scores)
    assert all(item.generation_best <= item.best_score for item in engine.history)
    assert engine.history[-1].generation == engine.generations_run


def test_unfixable_room_shortage_runs_to_the_generation_limit():
    engine = _engine()

    best = engine.evolve(_population(ROOMLESS), max_generations=5)

    assert best.fitness == 70
    assert engine.stop_reason == "generation_limit"
    assert engine.generations_run == 5
    assert len(engine.history) == 6
    room_conflicts = [item for item in best.conflicts if item.kind == "room-conflict"]
    assert len(room_conflicts) == 3


def test_population_size_is_preserved_between_generations():
    evaluator = CountingEvaluator(ConflictDetector(FACULTIES, ROOMS))
    engine = _engine(evaluator=evaluator)

    engine.evolve(_population(ROOMLESS, size=6), max_generations=3)

    assert evaluator.calls == 6 * 4


def test_time_budget_stops_the_run():
    engine = _engine(time_budget_seconds=0)

    best = engine.evolve(_population(ROOMLESS), max_generations=1000)

    assert engine.stop_reason == "time_budget"
    assert engine.generations_run == 0
    assert best.fitness == 70


def test_empty_population_is_rejected():
    with pytest.raises(SchedulerError):
        _engine().evolve([], max_generations=3)


def test_negative_generation_limit_is_rejected():
    with pytest.raises(SchedulerError) as exc_info:
        _engine().evolve(_population(ROOMLESS), max_generations=-1)

    assert exc_info.value.details == {"max_generations": -1}


def test_parallel_scoring_matches_serial_scoring():
    serial = _engine(seed=9)
    parallel = _engine(seed=9, evaluation_workers=4)

    serial_best = serial.evolve(_population(ROOMLESS + FEASIBLE, size=8), max_generations=6)
    parallel_best = parallel.evolve(_population(ROOMLESS + FEASIBLE, size=8), max_generations=6)

    assert serial.history == parallel.history
    assert serial_best.schedule == parallel_best.schedule
    assert serial_best.fitness == parallel_best.fitness
