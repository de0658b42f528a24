from __future__ import annotations

from collections.abc import Sequence
import math
import random

from timetabler.core.exceptions import InvariantViolationError
from timetabler.services.calendar import calendar_for
from timetabler.services.schedule_model import ScheduleCandidate

DEFAULT_TOURNAMENT_SIZE = 3
DEFAULT_MUTATION_RATE = 0.10


def _fitness_of(candidate: ScheduleCandidate) -> int:
    if candidate.fitness is None:
        raise InvariantViolationError(message="Selection requires every candidate to be scored first")
    return candidate.fitness


class SelectionOperator:
    def __init__(self, rng: random.Random, tournament_size: int = DEFAULT_TOURNAMENT_SIZE) -> None:
        if tournament_size < 1:
            raise ValueError("tournament_size must be at least 1")
        self.random = rng
        self.tournament_size = tournament_size

    def select(self, population: Sequence[ScheduleCandidate]) -> list[ScheduleCandidate]:
        """Tournament selection of half the population, sampling with replacement."""
        if not population:
            return []
        target = math.ceil(len(population) / 2)
        selected: list[ScheduleCandidate] = []
        while len(selected) < target:
            contenders = [self.random.choice(population) for _ in range(self.tournament_size)]
            selected.append(max(contenders, key=_fitness_of))
        return selected


class CrossoverOperator:
    def __init__(self, rng: random.Random) -> None:
        self.random = rng

    def cross(self, parent_a: ScheduleCandidate, parent_b: ScheduleCandidate) -> ScheduleCandidate:
        """Single-point crossover over whole days.

        The child starts as a copy of ``parent_a``; every day from a random cut
        point onwards is replaced by a copy of that day from ``parent_b``.
        """
        if parent_a.days != parent_b.days:
            raise InvariantViolationError(
                message="Crossover parents must share the same working days",
                details={"parent_a": parent_a.days, "parent_b": parent_b.days},
            )
        child = parent_a.clone()
        days = child.days
        cut = self.random.randrange(len(days)) if days else 0
        for day in days[cut:]:
            child.schedule[day] = [item.clone() for item in parent_b.schedule[day]]
        child.invalidate()
        return child


class MutationOperator:
    def __init__(self, rng: random.Random, rate: float = DEFAULT_MUTATION_RATE) -> None:
        self.random = rng
        self.rate = rate

    def mutate(self, candidate: ScheduleCandidate, rate: float | None = None) -> bool:
        """Move one random session to another free window on the same day.

        Returns ``True`` when a session was moved.
        """
        rate = self.rate if rate is None else rate
        if self.random.random() >= rate:
            return False

        busy_days = [day for day, items in candidate.schedule.items() if items]
        if not busy_days:
            return False
        day = self.random.choice(busy_days)
        items = candidate.schedule[day]
        target = self.random.choice(items)

        calendar = calendar_for(candidate.constraints)
        windows = calendar.free_windows(items, calendar.span_for(target.start, target.end))
        if not windows:
            return False
        target.start, target.end = self.random.choice(windows)
        candidate.invalidate()
        return True
