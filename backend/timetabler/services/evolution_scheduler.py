from __future__ import annotations

from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
import logging
import random
from time import perf_counter
from typing import Literal

from timetabler.core.exceptions import SchedulerError
from timetabler.services.fitness import MAX_SCORE, FitnessEvaluator
from timetabler.services.operators import CrossoverOperator, MutationOperator, SelectionOperator
from timetabler.services.schedule_model import ScheduleCandidate

logger = logging.getLogger(__name__)

StopReason = Literal["optimum", "generation_limit", "time_budget"]


@dataclass(frozen=True)
class GenerationStats:
    generation: int
    best_score: int
    generation_best: int
    mean_score: float


class EvolutionEngine:
    """Generational genetic algorithm over schedule candidates.

    Every generation draws a tournament-selected breeding pool, breeds a full
    replacement population through crossover and mutation, and re-scores each
    child. The best candidate seen in any generation is kept and returned, so
    the reported score never drops between generations.
    """

    def __init__(
        self,
        *,
        evaluator: FitnessEvaluator,
        selection: SelectionOperator,
        crossover: CrossoverOperator,
        mutation: MutationOperator,
        rng: random.Random,
        mutation_rate: float | None = None,
        time_budget_seconds: float | None = None,
        evaluation_workers: int = 1,
    ) -> None:
        self.evaluator = evaluator
        self.selection = selection
        self.crossover = crossover
        self.mutation = mutation
        self.random = rng
        self.mutation_rate = mutation_rate
        self.time_budget_seconds = time_budget_seconds
        self.evaluation_workers = max(1, evaluation_workers)

        self.history: list[GenerationStats] = []
        self.generations_run = 0
        self.stop_reason: StopReason | None = None

    def evolve(self, initial_population: Sequence[ScheduleCandidate], max_generations: int) -> ScheduleCandidate:
        if not initial_population:
            raise SchedulerError(message="Cannot evolve an empty population")
        if max_generations < 0:
            raise SchedulerError(
                message="max_generations cannot be negative",
                details={"max_generations": max_generations},
            )

        self.history = []
        self.generations_run = 0
        self.stop_reason = None
        started = perf_counter()

        executor = ThreadPoolExecutor(max_workers=self.evaluation_workers) if self.evaluation_workers > 1 else None
        try:
            population = list(initial_population)
            self._evaluate_all(population, executor)
            best = self._fittest(population)
            self._record(0, best, population)

            generation = 0
            while self.stop_reason is None:
                if best.fitness >= MAX_SCORE:
                    self.stop_reason = "optimum"
                elif generation >= max_generations:
                    self.stop_reason = "generation_limit"
                elif self._budget_exhausted(started):
                    self.stop_reason = "time_budget"
                else:
                    generation += 1
                    population = self._breed(population)
                    self._evaluate_all(population, executor)
                    self.generations_run = generation

                    generation_best = self._fittest(population)
                    if generation_best.fitness > best.fitness:
                        best = generation_best
                    self._record(generation, best, population)
        finally:
            if executor is not None:
                executor.shutdown(wait=True)

        logger.info(
            "Evolution stopped (%s) after %d generation(s) with best score %d in %.1f ms",
            self.stop_reason,
            self.generations_run,
            best.fitness,
            (perf_counter() - started) * 1000,
        )
        return best

    def _breed(self, population: list[ScheduleCandidate]) -> list[ScheduleCandidate]:
        parents = self.selection.select(population)
        children: list[ScheduleCandidate] = []
        while len(children) < len(population):
            parent_a = self.random.choice(parents)
            parent_b = self.random.choice(parents)
            child = self.crossover.cross(parent_a, parent_b)
            self.mutation.mutate(child, self.mutation_rate)
            children.append(child)
        return children

    def _evaluate_all(self, population: list[ScheduleCandidate], executor: ThreadPoolExecutor | None) -> None:
        if executor is None or len(population) < 2:
            for candidate in population:
                self.evaluator.score(candidate)
            return
        # Candidates own their assignments exclusively, so scoring can fan out.
        list(executor.map(self.evaluator.score, population))

    @staticmethod
    def _fittest(population: Sequence[ScheduleCandidate]) -> ScheduleCandidate:
        return max(population, key=lambda candidate: candidate.fitness)

    def _budget_exhausted(self, started: float) -> bool:
        if self.time_budget_seconds is None:
            return False
        return perf_counter() - started >= self.time_budget_seconds

    def _record(self, generation: int, best: ScheduleCandidate, population: Sequence[ScheduleCandidate]) -> None:
        generation_best = self._fittest(population).fitness
        mean_score = sum(candidate.fitness for candidate in population) / len(population)
        self.history.append(
            GenerationStats(
                generation=generation,
                best_score=best.fitness,
                generation_best=generation_best,
                mean_score=round(mean_score, 2),
            )
        )
        logger.debug(
            "Generation %d: best %d, generation best %d, mean %.2f",
            generation,
            best.fitness,
            generation_best,
            mean_score,
        )
