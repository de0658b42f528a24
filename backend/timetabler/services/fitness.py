from __future__ import annotations

from timetabler.services.conflict_service import ConflictDetector
from timetabler.services.schedule_model import ScheduleCandidate

MAX_SCORE = 100
CONFLICT_PENALTY = 10


class FitnessEvaluator:
    def __init__(self, detector: ConflictDetector) -> None:
        self.detector = detector

    def score(self, candidate: ScheduleCandidate) -> int:
        """Score a candidate and refresh its conflict list in place."""
        conflicts = self.detector.detect(candidate)
        candidate.conflicts = conflicts
        candidate.fitness = max(0, MAX_SCORE - CONFLICT_PENALTY * len(conflicts))
        return candidate.fitness
