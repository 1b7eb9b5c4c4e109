"""Forward-only level progression."""

from typing import Protocol

import structlog

from note_tutor.engine.levels import LevelConfigStore
from note_tutor.models.level import DifficultyLevel
from note_tutor.models.progress import GlobalStats

logger = structlog.get_logger()


class ProgressTracker(Protocol):
    """Collaborator that owns the learner's global progress."""

    def get_current_global_stats(self) -> GlobalStats: ...

    def advance_tier(self, new_level: DifficultyLevel) -> None: ...


class ProgressionEvaluator:
    """Decides after each answer whether the learner moves up a level.

    Keeps the learner-wide consecutive-correct streak, which is separate
    from the per-note streaks in the ledger.
    """

    def __init__(self, levels: LevelConfigStore, progress: ProgressTracker) -> None:
        self._levels = levels
        self._progress = progress
        self._consecutive_correct = 0

    @property
    def consecutive_correct(self) -> int:
        return self._consecutive_correct

    def observe(self, is_correct: bool) -> None:
        if is_correct:
            self._consecutive_correct += 1
        else:
            self._consecutive_correct = 0

    def reset(self) -> None:
        self._consecutive_correct = 0

    def criteria_met(self, level: DifficultyLevel, stats: GlobalStats) -> bool:
        criteria = self._levels.get(level).progression_criteria
        return (
            stats.accuracy >= criteria.min_accuracy
            and stats.total_attempts >= criteria.min_questions
            and self._consecutive_correct >= criteria.consecutive_correct
        )

    def evaluate(self, current_level: DifficultyLevel) -> DifficultyLevel | None:
        """Advance at most one level if the current level's criteria hold.

        Args:
            current_level: Level the learner is practising at.

        Returns:
            The new level when a transition fired, otherwise None.
        """
        stats = self._progress.get_current_global_stats()
        if not self.criteria_met(current_level, stats):
            return None

        next_level = self._levels.next_level(current_level)
        if next_level is None:
            return None

        self._progress.advance_tier(next_level)
        logger.info(
            "level_advanced",
            old_level=current_level.value,
            new_level=next_level.value,
            accuracy=round(stats.accuracy, 3),
            total_attempts=stats.total_attempts,
            streak=self._consecutive_correct,
        )
        return next_level
