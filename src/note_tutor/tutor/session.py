"""Practice session: sequences question, answer and feedback."""

import math
import random
import time
from collections.abc import Callable

import structlog
from pydantic import BaseModel

from note_tutor.config import Settings
from note_tutor.engine.generator import NoteGenerator
from note_tutor.engine.levels import LevelConfigStore
from note_tutor.errors import NoActiveQuestion
from note_tutor.models.level import DifficultyLevel
from note_tutor.models.note import MusicalNote
from note_tutor.models.performance import NotePerformance, PerformanceMetrics
from note_tutor.models.progress import GlobalStats, PracticeFilters, SessionStats
from note_tutor.storage.key_value import JsonFileStore
from note_tutor.storage.user_progress import UserProgressService
from note_tutor.tutor.answers import AnswerFeedback, build_feedback, hint_feedback, validate_answer

logger = structlog.get_logger()


class AnswerResult(BaseModel):
    feedback: AnswerFeedback
    is_correct: bool
    response_time_ms: float
    level: DifficultyLevel
    level_changed: bool
    performance: NotePerformance | None = None


class PracticeSummary(BaseModel):
    level: DifficultyLevel
    filters: PracticeFilters
    global_stats: GlobalStats
    session: SessionStats
    metrics: PerformanceMetrics
    consecutive_correct: int


class PracticeSession:
    """One learner's drill loop over a NoteGenerator.

    Args:
        generator: Adaptive note generator.
        progress: Progress tracker shared with the generator.
        rng: Random source for feedback messages.
        clock: Monotonic clock in seconds, used to time answers.
    """

    def __init__(
        self,
        generator: NoteGenerator,
        progress: UserProgressService,
        *,
        rng: random.Random | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.generator = generator
        self.progress = progress
        self._rng = rng or random.Random()
        self._clock = clock
        self._current_note: MusicalNote | None = None
        self._answered = False
        self._question_started: float = 0.0

    @property
    def current_note(self) -> MusicalNote | None:
        return self._current_note

    @property
    def awaiting_answer(self) -> bool:
        return self._current_note is not None and not self._answered

    def next_note(self) -> MusicalNote:
        note = self.generator.generate_next_note()
        self._current_note = note
        self._answered = False
        self._question_started = self._clock()
        return note

    def submit_answer(self, answer: str, response_time_ms: float | None = None) -> AnswerResult:
        """Check an answer to the current note and record it.

        The progress tracker is updated before the generator so that level
        progression sees this answer in the global stats.
        Negative or non-finite latencies are recorded as 0.

        Raises:
            NoActiveQuestion: If no note is waiting for an answer.
        """
        note = self._current_note
        if note is None or self._answered:
            raise NoActiveQuestion("No question is awaiting an answer")

        is_correct = validate_answer(answer, note)
        if response_time_ms is None:
            response_time_ms = (self._clock() - self._question_started) * 1000
        if not math.isfinite(response_time_ms) or response_time_ms < 0:
            response_time_ms = 0.0

        level_before = self.generator.current_level
        self.progress.record_question_attempt(is_correct, response_time_ms, note.id)
        performance = self.generator.record_attempt(note.id, is_correct, response_time_ms)
        self.generator.save_state()
        self._answered = True

        level = self.generator.current_level
        logger.info(
            "answer_submitted",
            note_id=note.id,
            is_correct=is_correct,
            response_time_ms=round(response_time_ms, 1),
            level=level.value,
        )
        return AnswerResult(
            feedback=build_feedback(is_correct, note, answer, self._rng),
            is_correct=is_correct,
            response_time_ms=response_time_ms,
            level=level,
            level_changed=level != level_before,
            performance=performance,
        )

    def reveal_answer(self) -> AnswerFeedback:
        if self._current_note is None:
            raise NoActiveQuestion("No question to reveal")
        return hint_feedback(self._current_note)

    def set_filters(self, filters: PracticeFilters) -> None:
        self.generator.set_filters(filters)
        self._current_note = None

    def reset(self) -> None:
        self.generator.reset_progress()
        self.progress.reset_progress()
        self._current_note = None
        self._answered = False

    def summary(self) -> PracticeSummary:
        return PracticeSummary(
            level=self.generator.current_level,
            filters=self.generator.filters,
            global_stats=self.progress.get_current_global_stats(),
            session=self.progress.get_session_stats(),
            metrics=self.generator.metrics(),
            consecutive_correct=self.generator.consecutive_correct,
        )


def build_practice_session(settings: Settings) -> PracticeSession:
    """Wire a practice session with file-backed storage from settings."""
    store = JsonFileStore(settings.storage_dir)
    levels = LevelConfigStore.from_yaml(settings.levels_path)
    starting_level = levels.get(settings.starting_level).level
    progress = UserProgressService(store, starting_level=starting_level)
    rng = random.Random(settings.random_seed)
    generator = NoteGenerator(
        levels,
        progress,
        store,
        rng=rng,
        history_size=settings.history_size,
        starting_level=starting_level,
    )
    generator.load_state()
    logger.info(
        "practice_session_ready",
        storage_dir=str(settings.storage_dir),
        level=generator.current_level.value,
    )
    return PracticeSession(generator, progress, rng=rng)
