"""Adaptive note generator: the engine's public entry point."""

import random

import structlog
from pydantic import ValidationError

from note_tutor.engine.catalog import build_candidates, filter_candidates
from note_tutor.engine.history import DEFAULT_HISTORY_SIZE, SelectionHistory
from note_tutor.engine.ledger import PerformanceLedger
from note_tutor.engine.levels import LevelConfigStore
from note_tutor.engine.progression import ProgressionEvaluator, ProgressTracker
from note_tutor.engine.selector import select_weighted
from note_tutor.engine.weighting import compute_weights
from note_tutor.errors import ConfigurationNotFound, EmptyCandidatePool, InvalidAttempt
from note_tutor.models.level import DifficultyLevel, LevelConfiguration
from note_tutor.models.note import NOTE_ID_PATTERN, MusicalNote
from note_tutor.models.performance import NotePerformance, PerformanceMetrics
from note_tutor.models.progress import PracticeFilters
from note_tutor.storage.key_value import KeyValueStore

logger = structlog.get_logger()

PERFORMANCE_KEY = "performance-data"
HISTORY_KEY = "recent-history"
LEVEL_KEY = "current-level"


class NoteGenerator:
    """Chooses the next note and learns from the answers.

    Owns the performance ledger, the selection history and the learner-wide
    streak. Not thread-safe; callers serialise access per learner.

    Args:
        levels: Level configuration provider.
        progress: Progress collaborator consulted for level progression.
        store: Persistence collaborator for ``save_state``/``load_state``.
        rng: Random source for selection (a fresh ``random.Random`` if None).
        history_size: Number of recent notes kept for repeat avoidance.
        starting_level: Initial level (first configured level if None).
    """

    def __init__(
        self,
        levels: LevelConfigStore,
        progress: ProgressTracker,
        store: KeyValueStore,
        *,
        rng: random.Random | None = None,
        history_size: int = DEFAULT_HISTORY_SIZE,
        starting_level: DifficultyLevel | None = None,
    ) -> None:
        self._levels = levels
        self._store = store
        self._rng = rng or random.Random()
        self._ledger = PerformanceLedger()
        self._history = SelectionHistory(history_size)
        self._evaluator = ProgressionEvaluator(levels, progress)
        self._filters = PracticeFilters()
        self._starting_level = levels.get(starting_level or levels.first_level).level
        self._current_level = self._starting_level

    @property
    def levels(self) -> LevelConfigStore:
        return self._levels

    @property
    def current_level(self) -> DifficultyLevel:
        return self._current_level

    @property
    def filters(self) -> PracticeFilters:
        return self._filters.model_copy()

    @property
    def history(self) -> tuple[MusicalNote, ...]:
        return self._history.notes

    @property
    def consecutive_correct(self) -> int:
        return self._evaluator.consecutive_correct

    @property
    def overall_accuracy(self) -> float:
        return self._ledger.metrics().overall_accuracy

    def set_filters(self, filters: PracticeFilters) -> None:
        self._filters = filters.model_copy()
        logger.info("filters_changed", **filters.model_dump(mode="json"))

    def current_level_config(self) -> LevelConfiguration:
        return self._levels.get(self._current_level)

    def generate_next_note(self, filters: PracticeFilters | None = None) -> MusicalNote:
        """Select the next note to present and remember it.

        Args:
            filters: Filters for this draw only (the stored filters if None).

        Raises:
            ConfigurationNotFound: If the current level has no configuration.
            EmptyCandidatePool: If the filters leave no candidates.
        """
        config = self.current_level_config()
        active = filters or self._filters
        candidates = filter_candidates(build_candidates(config), active)
        if not candidates:
            logger.warning(
                "empty_candidate_pool",
                level=self._current_level.value,
                **active.model_dump(mode="json"),
            )
            raise EmptyCandidatePool(active.model_copy())

        weighted = compute_weights(
            candidates, config, self._ledger.snapshot(), self._history.notes
        )
        note = select_weighted(weighted, self._rng)
        self._history.push(note)

        logger.debug(
            "note_selected",
            note_id=note.id,
            level=self._current_level.value,
            candidates=len(candidates),
        )
        return note

    def record_attempt(
        self, note_id: str, is_correct: bool, response_time_ms: float
    ) -> NotePerformance | None:
        """Record an answer, then check whether the learner levels up.

        Malformed attempts are logged and dropped so one bad data point
        never blocks the session.

        Returns:
            The updated performance record, or None if the attempt was rejected.
        """
        try:
            record = self._ledger.record_attempt(note_id, is_correct, response_time_ms)
        except InvalidAttempt as e:
            logger.warning("invalid_attempt", note_id=note_id, error=str(e))
            return None

        self._evaluator.observe(is_correct)
        new_level = self._evaluator.evaluate(self._current_level)
        if new_level is not None:
            self._current_level = new_level
        return record

    def performance_stats(self) -> dict[str, NotePerformance]:
        return self._ledger.snapshot()

    def metrics(self) -> PerformanceMetrics:
        return self._ledger.metrics()

    def reset_progress(self) -> None:
        """Forget all performance, history and streak; return to the starting level."""
        self._ledger.clear()
        self._history.clear()
        self._evaluator.reset()
        self._current_level = self._starting_level
        for key in (PERFORMANCE_KEY, HISTORY_KEY, LEVEL_KEY):
            self._store.clear(key)
        logger.info("progress_reset")

    def save_state(self) -> None:
        """Persist ledger, history and current level."""
        self._store.save(
            PERFORMANCE_KEY,
            [[note_id, record.model_dump(mode="json")] for note_id, record in self._ledger.items()],
        )
        self._store.save(HISTORY_KEY, [note.model_dump(mode="json") for note in self._history])
        self._store.save(LEVEL_KEY, self._current_level.value)

    def load_state(self) -> None:
        """Restore whatever was saved; corrupt entries are skipped."""
        saved_performance = self._store.load(PERFORMANCE_KEY)
        if saved_performance is not None and not isinstance(saved_performance, list):
            logger.warning("performance_data_ignored", type=type(saved_performance).__name__)
        elif saved_performance:
            pairs = []
            for entry in saved_performance:
                try:
                    pairs.append(self._parse_performance_entry(entry))
                except (TypeError, ValueError, ValidationError) as e:
                    logger.warning("performance_entry_skipped", entry=str(entry)[:80], error=str(e))
            self._ledger.restore(pairs)

        saved_history = self._store.load(HISTORY_KEY)
        if saved_history is not None and not isinstance(saved_history, list):
            logger.warning("history_ignored", type=type(saved_history).__name__)
        elif saved_history:
            notes = []
            for data in saved_history:
                try:
                    notes.append(MusicalNote.model_validate(data))
                except ValidationError as e:
                    logger.warning("history_entry_skipped", error=str(e))
            self._history.restore(notes)

        saved_level = self._store.load(LEVEL_KEY)
        if saved_level:
            try:
                self._current_level = self._levels.get(saved_level).level
            except ConfigurationNotFound as e:
                logger.warning("saved_level_ignored", level=saved_level, error=str(e))

        logger.debug(
            "state_loaded",
            notes_tracked=len(self._ledger),
            history=len(self._history),
            level=self._current_level.value,
        )

    @staticmethod
    def _parse_performance_entry(entry) -> tuple[str, NotePerformance]:
        note_id, data = entry
        if not isinstance(note_id, str) or not NOTE_ID_PATTERN.match(note_id):
            raise ValueError(f"malformed note id: {note_id!r}")
        record = NotePerformance.model_validate(data)
        if record.note_id != note_id:
            raise ValueError(f"record for {record.note_id} stored under {note_id}")
        return note_id, record
