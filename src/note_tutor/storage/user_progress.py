"""Learner progress tracking persisted through a key-value store."""

import json
import uuid
from datetime import datetime, timezone

import structlog
from pydantic import ValidationError

from note_tutor.models.level import DifficultyLevel
from note_tutor.models.progress import (
    GlobalStats,
    LevelProgressionData,
    SessionStats,
    StudySession,
    UserProgress,
)
from note_tutor.storage.key_value import KeyValueStore

logger = structlog.get_logger()

PROGRESS_KEY = "user-progress"
SESSION_KEY = "current-session"


def _running_mean(current: float, count: int, value: float) -> float:
    if count == 0:
        return value
    return (current * count + value) / (count + 1)


class UserProgressService:
    """Global accuracy, level history and study sessions for one learner.

    Acts as the progress tracker for the progression evaluator.
    """

    def __init__(
        self, store: KeyValueStore, starting_level: DifficultyLevel = DifficultyLevel.EASY
    ) -> None:
        self._store = store
        self._starting_level = starting_level
        self._progress = self._default_progress()
        self._session: StudySession | None = None
        self._load_progress()
        self.start_new_session()

    def _default_progress(self) -> UserProgress:
        return UserProgress(
            current_level=self._starting_level,
            level_progression=[LevelProgressionData(level=self._starting_level)],
        )

    @property
    def current_level(self) -> DifficultyLevel:
        return self._progress.current_level

    @property
    def current_session(self) -> StudySession | None:
        return self._session.model_copy(deep=True) if self._session else None

    def get_current_progress(self) -> UserProgress:
        return self._progress.model_copy(deep=True)

    def get_current_global_stats(self) -> GlobalStats:
        return GlobalStats(
            level=self._progress.current_level,
            accuracy=self._progress.overall_accuracy,
            total_attempts=self._progress.total_questions_answered,
        )

    def advance_tier(self, new_level: DifficultyLevel) -> None:
        self.update_level(new_level)

    def update_level(self, new_level: DifficultyLevel) -> None:
        """Switch level, recording when a level is unlocked for the first time."""
        if self._progress.progression_for(new_level) is None:
            self._progress.level_progression.append(LevelProgressionData(level=new_level))
        self._progress.current_level = new_level
        self.save_progress()
        logger.info("user_level_updated", level=new_level.value)

    def record_question_attempt(
        self, is_correct: bool, response_time_ms: float, note_id: str | None = None
    ) -> None:
        """Count one answered question globally, per level and per session."""
        progress = self._progress
        progress.total_questions_answered += 1
        if is_correct:
            progress.total_correct += 1

        level_data = progress.progression_for(progress.current_level)
        if level_data is None:
            level_data = LevelProgressionData(level=progress.current_level)
            progress.level_progression.append(level_data)
        level_data.questions_at_level += 1
        if is_correct:
            level_data.correct_at_level += 1

        if self._session is not None:
            session = self._session
            session.average_response_time_ms = _running_mean(
                session.average_response_time_ms, session.questions_answered, response_time_ms
            )
            session.questions_answered += 1
            if is_correct:
                session.correct_answers += 1
            if note_id and note_id not in session.notes_encountered:
                session.notes_encountered.append(note_id)
            self._save_session()

        self.save_progress()

    def start_new_session(self) -> StudySession:
        self._session = StudySession(session_id=str(uuid.uuid4()))
        self._save_session()
        logger.debug("study_session_started", session_id=self._session.session_id)
        return self._session.model_copy(deep=True)

    def end_current_session(self) -> None:
        if self._session is None:
            return
        self._session.end_time = datetime.now(timezone.utc)
        self._save_session()
        logger.info(
            "study_session_ended",
            session_id=self._session.session_id,
            questions=self._session.questions_answered,
        )

    def get_session_stats(self) -> SessionStats:
        session = self._session
        if session is None:
            return SessionStats()
        accuracy = (
            session.correct_answers / session.questions_answered
            if session.questions_answered > 0
            else 0.0
        )
        end = session.end_time or datetime.now(timezone.utc)
        return SessionStats(
            questions_answered=session.questions_answered,
            accuracy=accuracy,
            average_response_time_ms=session.average_response_time_ms,
            duration_seconds=(end - session.start_time).total_seconds(),
        )

    def reset_progress(self) -> None:
        self._progress = self._default_progress()
        self._session = None
        self._store.clear(PROGRESS_KEY)
        self._store.clear(SESSION_KEY)
        self.start_new_session()
        logger.info("user_progress_reset")

    def export_progress(self) -> str:
        return json.dumps(
            {
                "progress": self._progress.model_dump(mode="json"),
                "session": self._session.model_dump(mode="json") if self._session else None,
            },
            indent=2,
        )

    def import_progress(self, data: str) -> bool:
        """Replace progress with exported data. Returns False if it is unusable."""
        try:
            parsed = json.loads(data)
            progress = (
                UserProgress.model_validate(parsed["progress"]) if parsed.get("progress") else None
            )
            session = (
                StudySession.model_validate(parsed["session"]) if parsed.get("session") else None
            )
        except (json.JSONDecodeError, AttributeError, ValidationError) as e:
            logger.error("progress_import_failed", error=str(e))
            return False

        if progress is not None:
            self._progress = progress
            self.save_progress()
        if session is not None:
            self._session = session
            self._save_session()
        return True

    def save_progress(self) -> None:
        self._store.save(PROGRESS_KEY, self._progress.model_dump(mode="json"))

    def _save_session(self) -> None:
        if self._session is not None:
            self._store.save(SESSION_KEY, self._session.model_dump(mode="json"))

    def _load_progress(self) -> None:
        saved = self._store.load(PROGRESS_KEY)
        if not saved:
            return
        try:
            self._progress = UserProgress.model_validate(saved)
        except ValidationError as e:
            logger.warning("saved_progress_ignored", error=str(e))
