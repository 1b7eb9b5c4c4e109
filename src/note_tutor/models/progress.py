"""Learner progress, study session and practice filter models."""

from datetime import datetime, timezone
from enum import StrEnum

from pydantic import BaseModel, Field, computed_field

from note_tutor.models.level import DifficultyLevel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DifficultyMode(StrEnum):
    """Tier-independent restriction to a named subset of note positions."""

    DEFAULT = "default"
    EASY = "easy"
    HARD = "hard"


class ClefFilter(StrEnum):
    BOTH = "both"
    TREBLE = "treble"
    BASS = "bass"


class NoteFilter(StrEnum):
    ALL = "all"
    C = "C"
    D = "D"
    E = "E"
    F = "F"
    G = "G"
    A = "A"
    B = "B"


class PracticeFilters(BaseModel):
    """Filters the learner has chosen for the candidate pool."""

    difficulty_mode: DifficultyMode = DifficultyMode.DEFAULT
    clef_filter: ClefFilter = ClefFilter.BOTH
    note_filter: NoteFilter = NoteFilter.ALL


class GlobalStats(BaseModel):
    """Snapshot the progression evaluator reads from the progress tracker."""

    level: DifficultyLevel
    accuracy: float
    total_attempts: int


class LevelProgressionData(BaseModel):
    level: DifficultyLevel
    unlocked_at: datetime = Field(default_factory=_utcnow)
    questions_at_level: int = 0
    correct_at_level: int = 0

    @computed_field
    @property
    def accuracy_at_level(self) -> float:
        if self.questions_at_level == 0:
            return 0.0
        return self.correct_at_level / self.questions_at_level


class UserProgress(BaseModel):
    current_level: DifficultyLevel = DifficultyLevel.EASY
    total_questions_answered: int = 0
    total_correct: int = 0
    session_start_time: datetime = Field(default_factory=_utcnow)
    level_progression: list[LevelProgressionData] = Field(default_factory=list)

    @computed_field
    @property
    def overall_accuracy(self) -> float:
        if self.total_questions_answered == 0:
            return 0.0
        return self.total_correct / self.total_questions_answered

    def progression_for(self, level: DifficultyLevel) -> LevelProgressionData | None:
        for entry in self.level_progression:
            if entry.level == level:
                return entry
        return None


class StudySession(BaseModel):
    session_id: str
    start_time: datetime = Field(default_factory=_utcnow)
    end_time: datetime | None = None
    questions_answered: int = 0
    correct_answers: int = 0
    average_response_time_ms: float = 0.0
    notes_encountered: list[str] = Field(default_factory=list)


class SessionStats(BaseModel):
    questions_answered: int = 0
    accuracy: float = 0.0
    average_response_time_ms: float = 0.0
    duration_seconds: float = 0.0
