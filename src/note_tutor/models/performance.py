"""Per-note performance tracking models."""

from datetime import datetime, timezone

from pydantic import BaseModel, Field, computed_field, model_validator


class NotePerformance(BaseModel):
    """Running statistics for one note.

    Accuracy and difficulty score are derived from the attempt counters on
    every read so they can never drift from them.
    """

    note_id: str
    attempts: int = Field(default=0, ge=0)
    correct_answers: int = Field(default=0, ge=0)
    average_response_time_ms: float = 0.0
    consecutive_correct: int = Field(default=0, ge=0)
    consecutive_incorrect: int = Field(default=0, ge=0)
    last_seen: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @model_validator(mode="after")
    def _check_counts(self) -> "NotePerformance":
        if self.correct_answers > self.attempts:
            raise ValueError("correct_answers cannot exceed attempts")
        return self

    @computed_field
    @property
    def accuracy(self) -> float:
        if self.attempts == 0:
            return 0.0
        return self.correct_answers / self.attempts

    @computed_field
    @property
    def difficulty_score(self) -> int:
        """0-100, higher means harder for this learner."""
        return round((1 - self.accuracy) * 100)


class PerformanceMetrics(BaseModel):
    """Aggregate over every tracked note."""

    notes_tracked: int = 0
    total_attempts: int = 0
    total_correct: int = 0
    overall_accuracy: float = 0.0
    average_response_time_ms: float = 0.0
