"""Difficulty level (tier) configuration models."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from note_tutor.models.note import Clef, NoteName


class DifficultyLevel(StrEnum):
    """Ordered difficulty tiers. Learners move forward one step at a time."""

    EASY = "easy"
    HARD = "hard"
    MIXED = "mixed"


class OctaveRange(BaseModel):
    model_config = ConfigDict(frozen=True)

    min: int
    max: int

    @model_validator(mode="after")
    def _check_bounds(self) -> "OctaveRange":
        if self.min > self.max:
            raise ValueError(f"octave range min {self.min} exceeds max {self.max}")
        return self

    def octaves(self) -> range:
        """Inclusive octave range."""
        return range(self.min, self.max + 1)


class NoteRange(BaseModel):
    model_config = ConfigDict(frozen=True)

    treble: OctaveRange
    bass: OctaveRange
    allowed_notes: tuple[NoteName, ...] = tuple(NoteName)
    include_accidentals: bool = False

    def for_clef(self, clef: Clef) -> OctaveRange:
        return self.treble if clef is Clef.TREBLE else self.bass


class ClefDistribution(BaseModel):
    """Relative selection weight per clef (used multiplicatively)."""

    model_config = ConfigDict(frozen=True)

    treble: float = Field(gt=0)
    bass: float = Field(gt=0)

    def for_clef(self, clef: Clef) -> float:
        return self.treble if clef is Clef.TREBLE else self.bass


class ProgressionCriteria(BaseModel):
    """Thresholds that must all hold at once to leave a level."""

    model_config = ConfigDict(frozen=True)

    min_accuracy: float = Field(ge=0.0, le=1.0)
    min_questions: int = Field(ge=0)
    consecutive_correct: int = Field(ge=0)


class LevelConfiguration(BaseModel):
    model_config = ConfigDict(frozen=True)

    level: DifficultyLevel
    note_range: NoteRange
    clef_distribution: ClefDistribution
    base_weights: dict[str, float] = Field(default_factory=dict)
    progression_criteria: ProgressionCriteria

    @field_validator("base_weights")
    @classmethod
    def _positive_weights(cls, weights: dict[str, float]) -> dict[str, float]:
        for note_id, weight in weights.items():
            if weight <= 0:
                raise ValueError(f"base weight for {note_id} must be positive, got {weight}")
        return weights
