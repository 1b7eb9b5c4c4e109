"""Performance-weighted scoring of candidate notes."""

from collections.abc import Mapping, Sequence

from pydantic import BaseModel, ConfigDict

from note_tutor.models.level import LevelConfiguration
from note_tutor.models.note import MusicalNote
from note_tutor.models.performance import NotePerformance

DEFAULT_BASE_WEIGHT = 1.0
ACCURACY_BOOST = 2.0
INCORRECT_STREAK_BOOST = 0.5
MASTERED_STREAK = 3
MASTERED_FACTOR = 0.7
NOVELTY_BOOST = 1.3
RECENCY_STEP = 0.3
RECENCY_FLOOR = 0.1
MIN_WEIGHT = 0.01


class WeightedNote(BaseModel):
    model_config = ConfigDict(frozen=True)

    note: MusicalNote
    weight: float


def performance_factor(performance: NotePerformance | None) -> float:
    """Multiplier from the learner's history with a note.

    Struggling notes and notes on an incorrect streak are boosted, notes on
    a long correct streak are damped, untried notes get a novelty boost.
    """
    if performance is None:
        return NOVELTY_BOOST

    factor = 1.0 + (1.0 - performance.accuracy) * ACCURACY_BOOST
    if performance.consecutive_incorrect > 0:
        factor *= 1.0 + performance.consecutive_incorrect * INCORRECT_STREAK_BOOST
    if performance.consecutive_correct > MASTERED_STREAK:
        factor *= MASTERED_FACTOR
    return factor


def recency_factor(position: int | None) -> float:
    """Penalty for a note at 0-based ``position`` in the recent history."""
    if position is None:
        return 1.0
    return max(RECENCY_FLOOR, 1.0 - (position + 1) * RECENCY_STEP)


def compute_weights(
    candidates: Sequence[MusicalNote],
    config: LevelConfiguration,
    performance: Mapping[str, NotePerformance],
    recent: Sequence[MusicalNote],
) -> list[WeightedNote]:
    """Score every candidate; the result keeps candidate order.

    Args:
        candidates: Filtered candidate pool.
        config: Active level configuration (base weights, clef distribution).
        performance: Note id to performance record.
        recent: Recently selected notes, most recent first.

    Returns:
        One WeightedNote per candidate, each weight at least MIN_WEIGHT.
    """
    positions: dict[str, int] = {}
    for index, note in enumerate(recent):
        positions.setdefault(note.id, index)

    weighted = []
    for note in candidates:
        weight = config.base_weights.get(note.id, DEFAULT_BASE_WEIGHT)
        weight *= performance_factor(performance.get(note.id))
        weight *= recency_factor(positions.get(note.id))
        weight *= config.clef_distribution.for_clef(note.clef)
        weighted.append(WeightedNote(note=note, weight=max(MIN_WEIGHT, weight)))
    return weighted
