"""Shared fixtures: small level tables and in-memory collaborators."""

import random

import pytest

from note_tutor.engine.generator import NoteGenerator
from note_tutor.engine.levels import LevelConfigStore
from note_tutor.models.level import (
    ClefDistribution,
    DifficultyLevel,
    LevelConfiguration,
    NoteRange,
    OctaveRange,
    ProgressionCriteria,
)
from note_tutor.storage.key_value import MemoryStore
from note_tutor.storage.user_progress import UserProgressService


def make_level(
    level: DifficultyLevel = DifficultyLevel.EASY,
    treble: tuple[int, int] = (4, 4),
    bass: tuple[int, int] = (3, 3),
    treble_weight: float = 1.0,
    bass_weight: float = 1.0,
    min_accuracy: float = 0.8,
    min_questions: int = 5,
    consecutive_correct: int = 4,
    base_weights: dict[str, float] | None = None,
    include_accidentals: bool = False,
) -> LevelConfiguration:
    return LevelConfiguration(
        level=level,
        note_range=NoteRange(
            treble=OctaveRange(min=treble[0], max=treble[1]),
            bass=OctaveRange(min=bass[0], max=bass[1]),
            include_accidentals=include_accidentals,
        ),
        clef_distribution=ClefDistribution(treble=treble_weight, bass=bass_weight),
        base_weights=base_weights or {},
        progression_criteria=ProgressionCriteria(
            min_accuracy=min_accuracy,
            min_questions=min_questions,
            consecutive_correct=consecutive_correct,
        ),
    )


@pytest.fixture
def level_factory():
    return make_level


@pytest.fixture
def small_levels() -> LevelConfigStore:
    """easy -> hard -> mixed, where only easy is realistically passable."""
    return LevelConfigStore([
        make_level(DifficultyLevel.EASY),
        make_level(DifficultyLevel.HARD, min_accuracy=1.0, min_questions=1000,
                   consecutive_correct=1000),
        make_level(DifficultyLevel.MIXED, min_accuracy=0.0, min_questions=0,
                   consecutive_correct=0),
    ])


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def progress(store) -> UserProgressService:
    return UserProgressService(store)


@pytest.fixture
def generator(small_levels, progress, store) -> NoteGenerator:
    return NoteGenerator(small_levels, progress, store, rng=random.Random(1234))
