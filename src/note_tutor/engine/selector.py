"""Weighted random draw over scored candidates."""

import random
from collections.abc import Sequence

from note_tutor.engine.weighting import WeightedNote
from note_tutor.errors import EmptyCandidatePool
from note_tutor.models.note import MusicalNote


def select_weighted(weighted: Sequence[WeightedNote], rng: random.Random) -> MusicalNote:
    """Draw one note with probability proportional to its weight.

    Raises:
        EmptyCandidatePool: If ``weighted`` is empty.
    """
    if not weighted:
        raise EmptyCandidatePool()

    total = sum(item.weight for item in weighted)
    remainder = rng.random() * total

    for item in weighted:
        remainder -= item.weight
        if remainder <= 0:
            return item.note

    # Floating-point rounding can leave a tiny positive remainder.
    return weighted[-1].note
