"""Note catalog generation and candidate filtering."""

from collections.abc import Iterable

from note_tutor.models.level import LevelConfiguration
from note_tutor.models.note import (
    Accidental,
    Clef,
    MusicalNote,
    NoteName,
    StaffPosition,
    make_note_id,
)
from note_tutor.models.progress import (
    ClefFilter,
    DifficultyMode,
    NoteFilter,
    PracticeFilters,
)

CLEF_ORDER: tuple[Clef, ...] = (Clef.TREBLE, Clef.BASS)

# Note keys per clef for the tier-independent difficulty modes.
DIFFICULTY_NOTE_RANGES: dict[Clef, dict[DifficultyMode, frozenset[str]]] = {
    Clef.TREBLE: {
        # On the staff
        DifficultyMode.EASY: frozenset(
            ["E4", "F4", "G4", "A4", "B4", "C5", "D5", "E5", "F5"]
        ),
        # Ledger lines
        DifficultyMode.HARD: frozenset(
            ["C4", "D4", "G5", "A5", "B5", "C6", "D6", "E6", "F6", "G6", "A6", "B6", "C7"]
        ),
    },
    Clef.BASS: {
        DifficultyMode.EASY: frozenset(
            ["G2", "A2", "B2", "C3", "D3", "E3", "F3", "G3", "A3"]
        ),
        DifficultyMode.HARD: frozenset(
            [
                "C1", "D1", "E1", "F1", "G1", "A1", "B1", "C2", "D2", "E2", "F2",
                "B3", "C4", "D4", "E4", "F4", "G4", "A4", "B4", "C5",
            ]
        ),
    },
}

# Bottom and top staff lines as (name, octave).
_STAFF_BOUNDS: dict[Clef, tuple[tuple[NoteName, int], tuple[NoteName, int]]] = {
    Clef.TREBLE: ((NoteName.E, 4), (NoteName.F, 5)),
    Clef.BASS: ((NoteName.G, 2), (NoteName.A, 3)),
}

_NAME_ORDER = list(NoteName)


def _diatonic_step(name: NoteName, octave: int) -> int:
    return octave * 7 + _NAME_ORDER.index(name)


def staff_position(name: NoteName, octave: int, clef: Clef) -> StaffPosition:
    """Locate a note on the given clef's staff.

    Staff lines fall on even diatonic distances from the bottom line,
    spaces on odd ones. Anything outside the five lines needs ledger lines.
    """
    (low_name, low_octave), (high_name, high_octave) = _STAFF_BOUNDS[clef]
    step = _diatonic_step(name, octave)
    bottom = _diatonic_step(low_name, low_octave)
    top = _diatonic_step(high_name, high_octave)

    if step < bottom:
        return StaffPosition.LEDGER_BELOW
    if step > top:
        return StaffPosition.LEDGER_ABOVE
    if (step - bottom) % 2 == 0:
        return StaffPosition.LINE
    return StaffPosition.SPACE


def build_candidates(config: LevelConfiguration) -> list[MusicalNote]:
    """Enumerate every note the level allows, in a fixed order.

    Args:
        config: Level configuration providing ranges and allowed notes.

    Returns:
        Notes ordered by clef, octave, then allowed note order. When the
        level enables accidentals each natural note is followed by its
        sharp and flat variants.
    """
    note_range = config.note_range
    candidates: list[MusicalNote] = []

    for clef in CLEF_ORDER:
        for octave in note_range.for_clef(clef).octaves():
            for name in note_range.allowed_notes:
                position = staff_position(name, octave, clef)
                candidates.append(
                    MusicalNote(
                        id=make_note_id(name, octave, clef),
                        name=name,
                        octave=octave,
                        clef=clef,
                        position=position,
                    )
                )
                if note_range.include_accidentals:
                    for accidental in (Accidental.SHARP, Accidental.FLAT):
                        candidates.append(
                            MusicalNote(
                                id=make_note_id(name, octave, clef, accidental),
                                name=name,
                                octave=octave,
                                clef=clef,
                                position=position,
                                accidental=accidental,
                            )
                        )

    return candidates


def filter_candidates(
    candidates: Iterable[MusicalNote], filters: PracticeFilters
) -> list[MusicalNote]:
    """Apply difficulty-mode, clef and note filters without touching the catalog."""
    filtered = list(candidates)

    mode = filters.difficulty_mode
    if mode is not DifficultyMode.DEFAULT:
        filtered = [
            note for note in filtered if note.key in DIFFICULTY_NOTE_RANGES[note.clef][mode]
        ]

    if filters.clef_filter is not ClefFilter.BOTH:
        clef = Clef(filters.clef_filter.value)
        filtered = [note for note in filtered if note.clef is clef]

    if filters.note_filter is not NoteFilter.ALL:
        name = NoteName(filters.note_filter.value)
        filtered = [note for note in filtered if note.name is name]

    return filtered
