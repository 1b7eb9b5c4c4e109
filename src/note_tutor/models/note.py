"""Musical note models: the items the engine selects from."""

import re
from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class Clef(StrEnum):
    """Staff clef; partitions the note catalog."""

    TREBLE = "treble"
    BASS = "bass"


class NoteName(StrEnum):
    C = "C"
    D = "D"
    E = "E"
    F = "F"
    G = "G"
    A = "A"
    B = "B"


class Accidental(StrEnum):
    SHARP = "sharp"
    FLAT = "flat"

    @property
    def symbol(self) -> str:
        # ASCII sharp and Unicode flat, as shown on the answer buttons
        return "#" if self is Accidental.SHARP else "♭"


class StaffPosition(StrEnum):
    """Where a note sits relative to the five-line staff."""

    LINE = "line"
    SPACE = "space"
    LEDGER_ABOVE = "ledger-above"
    LEDGER_BELOW = "ledger-below"


NOTE_ID_PATTERN = re.compile(r"^[A-G]\d+-(treble|bass)(-(sharp|flat))?$")


def make_note_id(
    name: NoteName, octave: int, clef: Clef, accidental: Accidental | None = None
) -> str:
    """Build the stable note id, e.g. ``C4-treble`` or ``F3-bass-sharp``."""
    note_id = f"{name.value}{octave}-{clef.value}"
    if accidental is not None:
        note_id = f"{note_id}-{accidental.value}"
    return note_id


class MusicalNote(BaseModel):
    """A single note-identification task."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: NoteName
    octave: int
    clef: Clef
    position: StaffPosition
    accidental: Accidental | None = None

    @property
    def key(self) -> str:
        """Name and octave without clef, e.g. ``E4``."""
        return f"{self.name.value}{self.octave}"
