"""Bounded most-recent-first record of selected notes."""

from collections.abc import Iterable, Iterator

from note_tutor.models.note import MusicalNote

DEFAULT_HISTORY_SIZE = 10


class SelectionHistory:
    """Most-recent-first list of the last ``max_size`` selected notes."""

    def __init__(self, max_size: int = DEFAULT_HISTORY_SIZE) -> None:
        if max_size < 1:
            raise ValueError(f"history size must be at least 1, got {max_size}")
        self._max_size = max_size
        self._notes: list[MusicalNote] = []

    @property
    def max_size(self) -> int:
        return self._max_size

    @property
    def notes(self) -> tuple[MusicalNote, ...]:
        return tuple(self._notes)

    def push(self, note: MusicalNote) -> None:
        self._notes = [note, *self._notes[: self._max_size - 1]]

    def position(self, note_id: str) -> int | None:
        """0-based index of the most recent occurrence, or None."""
        for index, note in enumerate(self._notes):
            if note.id == note_id:
                return index
        return None

    def positions(self) -> dict[str, int]:
        """Map each note id to the index of its most recent occurrence."""
        result: dict[str, int] = {}
        for index, note in enumerate(self._notes):
            result.setdefault(note.id, index)
        return result

    def restore(self, notes: Iterable[MusicalNote]) -> None:
        self._notes = list(notes)[: self._max_size]

    def clear(self) -> None:
        self._notes = []

    def __iter__(self) -> Iterator[MusicalNote]:
        return iter(tuple(self._notes))

    def __len__(self) -> int:
        return len(self._notes)
