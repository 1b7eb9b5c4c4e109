"""Answer normalisation, validation and learner feedback."""

import random
from enum import StrEnum

from pydantic import BaseModel

from note_tutor.models.note import Accidental, MusicalNote, NoteName

_ACCIDENTAL_SYMBOLS: dict[str, Accidental] = {
    "#": Accidental.SHARP,
    "♯": Accidental.SHARP,
    "b": Accidental.FLAT,
    "♭": Accidental.FLAT,
}

PRAISE_MESSAGES = (
    "Excellent! 🎵",
    "Perfect! 🎶",
    "Great job! ✨",
    "Correct! 🎯",
    "Well done! 👏",
)


class FeedbackType(StrEnum):
    CORRECT = "correct"
    INCORRECT = "incorrect"
    HINT = "hint"


class AnswerFeedback(BaseModel):
    type: FeedbackType
    message: str
    correct_answer: str | None = None


class ParsedAnswer(BaseModel):
    name: NoteName
    accidental: Accidental | None = None


def normalize_answer(text: str) -> ParsedAnswer | None:
    """Parse ``"c"``, ``"F#"``, ``"B♭"`` and the like.

    The letter is case-insensitive; ``#``/``♯`` mean sharp and ``b``/``♭``
    mean flat. Returns None for anything that is not a single note name
    with at most one accidental.
    """
    cleaned = text.strip()
    if not cleaned or len(cleaned) > 2:
        return None

    letter = cleaned[0].upper()
    if letter not in NoteName.__members__:
        return None

    accidental = None
    if len(cleaned) == 2:
        accidental = _ACCIDENTAL_SYMBOLS.get(cleaned[1])
        if accidental is None:
            return None
    return ParsedAnswer(name=NoteName(letter), accidental=accidental)


def validate_answer(answer: str, note: MusicalNote) -> bool:
    parsed = normalize_answer(answer)
    if parsed is None:
        return False
    return parsed.name == note.name and parsed.accidental == note.accidental


def correct_answer_label(note: MusicalNote) -> str:
    if note.accidental is None:
        return note.name.value
    return f"{note.name.value}{note.accidental.symbol}"


def build_feedback(
    is_correct: bool, note: MusicalNote, answer: str, rng: random.Random
) -> AnswerFeedback:
    if is_correct:
        return AnswerFeedback(type=FeedbackType.CORRECT, message=rng.choice(PRAISE_MESSAGES))
    correct = correct_answer_label(note)
    return AnswerFeedback(
        type=FeedbackType.INCORRECT,
        message=f'Not quite. You answered "{answer}", but the correct answer is "{correct}".',
        correct_answer=correct,
    )


def hint_feedback(note: MusicalNote) -> AnswerFeedback:
    correct = correct_answer_label(note)
    return AnswerFeedback(
        type=FeedbackType.HINT,
        message=f"The correct answer is {correct}",
        correct_answer=correct,
    )
