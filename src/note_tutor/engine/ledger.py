"""Per-note performance ledger."""

import math
from collections.abc import Iterable, Iterator
from datetime import datetime, timezone

import structlog

from note_tutor.errors import InvalidAttempt
from note_tutor.models.note import NOTE_ID_PATTERN
from note_tutor.models.performance import NotePerformance, PerformanceMetrics

logger = structlog.get_logger()


class PerformanceLedger:
    """Owns one NotePerformance per attempted note.

    Records are created on the first attempt and only removed by ``clear``.
    Callers get copies from ``get``/``snapshot`` so the ledger stays the
    single writer.
    """

    def __init__(self) -> None:
        self._records: dict[str, NotePerformance] = {}

    def record_attempt(
        self,
        note_id: str,
        is_correct: bool,
        response_time_ms: float,
        *,
        now: datetime | None = None,
    ) -> NotePerformance:
        """Fold one answer into the note's statistics.

        Args:
            note_id: Id of the answered note; unknown ids start a new record.
            is_correct: Whether the learner answered correctly.
            response_time_ms: Answer latency. Negative or non-finite values
                are clamped to 0.
            now: Timestamp to store as ``last_seen`` (defaults to UTC now).

        Returns:
            A copy of the updated record.

        Raises:
            InvalidAttempt: If ``note_id`` is not a well-formed note id.
        """
        if not isinstance(note_id, str) or not NOTE_ID_PATTERN.match(note_id):
            raise InvalidAttempt(f"Malformed note id: {note_id!r}")

        if not math.isfinite(response_time_ms) or response_time_ms < 0:
            logger.warning(
                "response_time_clamped", note_id=note_id, response_time_ms=response_time_ms
            )
            response_time_ms = 0.0

        existing = self._records.get(note_id)
        old_attempts = existing.attempts if existing else 0
        attempts = old_attempts + 1
        correct = (existing.correct_answers if existing else 0) + (1 if is_correct else 0)

        if existing is None:
            average = float(response_time_ms)
        else:
            average = (existing.average_response_time_ms * old_attempts + response_time_ms) / attempts

        if is_correct:
            streak_correct = (existing.consecutive_correct if existing else 0) + 1
            streak_incorrect = 0
        else:
            streak_correct = 0
            streak_incorrect = (existing.consecutive_incorrect if existing else 0) + 1

        record = NotePerformance(
            note_id=note_id,
            attempts=attempts,
            correct_answers=correct,
            average_response_time_ms=average,
            consecutive_correct=streak_correct,
            consecutive_incorrect=streak_incorrect,
            last_seen=now or datetime.now(timezone.utc),
        )
        self._records[note_id] = record

        logger.debug(
            "attempt_recorded",
            note_id=note_id,
            is_correct=is_correct,
            attempts=attempts,
            accuracy=round(record.accuracy, 3),
        )
        return record.model_copy()

    def get(self, note_id: str) -> NotePerformance | None:
        record = self._records.get(note_id)
        return record.model_copy() if record else None

    def snapshot(self) -> dict[str, NotePerformance]:
        """Independent copy of every record, in insertion order."""
        return {note_id: record.model_copy() for note_id, record in self._records.items()}

    def items(self) -> list[tuple[str, NotePerformance]]:
        return list(self.snapshot().items())

    def restore(self, pairs: Iterable[tuple[str, NotePerformance]]) -> None:
        self._records = {note_id: record.model_copy() for note_id, record in pairs}

    def clear(self) -> None:
        self._records = {}

    def metrics(self) -> PerformanceMetrics:
        total_attempts = sum(r.attempts for r in self._records.values())
        total_correct = sum(r.correct_answers for r in self._records.values())
        if total_attempts == 0:
            return PerformanceMetrics(notes_tracked=len(self._records))
        weighted_time = sum(
            r.average_response_time_ms * r.attempts for r in self._records.values()
        )
        return PerformanceMetrics(
            notes_tracked=len(self._records),
            total_attempts=total_attempts,
            total_correct=total_correct,
            overall_accuracy=total_correct / total_attempts,
            average_response_time_ms=weighted_time / total_attempts,
        )

    def __contains__(self, note_id: object) -> bool:
        return note_id in self._records

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._records))

    def __len__(self) -> int:
        return len(self._records)
