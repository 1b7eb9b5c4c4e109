"""Tests for the practice session loop."""

import random

import pytest

from note_tutor.config import Settings
from note_tutor.errors import NoActiveQuestion
from note_tutor.models.level import DifficultyLevel
from note_tutor.models.progress import ClefFilter, PracticeFilters
from note_tutor.tutor.answers import FeedbackType, correct_answer_label
from note_tutor.tutor.session import PracticeSession, build_practice_session


class _Clock:
    def __init__(self):
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return _Clock()


@pytest.fixture
def session(generator, progress, clock):
    return PracticeSession(generator, progress, rng=random.Random(5), clock=clock)


def _answer_correctly(session):
    note = session.next_note()
    return session.submit_answer(correct_answer_label(note), 800.0)


def test_submit_without_question(session):
    with pytest.raises(NoActiveQuestion):
        session.submit_answer("C")


def test_correct_answer(session):
    result = _answer_correctly(session)
    assert result.is_correct
    assert result.feedback.type == FeedbackType.CORRECT
    assert result.performance.attempts == 1
    assert not session.awaiting_answer


def test_wrong_answer(session):
    note = session.next_note()
    wrong = "D" if note.name != "D" else "E"
    result = session.submit_answer(wrong, 1200.0)
    assert not result.is_correct
    assert result.feedback.correct_answer == correct_answer_label(note)
    assert session.generator.performance_stats()[note.id].consecutive_incorrect == 1


def test_second_answer_rejected(session):
    _answer_correctly(session)
    with pytest.raises(NoActiveQuestion):
        session.submit_answer("C")


def test_response_time_from_clock(session, clock):
    note = session.next_note()
    clock.now += 1.5
    result = session.submit_answer(correct_answer_label(note))
    assert result.response_time_ms == pytest.approx(1500.0)


@pytest.mark.parametrize("raw", [-250.0, float("nan"), float("inf")])
def test_bad_response_time_recorded_as_zero(session, raw):
    note = session.next_note()
    result = session.submit_answer(correct_answer_label(note), raw)
    assert result.response_time_ms == 0.0
    assert result.performance.average_response_time_ms == 0.0
    assert session.progress.current_session.average_response_time_ms == 0.0


def test_answer_counted_in_progress_and_engine(session):
    _answer_correctly(session)
    assert session.progress.get_current_global_stats().total_attempts == 1
    assert session.generator.metrics().total_attempts == 1
    assert session.generator.consecutive_correct == 1


def test_level_changes_after_mastery(session):
    results = [_answer_correctly(session) for _ in range(5)]
    assert [r.level_changed for r in results] == [False, False, False, False, True]
    assert results[-1].level == DifficultyLevel.HARD
    assert session.progress.current_level == DifficultyLevel.HARD


def test_state_saved_after_each_answer(session, store):
    _answer_correctly(session)
    assert store.exists("performance-data")
    assert store.exists("recent-history")


def test_reveal_answer(session):
    with pytest.raises(NoActiveQuestion):
        session.reveal_answer()
    note = session.next_note()
    hint = session.reveal_answer()
    assert hint.type == FeedbackType.HINT
    assert hint.correct_answer == correct_answer_label(note)


def test_set_filters_drops_current_question(session):
    session.next_note()
    session.set_filters(PracticeFilters(clef_filter=ClefFilter.BASS))
    assert session.current_note is None
    assert session.next_note().clef == "bass"


def test_reset(session):
    for _ in range(5):
        _answer_correctly(session)
    session.reset()
    summary = session.summary()
    assert summary.level == DifficultyLevel.EASY
    assert summary.global_stats.total_attempts == 0
    assert summary.metrics.total_attempts == 0
    assert summary.consecutive_correct == 0
    assert session.current_note is None


def test_summary(session):
    _answer_correctly(session)
    summary = session.summary()
    assert summary.session.questions_answered == 1
    assert summary.metrics.notes_tracked == 1
    assert summary.filters == PracticeFilters()


def test_build_practice_session_restores_state(tmp_path):
    settings = Settings(data_dir=tmp_path, random_seed=7)
    first = build_practice_session(settings)
    note = first.next_note()
    first.submit_answer(correct_answer_label(note), 700.0)

    second = build_practice_session(settings)
    assert second.generator.performance_stats()[note.id].attempts == 1
    assert second.progress.get_current_global_stats().total_attempts == 1
    assert second.generator.history[0] == note
