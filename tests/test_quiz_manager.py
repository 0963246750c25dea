"""
Tests for the QuizManager facade
"""
from datetime import datetime, timezone

import pytest

from proctor_quiz.core.models import AttemptRecord, SessionState
from proctor_quiz.core.quiz_importer import QuizImportError
from proctor_quiz.core.quiz_manager import SessionConflictError
from proctor_quiz.core.services.persistence import ATTEMPTS_COLLECTION
from proctor_quiz.core.services.quiz_repository import QuizLoadError
from proctor_quiz.core.services.timer_engine import ManualTicker


def store_attempt(store, quiz_id, student_id, score, completed_at, answers=None):
    attempt = AttemptRecord(
        id=f"{quiz_id}:{student_id}",
        quiz_id=quiz_id,
        student_id=student_id,
        session_id="s",
        answers=answers or {},
        score=score,
        total_points=3,
        completed_at=completed_at,
        time_taken=30,
    )
    store.create(ATTEMPTS_COLLECTION, attempt.to_document(), record_id=attempt.id)
    return attempt


class TestQuizDelegation:
    """Tests for importing, exporting and listing quizzes"""

    def test_import_and_export(self, manager, tmp_path, sample_quiz):
        manager.save_quiz(sample_quiz)
        target = tmp_path / "geo.txt"
        manager.export_quiz("geo-1", target)

        target.write_text(target.read_text(encoding="utf-8").replace("TITLE: Geography", "TITLE: Maps"), encoding="utf-8")
        imported = manager.import_quiz(target)

        assert imported.id == "geo-1"
        assert manager.get_quiz("geo-1").title == "Maps"
        assert [quiz.id for quiz in manager.list_quizzes()] == ["geo-1"]

    def test_import_invalid_file(self, manager, tmp_path):
        path = tmp_path / "bad.txt"
        path.write_text("nothing useful", encoding="utf-8")
        with pytest.raises(QuizImportError):
            manager.import_quiz(path)

    def test_unknown_quiz(self, manager):
        with pytest.raises(QuizLoadError):
            manager.get_quiz("missing")


class TestSessions:
    """Tests for opening sessions through the facade"""

    def test_second_live_session_is_refused(self, manager, stored_quiz, signal_source, ticker):
        session = manager.open_session("geo-1", signal_source, ticker)
        session.initialize()
        assert manager.get_open_session("geo-1") is session

        with pytest.raises(SessionConflictError):
            manager.open_session("geo-1", signal_source, ManualTicker())

    def test_reopen_after_suspend(self, manager, stored_quiz, signal_source, ticker):
        first = manager.open_session("geo-1", signal_source, ticker)
        first.initialize()
        first.set_answer("q1", "Paris")
        first.suspend()

        second = manager.open_session("geo-1", signal_source, ManualTicker())
        assert second.initialize() == SessionState.ACTIVE
        assert second.answers == {"q1": "Paris"}

    def test_callbacks_are_forwarded(self, manager, stored_quiz, signal_source, ticker):
        states = []
        session = manager.open_session("geo-1", signal_source, ticker, on_state_changed=states.append)
        session.initialize()
        session.submit()
        assert states == [SessionState.ACTIVE, SessionState.SUBMITTING, SessionState.COMPLETED]


class TestAttempts:
    """Tests for attempt listing and review"""

    def test_attempt_lists_are_newest_first(self, manager, stored_quiz, store):
        older = store_attempt(store, "geo-1", "ana", 1, datetime(2024, 5, 1, tzinfo=timezone.utc))
        newer = store_attempt(store, "geo-1", "ben", 3, datetime(2024, 5, 2, tzinfo=timezone.utc))
        store_attempt(store, "other", "ana", 2, datetime(2024, 5, 3, tzinfo=timezone.utc))

        assert [attempt.id for attempt in manager.attempts_for_quiz("geo-1")] == [newer.id, older.id]
        assert [attempt.quiz_id for attempt in manager.attempts_for_student("ana")] == ["other", "geo-1"]

    def test_get_attempt(self, manager, store):
        stored = store_attempt(store, "geo-1", "ana", 1, datetime(2024, 5, 1, tzinfo=timezone.utc))
        assert manager.get_attempt("geo-1", "ana") == stored
        assert manager.get_attempt("geo-1", "ben") is None

    def test_review_after_submit(self, manager, stored_quiz, signal_source, ticker):
        session = manager.open_session("geo-1", signal_source, ticker)
        session.initialize()
        session.set_answer("q1", "Paris")
        session.set_answer("q2", "True")
        session.submit()

        review = manager.review("geo-1", "student-1")
        assert review.percentage == 100
        assert review.correct_count == 2
        assert review.performance_message == "Excellent! Outstanding performance!"

    def test_review_without_attempt(self, manager, stored_quiz):
        assert manager.review("geo-1", "nobody") is None
