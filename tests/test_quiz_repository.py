"""
Unit Tests for quiz storage and validation
"""
from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from proctor_quiz.core.models import Question, QuestionKind
from proctor_quiz.core.services.persistence import QUIZZES_COLLECTION
from proctor_quiz.core.services.quiz_repository import QuizLoadError, QuizRepository


class TestQuizRepository:
    @pytest.fixture
    def repository(self, store):
        return QuizRepository(store)

    def test_save_and_fetch(self, repository, sample_quiz):
        assert repository.save_quiz(sample_quiz) == "geo-1"
        assert repository.fetch_quiz("geo-1") == sample_quiz

    def test_save_replaces_existing(self, repository, sample_quiz):
        repository.save_quiz(sample_quiz)
        repository.save_quiz(replace(sample_quiz, title="Geography II"))
        assert repository.fetch_quiz("geo-1").title == "Geography II"

    def test_missing_quiz(self, repository):
        with pytest.raises(QuizLoadError, match="Quiz not found"):
            repository.fetch_quiz("missing")

    def test_malformed_document(self, repository, store):
        store.create(QUIZZES_COLLECTION, {"title": "No questions"}, record_id="broken")
        with pytest.raises(QuizLoadError):
            repository.fetch_quiz("broken")

    def test_stored_quiz_failing_validation(self, repository, store, sample_quiz):
        document = sample_quiz.to_document()
        document["questions"][0]["type"] = "matching"
        store.create(QUIZZES_COLLECTION, document, record_id="geo-1")
        with pytest.raises(QuizLoadError, match="unsupported type"):
            repository.fetch_quiz("geo-1")

    def test_list_quizzes(self, repository, quiz_factory):
        repository.save_quiz(quiz_factory("b", title="Zoology"))
        repository.save_quiz(quiz_factory("a", title="algebra", is_active=False))
        assert [quiz.id for quiz in repository.list_quizzes()] == ["a", "b"]
        assert [quiz.id for quiz in repository.list_quizzes(active_only=True)] == ["b"]


class TestCheckWindow:
    """Tests for the availability window"""

    NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    def test_open_quiz(self, sample_quiz):
        QuizRepository.check_window(sample_quiz, self.NOW)

    def test_naive_times_are_treated_as_utc(self, sample_quiz):
        quiz = replace(sample_quiz, start_time=datetime(2024, 5, 1, 11, 0), end_time=datetime(2024, 5, 1, 13, 0))
        QuizRepository.check_window(quiz, self.NOW)

    def test_boundaries_are_inclusive(self, sample_quiz):
        quiz = replace(sample_quiz, start_time=self.NOW, end_time=self.NOW)
        QuizRepository.check_window(quiz, self.NOW)

    def test_not_started(self, sample_quiz):
        quiz = replace(sample_quiz, start_time=self.NOW + timedelta(seconds=1))
        with pytest.raises(QuizLoadError, match="not started"):
            QuizRepository.check_window(quiz, self.NOW)

    def test_ended(self, sample_quiz):
        quiz = replace(sample_quiz, end_time=self.NOW - timedelta(seconds=1))
        with pytest.raises(QuizLoadError, match="ended"):
            QuizRepository.check_window(quiz, self.NOW)


class TestValidateQuiz:
    """Tests for structural validation"""

    def question(self, **overrides):
        values = dict(id="q1", text="Pick one", kind=QuestionKind.MULTIPLE_CHOICE, correct_answer="A", options=("A", "B"))
        values.update(overrides)
        return Question(**values)

    def test_valid(self, sample_quiz):
        QuizRepository.validate_quiz(sample_quiz)

    @pytest.mark.parametrize(
        "overrides",
        [
            {"options": ("A",)},
            {"correct_answer": "C"},
            {"options": ("A", " ")},
            {"points": 0},
            {"points": True},
            {"text": "  "},
            {"correct_answer": ""},
            {"kind": QuestionKind.MATCHING},
            {"kind": QuestionKind.TRUE_FALSE, "options": (), "correct_answer": "Maybe"},
        ],
    )
    def test_invalid_questions(self, sample_quiz, overrides):
        quiz = replace(sample_quiz, questions=(self.question(**overrides),))
        with pytest.raises(ValueError):
            QuizRepository.validate_quiz(quiz)

    def test_true_false_answer_is_case_insensitive(self, sample_quiz):
        question = self.question(kind=QuestionKind.TRUE_FALSE, options=(), correct_answer="false")
        QuizRepository.validate_quiz(replace(sample_quiz, questions=(question,)))

    def test_duplicate_question_ids(self, sample_quiz):
        quiz = replace(sample_quiz, questions=(self.question(), self.question()))
        with pytest.raises(ValueError, match="Duplicate"):
            QuizRepository.validate_quiz(quiz)

    @pytest.mark.parametrize("overrides", [{"questions": ()}, {"time_limit_minutes": -1}, {"title": ""}])
    def test_invalid_quiz(self, sample_quiz, overrides):
        with pytest.raises(ValueError):
            QuizRepository.validate_quiz(replace(sample_quiz, **overrides))

    def test_end_before_start(self, sample_quiz):
        start = datetime(2024, 5, 1, tzinfo=timezone.utc)
        quiz = replace(sample_quiz, start_time=start, end_time=start - timedelta(hours=1))
        with pytest.raises(ValueError, match="end time"):
            QuizRepository.validate_quiz(quiz)
