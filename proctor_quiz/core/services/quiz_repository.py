"""Service for loading, validating and storing quiz definitions."""

from __future__ import annotations

from datetime import datetime

from proctor_quiz.core.models import Question, QuestionKind, Quiz, TRUE_FALSE_CHOICES, as_utc
from proctor_quiz.core.services.persistence import (
    DocumentStore,
    DuplicateRecordError,
    QUIZZES_COLLECTION,
)

_SUPPORTED_KINDS = frozenset(
    {QuestionKind.MULTIPLE_CHOICE, QuestionKind.TRUE_FALSE, QuestionKind.SHORT_ANSWER}
)


class QuizLoadError(Exception):
    """Raised when a quiz cannot be loaded or is not open for taking."""


class QuizRepository:
    """Reads and writes quizzes in the ``quizzes`` collection."""

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    def fetch_quiz(self, quiz_id: str) -> Quiz:
        """Load and validate a quiz; every failure surfaces as ``QuizLoadError``."""
        document = self._store.get(QUIZZES_COLLECTION, quiz_id)
        if document is None:
            raise QuizLoadError("Quiz not found")
        try:
            quiz = Quiz.from_document(document)
        except (KeyError, TypeError, ValueError) as exc:
            raise QuizLoadError(f"Quiz '{quiz_id}' is malformed: {exc}") from exc
        try:
            self.validate_quiz(quiz)
        except ValueError as exc:
            raise QuizLoadError(str(exc)) from exc
        return quiz

    def save_quiz(self, quiz: Quiz) -> str:
        """Validate and store a quiz, replacing any previous definition with the same id."""
        self.validate_quiz(quiz)
        document = quiz.to_document()
        try:
            return self._store.create(QUIZZES_COLLECTION, document, record_id=quiz.id)
        except DuplicateRecordError:
            self._store.update(QUIZZES_COLLECTION, quiz.id, document)
            return quiz.id

    def list_quizzes(self, active_only: bool = False) -> list[Quiz]:
        filters = {"is_active": True} if active_only else {}
        quizzes: list[Quiz] = []
        for document in self._store.query(QUIZZES_COLLECTION, **filters):
            try:
                quizzes.append(Quiz.from_document(document))
            except (KeyError, TypeError, ValueError):
                continue
        return sorted(quizzes, key=lambda quiz: quiz.title.casefold())

    @staticmethod
    def check_window(quiz: Quiz, now: datetime) -> None:
        """Reject quizzes that are disabled or outside their start/end window."""
        if not quiz.is_active:
            raise QuizLoadError("Quiz is not active")
        now = as_utc(now)
        if quiz.start_time is not None and now < as_utc(quiz.start_time):
            raise QuizLoadError("Quiz has not started yet")
        if quiz.end_time is not None and now > as_utc(quiz.end_time):
            raise QuizLoadError("Quiz has ended")

    @classmethod
    def validate_quiz(cls, quiz: Quiz) -> None:
        if not quiz.id.strip():
            raise ValueError("Quiz id must not be empty.")
        if not quiz.title.strip():
            raise ValueError("Quiz title must not be empty.")
        if not isinstance(quiz.time_limit_minutes, int) or isinstance(quiz.time_limit_minutes, bool):
            raise ValueError("Time limit must be provided as an integer number of minutes.")
        if quiz.time_limit_minutes < 0:
            raise ValueError("Time limit must not be negative.")
        if not quiz.questions:
            raise ValueError("Quiz must contain at least one question.")
        if (
            quiz.start_time is not None
            and quiz.end_time is not None
            and as_utc(quiz.end_time) <= as_utc(quiz.start_time)
        ):
            raise ValueError("Quiz end time must be after its start time.")
        seen_ids: set[str] = set()
        for question in quiz.questions:
            if question.id in seen_ids:
                raise ValueError(f"Duplicate question id '{question.id}'.")
            seen_ids.add(question.id)
            cls._validate_question(question)

    @staticmethod
    def _validate_question(question: Question) -> None:
        if not question.id.strip():
            raise ValueError("Question id must not be empty.")
        if not question.text.strip():
            raise ValueError("Question text must not be empty.")
        if question.kind not in _SUPPORTED_KINDS:
            raise ValueError(f"Question '{question.id}' uses unsupported type '{question.kind.value}'.")
        if not isinstance(question.points, int) or isinstance(question.points, bool) or question.points <= 0:
            raise ValueError(f"Question '{question.id}' must be worth a positive integer of points.")
        if not question.correct_answer.strip():
            raise ValueError(f"Question '{question.id}' has no correct answer.")

        if question.kind == QuestionKind.MULTIPLE_CHOICE:
            if len(question.options) < 2:
                raise ValueError(f"Question '{question.id}' needs at least two options.")
            if any(not option.strip() for option in question.options):
                raise ValueError("Option text cannot be empty.")
            if question.correct_answer not in question.options:
                raise ValueError(f"Correct answer of '{question.id}' must be one of its options.")
        elif question.kind == QuestionKind.TRUE_FALSE:
            choices = {choice.casefold() for choice in TRUE_FALSE_CHOICES}
            if question.correct_answer.casefold() not in choices:
                raise ValueError(f"Correct answer of '{question.id}' must be True or False.")
