"""Deterministic scoring and after-the-fact review of quiz attempts."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from proctor_quiz.core.models import AttemptRecord, Question, Quiz

_PERFORMANCE_BANDS: tuple[tuple[int, str], ...] = (
    (90, "Excellent! Outstanding performance!"),
    (80, "Great job! Well done!"),
    (70, "Good work! Keep it up!"),
    (60, "Not bad! Room for improvement."),
    (50, "You can do better! Study more."),
)
_LOWEST_BAND_MESSAGE = "Keep practicing! You'll improve."


@dataclass(slots=True, frozen=True)
class ScoreResult:
    score: int
    total_points: int

    @property
    def percentage(self) -> int:
        return score_percentage(self.score, self.total_points)


@dataclass(slots=True, frozen=True)
class QuestionReview:
    """Outcome of one question inside a finished attempt."""

    question: Question
    given_answer: str | None
    is_correct: bool
    points_awarded: int


@dataclass(slots=True, frozen=True)
class AttemptReview:
    quiz: Quiz
    attempt: AttemptRecord
    questions: tuple[QuestionReview, ...]
    percentage: int
    performance_message: str

    @property
    def correct_count(self) -> int:
        return sum(1 for item in self.questions if item.is_correct)


def is_answer_correct(question: Question, answer: str | None) -> bool:
    """Case-insensitive exact match; empty answers never count."""
    if not answer:
        return False
    return answer.casefold() == question.correct_answer.casefold()


def score_answers(questions: Iterable[Question], answers: Mapping[str, str]) -> ScoreResult:
    """Sum awarded and possible points. Pure, so it is shared by submit and review."""
    score = 0
    total_points = 0
    for question in questions:
        total_points += question.points
        if is_answer_correct(question, answers.get(question.id)):
            score += question.points
    return ScoreResult(score=score, total_points=total_points)


def score_percentage(score: int, total_points: int) -> int:
    if total_points <= 0:
        return 0
    return round(score / total_points * 100)


def performance_message(percentage: int) -> str:
    for threshold, message in _PERFORMANCE_BANDS:
        if percentage >= threshold:
            return message
    return _LOWEST_BAND_MESSAGE


def review_attempt(quiz: Quiz, attempt: AttemptRecord) -> AttemptReview:
    """Rebuild the per-question breakdown for a stored attempt."""
    items: list[QuestionReview] = []
    for question in quiz.questions:
        given = attempt.answers.get(question.id)
        correct = is_answer_correct(question, given)
        items.append(
            QuestionReview(
                question=question,
                given_answer=given,
                is_correct=correct,
                points_awarded=question.points if correct else 0,
            )
        )
    percentage = score_percentage(attempt.score, attempt.total_points)
    return AttemptReview(
        quiz=quiz,
        attempt=attempt,
        questions=tuple(items),
        percentage=percentage,
        performance_message=performance_message(percentage),
    )


def format_time(seconds: int) -> str:
    """Render a duration as ``m:ss``."""
    seconds = max(0, int(seconds))
    minutes, secs = divmod(seconds, 60)
    return f"{minutes}:{secs:02d}"
