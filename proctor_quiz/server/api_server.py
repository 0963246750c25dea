"""FastAPI server exposing read-only quiz, attempt and review data."""

from __future__ import annotations

from datetime import datetime
from threading import Thread

from fastapi import Depends, FastAPI, HTTPException
from fastapi.responses import HTMLResponse
from pydantic import BaseModel
import uvicorn

from proctor_quiz.constants.about import APP_ABOUT_TEXT, APP_LICENSE, APP_NAME, APP_VERSION
from proctor_quiz.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from proctor_quiz.core.markdown_math_renderer import renderer
from proctor_quiz.core.models import AttemptRecord, Quiz
from proctor_quiz.core.quiz_manager import QuizManager
from proctor_quiz.core.scoring import AttemptReview, format_time, score_percentage
from proctor_quiz.core.services.quiz_repository import QuizLoadError
from proctor_quiz.ui.question_renderer import render_review_item


class QuizSummary(BaseModel):
    id: str
    title: str
    description: str
    time_limit_minutes: int
    question_count: int
    total_points: int
    is_active: bool
    start_time: datetime | None = None
    end_time: datetime | None = None


class AttemptSummary(BaseModel):
    id: str
    quiz_id: str
    student_id: str
    score: int
    total_points: int
    percentage: int
    completed_at: datetime
    time_taken: int


class QuestionReviewPayload(BaseModel):
    question_id: str
    text: str
    given_answer: str | None
    correct_answer: str
    is_correct: bool
    points_awarded: int
    points: int
    explanation: str | None = None


class ReviewPayload(BaseModel):
    quiz_id: str
    quiz_title: str
    student_id: str
    score: int
    total_points: int
    percentage: int
    correct_count: int
    time_taken: int
    performance_message: str
    questions: list[QuestionReviewPayload]


def _quiz_summary(quiz: Quiz) -> QuizSummary:
    return QuizSummary(
        id=quiz.id,
        title=quiz.title,
        description=quiz.description,
        time_limit_minutes=quiz.time_limit_minutes,
        question_count=len(quiz.questions),
        total_points=quiz.total_points,
        is_active=quiz.is_active,
        start_time=quiz.start_time,
        end_time=quiz.end_time,
    )


def _attempt_summary(attempt: AttemptRecord) -> AttemptSummary:
    return AttemptSummary(
        id=attempt.id,
        quiz_id=attempt.quiz_id,
        student_id=attempt.student_id,
        score=attempt.score,
        total_points=attempt.total_points,
        percentage=score_percentage(attempt.score, attempt.total_points),
        completed_at=attempt.completed_at,
        time_taken=attempt.time_taken,
    )


def _review_payload(review: AttemptReview) -> ReviewPayload:
    attempt = review.attempt
    return ReviewPayload(
        quiz_id=review.quiz.id,
        quiz_title=review.quiz.title,
        student_id=attempt.student_id,
        score=attempt.score,
        total_points=attempt.total_points,
        percentage=review.percentage,
        correct_count=review.correct_count,
        time_taken=attempt.time_taken,
        performance_message=review.performance_message,
        questions=[
            QuestionReviewPayload(
                question_id=item.question.id,
                text=item.question.text,
                given_answer=item.given_answer,
                correct_answer=item.question.correct_answer,
                is_correct=item.is_correct,
                points_awarded=item.points_awarded,
                points=item.question.points,
                explanation=item.question.explanation,
            )
            for item in review.questions
        ],
    )


def _get_quiz_manager_dependency(quiz_manager: QuizManager):
    def dependency() -> QuizManager:
        return quiz_manager

    return dependency


def create_api_app(quiz_manager: QuizManager) -> FastAPI:
    """Create a FastAPI application wired to the provided quiz manager."""
    app = FastAPI(
        title=f"{APP_NAME} API",
        version=APP_VERSION,
        description=APP_ABOUT_TEXT,
        license_info={"name": APP_LICENSE},
    )
    quiz_manager_dep = _get_quiz_manager_dependency(quiz_manager)

    def load_review(manager: QuizManager, quiz_id: str, student_id: str) -> AttemptReview:
        try:
            review = manager.review(quiz_id, student_id)
        except QuizLoadError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        if review is None:
            raise HTTPException(status_code=404, detail="No submitted attempt for this student.")
        return review

    @app.get("/quizzes", response_model=list[QuizSummary])
    def list_quizzes(
        active_only: bool = False,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> list[QuizSummary]:
        return [_quiz_summary(quiz) for quiz in manager.list_quizzes(active_only=active_only)]

    @app.get("/quizzes/{quiz_id}/attempts", response_model=list[AttemptSummary])
    def list_quiz_attempts(
        quiz_id: str,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> list[AttemptSummary]:
        try:
            manager.get_quiz(quiz_id)
        except QuizLoadError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return [_attempt_summary(attempt) for attempt in manager.attempts_for_quiz(quiz_id)]

    @app.get("/students/{student_id}/attempts", response_model=list[AttemptSummary])
    def list_student_attempts(
        student_id: str,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> list[AttemptSummary]:
        return [_attempt_summary(attempt) for attempt in manager.attempts_for_student(student_id)]

    @app.get("/quizzes/{quiz_id}/review/{student_id}", response_model=ReviewPayload)
    def get_review(
        quiz_id: str,
        student_id: str,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> ReviewPayload:
        return _review_payload(load_review(manager, quiz_id, student_id))

    @app.get("/quizzes/{quiz_id}/review/{student_id}/page", response_class=HTMLResponse)
    def get_review_page(
        quiz_id: str,
        student_id: str,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> str:
        review = load_review(manager, quiz_id, student_id)
        attempt = review.attempt
        header = (
            f"# {review.quiz.title}\n\n"
            f"**Score:** {attempt.score}/{attempt.total_points} ({review.percentage}%)  \n"
            f"**Time taken:** {format_time(attempt.time_taken)}\n\n"
            f"{review.performance_message}"
        )
        items = [render_review_item(item, number) for number, item in enumerate(review.questions, start=1)]
        return renderer.render_full_document("\n\n---\n\n".join([header, *items]), title=review.quiz.title)

    return app


def start_api_server(
    quiz_manager: QuizManager,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
) -> Thread:
    """Start the FastAPI server in a background daemon thread."""
    app = create_api_app(quiz_manager)
    config = uvicorn.Config(app=app, host=host, port=port, log_level="info")
    server = uvicorn.Server(config)

    def run_server() -> None:
        server.run()

    thread = Thread(target=run_server, name="ProctorQuizApiServer", daemon=True)
    thread.start()
    return thread
