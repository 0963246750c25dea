"""Domain models for the proctored quiz application."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum, auto

TRUE_FALSE_CHOICES: tuple[str, str] = ("True", "False")


class QuestionKind(str, Enum):
    """Supported question formats. Matching is declared but never scorable."""

    MULTIPLE_CHOICE = "multiple-choice"
    TRUE_FALSE = "true-false"
    SHORT_ANSWER = "short-answer"
    MATCHING = "matching"


class SessionState(Enum):
    """Lifecycle of a quiz-taking session."""

    INITIALIZING = auto()
    ACTIVE = auto()
    SUBMITTING = auto()
    COMPLETED = auto()
    ERROR = auto()
    SUSPENDED = auto()


def as_utc(value: datetime) -> datetime:
    """Treat naive timestamps as UTC so they compare with aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _to_iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _from_iso(value: str | None) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


@dataclass(slots=True, frozen=True)
class Question:
    """A single quiz question with one correct answer string."""

    id: str
    text: str
    kind: QuestionKind
    correct_answer: str
    points: int = 1
    options: tuple[str, ...] = ()
    explanation: str | None = None

    def answer_choices(self) -> tuple[str, ...]:
        if self.kind == QuestionKind.MULTIPLE_CHOICE:
            return self.options
        if self.kind == QuestionKind.TRUE_FALSE:
            return TRUE_FALSE_CHOICES
        return ()

    def to_document(self) -> dict[str, object]:
        return {
            "id": self.id,
            "text": self.text,
            "type": self.kind.value,
            "options": list(self.options),
            "correct_answer": self.correct_answer,
            "points": self.points,
            "explanation": self.explanation,
        }

    @classmethod
    def from_document(cls, data: dict) -> "Question":
        return cls(
            id=str(data["id"]),
            text=str(data["text"]),
            kind=QuestionKind(data["type"]),
            correct_answer=str(data["correct_answer"]),
            points=data.get("points", 1),
            options=tuple(str(option) for option in data.get("options") or ()),
            explanation=data.get("explanation"),
        )


@dataclass(slots=True, frozen=True)
class Quiz:
    """Quiz definition. Read-only once a session starts."""

    id: str
    title: str
    time_limit_minutes: int
    questions: tuple[Question, ...]
    description: str = ""
    is_active: bool = True
    start_time: datetime | None = None
    end_time: datetime | None = None

    @property
    def time_limit_seconds(self) -> int:
        return self.time_limit_minutes * 60

    @property
    def total_points(self) -> int:
        return sum(question.points for question in self.questions)

    def get_question(self, question_id: str) -> Question | None:
        return next((q for q in self.questions if q.id == question_id), None)

    def to_document(self) -> dict[str, object]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "time_limit": self.time_limit_minutes,
            "questions": [question.to_document() for question in self.questions],
            "is_active": self.is_active,
            "start_time": _to_iso(self.start_time),
            "end_time": _to_iso(self.end_time),
        }

    @classmethod
    def from_document(cls, data: dict) -> "Quiz":
        return cls(
            id=str(data["id"]),
            title=str(data["title"]),
            description=data.get("description") or "",
            time_limit_minutes=data["time_limit"],
            questions=tuple(Question.from_document(item) for item in data["questions"]),
            is_active=bool(data.get("is_active", True)),
            start_time=_from_iso(data.get("start_time")),
            end_time=_from_iso(data.get("end_time")),
        )


@dataclass(slots=True)
class SessionRecord:
    """A student's live attempt at a quiz, mirrored to the ``quiz_sessions`` collection."""

    id: str
    quiz_id: str
    student_id: str
    started_at: datetime
    last_activity: datetime
    answers: dict[str, str] = field(default_factory=dict)
    flagged_questions: list[str] = field(default_factory=list)
    is_completed: bool = False
    score: int | None = None
    total_points: int | None = None
    time_taken: int | None = None

    def to_document(self) -> dict[str, object]:
        return {
            "id": self.id,
            "quiz_id": self.quiz_id,
            "student_id": self.student_id,
            "answers": dict(self.answers),
            "flagged_questions": list(self.flagged_questions),
            "started_at": _to_iso(self.started_at),
            "last_activity": _to_iso(self.last_activity),
            "is_completed": self.is_completed,
            "score": self.score,
            "total_points": self.total_points,
            "time_taken": self.time_taken,
        }

    @classmethod
    def from_document(cls, data: dict) -> "SessionRecord":
        # Flags are an ordered set; drop duplicates written by older clients.
        flags = list(dict.fromkeys(str(item) for item in data.get("flagged_questions") or ()))
        return cls(
            id=str(data["id"]),
            quiz_id=str(data["quiz_id"]),
            student_id=str(data["student_id"]),
            answers={str(key): str(value) for key, value in (data.get("answers") or {}).items()},
            flagged_questions=flags,
            started_at=_from_iso(data["started_at"]),
            last_activity=_from_iso(data.get("last_activity") or data["started_at"]),
            is_completed=bool(data.get("is_completed", False)),
            score=data.get("score"),
            total_points=data.get("total_points"),
            time_taken=data.get("time_taken"),
        )


@dataclass(slots=True, frozen=True)
class AttemptRecord:
    """Finalized, append-only result of a completed session."""

    id: str
    quiz_id: str
    student_id: str
    session_id: str
    answers: dict[str, str]
    score: int
    total_points: int
    completed_at: datetime
    time_taken: int

    def to_document(self) -> dict[str, object]:
        return {
            "id": self.id,
            "quiz_id": self.quiz_id,
            "student_id": self.student_id,
            "session_id": self.session_id,
            "answers": dict(self.answers),
            "score": self.score,
            "total_points": self.total_points,
            "completed_at": _to_iso(self.completed_at),
            "time_taken": self.time_taken,
        }

    @classmethod
    def from_document(cls, data: dict) -> "AttemptRecord":
        return cls(
            id=str(data["id"]),
            quiz_id=str(data["quiz_id"]),
            student_id=str(data["student_id"]),
            session_id=str(data.get("session_id") or ""),
            answers={str(key): str(value) for key, value in (data.get("answers") or {}).items()},
            score=int(data["score"]),
            total_points=int(data["total_points"]),
            completed_at=_from_iso(data["completed_at"]),
            time_taken=int(data["time_taken"]),
        )
