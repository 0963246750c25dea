"""Business logic shared between the desktop window and the review API."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from threading import Lock

from proctor_quiz.core.models import AttemptRecord, Quiz, SessionState
from proctor_quiz.core.quiz_exporter import save_quiz_to_file
from proctor_quiz.core.quiz_importer import load_quiz_from_file
from proctor_quiz.core.scoring import AttemptReview, review_attempt
from proctor_quiz.core.services.persistence import (
    ATTEMPTS_COLLECTION,
    DocumentStore,
    IdentityProvider,
)
from proctor_quiz.core.services.proctoring_monitor import EnvironmentSignalSource, PresentationHost
from proctor_quiz.core.services.quiz_repository import QuizRepository
from proctor_quiz.core.services.quiz_session import QuizSession, SessionError, attempt_id_for
from proctor_quiz.core.services.timer_engine import Ticker

_LIVE_STATES = (SessionState.INITIALIZING, SessionState.ACTIVE, SessionState.SUBMITTING)


class SessionConflictError(SessionError):
    """Raised when a second live session is requested for the same quiz and student."""


class QuizManager:
    """Facade for quiz services: repository, sessions, attempts and reviews."""

    def __init__(self, store: DocumentStore, identity: IdentityProvider) -> None:
        self._lock = Lock()
        self._store = store
        self._identity = identity
        self._repository = QuizRepository(store)
        self._sessions: dict[tuple[str, str], QuizSession] = {}

    @property
    def identity(self) -> IdentityProvider:
        return self._identity

    # --- Quiz Repository Delegation ---

    def import_quiz(self, file_path: Path) -> Quiz:
        imported = load_quiz_from_file(file_path)
        with self._lock:
            self._repository.save_quiz(imported.quiz)
        return imported.quiz

    def export_quiz(self, quiz_id: str, file_path: Path) -> None:
        save_quiz_to_file(file_path, self.get_quiz(quiz_id))

    def save_quiz(self, quiz: Quiz) -> str:
        with self._lock:
            return self._repository.save_quiz(quiz)

    def get_quiz(self, quiz_id: str) -> Quiz:
        with self._lock:
            return self._repository.fetch_quiz(quiz_id)

    def list_quizzes(self, active_only: bool = False) -> list[Quiz]:
        with self._lock:
            return self._repository.list_quizzes(active_only=active_only)

    # --- Session Delegation ---

    def open_session(
        self,
        quiz_id: str,
        signal_source: EnvironmentSignalSource,
        ticker: Ticker,
        presentation_host: PresentationHost | None = None,
        **callbacks: Callable,
    ) -> QuizSession:
        """Build a session for the current student, refusing a second live one."""
        key = (quiz_id, self._identity.user_id)
        with self._lock:
            existing = self._sessions.get(key)
            if existing is not None and existing.state in _LIVE_STATES:
                raise SessionConflictError(f"Quiz {quiz_id} is already open for {key[1]}.")
            session = QuizSession(
                quiz_id,
                self._store,
                self._identity,
                signal_source,
                ticker,
                presentation_host=presentation_host,
                **callbacks,
            )
            self._sessions[key] = session
            return session

    def get_open_session(self, quiz_id: str) -> QuizSession | None:
        with self._lock:
            return self._sessions.get((quiz_id, self._identity.user_id))

    # --- Attempts ---

    def get_attempt(self, quiz_id: str, student_id: str) -> AttemptRecord | None:
        document = self._store.get(ATTEMPTS_COLLECTION, attempt_id_for(quiz_id, student_id))
        if document is None:
            matches = self._store.query(ATTEMPTS_COLLECTION, quiz_id=quiz_id, student_id=student_id)
            document = matches[0] if matches else None
        return AttemptRecord.from_document(document) if document is not None else None

    def attempts_for_quiz(self, quiz_id: str) -> list[AttemptRecord]:
        documents = self._store.query(ATTEMPTS_COLLECTION, quiz_id=quiz_id)
        return self._sorted_attempts(documents)

    def attempts_for_student(self, student_id: str) -> list[AttemptRecord]:
        documents = self._store.query(ATTEMPTS_COLLECTION, student_id=student_id)
        return self._sorted_attempts(documents)

    def review(self, quiz_id: str, student_id: str) -> AttemptReview | None:
        """Per-question breakdown of a stored attempt, or None when there is none."""
        attempt = self.get_attempt(quiz_id, student_id)
        if attempt is None:
            return None
        return review_attempt(self.get_quiz(quiz_id), attempt)

    @staticmethod
    def _sorted_attempts(documents: list[dict]) -> list[AttemptRecord]:
        attempts = [AttemptRecord.from_document(document) for document in documents]
        return sorted(attempts, key=lambda attempt: attempt.completed_at, reverse=True)

