"""State machine for one student's timed, proctored quiz attempt."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
from enum import Enum, auto
import logging

from proctor_quiz.constants.quiz_constants import VIOLATION_THRESHOLD
from proctor_quiz.core.models import AttemptRecord, Question, Quiz, SessionRecord, SessionState
from proctor_quiz.core.scoring import ScoreResult, score_answers
from proctor_quiz.core.services.persistence import (
    ATTEMPTS_COLLECTION,
    SESSIONS_COLLECTION,
    DocumentStore,
    DuplicateRecordError,
    IdentityProvider,
    PersistenceError,
)
from proctor_quiz.core.services.proctoring_monitor import (
    EnvironmentSignalSource,
    PresentationHost,
    ProctoringMonitor,
)
from proctor_quiz.core.services.quiz_repository import QuizLoadError, QuizRepository
from proctor_quiz.core.services.timer_engine import CountdownTimer, Ticker
from proctor_quiz.core.services.write_behind import WriteBehindQueue

logger = logging.getLogger(__name__)


class SessionError(Exception):
    """Base class for quiz session failures."""


class SessionClosedError(SessionError):
    """Raised when an operation needs an active session but the session is not active."""


class SubmitReason(Enum):
    STUDENT = "student"
    TIME_EXPIRED = "time-expired"
    VIOLATION_LIMIT = "violation-limit"


class NavigationTarget(Enum):
    """Where the hosting shell should send the student next."""

    REVIEW = auto()
    DASHBOARD = auto()


class QuestionStatus(Enum):
    UNANSWERED = auto()
    ANSWERED = auto()
    FLAGGED = auto()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def attempt_id_for(quiz_id: str, student_id: str) -> str:
    """Deterministic attempt id; the store rejects a second attempt for the same pair."""
    return f"{quiz_id}:{student_id}"


class QuizSession:
    """Owns quiz progress and mediates between timer, proctoring and persistence.

    ``INITIALIZING -> ACTIVE -> SUBMITTING -> COMPLETED``; load failures go to
    ``ERROR`` and ``suspend()`` parks an active session as ``SUSPENDED`` so a
    later instance can resume it. Timer expiry and the proctoring threshold
    force the same submit path as the student's own submit, and that path only
    ever produces one attempt.
    """

    def __init__(
        self,
        quiz_id: str,
        store: DocumentStore,
        identity: IdentityProvider,
        signal_source: EnvironmentSignalSource,
        ticker: Ticker,
        *,
        presentation_host: PresentationHost | None = None,
        clock: Callable[[], datetime] = _utcnow,
        violation_threshold: int = VIOLATION_THRESHOLD,
        on_state_changed: Callable[[SessionState], None] | None = None,
        on_tick: Callable[[int], None] | None = None,
        on_violation: Callable[[str], None] | None = None,
        on_submit_failed: Callable[[Exception], None] | None = None,
        on_navigate: Callable[[NavigationTarget], None] | None = None,
    ) -> None:
        self._quiz_id = quiz_id
        self._store = store
        self._identity = identity
        self._clock = clock
        self._quizzes = QuizRepository(store)

        self._on_state_changed = on_state_changed
        self._on_tick = on_tick
        self._on_violation = on_violation
        self._on_submit_failed = on_submit_failed
        self._on_navigate = on_navigate

        self._state = SessionState.INITIALIZING
        self._quiz: Quiz | None = None
        self._record: SessionRecord | None = None
        self._writes: WriteBehindQueue | None = None
        self._current_index: int = 0
        self._resumed = False
        self._error_message: str | None = None

        self._submit_reason: SubmitReason | None = None
        self._pending_result: tuple[ScoreResult, int, datetime] | None = None
        self._attempt: AttemptRecord | None = None
        self._finalizing = False
        self._last_submit_error: Exception | None = None
        self._torn_down = False

        self._timer = CountdownTimer(
            ticker,
            on_expired=self._handle_time_expired,
            on_tick=self._handle_tick,
        )
        self._monitor = ProctoringMonitor(
            signal_source,
            on_terminate=self._handle_violation_limit,
            on_violation=self._handle_violation,
            presentation_host=presentation_host,
            threshold=violation_threshold,
        )

    # --- Read-only state ---

    @property
    def quiz_id(self) -> str:
        return self._quiz_id

    @property
    def student_id(self) -> str:
        return self._identity.user_id

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def quiz(self) -> Quiz | None:
        return self._quiz

    @property
    def record(self) -> SessionRecord | None:
        return self._record

    @property
    def resumed(self) -> bool:
        return self._resumed

    @property
    def error_message(self) -> str | None:
        return self._error_message

    @property
    def answers(self) -> dict[str, str]:
        return dict(self._record.answers) if self._record else {}

    @property
    def flagged(self) -> list[str]:
        return list(self._record.flagged_questions) if self._record else []

    @property
    def current_index(self) -> int:
        return self._current_index

    @property
    def current_question(self) -> Question | None:
        if self._quiz is None:
            return None
        return self._quiz.questions[self._current_index]

    @property
    def question_count(self) -> int:
        return len(self._quiz.questions) if self._quiz else 0

    @property
    def remaining_seconds(self) -> int:
        return self._timer.remaining_seconds

    @property
    def violation_count(self) -> int:
        return self._monitor.violation_count

    @property
    def violations(self) -> tuple[str, ...]:
        return self._monitor.violations

    def recent_violations(self, limit: int | None = None) -> tuple[str, ...]:
        if limit is None:
            return self._monitor.recent_violations()
        return self._monitor.recent_violations(limit)

    @property
    def attempt(self) -> AttemptRecord | None:
        return self._attempt

    @property
    def submit_reason(self) -> SubmitReason | None:
        return self._submit_reason

    @property
    def last_submit_error(self) -> Exception | None:
        return self._last_submit_error

    @property
    def has_pending_writes(self) -> bool:
        return self._writes is not None and self._writes.has_pending

    @property
    def answered_count(self) -> int:
        if self._record is None:
            return 0
        return sum(1 for value in self._record.answers.values() if value)

    @property
    def progress_percentage(self) -> float:
        if not self.question_count:
            return 0.0
        return (self._current_index + 1) / self.question_count * 100

    def question_status(self, index: int) -> QuestionStatus:
        if self._quiz is None or self._record is None:
            raise SessionClosedError("Session has not been initialized.")
        question = self._quiz.questions[index]
        if question.id in self._record.flagged_questions:
            return QuestionStatus.FLAGGED
        if self._record.answers.get(question.id):
            return QuestionStatus.ANSWERED
        return QuestionStatus.UNANSWERED

    # --- Initializing ---

    def initialize(self) -> SessionState:
        """Load the quiz, create or resume the stored session and start proctoring."""
        if self._state != SessionState.INITIALIZING:
            raise SessionError("Session has already been initialized.")
        now = self._clock()
        try:
            quiz = self._quizzes.fetch_quiz(self._quiz_id)
            self._quizzes.check_window(quiz, now)
            self._ensure_not_attempted()
            record = self._create_or_resume(quiz, now)
        except (QuizLoadError, PersistenceError) as exc:
            self._fail(str(exc))
            return self._state

        self._quiz = quiz
        self._record = record
        self._writes = WriteBehindQueue(self._store, SESSIONS_COLLECTION, record.id)
        self._set_state(SessionState.ACTIVE)
        self._monitor.attach()
        if self._state == SessionState.ACTIVE:
            self._timer.start(quiz.time_limit_seconds)
        return self._state

    def _ensure_not_attempted(self) -> None:
        existing = self._store.query(
            ATTEMPTS_COLLECTION, quiz_id=self._quiz_id, student_id=self.student_id
        )
        if existing:
            raise QuizLoadError("Quiz has already been submitted")

    def _create_or_resume(self, quiz: Quiz, now: datetime) -> SessionRecord:
        candidates = self._store.query(
            SESSIONS_COLLECTION,
            quiz_id=quiz.id,
            student_id=self.student_id,
            is_completed=False,
        )
        if candidates:
            latest = max(candidates, key=lambda doc: doc.get("last_activity") or "")
            try:
                record = SessionRecord.from_document(latest)
            except (KeyError, TypeError, ValueError) as exc:
                raise PersistenceError(f"Stored session {latest.get('id')} is malformed") from exc
            # Drop answers and flags for questions the quiz no longer has.
            record.answers = {
                key: value for key, value in record.answers.items() if quiz.get_question(key)
            }
            record.flagged_questions = [
                key for key in record.flagged_questions if quiz.get_question(key)
            ]
            self._resumed = True
            logger.info(
                "Resuming session %s for quiz %s (%d answers, %d flags).",
                record.id,
                quiz.id,
                len(record.answers),
                len(record.flagged_questions),
            )
            return record

        record = SessionRecord(
            id="",
            quiz_id=quiz.id,
            student_id=self.student_id,
            started_at=now,
            last_activity=now,
        )
        document = record.to_document()
        document.pop("id")
        record.id = self._store.create(SESSIONS_COLLECTION, document)
        logger.info("Created session %s for quiz %s.", record.id, quiz.id)
        return record

    def _fail(self, message: str) -> None:
        logger.error("Quiz %s could not be opened: %s", self._quiz_id, message)
        self._error_message = message
        self._set_state(SessionState.ERROR)
        self._teardown()
        self._navigate(NavigationTarget.DASHBOARD)

    # --- Active ---

    def set_answer(self, question_id: str, value: str) -> None:
        record = self._require_active()
        self._require_question(question_id)
        record.answers[question_id] = value
        record.last_activity = self._clock()
        self._writes.enqueue(
            {
                "answers": dict(record.answers),
                "last_activity": record.last_activity.isoformat(),
            }
        )

    def toggle_flag(self, question_id: str) -> bool:
        """Flip the flag on a question. Returns True when it is now flagged."""
        record = self._require_active()
        self._require_question(question_id)
        if question_id in record.flagged_questions:
            record.flagged_questions.remove(question_id)
            flagged = False
        else:
            record.flagged_questions.append(question_id)
            flagged = True
        record.last_activity = self._clock()
        self._writes.enqueue(
            {
                "flagged_questions": list(record.flagged_questions),
                "last_activity": record.last_activity.isoformat(),
            }
        )
        return flagged

    def navigate(self, index: int) -> int:
        self._require_active()
        self._current_index = max(0, min(index, self.question_count - 1))
        return self._current_index

    def next_question(self) -> int:
        return self.navigate(self._current_index + 1)

    def previous_question(self) -> int:
        return self.navigate(self._current_index - 1)

    def suspend(self) -> bool:
        """Leave without submitting. Returns False if some writes could not be flushed."""
        self._require_active()
        flushed = self._writes.flush()
        if not flushed:
            logger.warning("Suspending session %s with unsaved changes.", self._record.id)
        self._set_state(SessionState.SUSPENDED)
        self._teardown()
        return flushed

    def _require_active(self) -> SessionRecord:
        if self._state != SessionState.ACTIVE or self._record is None:
            raise SessionClosedError(f"Session is {self._state.name.lower()}, not active.")
        return self._record

    def _require_question(self, question_id: str) -> None:
        if self._quiz.get_question(question_id) is None:
            raise ValueError(f"Unknown question id '{question_id}'.")

    # --- Submitting ---

    def submit(self) -> AttemptRecord | None:
        """Student-initiated submit. Repeated calls return the same attempt."""
        return self._request_submit(SubmitReason.STUDENT)

    def retry_submit(self) -> AttemptRecord | None:
        if self._state == SessionState.COMPLETED:
            return self._attempt
        if self._state != SessionState.SUBMITTING:
            raise SessionClosedError("There is no pending submission to retry.")
        return self._finalize()

    def _request_submit(self, reason: SubmitReason) -> AttemptRecord | None:
        if self._state in (SessionState.SUBMITTING, SessionState.COMPLETED):
            logger.info("Ignoring %s submit; session is already %s.", reason.value, self._state.name.lower())
            return self._attempt
        record = self._require_active()
        self._submit_reason = reason
        self._set_state(SessionState.SUBMITTING)
        result = score_answers(self._quiz.questions, record.answers)
        time_taken = self._timer.elapsed_seconds
        self._pending_result = (result, time_taken, self._clock())
        logger.info(
            "Submitting session %s (%s): %d/%d in %ss.",
            record.id,
            reason.value,
            result.score,
            result.total_points,
            time_taken,
        )
        return self._finalize()

    def _finalize(self) -> AttemptRecord | None:
        if self._finalizing or self._state != SessionState.SUBMITTING:
            return self._attempt
        self._finalizing = True
        failure: PersistenceError | None = None
        attempt: AttemptRecord | None = None
        try:
            attempt = self._write_results()
        except PersistenceError as exc:
            failure = exc
            logger.exception("Could not save results for session %s.", self._record.id)
        finally:
            self._finalizing = False

        if failure is not None:
            self._last_submit_error = failure
            if self._on_submit_failed is not None:
                self._on_submit_failed(failure)
            return None

        record = self._record
        record.is_completed = True
        record.score = attempt.score
        record.total_points = attempt.total_points
        record.time_taken = attempt.time_taken
        self._attempt = attempt
        self._last_submit_error = None
        self._set_state(SessionState.COMPLETED)
        self._teardown()
        self._navigate(NavigationTarget.REVIEW)
        return attempt

    def _write_results(self) -> AttemptRecord:
        # The attempt is written before the session is sealed, so a stored
        # completed session always has a matching attempt.
        attempt = self._store_attempt()
        _, _, completed_at = self._pending_result
        record = self._record
        self._store.update(
            SESSIONS_COLLECTION,
            record.id,
            {
                "answers": dict(record.answers),
                "flagged_questions": list(record.flagged_questions),
                "is_completed": True,
                "score": attempt.score,
                "total_points": attempt.total_points,
                "time_taken": attempt.time_taken,
                "last_activity": completed_at.isoformat(),
            },
        )
        return attempt

    def _store_attempt(self) -> AttemptRecord:
        result, time_taken, completed_at = self._pending_result
        record = self._record
        attempt = AttemptRecord(
            id=attempt_id_for(record.quiz_id, record.student_id),
            quiz_id=record.quiz_id,
            student_id=record.student_id,
            session_id=record.id,
            answers=dict(record.answers),
            score=result.score,
            total_points=result.total_points,
            completed_at=completed_at,
            time_taken=time_taken,
        )
        try:
            self._store.create(ATTEMPTS_COLLECTION, attempt.to_document(), record_id=attempt.id)
        except DuplicateRecordError:
            existing = self._store.get(ATTEMPTS_COLLECTION, attempt.id)
            if existing is None:
                raise
            logger.warning("Attempt %s already exists; keeping the stored record.", attempt.id)
            return AttemptRecord.from_document(existing)
        return attempt

    # --- Timer and proctoring callbacks ---

    def _handle_tick(self, remaining_seconds: int) -> None:
        if self._on_tick is not None:
            self._on_tick(remaining_seconds)

    def _handle_time_expired(self) -> None:
        if self._state == SessionState.ACTIVE:
            self._request_submit(SubmitReason.TIME_EXPIRED)

    def _handle_violation(self, message: str) -> None:
        if self._on_violation is not None:
            self._on_violation(message)

    def _handle_violation_limit(self) -> None:
        if self._state == SessionState.ACTIVE:
            self._request_submit(SubmitReason.VIOLATION_LIMIT)

    # --- Helpers ---

    def _teardown(self) -> None:
        if self._torn_down:
            return
        self._torn_down = True
        self._timer.cancel()
        self._monitor.detach()

    def _set_state(self, state: SessionState) -> None:
        if state == self._state:
            return
        logger.debug("Session for quiz %s: %s -> %s", self._quiz_id, self._state.name, state.name)
        self._state = state
        if self._on_state_changed is not None:
            self._on_state_changed(state)

    def _navigate(self, target: NavigationTarget) -> None:
        if self._on_navigate is not None:
            self._on_navigate(target)
