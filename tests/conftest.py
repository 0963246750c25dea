"""
Pytest configuration: in-memory collaborators for the quiz core.
"""
from datetime import datetime, timezone

import pytest

from proctor_quiz.core.models import Question, QuestionKind, Quiz
from proctor_quiz.core.quiz_manager import QuizManager
from proctor_quiz.core.services.persistence import (
    InMemoryDocumentStore,
    PersistenceError,
    StaticIdentity,
)
from proctor_quiz.core.services.quiz_repository import QuizRepository
from proctor_quiz.core.services.timer_engine import ManualTicker

FIXED_NOW = datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc)


class FakeSignalSource:
    """Signal source whose events are emitted by the test."""

    def __init__(self):
        self.handlers = {}

    def subscribe(self, kind, handler):
        self.handlers.setdefault(kind, []).append(handler)

    def unsubscribe(self, kind, handler):
        if handler in self.handlers.get(kind, []):
            self.handlers[kind].remove(handler)

    def subscriber_count(self):
        return sum(len(handlers) for handlers in self.handlers.values())

    def emit(self, kind, detail=None):
        from proctor_quiz.core.services.proctoring_monitor import SignalEvent

        event = SignalEvent(kind=kind, detail=detail)
        for handler in list(self.handlers.get(kind, [])):
            handler(event)
        return event


class FakePresentationHost:
    def __init__(self, grant=True):
        self.grant = grant
        self.fullscreen = False
        self.requests = 0
        self.exits = 0

    def request_fullscreen(self):
        self.requests += 1
        self.fullscreen = self.grant
        return self.grant

    def exit_fullscreen(self):
        self.exits += 1
        self.fullscreen = False


class FailingStore(InMemoryDocumentStore):
    """In-memory store whose writes can be switched off per collection."""

    def __init__(self):
        super().__init__()
        self.fail_updates = set()
        self.fail_creates = set()

    def create(self, collection, data, record_id=None):
        if collection in self.fail_creates:
            raise PersistenceError(f"create on {collection} unavailable")
        return super().create(collection, data, record_id=record_id)

    def update(self, collection, record_id, fields):
        if collection in self.fail_updates:
            raise PersistenceError(f"update on {collection} unavailable")
        super().update(collection, record_id, fields)


def build_sample_quiz(quiz_id="geo-1", time_limit_minutes=1, **overrides):
    questions = (
        Question(
            id="q1",
            text="What is the capital of France?",
            kind=QuestionKind.MULTIPLE_CHOICE,
            correct_answer="Paris",
            points=2,
            options=("Berlin", "Paris", "Rome"),
        ),
        Question(
            id="q2",
            text="The Earth orbits the Sun.",
            kind=QuestionKind.TRUE_FALSE,
            correct_answer="True",
            points=1,
        ),
    )
    values = dict(
        id=quiz_id,
        title="Geography",
        time_limit_minutes=time_limit_minutes,
        questions=questions,
    )
    values.update(overrides)
    return Quiz(**values)


@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
def failing_store():
    return FailingStore()


@pytest.fixture
def identity():
    return StaticIdentity(user_id="student-1", email="student@example.com")


@pytest.fixture
def signal_source():
    return FakeSignalSource()


@pytest.fixture
def presentation_host():
    return FakePresentationHost()


@pytest.fixture
def ticker():
    return ManualTicker()


@pytest.fixture
def sample_quiz():
    return build_sample_quiz()


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def stored_quiz(store, sample_quiz):
    QuizRepository(store).save_quiz(sample_quiz)
    return sample_quiz


@pytest.fixture
def manager(store, identity):
    return QuizManager(store, identity)


@pytest.fixture
def quiz_factory():
    return build_sample_quiz


@pytest.fixture
def fixed_now():
    return FIXED_NOW
