"""Document-store and identity collaborators consumed by the quiz core.

The hosting shell owns the store and passes it into the services that need it.
Two implementations ship with the application:

* ``InMemoryDocumentStore`` keeps everything in process and is used by tests
  and throwaway runs.
* ``JsonFileDocumentStore`` snapshots every mutation to a JSON file so an
  interrupted session can be resumed after the application restarts.

Records are plain dictionaries. Every stored record carries its own ``id``
field so query results can be decoded without extra bookkeeping.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
import json
import logging
from pathlib import Path
from threading import Lock
from typing import Protocol
from uuid import uuid4

logger = logging.getLogger(__name__)

QUIZZES_COLLECTION = "quizzes"
SESSIONS_COLLECTION = "quiz_sessions"
ATTEMPTS_COLLECTION = "quiz_attempts"


class PersistenceError(Exception):
    """Raised when the backing store cannot complete an operation."""


class RecordNotFoundError(PersistenceError):
    """Raised when updating a record that does not exist."""


class DuplicateRecordError(PersistenceError):
    """Raised when creating a record under an id that is already taken."""


class DocumentStore(Protocol):
    """Minimal document-store surface used by the quiz core."""

    def get(self, collection: str, record_id: str) -> dict | None: ...

    def create(self, collection: str, data: dict, record_id: str | None = None) -> str: ...

    def update(self, collection: str, record_id: str, fields: dict) -> None: ...

    def query(self, collection: str, **filters: object) -> list[dict]: ...


class IdentityProvider(Protocol):
    """Exposes the currently authenticated user."""

    @property
    def user_id(self) -> str: ...

    @property
    def email(self) -> str: ...


@dataclass(slots=True, frozen=True)
class StaticIdentity:
    """Identity fixed at construction time (desktop launch, tests)."""

    user_id: str
    email: str = ""


class InMemoryDocumentStore:
    """Thread-safe in-process document store with merge-on-update semantics."""

    def __init__(self, initial: dict[str, dict[str, dict]] | None = None) -> None:
        self._lock = Lock()
        self._collections: dict[str, dict[str, dict]] = copy.deepcopy(initial) if initial else {}

    def get(self, collection: str, record_id: str) -> dict | None:
        with self._lock:
            record = self._collections.get(collection, {}).get(record_id)
            return copy.deepcopy(record) if record is not None else None

    def create(self, collection: str, data: dict, record_id: str | None = None) -> str:
        with self._lock:
            records = self._collections.setdefault(collection, {})
            new_id = record_id or uuid4().hex
            if new_id in records:
                raise DuplicateRecordError(f"{collection}/{new_id} already exists")
            stored = copy.deepcopy(data)
            stored["id"] = new_id
            records[new_id] = stored
            try:
                self._after_mutation()
            except PersistenceError:
                del records[new_id]
                raise
            return new_id

    def update(self, collection: str, record_id: str, fields: dict) -> None:
        with self._lock:
            record = self._collections.get(collection, {}).get(record_id)
            if record is None:
                raise RecordNotFoundError(f"{collection}/{record_id} does not exist")
            updates = copy.deepcopy(fields)
            updates.pop("id", None)
            previous = copy.deepcopy(record)
            record.update(updates)
            try:
                self._after_mutation()
            except PersistenceError:
                record.clear()
                record.update(previous)
                raise

    def query(self, collection: str, **filters: object) -> list[dict]:
        with self._lock:
            records = self._collections.get(collection, {}).values()
            return [
                copy.deepcopy(record)
                for record in records
                if all(record.get(key) == value for key, value in filters.items())
            ]

    def _after_mutation(self) -> None:
        """Hook invoked with the lock held after every successful write."""


class JsonFileDocumentStore(InMemoryDocumentStore):
    """Document store persisted to a single JSON file."""

    def __init__(self, file_path: Path) -> None:
        self._file_path = file_path.resolve()
        initial: dict[str, dict[str, dict]] = {}
        if self._file_path.exists():
            try:
                initial = json.loads(self._file_path.read_text(encoding="utf-8"))
            except (OSError, ValueError) as exc:
                raise PersistenceError(f"Could not read store file {self._file_path}") from exc
        super().__init__(initial)

    @property
    def file_path(self) -> Path:
        return self._file_path

    def _after_mutation(self) -> None:
        try:
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self._file_path.with_suffix(self._file_path.suffix + ".tmp")
            tmp_path.write_text(json.dumps(self._collections, indent=2), encoding="utf-8")
            tmp_path.replace(self._file_path)
        except OSError as exc:
            logger.error("Failed to write store snapshot to %s", self._file_path)
            raise PersistenceError(f"Could not write store file {self._file_path}") from exc
