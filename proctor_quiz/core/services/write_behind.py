"""Write-behind buffer for best-effort updates of a single stored record."""

from __future__ import annotations

import logging
from threading import Lock

from proctor_quiz.core.services.persistence import DocumentStore, PersistenceError

logger = logging.getLogger(__name__)


class WriteBehindQueue:
    """Buffers field updates for one record and flushes them with last-write-wins.

    Each enqueued field gets a version number. A flush only clears the pending
    entry if nothing newer was enqueued for that field while the write was in
    flight, so a slow earlier write can never hide a later value. Failed
    flushes keep their entries and are retried on the next ``enqueue`` or
    ``flush``.
    """

    def __init__(self, store: DocumentStore, collection: str, record_id: str) -> None:
        self._store = store
        self._collection = collection
        self._record_id = record_id
        self._lock = Lock()
        self._pending: dict[str, tuple[int, object]] = {}
        self._version = 0
        self._flushing = False
        self.failed_flushes = 0

    @property
    def has_pending(self) -> bool:
        with self._lock:
            return bool(self._pending)

    @property
    def pending_fields(self) -> dict[str, object]:
        with self._lock:
            return {name: value for name, (_, value) in self._pending.items()}

    def enqueue(self, fields: dict[str, object]) -> bool:
        with self._lock:
            for name, value in fields.items():
                self._version += 1
                self._pending[name] = (self._version, value)
        return self.flush()

    def flush(self) -> bool:
        """Write pending fields. Returns True when nothing is left pending."""
        with self._lock:
            if self._flushing:
                # The outer flush loop picks up whatever was just enqueued.
                return False
            self._flushing = True
        try:
            while True:
                with self._lock:
                    snapshot = dict(self._pending)
                if not snapshot:
                    return True
                try:
                    self._store.update(
                        self._collection,
                        self._record_id,
                        {name: value for name, (_, value) in snapshot.items()},
                    )
                except PersistenceError as exc:
                    self.failed_flushes += 1
                    logger.warning(
                        "Deferred write to %s/%s failed (%s); will retry on next change.",
                        self._collection,
                        self._record_id,
                        exc,
                    )
                    return False
                with self._lock:
                    for name, (version, _) in snapshot.items():
                        current = self._pending.get(name)
                        if current is not None and current[0] == version:
                            del self._pending[name]
        finally:
            with self._lock:
                self._flushing = False
