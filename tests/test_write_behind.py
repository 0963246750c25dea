"""
Unit Tests for the write-behind queue
"""
import pytest

from proctor_quiz.core.services.persistence import SESSIONS_COLLECTION
from proctor_quiz.core.services.write_behind import WriteBehindQueue


class TestWriteBehindQueue:
    @pytest.fixture
    def record_id(self, failing_store):
        return failing_store.create(SESSIONS_COLLECTION, {"answers": {}})

    @pytest.fixture
    def queue(self, failing_store, record_id):
        return WriteBehindQueue(failing_store, SESSIONS_COLLECTION, record_id)

    def test_enqueue_writes_through(self, queue, failing_store, record_id):
        assert queue.enqueue({"answers": {"q1": "A"}}) is True
        assert failing_store.get(SESSIONS_COLLECTION, record_id)["answers"] == {"q1": "A"}
        assert not queue.has_pending

    def test_failed_write_is_kept_and_retried(self, queue, failing_store, record_id):
        failing_store.fail_updates.add(SESSIONS_COLLECTION)
        assert queue.enqueue({"answers": {"q1": "A"}}) is False
        assert queue.pending_fields == {"answers": {"q1": "A"}}
        assert queue.failed_flushes == 1

        failing_store.fail_updates.clear()
        assert queue.enqueue({"last_activity": "t2"}) is True
        stored = failing_store.get(SESSIONS_COLLECTION, record_id)
        assert stored["answers"] == {"q1": "A"}
        assert stored["last_activity"] == "t2"

    def test_latest_value_wins(self, queue, failing_store, record_id):
        failing_store.fail_updates.add(SESSIONS_COLLECTION)
        queue.enqueue({"answers": {"q1": "A"}})
        queue.enqueue({"answers": {"q1": "B"}})
        failing_store.fail_updates.clear()

        assert queue.flush() is True
        assert failing_store.get(SESSIONS_COLLECTION, record_id)["answers"] == {"q1": "B"}

    def test_newer_value_enqueued_during_flush_survives(self, failing_store, record_id):
        writes = []

        class ReentrantStore:
            def update(self, collection, rid, fields):
                writes.append(dict(fields))
                if len(writes) == 1:
                    queue.enqueue({"answers": {"q1": "newer"}})
                failing_store.update(collection, rid, fields)

        queue = WriteBehindQueue(ReentrantStore(), SESSIONS_COLLECTION, record_id)
        assert queue.enqueue({"answers": {"q1": "older"}}) is True

        assert writes == [{"answers": {"q1": "older"}}, {"answers": {"q1": "newer"}}]
        assert failing_store.get(SESSIONS_COLLECTION, record_id)["answers"] == {"q1": "newer"}
        assert not queue.has_pending
