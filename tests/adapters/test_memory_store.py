"""Tests for InMemoryFeedbackStore."""

import pytest

from feedbackbridge.adapters.memory import InMemoryFeedbackStore
from feedbackbridge.core.domain import Comment, FeedbackItem, Vote
from feedbackbridge.core.exceptions import ConflictError, PersistenceError


@pytest.fixture
def item(store):
    return store.insert_item(FeedbackItem(project_id="p1", title="Dark mode", id="f1"))


class TestTransaction:
    """Tests for commit and rollback."""

    def test_commit_applies_writes(self, store, item):
        with store.transaction() as tx:
            locked = tx.lock_items(["f1"])["f1"]
            locked.title = "Dark theme"
            tx.save_item(locked)
            tx.set_votes("f1", [Vote("f1", "u1")])

        saved = store.get_item("f1")
        assert saved.title == "Dark theme"
        assert saved.version == 1
        assert [v.voter_id for v in store.votes_for("f1")] == ["u1"]

    def test_exception_discards_writes(self, store, item):
        with pytest.raises(RuntimeError):
            with store.transaction() as tx:
                locked = tx.lock_items(["f1"])["f1"]
                locked.title = "Changed"
                tx.save_item(locked)
                raise RuntimeError("boom")

        assert store.get_item("f1").title == "Dark mode"
        assert store.get_item("f1").version == 0

    def test_reads_see_own_writes(self, store, item):
        with store.transaction() as tx:
            tx.set_comments("f1", [Comment("f1", "alice", "hi")])
            assert len(tx.comments_for("f1")) == 1
            assert store.comments_for("f1") == []

    def test_stale_version_conflicts(self, store, item):
        stale = store.get_item("f1")
        with store.transaction() as tx:
            fresh = tx.lock_items(["f1"])["f1"]
            tx.save_item(fresh)

        with pytest.raises(ConflictError):
            with store.transaction() as tx:
                tx.save_item(stale)

    def test_duplicate_voters_rejected(self, store, item):
        with pytest.raises(PersistenceError):
            with store.transaction() as tx:
                tx.set_votes("f1", [Vote("f1", "u1"), Vote("f1", "u1")])

    def test_failed_apply_becomes_persistence_error(self, store, item, monkeypatch):
        def fail(tx):
            raise OSError("disk full")

        monkeypatch.setattr(store, "_apply_changes", fail)

        with pytest.raises(PersistenceError) as exc_info:
            with store.transaction() as tx:
                locked = tx.lock_items(["f1"])["f1"]
                locked.title = "Changed"
                tx.save_item(locked)

        assert isinstance(exc_info.value.cause, OSError)
        assert store.get_item("f1").title == "Dark mode"

    def test_locks_released_after_rollback(self, item):
        store = InMemoryFeedbackStore(lock_timeout=0.5)
        store.insert_item(item)

        with pytest.raises(RuntimeError):
            with store.transaction() as tx:
                tx.lock_items(["f1"])
                raise RuntimeError("boom")

        with store.transaction() as tx:
            assert "f1" in tx.lock_items(["f1"])

    def test_lock_timeout_conflicts(self, item):
        store = InMemoryFeedbackStore(lock_timeout=0.1)
        store.insert_item(item)

        with store.transaction() as holder:
            holder.lock_items(["f1"])
            with pytest.raises(ConflictError):
                with store.transaction() as waiter:
                    waiter.lock_items(["f1"])


class TestSeeding:
    """Tests for the seeding helpers."""

    def test_insert_votes_refreshes_count(self, store, item):
        store.insert_votes([Vote("f1", "u1"), Vote("f1", "u2"), Vote("f1", "u1")])

        assert store.get_item("f1").vote_count == 2
        assert len(store.votes_for("f1")) == 2

    def test_get_items_skips_missing(self, store, item):
        assert [i.id for i in store.get_items(["f1", "missing"])] == ["f1"]

    def test_returned_items_are_copies(self, store, item):
        copy = store.get_item("f1")
        copy.merged_feedback_ids.add("x")
        assert store.get_item("f1").merged_feedback_ids == set()
