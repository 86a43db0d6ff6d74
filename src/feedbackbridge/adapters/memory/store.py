"""
In-Memory Feedback Store - Implements FeedbackStorePort with real
transaction and row-lock semantics.

Used by the test-suite and by embedders that do not need durable storage.
Writes are staged per transaction and swapped in atomically on commit;
row locks are per-item threading locks acquired in sorted id order.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Iterable, Iterator, Optional

from ...core.domain.entities import Comment, FeedbackItem, Vote
from ...core.domain.votes import VoteLedger
from ...core.exceptions import ConflictError, FeedbackBridgeError, PersistenceError
from ...core.ports.persistence import FeedbackStorePort, StoreTransaction


class InMemoryTransaction(StoreTransaction):
    """Staged writes plus the row locks held by one transaction."""

    def __init__(self, store: "InMemoryFeedbackStore"):
        self._store = store
        self.items: dict[str, FeedbackItem] = {}
        self.votes: dict[str, list[Vote]] = {}
        self.comments: dict[str, list[Comment]] = {}
        # Version each written item had when this transaction first saw it
        self.base_versions: dict[str, Optional[int]] = {}
        self._held: list[threading.Lock] = []
        self._held_ids: set[str] = set()

    # -------------------------------------------------------------------------
    # Locking
    # -------------------------------------------------------------------------

    def lock_items(self, feedback_ids: Iterable[str]) -> dict[str, FeedbackItem]:
        wanted = sorted(set(feedback_ids))
        for feedback_id in wanted:
            if feedback_id in self._held_ids:
                continue
            lock = self._store._row_lock(feedback_id)
            if not lock.acquire(timeout=self._store.lock_timeout):
                raise ConflictError(
                    f"Timed out waiting for lock on {feedback_id}",
                    feedback_ids=[feedback_id],
                )
            self._held.append(lock)
            self._held_ids.add(feedback_id)

        locked = {}
        for feedback_id in wanted:
            item = self.get_item(feedback_id)
            if item is not None:
                locked[feedback_id] = item
        return locked

    def release_locks(self) -> None:
        while self._held:
            self._held.pop().release()
        self._held_ids.clear()

    # -------------------------------------------------------------------------
    # Items
    # -------------------------------------------------------------------------

    def get_item(self, feedback_id: str) -> Optional[FeedbackItem]:
        if feedback_id in self.items:
            return self.items[feedback_id].copy()
        return self._store.get_item(feedback_id)

    def save_item(self, item: FeedbackItem) -> None:
        current = self.get_item(item.id)
        current_version = current.version if current is not None else None

        if current_version is None and item.version != 0:
            raise ConflictError(f"Feedback {item.id} no longer exists", [item.id])
        if current_version is not None and item.version != current_version:
            raise ConflictError(
                f"Feedback {item.id} was modified concurrently "
                f"(expected version {item.version}, found {current_version})",
                feedback_ids=[item.id],
            )

        if item.id not in self.base_versions:
            self.base_versions[item.id] = current_version

        item.version += 1
        self.items[item.id] = item.copy()

    # -------------------------------------------------------------------------
    # Votes & Comments
    # -------------------------------------------------------------------------

    def votes_for(self, feedback_id: str) -> list[Vote]:
        if feedback_id in self.votes:
            return list(self.votes[feedback_id])
        return self._store.votes_for(feedback_id)

    def set_votes(self, feedback_id: str, votes: list[Vote]) -> None:
        voter_ids = [v.voter_id for v in votes]
        if len(voter_ids) != len(set(voter_ids)):
            raise PersistenceError(f"Duplicate voter rows for feedback {feedback_id}")
        self.votes[feedback_id] = list(votes)

    def comments_for(self, feedback_id: str) -> list[Comment]:
        if feedback_id in self.comments:
            return list(self.comments[feedback_id])
        return self._store.comments_for(feedback_id)

    def set_comments(self, feedback_id: str, comments: list[Comment]) -> None:
        self.comments[feedback_id] = list(comments)


class InMemoryFeedbackStore(FeedbackStorePort):
    """
    Thread-safe in-memory implementation of FeedbackStorePort.

    Usage:
        store = InMemoryFeedbackStore()
        store.insert_item(FeedbackItem(project_id="p1", title="Dark mode"))

        with store.transaction() as tx:
            items = tx.lock_items([item_id])
            ...
    """

    def __init__(self, lock_timeout: float = 10.0):
        self.lock_timeout = lock_timeout
        self.logger = logging.getLogger("InMemoryFeedbackStore")

        self._items: dict[str, FeedbackItem] = {}
        self._votes: dict[str, list[Vote]] = {}
        self._comments: dict[str, list[Comment]] = {}

        self._data_lock = threading.RLock()
        self._row_locks: dict[str, threading.Lock] = {}
        self._row_locks_guard = threading.Lock()

    # -------------------------------------------------------------------------
    # FeedbackStorePort Implementation
    # -------------------------------------------------------------------------

    @contextmanager
    def transaction(self) -> Iterator[InMemoryTransaction]:
        tx = InMemoryTransaction(self)
        try:
            try:
                yield tx
            except BaseException:
                self.logger.debug("Rolling back transaction")
                raise
            self._commit(tx)
        finally:
            tx.release_locks()

    def get_item(self, feedback_id: str) -> Optional[FeedbackItem]:
        with self._data_lock:
            item = self._items.get(feedback_id)
            return item.copy() if item is not None else None

    def votes_for(self, feedback_id: str) -> list[Vote]:
        with self._data_lock:
            return list(self._votes.get(feedback_id, []))

    def comments_for(self, feedback_id: str) -> list[Comment]:
        with self._data_lock:
            return list(self._comments.get(feedback_id, []))

    # -------------------------------------------------------------------------
    # Seeding Helpers
    # -------------------------------------------------------------------------

    def insert_item(self, item: FeedbackItem) -> FeedbackItem:
        with self._data_lock:
            self._items[item.id] = item.copy()
        return item

    def insert_votes(self, votes: Iterable[Vote]) -> None:
        """Insert votes and refresh the owning items' vote counts."""
        with self._data_lock:
            touched = set()
            for vote in votes:
                bucket = self._votes.setdefault(vote.feedback_id, [])
                if any(v.voter_id == vote.voter_id for v in bucket):
                    continue
                bucket.append(vote)
                touched.add(vote.feedback_id)
            for feedback_id in touched:
                if feedback_id in self._items:
                    self._items[feedback_id].vote_count = VoteLedger.count(
                        self._votes[feedback_id]
                    )

    def insert_comments(self, comments: Iterable[Comment]) -> None:
        with self._data_lock:
            for comment in comments:
                self._comments.setdefault(comment.feedback_id, []).append(comment)

    def all_items(self) -> list[FeedbackItem]:
        with self._data_lock:
            return [item.copy() for item in self._items.values()]

    # -------------------------------------------------------------------------
    # Private Methods
    # -------------------------------------------------------------------------

    def _row_lock(self, feedback_id: str) -> threading.Lock:
        with self._row_locks_guard:
            lock = self._row_locks.get(feedback_id)
            if lock is None:
                lock = threading.Lock()
                self._row_locks[feedback_id] = lock
            return lock

    def _commit(self, tx: InMemoryTransaction) -> None:
        with self._data_lock:
            for feedback_id, base_version in tx.base_versions.items():
                stored = self._items.get(feedback_id)
                stored_version = stored.version if stored is not None else None
                if stored_version != base_version:
                    raise ConflictError(
                        f"Feedback {feedback_id} changed before commit",
                        feedback_ids=[feedback_id],
                    )
            try:
                self._apply_changes(tx)
            except FeedbackBridgeError:
                raise
            except Exception as e:
                self.logger.error(f"Commit failed, rolled back: {e}")
                raise PersistenceError(f"Commit failed: {e}", cause=e) from e

    def _apply_changes(self, tx: InMemoryTransaction) -> None:
        """Build the post-commit tables, then swap them in."""
        items = dict(self._items)
        votes = dict(self._votes)
        comments = dict(self._comments)

        items.update({k: v.copy() for k, v in tx.items.items()})
        votes.update({k: list(v) for k, v in tx.votes.items()})
        comments.update({k: list(v) for k, v in tx.comments.items()})

        self._items, self._votes, self._comments = items, votes, comments
