"""
Persistence Port - Abstract interface for the feedback store.

The store must provide all-or-nothing transactions and exclusive row locks
on feedback items. Reads outside a transaction return snapshots.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Iterable, Optional

from ..domain.entities import Comment, FeedbackItem, Vote


class StoreTransaction(ABC):
    """
    Unit of work handed out by FeedbackStorePort.transaction().

    Writes are invisible to other readers until the transaction commits and
    are discarded on rollback.
    """

    @abstractmethod
    def lock_items(self, feedback_ids: Iterable[str]) -> dict[str, FeedbackItem]:
        """
        Acquire exclusive locks on the given items and return fresh copies.

        Locks are held until the transaction ends. Missing ids are simply
        absent from the returned mapping.
        """
        ...

    @abstractmethod
    def get_item(self, feedback_id: str) -> Optional[FeedbackItem]:
        ...

    @abstractmethod
    def save_item(self, item: FeedbackItem) -> None:
        """
        Stage an item write.

        Raises:
            ConflictError: If ``item.version`` no longer matches the stored row
        """
        ...

    @abstractmethod
    def votes_for(self, feedback_id: str) -> list[Vote]:
        ...

    @abstractmethod
    def set_votes(self, feedback_id: str, votes: list[Vote]) -> None:
        """Replace the full vote set owned by an item."""
        ...

    @abstractmethod
    def comments_for(self, feedback_id: str) -> list[Comment]:
        ...

    @abstractmethod
    def set_comments(self, feedback_id: str, comments: list[Comment]) -> None:
        """Replace the full comment list owned by an item."""
        ...


class FeedbackStorePort(ABC):
    """
    Abstract interface for feedback persistence.

    Implementations: InMemoryFeedbackStore (tests, embedding). A relational
    implementation maps transaction() onto BEGIN/COMMIT/ROLLBACK and
    lock_items() onto SELECT ... FOR UPDATE.
    """

    @abstractmethod
    def transaction(self) -> AbstractContextManager[StoreTransaction]:
        """
        Open a transaction.

        Commits when the block exits normally and rolls back when it raises.

        Raises:
            PersistenceError: If the commit itself fails
        """
        ...

    @abstractmethod
    def get_item(self, feedback_id: str) -> Optional[FeedbackItem]:
        ...

    @abstractmethod
    def votes_for(self, feedback_id: str) -> list[Vote]:
        ...

    @abstractmethod
    def comments_for(self, feedback_id: str) -> list[Comment]:
        ...

    def get_items(self, feedback_ids: Iterable[str]) -> list[FeedbackItem]:
        """Fetch several items, skipping ids that do not exist."""
        items = []
        for feedback_id in feedback_ids:
            item = self.get_item(feedback_id)
            if item is not None:
                items.append(item)
        return items
