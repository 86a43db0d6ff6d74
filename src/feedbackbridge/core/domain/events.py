"""
Domain Events - Things that happened in the domain.

Events are immutable records of something that occurred.
They enable loose coupling and audit trails.
"""

import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Optional
from uuid import uuid4


@dataclass(frozen=True)
class DomainEvent:
    """Base class for all domain events."""

    event_id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def event_type(self) -> str:
        """Get the event type name."""
        return self.__class__.__name__


@dataclass(frozen=True)
class FeedbackMerged(DomainEvent):
    """Event: Secondary feedback items were merged into a primary."""

    primary_id: str = ""
    secondary_ids: tuple = ()
    new_vote_count: int = 0
    moved_comments: int = 0


@dataclass(frozen=True)
class FeedbackCreated(DomainEvent):
    """Event: New feedback was submitted."""

    feedback_id: str = ""
    project_id: str = ""


@dataclass(frozen=True)
class StatusChanged(DomainEvent):
    """Event: A feedback item's status changed internally."""

    feedback_id: str = ""
    from_status: str = ""
    to_status: str = ""


@dataclass(frozen=True)
class CommentAdded(DomainEvent):
    """Event: A comment was added to a feedback item."""

    feedback_id: str = ""
    comment_id: str = ""


@dataclass(frozen=True)
class VoteCountChanged(DomainEvent):
    """Event: A feedback item's distinct voter count changed."""

    feedback_id: str = ""
    vote_count: int = 0


@dataclass(frozen=True)
class RemoteItemCreated(DomainEvent):
    """Event: A sink created a remote representation of a feedback item."""

    feedback_id: str = ""
    sink: str = ""
    remote_url: str = ""
    remote_id: str = ""


@dataclass(frozen=True)
class SinkCallFailed(DomainEvent):
    """Event: A projection call to a sink failed (non-fatal)."""

    feedback_id: str = ""
    sink: str = ""
    operation: str = ""
    error: str = ""
    status_code: Optional[int] = None


@dataclass(frozen=True)
class ProjectionCompleted(DomainEvent):
    """Event: A projection finished across all sinks for one change."""

    feedback_id: str = ""
    trigger: str = ""
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0


class EventBus:
    """
    Simple event bus for publishing and subscribing to domain events.

    Safe to publish from projection worker threads.
    """

    def __init__(self):
        self._handlers: dict[type, list[Callable[[Any], None]]] = {}
        self._history: list[DomainEvent] = []
        self._lock = threading.Lock()

    def subscribe(self, event_type: type, handler: Callable[[Any], None]) -> None:
        """Subscribe a handler to an event type."""
        with self._lock:
            self._handlers.setdefault(event_type, []).append(handler)

    def publish(self, event: DomainEvent) -> None:
        """Publish an event to all subscribers."""
        with self._lock:
            self._history.append(event)
            handlers = list(self._handlers.get(type(event), []))
            # Catch-all handlers
            handlers.extend(self._handlers.get(DomainEvent, []))

        for handler in handlers:
            handler(event)

    def get_history(self, event_type: Optional[type] = None) -> list[DomainEvent]:
        """Get published events, optionally filtered by type."""
        with self._lock:
            if event_type is None:
                return self._history.copy()
            return [e for e in self._history if isinstance(e, event_type)]

    def clear_history(self) -> None:
        """Clear event history."""
        with self._lock:
            self._history.clear()
