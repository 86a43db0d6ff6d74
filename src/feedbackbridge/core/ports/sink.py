"""
Sink Port - Capability contract for external tracking/notification services.

Each sink implements the subset of capabilities its service supports and
declares it in ``capabilities``. Callers check ``supports()`` before calling;
an unsupported call raises UnsupportedCapability.
"""

from abc import ABC, abstractmethod
from typing import Optional

from ..domain.entities import Comment, FeedbackItem, RemoteRef
from ..domain.enums import FeedbackStatus, SinkCapability, SinkKind
from ..exceptions import UnsupportedCapability


class SinkPort(ABC):
    """
    Abstract interface for sinks.

    Implementations:
    - IssueTrackerSink (GitHub issues)
    - TaskTrackerSink (ClickUp tasks)
    - BoardSink (Trello cards)
    - NotificationSink (Slack webhook)

    Calls should be idempotent where the vendor API allows it: closing a
    closed item or reopening an open one succeeds without error.
    """

    capabilities: frozenset[SinkCapability] = frozenset()

    # Sinks without remote objects (webhooks) receive ref=None
    requires_remote_ref: bool = True

    @property
    @abstractmethod
    def kind(self) -> SinkKind:
        ...

    @property
    def name(self) -> str:
        return self.kind.value

    def supports(self, capability: SinkCapability) -> bool:
        return capability in self.capabilities

    def _unsupported(self, capability: SinkCapability) -> UnsupportedCapability:
        return UnsupportedCapability(
            f"{self.name} does not support {capability.value}",
            sink_kind=self.kind,
        )

    # -------------------------------------------------------------------------
    # Capabilities
    # -------------------------------------------------------------------------

    def create(self, item: FeedbackItem) -> RemoteRef:
        """Create the remote representation of an item."""
        raise self._unsupported(SinkCapability.CREATE)

    def close(self, ref: Optional[RemoteRef], item: FeedbackItem) -> None:
        """Close the remote item; ``item.status`` is the terminal status."""
        raise self._unsupported(SinkCapability.CLOSE)

    def reopen(self, ref: Optional[RemoteRef], item: FeedbackItem) -> None:
        """Reopen the remote item; ``item.status`` is the new open status."""
        raise self._unsupported(SinkCapability.REOPEN)

    def add_comment(self, ref: Optional[RemoteRef], item: FeedbackItem, comment: Comment) -> None:
        """Mirror a comment; ``comment.is_admin`` decides the attribution."""
        raise self._unsupported(SinkCapability.COMMENT)

    def set_metric(self, ref: Optional[RemoteRef], field_key: str, value: float) -> None:
        raise self._unsupported(SinkCapability.SET_METRIC)

    def update_status(
        self,
        ref: Optional[RemoteRef],
        item: FeedbackItem,
        old_status: FeedbackStatus,
    ) -> None:
        """Push a non open/close status change (e.g. approved -> in progress)."""
        raise self._unsupported(SinkCapability.UPDATE_STATUS)

    def announce(self, item: FeedbackItem) -> None:
        """Tell the sink about newly submitted feedback."""
        raise self._unsupported(SinkCapability.ANNOUNCE)

    # -------------------------------------------------------------------------
    # Formatting
    # -------------------------------------------------------------------------

    @staticmethod
    def mirrored_comment(comment: Comment) -> str:
        """Comment body for trackers, attributed and marked as synced."""
        return (
            f"**[{comment.author_label}] Comment:**\n"
            f"\n"
            f"{comment.content}\n"
            f"\n"
            f"---\n"
            f"_Synced from feedbackbridge_"
        )
