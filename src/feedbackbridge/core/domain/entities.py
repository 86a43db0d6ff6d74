"""
Domain Entities - Feedback items, votes, and comments.

Entities are plain dataclasses. Storage adapters hand out copies, so mutating
an entity never changes persisted state until it is saved inside a
transaction.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Optional
from uuid import uuid4

from .enums import FeedbackCategory, FeedbackStatus, SinkKind


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid4())


@dataclass(frozen=True)
class RemoteRef:
    """Identifies a feedback item's representation inside a sink."""

    url: str
    external_id: str

    def to_dict(self) -> dict[str, str]:
        return {"remoteUrl": self.url, "remoteId": self.external_id}


@dataclass
class FeedbackItem:
    """
    A single piece of user feedback.

    ``vote_count`` is a cache of the distinct voters attached to the item;
    only the VoteLedger recomputes it. ``merged_into_id`` marks the item as a
    terminal secondary; ``merged_feedback_ids`` is only populated on
    primaries.
    """

    project_id: str
    title: str
    description: str = ""
    id: str = field(default_factory=new_id)
    status: FeedbackStatus = FeedbackStatus.PENDING
    category: FeedbackCategory = FeedbackCategory.FEATURE_REQUEST
    user_id: str = ""
    user_email: Optional[str] = None
    vote_count: int = 0

    merged_into_id: Optional[str] = None
    merged_at: Optional[datetime] = None
    merged_feedback_ids: set[str] = field(default_factory=set)

    remote_refs: dict[SinkKind, RemoteRef] = field(default_factory=dict)

    version: int = 0
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @property
    def is_merged(self) -> bool:
        """Whether this feedback has been merged into another."""
        return self.merged_into_id is not None

    @property
    def has_merged_feedback(self) -> bool:
        """Whether this feedback has received merges from other feedback."""
        return bool(self.merged_feedback_ids)

    @property
    def accepts_votes(self) -> bool:
        return not self.is_merged and not self.status.is_terminal()

    def remote_ref(self, kind: SinkKind) -> Optional[RemoteRef]:
        return self.remote_refs.get(kind)

    def copy(self) -> "FeedbackItem":
        return replace(
            self,
            merged_feedback_ids=set(self.merged_feedback_ids),
            remote_refs=dict(self.remote_refs),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "projectId": self.project_id,
            "title": self.title,
            "status": self.status.value,
            "category": self.category.value,
            "voteCount": self.vote_count,
            "mergedIntoId": self.merged_into_id,
            "mergedAt": self.merged_at.isoformat() if self.merged_at else None,
            "mergedFeedbackIds": sorted(self.merged_feedback_ids),
            "remoteRefs": {
                kind.value: ref.to_dict() for kind, ref in self.remote_refs.items()
            },
        }


@dataclass(frozen=True)
class Vote:
    """One voter's vote on one feedback item."""

    feedback_id: str
    voter_id: str
    email: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)

    def reassigned(self, feedback_id: str) -> "Vote":
        return replace(self, feedback_id=feedback_id)


@dataclass(frozen=True)
class Comment:
    """A comment attached to exactly one feedback item."""

    feedback_id: str
    author_id: str
    content: str
    id: str = field(default_factory=new_id)
    is_admin: bool = False
    created_at: datetime = field(default_factory=utcnow)

    @property
    def author_label(self) -> str:
        return "Admin" if self.is_admin else "User"
