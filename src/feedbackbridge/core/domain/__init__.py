"""
Domain - Entities, enums, events, and the pure consolidation rules.
"""

from .enums import FeedbackStatus, FeedbackCategory, SinkKind, SinkCapability
from .entities import FeedbackItem, Vote, Comment, RemoteRef
from .status_mapper import StatusMapper
from .votes import VoteLedger, VoteConsolidation
from .comments import CommentMigrator
from .events import (
    DomainEvent,
    EventBus,
    FeedbackCreated,
    FeedbackMerged,
    StatusChanged,
    CommentAdded,
    VoteCountChanged,
    RemoteItemCreated,
    SinkCallFailed,
    ProjectionCompleted,
)

__all__ = [
    "FeedbackStatus",
    "FeedbackCategory",
    "SinkKind",
    "SinkCapability",
    "FeedbackItem",
    "Vote",
    "Comment",
    "RemoteRef",
    "StatusMapper",
    "VoteLedger",
    "VoteConsolidation",
    "CommentMigrator",
    "DomainEvent",
    "EventBus",
    "FeedbackCreated",
    "FeedbackMerged",
    "StatusChanged",
    "CommentAdded",
    "VoteCountChanged",
    "RemoteItemCreated",
    "SinkCallFailed",
    "ProjectionCompleted",
]
