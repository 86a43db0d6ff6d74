"""
Application Layer - Use cases, commands, and orchestration.

This layer contains:
- commands/: Individual sink operations (Create, Close, Comment, ...)
- merge/: Duplicate consolidation
- sync/: Projection into sinks, bulk runner and dispatcher
- feedback_service: Commit-then-project entry points
"""

from .commands import (
    Command,
    CommandResult,
    CommandBatch,
    CreateRemoteItemCommand,
    CloseRemoteItemCommand,
    ReopenRemoteItemCommand,
    UpdateRemoteStatusCommand,
    AddRemoteCommentCommand,
    SetRemoteMetricCommand,
    AnnounceFeedbackCommand,
)
from .merge import MergeCoordinator, MergeResult
from .sync import (
    BulkOperationRunner,
    BulkResult,
    ProjectionDispatcher,
    ProjectionResult,
    SyncProjector,
)
from .feedback_service import FeedbackService, ChangeReceipt

__all__ = [
    "Command",
    "CommandResult",
    "CommandBatch",
    "CreateRemoteItemCommand",
    "CloseRemoteItemCommand",
    "ReopenRemoteItemCommand",
    "UpdateRemoteStatusCommand",
    "AddRemoteCommentCommand",
    "SetRemoteMetricCommand",
    "AnnounceFeedbackCommand",
    "MergeCoordinator",
    "MergeResult",
    "BulkOperationRunner",
    "BulkResult",
    "ProjectionDispatcher",
    "ProjectionResult",
    "SyncProjector",
    "FeedbackService",
    "ChangeReceipt",
]
