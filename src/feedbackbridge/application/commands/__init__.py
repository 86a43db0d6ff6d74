"""
Commands - Individual operations that can be executed.

Commands represent write operations against sinks and can be:
- Executed (failures captured, never raised)
- Previewed in dry-run mode
- Logged for audit
"""

from .base import Command, CommandResult, CommandBatch
from .sink_commands import (
    SinkCommand,
    CreateRemoteItemCommand,
    CloseRemoteItemCommand,
    ReopenRemoteItemCommand,
    UpdateRemoteStatusCommand,
    AddRemoteCommentCommand,
    SetRemoteMetricCommand,
    AnnounceFeedbackCommand,
)

__all__ = [
    "Command",
    "CommandResult",
    "CommandBatch",
    "SinkCommand",
    "CreateRemoteItemCommand",
    "CloseRemoteItemCommand",
    "ReopenRemoteItemCommand",
    "UpdateRemoteStatusCommand",
    "AddRemoteCommentCommand",
    "SetRemoteMetricCommand",
    "AnnounceFeedbackCommand",
]
