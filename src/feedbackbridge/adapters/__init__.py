"""
Adapters - Concrete implementations of ports.

This module contains implementations for:
- Sinks: GitHub issues, ClickUp tasks, Trello cards, Slack webhook
- Persistence: In-memory transactional store
- Config: Environment variables
"""

from .github import IssueTrackerSink
from .clickup import TaskTrackerSink
from .slack import NotificationSink
from .trello import BoardSink
from .http import SinkApiClient
from .memory import InMemoryFeedbackStore
from .config import EnvironmentConfigProvider
from .factory import build_sinks

__all__ = [
    "IssueTrackerSink",
    "TaskTrackerSink",
    "NotificationSink",
    "BoardSink",
    "SinkApiClient",
    "InMemoryFeedbackStore",
    "EnvironmentConfigProvider",
    "build_sinks",
]
