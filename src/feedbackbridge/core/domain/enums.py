"""
Domain Enums - Status, category, and sink vocabularies.
"""

from enum import Enum


class FeedbackStatus(Enum):
    """Lifecycle status of a feedback item."""

    PENDING = "pending"
    APPROVED = "approved"
    IN_PROGRESS = "in_progress"
    TESTFLIGHT = "testflight"
    COMPLETED = "completed"
    REJECTED = "rejected"

    @classmethod
    def from_string(cls, value: str) -> "FeedbackStatus":
        """Parse a status, accepting camelCase and display spellings."""
        normalized = value.strip().lower().replace(" ", "_").replace("-", "_")
        if normalized == "inprogress":
            normalized = "in_progress"
        for status in cls:
            if status.value == normalized:
                return status
        raise ValueError(f"Unknown feedback status: {value}")

    def is_terminal(self) -> bool:
        return self in (FeedbackStatus.COMPLETED, FeedbackStatus.REJECTED)

    @property
    def display_name(self) -> str:
        return self.value.replace("_", " ").title()


class FeedbackCategory(Enum):
    """Kind of feedback submitted."""

    FEATURE_REQUEST = "feature_request"
    BUG_REPORT = "bug_report"
    IMPROVEMENT = "improvement"
    OTHER = "other"

    @property
    def display_name(self) -> str:
        return {
            FeedbackCategory.FEATURE_REQUEST: "Feature Request",
            FeedbackCategory.BUG_REPORT: "Bug Report",
            FeedbackCategory.IMPROVEMENT: "Improvement",
            FeedbackCategory.OTHER: "Other",
        }[self]


class SinkKind(Enum):
    """External systems feedback can be projected into."""

    ISSUE_TRACKER = "github"
    TASK_TRACKER = "clickup"
    NOTIFICATION = "slack"
    BOARD = "trello"


class SinkCapability(Enum):
    """Operations a sink adapter may implement."""

    CREATE = "create"
    CLOSE = "close"
    REOPEN = "reopen"
    COMMENT = "comment"
    SET_METRIC = "set_metric"
    UPDATE_STATUS = "update_status"
    ANNOUNCE = "announce"
