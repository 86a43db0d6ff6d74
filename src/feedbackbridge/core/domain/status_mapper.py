"""
Status Mapper - Translate internal statuses into each sink's vocabulary.

Pure lookups over fixed tables; no state and no side effects.
"""

from typing import Optional

from .enums import FeedbackStatus, SinkKind


S = FeedbackStatus

_STATUS_TABLES: dict[SinkKind, dict[FeedbackStatus, str]] = {
    SinkKind.ISSUE_TRACKER: {
        S.PENDING: "open",
        S.APPROVED: "open",
        S.IN_PROGRESS: "open",
        S.TESTFLIGHT: "open",
        S.COMPLETED: "closed",
        S.REJECTED: "closed",
    },
    SinkKind.TASK_TRACKER: {
        S.PENDING: "to do",
        S.APPROVED: "approved",
        S.IN_PROGRESS: "in progress",
        S.TESTFLIGHT: "in review",
        S.COMPLETED: "complete",
        S.REJECTED: "closed",
    },
    SinkKind.NOTIFICATION: {
        S.PENDING: "Pending",
        S.APPROVED: "Approved",
        S.IN_PROGRESS: "In Progress",
        S.TESTFLIGHT: "TestFlight",
        S.COMPLETED: "Completed",
        S.REJECTED: "Rejected",
    },
    # Default Trello list names; projects map statuses to list ids
    SinkKind.BOARD: {
        S.PENDING: "Pending",
        S.APPROVED: "Approved",
        S.IN_PROGRESS: "In Progress",
        S.TESTFLIGHT: "TestFlight",
        S.COMPLETED: "Done",
        S.REJECTED: "Rejected",
    },
}

del S


class StatusMapper:
    """
    Maps FeedbackStatus values onto sink vocabularies.

    Usage:
        StatusMapper.map(FeedbackStatus.COMPLETED, SinkKind.TASK_TRACKER)  # "complete"
        StatusMapper.transition_kind(FeedbackStatus.PENDING, FeedbackStatus.REJECTED)  # "close"
    """

    CLOSE = "close"
    REOPEN = "reopen"
    UPDATE = "update"

    @staticmethod
    def map(status: FeedbackStatus, sink_kind: SinkKind) -> str:
        try:
            return _STATUS_TABLES[sink_kind][status]
        except KeyError:
            raise ValueError(f"No status vocabulary for sink {sink_kind.value}") from None

    @staticmethod
    def is_terminal(status: FeedbackStatus) -> bool:
        """Completed and rejected items are closed in sinks that track state."""
        return status.is_terminal()

    @classmethod
    def transition_kind(
        cls,
        old_status: FeedbackStatus,
        new_status: FeedbackStatus,
    ) -> Optional[str]:
        """
        Classify a status change for projection.

        Returns:
            "close" when entering a terminal status, "reopen" when leaving
            one, "update" for any other change, None when nothing changed.
        """
        if old_status == new_status:
            return None
        was_terminal = cls.is_terminal(old_status)
        now_terminal = cls.is_terminal(new_status)
        if now_terminal and not was_terminal:
            return cls.CLOSE
        if was_terminal and not now_terminal:
            return cls.REOPEN
        return cls.UPDATE
