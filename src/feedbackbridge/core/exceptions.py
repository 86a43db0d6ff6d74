"""
Exceptions - Centralized exception hierarchy.

Every error raised by feedbackbridge derives from FeedbackBridgeError and
carries a stable ``code`` that API layers can map to responses.
"""

from typing import Any, Optional


class FeedbackBridgeError(Exception):
    """Base class for all feedbackbridge errors."""

    code = "error"

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    def to_dict(self) -> dict[str, Any]:
        """Serialize for API error responses."""
        return {"error": self.code, "message": self.message}


# -------------------------------------------------------------------------
# Merge / Domain Errors
# -------------------------------------------------------------------------

class ValidationError(FeedbackBridgeError):
    """A request was malformed (self-merge, empty id set, cross-project...)."""

    code = "validation_error"


class NotFoundError(FeedbackBridgeError):
    """A referenced feedback item does not exist."""

    code = "not_found"

    def __init__(
        self,
        feedback_id: str,
        message: Optional[str] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message or f"Feedback not found: {feedback_id}", cause=cause)
        self.feedback_id = feedback_id


class AlreadyMergedError(FeedbackBridgeError):
    """A feedback item is already merged and therefore terminal."""

    code = "already_merged"

    def __init__(
        self,
        feedback_id: str,
        merged_into_id: Optional[str] = None,
    ):
        super().__init__(
            f"Feedback {feedback_id} is already merged into {merged_into_id}"
        )
        self.feedback_id = feedback_id
        self.merged_into_id = merged_into_id


class ConflictError(FeedbackBridgeError):
    """A concurrent writer changed an item first. Retry with fresh state."""

    code = "conflict"

    def __init__(self, message: str, feedback_ids: Optional[list[str]] = None):
        super().__init__(message)
        self.feedback_ids = feedback_ids or []


class PersistenceError(FeedbackBridgeError):
    """The storage layer failed; the transaction was rolled back."""

    code = "persistence_error"


class ConfigError(FeedbackBridgeError):
    """Sync configuration is missing or invalid."""

    code = "config_error"


# -------------------------------------------------------------------------
# Sink Errors
# -------------------------------------------------------------------------

class SinkError(FeedbackBridgeError):
    """
    A call to an external sink failed.

    Sink errors are never fatal to the internal state change that triggered
    them; they are captured into projection and bulk results.
    """

    code = "sink_error"

    def __init__(
        self,
        message: str,
        sink_kind: Any = None,
        status_code: Optional[int] = None,
        retryable: bool = False,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message, cause=cause)
        self.sink_kind = sink_kind
        self.status_code = status_code
        self.retryable = retryable

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["sink"] = getattr(self.sink_kind, "value", self.sink_kind)
        data["status_code"] = self.status_code
        data["retryable"] = self.retryable
        return data


class AuthenticationError(SinkError):
    """The sink rejected our credentials (401)."""

    code = "sink_auth_error"


class PermissionDeniedError(SinkError):
    """The sink refused the operation (403)."""

    code = "sink_permission_denied"


class RemoteNotFoundError(SinkError):
    """The remote object behind a RemoteRef is gone (404)."""

    code = "sink_not_found"


class RateLimitError(SinkError):
    """The sink is throttling us (429)."""

    code = "sink_rate_limited"

    def __init__(self, message: str, retry_after: Optional[float] = None, **kwargs: Any):
        kwargs.setdefault("retryable", True)
        super().__init__(message, **kwargs)
        self.retry_after = retry_after


class UnsupportedCapability(SinkError):
    """The sink does not implement the requested capability."""

    code = "sink_unsupported"
