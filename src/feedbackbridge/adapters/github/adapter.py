"""
GitHub Adapter - Projects feedback into GitHub issues.

Issues are open/closed only. Intermediate statuses have no GitHub
counterpart; the only status update GitHub sees is a move between the two
terminal statuses, which changes the closed issue's state_reason.
"""

import logging
from typing import Optional

from ...core.domain.entities import Comment, FeedbackItem, RemoteRef
from ...core.domain.enums import FeedbackStatus, SinkCapability, SinkKind
from ...core.domain.status_mapper import StatusMapper
from ...core.exceptions import ConfigError
from ...core.ports.config_provider import SinkConfig
from ...core.ports.sink import SinkPort
from ..http import SinkApiClient


class IssueTrackerSink(SinkPort):
    """
    GitHub issues implementation of the SinkPort.

    ``config.target`` is the "owner/repo" slug.
    """

    DEFAULT_BASE_URL = "https://api.github.com"

    capabilities = frozenset({
        SinkCapability.CREATE,
        SinkCapability.CLOSE,
        SinkCapability.REOPEN,
        SinkCapability.COMMENT,
        SinkCapability.UPDATE_STATUS,
    })

    def __init__(
        self,
        config: SinkConfig,
        timeout: float = SinkApiClient.DEFAULT_TIMEOUT,
        client: Optional[SinkApiClient] = None,
    ):
        if "/" not in config.target:
            raise ConfigError(f"GitHub repository must be 'owner/repo', got '{config.target}'")
        self.config = config
        self.repo = config.target
        self.logger = logging.getLogger("IssueTrackerSink")

        self._client = client or SinkApiClient(
            base_url=config.base_url or self.DEFAULT_BASE_URL,
            token=config.token,
            sink_kind=SinkKind.ISSUE_TRACKER,
            timeout=timeout,
            headers={"Accept": "application/vnd.github+json"},
        )

    @property
    def kind(self) -> SinkKind:
        return SinkKind.ISSUE_TRACKER

    # -------------------------------------------------------------------------
    # SinkPort Implementation
    # -------------------------------------------------------------------------

    def create(self, item: FeedbackItem) -> RemoteRef:
        data = self._client.post(
            f"repos/{self.repo}/issues",
            json={
                "title": item.title,
                "body": self._build_body(item),
                "labels": [item.category.value],
            },
        )
        ref = RemoteRef(url=data["html_url"], external_id=str(data["number"]))
        self.logger.info(f"Created issue #{ref.external_id} for {item.id}")
        return ref

    def close(self, ref: Optional[RemoteRef], item: FeedbackItem) -> None:
        self._set_state(ref, "closed", state_reason=self._close_reason(item.status))

    def reopen(self, ref: Optional[RemoteRef], item: FeedbackItem) -> None:
        self._set_state(ref, "open")

    def update_status(
        self,
        ref: Optional[RemoteRef],
        item: FeedbackItem,
        old_status: FeedbackStatus,
    ) -> None:
        if not (old_status.is_terminal() and item.status.is_terminal()):
            self.logger.debug(f"Issue #{ref.external_id}: {item.status.value} stays open")
            return
        self.close(ref, item)

    def add_comment(self, ref: Optional[RemoteRef], item: FeedbackItem, comment: Comment) -> None:
        self._client.post(
            f"repos/{self.repo}/issues/{ref.external_id}/comments",
            json={"body": self.mirrored_comment(comment)},
        )

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _set_state(self, ref: RemoteRef, state: str, state_reason: Optional[str] = None) -> None:
        """PATCH the issue state unless state and reason already match."""
        endpoint = f"repos/{self.repo}/issues/{ref.external_id}"
        issue = self._client.get(endpoint)
        current = issue.get("state")
        if current == state and (state_reason is None or issue.get("state_reason") == state_reason):
            self.logger.debug(f"Issue #{ref.external_id} already {state}")
            return

        payload = {"state": state}
        if state_reason:
            payload["state_reason"] = state_reason
        self._client.patch(endpoint, json=payload)
        self.logger.info(f"Issue #{ref.external_id}: {current} -> {state}")

    @staticmethod
    def _close_reason(status: FeedbackStatus) -> str:
        return "completed" if status == FeedbackStatus.COMPLETED else "not_planned"

    @staticmethod
    def _build_body(item: FeedbackItem) -> str:
        lines = [
            item.description,
            "",
            "---",
            f"**Category:** {item.category.display_name}",
            f"**Status:** {StatusMapper.map(item.status, SinkKind.NOTIFICATION)}",
            f"**Votes:** {item.vote_count}",
        ]
        if item.user_email:
            lines.append(f"**Submitted by:** {item.user_email}")
        return "\n".join(lines)
