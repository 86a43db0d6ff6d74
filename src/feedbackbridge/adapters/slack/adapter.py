"""
Slack Adapter - Posts feedback activity to an incoming webhook.

A webhook has no remote objects: nothing is created, nothing is linked,
and every call is a fire-and-forget message.
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


WEBHOOK_PREFIX = "https://hooks.slack.com/"


class NotificationSink(SinkPort):
    """Slack incoming-webhook implementation of the SinkPort."""

    capabilities = frozenset({
        SinkCapability.CLOSE,
        SinkCapability.REOPEN,
        SinkCapability.COMMENT,
        SinkCapability.UPDATE_STATUS,
        SinkCapability.ANNOUNCE,
    })
    requires_remote_ref = False

    def __init__(
        self,
        config: SinkConfig,
        project_name: str = "",
        timeout: float = SinkApiClient.DEFAULT_TIMEOUT,
        client: Optional[SinkApiClient] = None,
    ):
        if not config.target.startswith(WEBHOOK_PREFIX):
            raise ConfigError(f"Slack webhook URL must start with {WEBHOOK_PREFIX}")
        self.webhook_url = config.target
        self.project_name = project_name
        self.logger = logging.getLogger("NotificationSink")

        self._client = client or SinkApiClient(
            base_url=WEBHOOK_PREFIX,
            token="",
            sink_kind=SinkKind.NOTIFICATION,
            timeout=timeout,
        )

    @property
    def kind(self) -> SinkKind:
        return SinkKind.NOTIFICATION

    # -------------------------------------------------------------------------
    # SinkPort Implementation
    # -------------------------------------------------------------------------

    def close(self, ref: Optional[RemoteRef], item: FeedbackItem) -> None:
        self._send(self._status_text(item, None))

    def reopen(self, ref: Optional[RemoteRef], item: FeedbackItem) -> None:
        self._send(self._status_text(item, None))

    def update_status(
        self,
        ref: Optional[RemoteRef],
        item: FeedbackItem,
        old_status: FeedbackStatus,
    ) -> None:
        self._send(self._status_text(item, old_status))

    def add_comment(self, ref: Optional[RemoteRef], item: FeedbackItem, comment: Comment) -> None:
        badge = " :shield:" if comment.is_admin else ""
        self._send(
            f":speech_balloon: New comment from *{comment.author_label}*{badge} "
            f"on *{item.title}*{self._where()}\n>{comment.content}"
        )

    def announce(self, item: FeedbackItem) -> None:
        self._send(
            f":new: New {item.category.display_name.lower()} *{item.title}*{self._where()}\n"
            f">{item.description}"
        )

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _send(self, text: str) -> None:
        self._client.post(self.webhook_url, json={"text": text})
        self.logger.debug("Posted Slack notification")

    def _where(self) -> str:
        return f" in {self.project_name}" if self.project_name else ""

    def _status_text(self, item: FeedbackItem, old_status: Optional[FeedbackStatus]) -> str:
        new_label = StatusMapper.map(item.status, self.kind)
        if old_status is None:
            change = new_label
        else:
            change = f"{StatusMapper.map(old_status, self.kind)} -> {new_label}"
        return f":arrows_counterclockwise: *{item.title}*{self._where()} is now {change}"
