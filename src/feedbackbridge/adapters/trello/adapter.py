"""
Trello Adapter - Projects feedback into cards on a Trello board.

A card's list is its status: status changes move the card to the list
configured for the new status. Trello authenticates with an application
key and a member token sent as query parameters.
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


class BoardSink(SinkPort):
    """
    Trello implementation of the SinkPort.

    ``config.target`` is the list new cards are created in;
    ``config.status_targets`` maps statuses to the lists cards move to.
    """

    DEFAULT_BASE_URL = "https://api.trello.com/1"

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
        project_name: str = "",
        timeout: float = SinkApiClient.DEFAULT_TIMEOUT,
        client: Optional[SinkApiClient] = None,
    ):
        if not config.api_key:
            raise ConfigError("Trello requires an API key as well as a token")
        self.config = config
        self.project_name = project_name
        self.logger = logging.getLogger("BoardSink")

        self._auth = {"key": config.api_key, "token": config.token}
        self._client = client or SinkApiClient(
            base_url=config.base_url or self.DEFAULT_BASE_URL,
            token="",
            sink_kind=SinkKind.BOARD,
            timeout=timeout,
        )

    @property
    def kind(self) -> SinkKind:
        return SinkKind.BOARD

    # -------------------------------------------------------------------------
    # SinkPort Implementation
    # -------------------------------------------------------------------------

    def create(self, item: FeedbackItem) -> RemoteRef:
        data = self._client.post(
            "cards",
            params=self._auth,
            json={
                "idList": self.config.target,
                "name": item.title,
                "desc": self.build_description(item),
                "pos": "bottom",
            },
        )
        ref = RemoteRef(url=data["url"], external_id=str(data["id"]))
        self.logger.info(f"Created card {ref.external_id} for {item.id}")
        return ref

    def close(self, ref: Optional[RemoteRef], item: FeedbackItem) -> None:
        self._move(ref, item.status)

    def reopen(self, ref: Optional[RemoteRef], item: FeedbackItem) -> None:
        self._move(ref, item.status)

    def update_status(
        self,
        ref: Optional[RemoteRef],
        item: FeedbackItem,
        old_status: FeedbackStatus,
    ) -> None:
        self._move(ref, item.status)

    def add_comment(self, ref: Optional[RemoteRef], item: FeedbackItem, comment: Comment) -> None:
        self._client.post(
            f"cards/{ref.external_id}/actions/comments",
            params=self._auth,
            json={"text": self.mirrored_comment(comment)},
        )

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _move(self, ref: RemoteRef, status: FeedbackStatus) -> None:
        list_id = self.config.status_target(status)
        if list_id is None:
            self.logger.info(f"No list configured for {status.value}; card {ref.external_id} stays put")
            return
        self._client.put(f"cards/{ref.external_id}", params=self._auth, json={"idList": list_id})
        self.logger.info(f"Card {ref.external_id} -> {StatusMapper.map(status, self.kind)}")

    def build_description(self, item: FeedbackItem) -> str:
        """Markdown description for a new card."""
        description = (
            f"## {item.category.display_name}\n"
            f"\n"
            f"{item.description}\n"
            f"\n"
            f"---\n"
            f"\n"
            f"**Source:** feedbackbridge\n"
            f"**Project:** {self.project_name or item.project_id}\n"
            f"**Status:** {StatusMapper.map(item.status, self.kind)}\n"
            f"**Votes:** {item.vote_count}"
        )
        if item.user_email:
            description += f"\n**Submitted by:** {item.user_email}"
        description += "\n\n---\n*Synced from feedbackbridge*"
        return description
