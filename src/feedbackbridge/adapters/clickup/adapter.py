"""
ClickUp Adapter - Projects feedback into ClickUp tasks.

ClickUp has a free-form status per list, so every status change is pushed
as a status name from the task-tracker vocabulary. Vote counts go to a
numeric custom field.
"""

import logging
from typing import Optional

from ...core.domain.entities import Comment, FeedbackItem, RemoteRef
from ...core.domain.enums import FeedbackStatus, SinkCapability, SinkKind
from ...core.domain.status_mapper import StatusMapper
from ...core.ports.config_provider import SinkConfig
from ...core.ports.sink import SinkPort
from ..http import SinkApiClient


class TaskTrackerSink(SinkPort):
    """
    ClickUp implementation of the SinkPort.

    ``config.target`` is the list id new tasks are created in.
    """

    DEFAULT_BASE_URL = "https://api.clickup.com/api/v2"

    capabilities = frozenset({
        SinkCapability.CREATE,
        SinkCapability.CLOSE,
        SinkCapability.REOPEN,
        SinkCapability.COMMENT,
        SinkCapability.SET_METRIC,
        SinkCapability.UPDATE_STATUS,
    })

    def __init__(
        self,
        config: SinkConfig,
        project_name: str = "",
        timeout: float = SinkApiClient.DEFAULT_TIMEOUT,
        client: Optional[SinkApiClient] = None,
    ):
        self.config = config
        self.project_name = project_name
        self.logger = logging.getLogger("TaskTrackerSink")

        # ClickUp personal tokens go in the Authorization header unprefixed
        self._client = client or SinkApiClient(
            base_url=config.base_url or self.DEFAULT_BASE_URL,
            token=config.token,
            sink_kind=SinkKind.TASK_TRACKER,
            auth_scheme=None,
            timeout=timeout,
        )

    @property
    def kind(self) -> SinkKind:
        return SinkKind.TASK_TRACKER

    # -------------------------------------------------------------------------
    # SinkPort Implementation
    # -------------------------------------------------------------------------

    def create(self, item: FeedbackItem) -> RemoteRef:
        data = self._client.post(
            f"list/{self.config.target}/task",
            json={
                "name": item.title,
                "markdown_description": self.build_description(item),
                "tags": [item.category.value],
                "notify_all": False,
            },
        )
        ref = RemoteRef(url=data["url"], external_id=str(data["id"]))
        self.logger.info(f"Created task {ref.external_id} for {item.id}")
        return ref

    def close(self, ref: Optional[RemoteRef], item: FeedbackItem) -> None:
        self._put_status(ref, item.status)

    def reopen(self, ref: Optional[RemoteRef], item: FeedbackItem) -> None:
        self._put_status(ref, item.status)

    def update_status(
        self,
        ref: Optional[RemoteRef],
        item: FeedbackItem,
        old_status: FeedbackStatus,
    ) -> None:
        self._put_status(ref, item.status)

    def add_comment(self, ref: Optional[RemoteRef], item: FeedbackItem, comment: Comment) -> None:
        self._client.post(
            f"task/{ref.external_id}/comment",
            json={"comment_text": self.mirrored_comment(comment), "notify_all": False},
        )

    def set_metric(self, ref: Optional[RemoteRef], field_key: str, value: float) -> None:
        self._client.post(f"task/{ref.external_id}/field/{field_key}", json={"value": value})
        self.logger.debug(f"Task {ref.external_id}: field {field_key} = {value}")

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _put_status(self, ref: RemoteRef, status: FeedbackStatus) -> None:
        # Setting a task to the status it already has is accepted by ClickUp
        name = StatusMapper.map(status, self.kind)
        self._client.put(f"task/{ref.external_id}", json={"status": name})
        self.logger.info(f"Task {ref.external_id} -> {name}")

    def build_description(self, item: FeedbackItem) -> str:
        """Markdown body for a new task."""
        description = (
            f"## {item.category.display_name}\n"
            f"\n"
            f"{item.description}\n"
            f"\n"
            f"---\n"
            f"\n"
            f"**Source:** feedbackbridge\n"
            f"**Project:** {self.project_name or item.project_id}\n"
            f"**Votes:** {item.vote_count}"
        )
        if item.user_email:
            description += f"\n**Submitted by:** {item.user_email}"
        return description
