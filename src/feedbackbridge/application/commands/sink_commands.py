"""
Sink Commands - One command per SinkPort capability.
"""

from typing import Optional

from ...core.domain.entities import Comment, FeedbackItem, RemoteRef
from ...core.domain.enums import FeedbackStatus, SinkCapability
from ...core.domain.events import EventBus, RemoteItemCreated
from ...core.ports.sink import SinkPort
from .base import Command


class SinkCommand(Command):
    """Base for commands that call one capability on one sink."""

    capability: SinkCapability

    def __init__(
        self,
        sink: SinkPort,
        item: FeedbackItem,
        ref: Optional[RemoteRef] = None,
        event_bus: Optional[EventBus] = None,
        dry_run: bool = False,
    ):
        super().__init__(event_bus=event_bus, dry_run=dry_run)
        self.sink = sink
        self.item = item
        self.ref = ref

    @property
    def name(self) -> str:
        return f"{self.capability.value} on {self.sink.name} for {self.item.id}"

    def validate(self) -> Optional[str]:
        if not self.sink.supports(self.capability):
            return f"{self.sink.name} does not support {self.capability.value}"
        if self.sink.requires_remote_ref and self.ref is None:
            return f"No {self.sink.name} reference for feedback {self.item.id}"
        return None


class CreateRemoteItemCommand(SinkCommand):
    """Create the remote representation of a feedback item."""

    capability = SinkCapability.CREATE

    def validate(self) -> Optional[str]:
        if not self.sink.supports(self.capability):
            return f"{self.sink.name} does not support {self.capability.value}"
        if self.item.remote_ref(self.sink.kind) is not None:
            return f"Feedback {self.item.id} already has a {self.sink.name} item"
        return None

    def _do_execute(self) -> RemoteRef:
        ref = self.sink.create(self.item)
        if self.event_bus:
            self.event_bus.publish(RemoteItemCreated(
                feedback_id=self.item.id,
                sink=self.sink.name,
                remote_url=ref.url,
                remote_id=ref.external_id,
            ))
        return ref


class CloseRemoteItemCommand(SinkCommand):
    capability = SinkCapability.CLOSE

    def _do_execute(self) -> None:
        self.sink.close(self.ref, self.item)


class ReopenRemoteItemCommand(SinkCommand):
    capability = SinkCapability.REOPEN

    def _do_execute(self) -> None:
        self.sink.reopen(self.ref, self.item)


class UpdateRemoteStatusCommand(SinkCommand):
    capability = SinkCapability.UPDATE_STATUS

    def __init__(self, sink: SinkPort, item: FeedbackItem, old_status: FeedbackStatus, **kwargs):
        super().__init__(sink, item, **kwargs)
        self.old_status = old_status

    def _do_execute(self) -> None:
        self.sink.update_status(self.ref, self.item, self.old_status)


class AddRemoteCommentCommand(SinkCommand):
    capability = SinkCapability.COMMENT

    def __init__(self, sink: SinkPort, item: FeedbackItem, comment: Comment, **kwargs):
        super().__init__(sink, item, **kwargs)
        self.comment = comment

    def validate(self) -> Optional[str]:
        if not self.comment.content.strip():
            return "Comment text is empty"
        return super().validate()

    def _do_execute(self) -> None:
        self.sink.add_comment(self.ref, self.item, self.comment)


class AnnounceFeedbackCommand(SinkCommand):
    """Notify a sink that new feedback was submitted."""

    capability = SinkCapability.ANNOUNCE

    def validate(self) -> Optional[str]:
        if not self.sink.supports(self.capability):
            return f"{self.sink.name} does not support {self.capability.value}"
        return None

    def _do_execute(self) -> None:
        self.sink.announce(self.item)


class SetRemoteMetricCommand(SinkCommand):
    """Push a numeric value (the vote count) into a sink custom field."""

    capability = SinkCapability.SET_METRIC

    def __init__(self, sink: SinkPort, item: FeedbackItem, field_key: str, value: float, **kwargs):
        super().__init__(sink, item, **kwargs)
        self.field_key = field_key
        self.value = value

    def validate(self) -> Optional[str]:
        if not self.field_key:
            return f"No metric field configured for {self.sink.name}"
        return super().validate()

    def _do_execute(self) -> None:
        self.sink.set_metric(self.ref, self.field_key, self.value)
