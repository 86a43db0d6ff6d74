"""
Sync Projector - Fans internal feedback changes out to configured sinks.

Every enabled sink is called independently: a failure in one is recorded and
logged, never raised, and never undoes the internal change that triggered the
projection.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

from ...core.domain.entities import Comment, FeedbackItem, RemoteRef
from ...core.domain.enums import FeedbackStatus, SinkCapability, SinkKind
from ...core.domain.events import EventBus, ProjectionCompleted, SinkCallFailed
from ...core.domain.status_mapper import StatusMapper
from ...core.exceptions import ConfigError, SinkError
from ...core.ports.config_provider import ProjectSyncConfig, SinkConfig
from ...core.ports.sink import SinkPort
from ..commands import (
    AddRemoteCommentCommand,
    AnnounceFeedbackCommand,
    CloseRemoteItemCommand,
    CommandBatch,
    CommandResult,
    CreateRemoteItemCommand,
    ReopenRemoteItemCommand,
    SetRemoteMetricCommand,
    SinkCommand,
    UpdateRemoteStatusCommand,
)
from .bulk import BulkOperationRunner, BulkResult, WorkUnit


@dataclass
class SinkOutcome:
    """What happened when one sink was asked to do one thing."""

    sink: str
    operation: str
    success: bool = True
    skipped: bool = False
    error: Optional[str] = None
    status_code: Optional[int] = None

    def __str__(self) -> str:
        if self.skipped:
            return f"[{self.operation}] {self.sink}: skipped ({self.error})"
        if not self.success:
            return f"[{self.operation}] {self.sink}: {self.error}"
        return f"[{self.operation}] {self.sink}: ok"


@dataclass
class ProjectionResult:
    """
    Result of projecting one internal change.

    Supports partial success: some sinks can fail while others succeed.
    """

    feedback_id: str
    trigger: str
    outcomes: list[SinkOutcome] = field(default_factory=list)

    @property
    def succeeded(self) -> list[SinkOutcome]:
        return [o for o in self.outcomes if o.success and not o.skipped]

    @property
    def failed(self) -> list[SinkOutcome]:
        return [o for o in self.outcomes if not o.success]

    @property
    def skipped(self) -> list[SinkOutcome]:
        return [o for o in self.outcomes if o.skipped]

    @property
    def success(self) -> bool:
        return not self.failed

    def add_skip(self, sink: str, operation: str, reason: str) -> None:
        self.outcomes.append(SinkOutcome(sink, operation, skipped=True, error=reason))


class SyncProjector:
    """
    Projects feedback changes into external sinks.

    Sinks are looked up by kind; the project's ProjectSyncConfig decides which
    of them are enabled for a given call. Configuration is always passed in,
    never read from global state.
    """

    def __init__(
        self,
        sinks: Iterable[SinkPort],
        bulk_runner: Optional[BulkOperationRunner] = None,
        event_bus: Optional[EventBus] = None,
        dry_run: bool = False,
    ):
        """
        Initialize the projector.

        Args:
            sinks: Sink adapters, at most one per SinkKind
            bulk_runner: Runner used by bulk_create
            event_bus: Optional event bus for failure/completion events
            dry_run: If True, log instead of calling sinks
        """
        self.sinks: dict[SinkKind, SinkPort] = {sink.kind: sink for sink in sinks}
        self.bulk_runner = bulk_runner or BulkOperationRunner()
        self.event_bus = event_bus or EventBus()
        self.dry_run = dry_run
        self.logger = logging.getLogger("SyncProjector")

    # -------------------------------------------------------------------------
    # Main Entry Points
    # -------------------------------------------------------------------------

    def on_feedback_created(
        self,
        item: FeedbackItem,
        config: ProjectSyncConfig,
    ) -> ProjectionResult:
        """Announce new feedback to sinks that post notifications."""
        result = ProjectionResult(feedback_id=item.id, trigger="feedback_created")

        batch = CommandBatch(stop_on_error=False)
        for sink_config, sink in self._targets(config, result, "announce"):
            if not sink.supports(SinkCapability.ANNOUNCE):
                result.add_skip(sink.name, "announce", "capability not supported")
                continue
            if not sink_config.notify_new_feedback:
                result.add_skip(sink.name, "announce", "new feedback notifications disabled")
                continue
            self._queue(batch, result, AnnounceFeedbackCommand(sink, item, **self._opts()))

        self._run(batch, result)
        return self._finish(result)

    def on_status_changed(
        self,
        item: FeedbackItem,
        old_status: FeedbackStatus,
        new_status: FeedbackStatus,
        config: ProjectSyncConfig,
    ) -> ProjectionResult:
        """
        Project a status change.

        Entering completed/rejected closes remote items, leaving them reopens
        them, and any other change is pushed as a plain status update.
        """
        result = ProjectionResult(feedback_id=item.id, trigger="status_changed")
        transition = StatusMapper.transition_kind(old_status, new_status)
        if transition is None:
            return result

        batch = CommandBatch(stop_on_error=False)
        for sink_config, sink in self._targets(config, result, "status"):
            if not self._status_enabled(sink_config):
                result.add_skip(sink.name, transition, "status sync disabled")
                continue

            ref = item.remote_ref(sink.kind)
            if transition == StatusMapper.CLOSE:
                command: SinkCommand = CloseRemoteItemCommand(sink, item, ref=ref, **self._opts())
            elif transition == StatusMapper.REOPEN:
                command = ReopenRemoteItemCommand(sink, item, ref=ref, **self._opts())
            else:
                command = UpdateRemoteStatusCommand(
                    sink, item, old_status, ref=ref, **self._opts()
                )
            self._queue(batch, result, command)

        self._run(batch, result)
        return self._finish(result)

    def on_comment_added(
        self,
        item: FeedbackItem,
        comment: Comment,
        config: ProjectSyncConfig,
    ) -> ProjectionResult:
        """Mirror a new comment into every sink that accepts comments."""
        result = ProjectionResult(feedback_id=item.id, trigger="comment_added")

        batch = CommandBatch(stop_on_error=False)
        for sink_config, sink in self._targets(config, result, "comment"):
            if not self._comments_enabled(sink_config):
                result.add_skip(sink.name, "comment", "comment sync disabled")
                continue
            self._queue(batch, result, AddRemoteCommentCommand(
                sink, item, comment,
                ref=item.remote_ref(sink.kind), **self._opts(),
            ))

        self._run(batch, result)
        return self._finish(result)

    def on_vote_count_changed(
        self,
        item: FeedbackItem,
        config: ProjectSyncConfig,
    ) -> ProjectionResult:
        """Push the current vote count into sinks with a numeric vote field."""
        result = ProjectionResult(feedback_id=item.id, trigger="vote_count_changed")

        batch = CommandBatch(stop_on_error=False)
        for sink_config, sink in self._targets(config, result, "set_metric"):
            if not sink.supports(SinkCapability.SET_METRIC):
                result.add_skip(sink.name, "set_metric", "capability not supported")
                continue
            if not sink_config.vote_field_id:
                result.add_skip(sink.name, "set_metric", "no vote field configured")
                continue
            self._queue(batch, result, SetRemoteMetricCommand(
                sink, item, sink_config.vote_field_id, item.vote_count,
                ref=item.remote_ref(sink.kind), **self._opts(),
            ))

        self._run(batch, result)
        return self._finish(result)

    def bulk_create(
        self,
        items: Sequence[FeedbackItem],
        config: ProjectSyncConfig,
        sink_kind: SinkKind,
        cancel_event: Optional[threading.Event] = None,
    ) -> BulkResult:
        """
        Create remote items for many feedback items in one sink.

        Items that already have a reference in the sink, or that are merged,
        are skipped rather than duplicated. Never raises for per-item
        failures; they are returned in ``failed``.

        Raises:
            ConfigError: If the sink is not enabled or cannot create items
        """
        sink_config = config.sink(sink_kind)
        sink = self.sinks.get(sink_kind)
        if sink_config is None or not sink_config.is_active or sink is None:
            raise ConfigError(f"{sink_kind.value} is not configured for project {config.project_id}")
        if not sink.supports(SinkCapability.CREATE):
            raise ConfigError(f"{sink.name} cannot create remote items")

        skipped: list[tuple[str, str]] = []
        units: list[WorkUnit] = []
        seen: set[str] = set()
        for item in items:
            if item.id in seen:
                continue
            seen.add(item.id)
            if item.remote_ref(sink_kind) is not None:
                skipped.append((item.id, f"already linked to {sink.name}"))
            elif item.is_merged:
                skipped.append((item.id, f"merged into {item.merged_into_id}"))
            else:
                units.append(WorkUnit(item.id, self._create_unit(sink, item)))

        self.logger.info(
            f"Bulk creating {len(units)} {sink.name} item(s), {len(skipped)} skipped"
        )
        result = self.bulk_runner.run(units, cancel_event=cancel_event)
        result.skipped.extend(skipped)

        for failure in result.failed:
            self.event_bus.publish(SinkCallFailed(
                feedback_id=failure.key,
                sink=sink.name,
                operation="create",
                error=failure.error,
                status_code=failure.status_code,
            ))
        return result

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _targets(
        self,
        config: ProjectSyncConfig,
        result: ProjectionResult,
        operation: str,
    ) -> list[tuple[SinkConfig, SinkPort]]:
        """Enabled sinks for the project that have an adapter registered."""
        targets = []
        for sink_config in config.enabled_sinks():
            sink = self.sinks.get(sink_config.kind)
            if sink is None:
                result.add_skip(sink_config.kind.value, operation, "no adapter registered")
                continue
            targets.append((sink_config, sink))
        return targets

    @staticmethod
    def _status_enabled(sink_config: SinkConfig) -> bool:
        if sink_config.kind == SinkKind.NOTIFICATION:
            return sink_config.notify_status_changes
        return sink_config.sync_status

    @staticmethod
    def _comments_enabled(sink_config: SinkConfig) -> bool:
        if sink_config.kind == SinkKind.NOTIFICATION:
            return sink_config.notify_comments
        return sink_config.sync_comments

    def _opts(self) -> dict:
        return {"event_bus": self.event_bus, "dry_run": self.dry_run}

    def _queue(self, batch: CommandBatch, result: ProjectionResult, command: SinkCommand) -> None:
        """Add a command, or record a skip when the sink can't take it."""
        if not command.sink.supports(command.capability):
            result.add_skip(command.sink.name, command.capability.value, "capability not supported")
            return
        if command.sink.requires_remote_ref and command.ref is None:
            result.add_skip(command.sink.name, command.capability.value, "no remote reference")
            return
        batch.add(command)

    def _run(self, batch: CommandBatch, result: ProjectionResult) -> None:
        batch.execute_all()
        for command, cmd_result in zip(batch.commands, batch.results):
            outcome = self._outcome(command, cmd_result)
            result.outcomes.append(outcome)
            if not outcome.success:
                self.logger.warning(f"Projection to {outcome.sink} failed: {outcome}")
                self.event_bus.publish(SinkCallFailed(
                    feedback_id=result.feedback_id,
                    sink=outcome.sink,
                    operation=outcome.operation,
                    error=outcome.error or "",
                    status_code=outcome.status_code,
                ))

    @staticmethod
    def _outcome(command: SinkCommand, cmd_result: CommandResult) -> SinkOutcome:
        return SinkOutcome(
            sink=command.sink.name,
            operation=command.capability.value,
            success=cmd_result.success,
            skipped=cmd_result.skipped,
            error=cmd_result.error,
            status_code=cmd_result.status_code,
        )

    def _finish(self, result: ProjectionResult) -> ProjectionResult:
        self.logger.info(
            f"Projected {result.trigger} for {result.feedback_id}: "
            f"{len(result.succeeded)} ok, {len(result.failed)} failed, "
            f"{len(result.skipped)} skipped"
        )
        self.event_bus.publish(ProjectionCompleted(
            feedback_id=result.feedback_id,
            trigger=result.trigger,
            succeeded=len(result.succeeded),
            failed=len(result.failed),
            skipped=len(result.skipped),
        ))
        return result

    def _create_unit(self, sink: SinkPort, item: FeedbackItem):
        command = CreateRemoteItemCommand(sink, item, **self._opts())

        def unit() -> Optional[RemoteRef]:
            cmd_result = command.execute()
            if not cmd_result.success:
                if cmd_result.exception is not None:
                    raise cmd_result.exception
                raise SinkError(cmd_result.error or "create failed", sink_kind=sink.kind)
            return cmd_result.data

        return unit
