"""
Feedback Service - State changes that commit first, then project.

This is the seam the CRUD/API layer calls. Every method finishes its store
transaction before its projection can run, so a sink outage can never block
or revert the internal change. The projection's place in the item's
dispatch lane is reserved while the row lock is still held, so sinks see
changes to one item in commit order.
"""

import logging
import re
from concurrent.futures import Future
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, Optional

from ..core.domain.entities import Comment, FeedbackItem, RemoteRef, Vote, utcnow
from ..core.domain.enums import FeedbackCategory, FeedbackStatus, SinkKind
from ..core.domain.events import (
    CommentAdded,
    EventBus,
    FeedbackCreated,
    StatusChanged,
    VoteCountChanged,
)
from ..core.domain.votes import VoteLedger
from ..core.exceptions import (
    AlreadyMergedError,
    ConflictError,
    FeedbackBridgeError,
    NotFoundError,
    ValidationError,
)
from ..core.ports.config_provider import ProjectSyncConfig
from ..core.ports.persistence import FeedbackStorePort, StoreTransaction
from .merge import MergeCoordinator, MergeResult
from .sync import BulkFailure, BulkResult, DispatchSlot, ProjectionDispatcher, SyncProjector


ConfigLookup = Callable[[str], Optional[ProjectSyncConfig]]

EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$")


@dataclass
class ChangeReceipt:
    """An internal change that has been committed, plus its projection."""

    item: FeedbackItem
    projection: Optional[Future] = None


@dataclass
class _Reservation:
    slot: DispatchSlot
    config: ProjectSyncConfig


class FeedbackService:
    """
    Application service for feedback mutations.

    Usage:
        service = FeedbackService(store, projector, dispatcher, configs.get)
        receipt = service.update_status(item_id, FeedbackStatus.COMPLETED)
        receipt.projection.result()  # ProjectionResult, if you want to wait
    """

    def __init__(
        self,
        store: FeedbackStorePort,
        projector: SyncProjector,
        dispatcher: ProjectionDispatcher,
        config_lookup: ConfigLookup,
        merge_coordinator: Optional[MergeCoordinator] = None,
        event_bus: Optional[EventBus] = None,
    ):
        self.store = store
        self.projector = projector
        self.dispatcher = dispatcher
        self.config_lookup = config_lookup
        self.event_bus = event_bus or projector.event_bus
        self.merger = merge_coordinator or MergeCoordinator(store, self.event_bus)
        self.logger = logging.getLogger("FeedbackService")

    # -------------------------------------------------------------------------
    # Creation
    # -------------------------------------------------------------------------

    def create_feedback(
        self,
        project_id: str,
        title: str,
        description: str,
        user_id: str,
        category: FeedbackCategory = FeedbackCategory.FEATURE_REQUEST,
        user_email: Optional[str] = None,
    ) -> ChangeReceipt:
        """Store new feedback and announce it to notification sinks."""
        title = title.strip()
        description = description.strip()
        if not title:
            raise ValidationError("Title cannot be empty")
        if not description:
            raise ValidationError("Description cannot be empty")
        if not user_id.strip():
            raise ValidationError("User id is required")
        if user_email and not EMAIL_PATTERN.match(user_email):
            raise ValidationError("Invalid email format")

        item = FeedbackItem(
            project_id=project_id,
            title=title,
            description=description,
            category=category,
            user_id=user_id,
            user_email=user_email or None,
        )
        with self._transaction() as (tx, slots):
            tx.lock_items([item.id])
            tx.save_item(item)
            reservation = self._reserve(slots, item)

        self.logger.info(f"Created feedback {item.id} in {project_id}")
        self.event_bus.publish(FeedbackCreated(feedback_id=item.id, project_id=project_id))
        snapshot = item.copy()
        return ChangeReceipt(
            item=item,
            projection=self._hand_off(reservation, lambda config: self.projector.on_feedback_created(
                snapshot, config
            )),
        )

    # -------------------------------------------------------------------------
    # Status
    # -------------------------------------------------------------------------

    def update_status(self, feedback_id: str, new_status: FeedbackStatus) -> ChangeReceipt:
        with self._transaction() as (tx, slots):
            item = self._lock_one(tx, feedback_id)
            old_status = item.status
            if old_status == new_status:
                return ChangeReceipt(item=item)
            item.status = new_status
            item.updated_at = utcnow()
            tx.save_item(item)
            reservation = self._reserve(slots, item)

        self.logger.info(f"Status of {feedback_id}: {old_status.value} -> {new_status.value}")
        self.event_bus.publish(StatusChanged(
            feedback_id=feedback_id,
            from_status=old_status.value,
            to_status=new_status.value,
        ))
        snapshot = item.copy()
        return ChangeReceipt(
            item=item,
            projection=self._hand_off(reservation, lambda config: self.projector.on_status_changed(
                snapshot, old_status, new_status, config
            )),
        )

    # -------------------------------------------------------------------------
    # Comments
    # -------------------------------------------------------------------------

    def add_comment(
        self,
        feedback_id: str,
        author_id: str,
        content: str,
        is_admin: bool = False,
    ) -> ChangeReceipt:
        content = content.strip()
        if not content:
            raise ValidationError("Comment cannot be empty")
        if not author_id.strip():
            raise ValidationError("Author id is required")

        with self._transaction() as (tx, slots):
            item = self._lock_one(tx, feedback_id)
            if item.is_merged:
                raise AlreadyMergedError(item.id, item.merged_into_id)
            comment = Comment(
                feedback_id=feedback_id,
                author_id=author_id,
                content=content,
                is_admin=is_admin,
            )
            tx.set_comments(feedback_id, tx.comments_for(feedback_id) + [comment])
            reservation = self._reserve(slots, item)

        self.event_bus.publish(CommentAdded(feedback_id=feedback_id, comment_id=comment.id))
        snapshot = item.copy()
        return ChangeReceipt(
            item=item,
            projection=self._hand_off(reservation, lambda config: self.projector.on_comment_added(
                snapshot, comment, config
            )),
        )

    # -------------------------------------------------------------------------
    # Votes
    # -------------------------------------------------------------------------

    def add_vote(self, feedback_id: str, voter_id: str, email: Optional[str] = None) -> ChangeReceipt:
        if not voter_id.strip():
            raise ValidationError("Voter id is required")

        with self._transaction() as (tx, slots):
            item = self._lock_one(tx, feedback_id)
            if item.is_merged:
                raise AlreadyMergedError(item.id, item.merged_into_id)
            if item.status.is_terminal():
                raise ValidationError(f"Cannot vote on feedback that is {item.status.value}")

            votes = tx.votes_for(feedback_id)
            if voter_id in VoteLedger.voter_ids(votes):
                raise ConflictError(f"{voter_id} has already voted for {feedback_id}")
            votes.append(Vote(feedback_id=feedback_id, voter_id=voter_id, email=email))
            tx.set_votes(feedback_id, votes)
            item.vote_count = VoteLedger.count(votes)
            tx.save_item(item)
            reservation = self._reserve(slots, item)

        return self._vote_count_changed(item, reservation)

    def remove_vote(self, feedback_id: str, voter_id: str) -> ChangeReceipt:
        with self._transaction() as (tx, slots):
            item = self._lock_one(tx, feedback_id)
            if item.is_merged:
                raise AlreadyMergedError(item.id, item.merged_into_id)

            votes = tx.votes_for(feedback_id)
            remaining = [v for v in votes if v.voter_id != voter_id]
            if len(remaining) == len(votes):
                raise NotFoundError(feedback_id, f"No vote by {voter_id} on {feedback_id}")
            tx.set_votes(feedback_id, remaining)
            item.vote_count = VoteLedger.count(remaining)
            tx.save_item(item)
            reservation = self._reserve(slots, item)

        return self._vote_count_changed(item, reservation)

    # -------------------------------------------------------------------------
    # Merge & Bulk
    # -------------------------------------------------------------------------

    def merge(self, primary_id: str, secondary_ids: Iterable[str]) -> tuple[MergeResult, ChangeReceipt]:
        """Merge, then project the primary's new vote count."""
        staged: list[FeedbackItem] = []
        slots: list[DispatchSlot] = []
        reservations: list[Optional[_Reservation]] = []

        def on_staged(primary: FeedbackItem) -> None:
            staged.append(primary)
            reservations.append(self._reserve(slots, primary))

        try:
            result = self.merger.merge(primary_id, secondary_ids, on_staged=on_staged)
        except BaseException:
            for slot in slots:
                slot.cancel()
            raise

        return result, self._vote_count_changed(staged[-1], reservations[-1])

    def bulk_create_remote(self, feedback_ids: Iterable[str], sink_kind: SinkKind) -> BulkResult:
        """
        Create remote items in one sink and persist the returned references.

        Runs synchronously: the caller asked for the batch and needs the
        created/failed partition back. An item whose remote object was
        created but whose reference could not be saved is reported as
        failed; the remote URL is logged so it can be linked by hand.
        """
        ids = list(dict.fromkeys(feedback_ids))
        items = self.store.get_items(ids)
        found = {item.id for item in items}
        missing = [feedback_id for feedback_id in ids if feedback_id not in found]
        if not items:
            raise NotFoundError(", ".join(ids) or "<empty>")

        projects = {item.project_id for item in items}
        if len(projects) > 1:
            raise ValidationError("Bulk create items must belong to one project")
        config = self._config(items[0].project_id)
        if config is None:
            raise ValidationError(f"No sync configuration for project {items[0].project_id}")

        result = self.projector.bulk_create(items, config, sink_kind)
        result.skipped.extend((feedback_id, "not found") for feedback_id in missing)

        refs = [(key, ref) for key, ref in result.succeeded if ref]
        unlinked = self._store_refs(sink_kind, refs)
        if unlinked:
            result.succeeded = [(key, ref) for key, ref in result.succeeded if key not in unlinked]
            result.failed.extend(unlinked.values())
        return result

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _lock_one(tx: StoreTransaction, feedback_id: str) -> FeedbackItem:
        item = tx.lock_items([feedback_id]).get(feedback_id)
        if item is None:
            raise NotFoundError(feedback_id)
        return item

    def _config(self, project_id: str) -> Optional[ProjectSyncConfig]:
        return self.config_lookup(project_id)

    @contextmanager
    def _transaction(self) -> Iterator[tuple[StoreTransaction, list[DispatchSlot]]]:
        """A store transaction whose reserved dispatch slots are dropped on rollback."""
        slots: list[DispatchSlot] = []
        try:
            with self.store.transaction() as tx:
                yield tx, slots
        except BaseException:
            for slot in slots:
                slot.cancel()
            raise

    def _reserve(self, slots: list[DispatchSlot], item: FeedbackItem) -> Optional[_Reservation]:
        """Take the item's next dispatch slot; must run under the item's row lock."""
        config = self._config(item.project_id)
        if config is None or not config.enabled_sinks():
            self.logger.debug(f"No sinks enabled for project {item.project_id}")
            return None
        slot = self.dispatcher.reserve(item.id)
        slots.append(slot)
        return _Reservation(slot, config)

    @staticmethod
    def _hand_off(reservation: Optional[_Reservation], fn) -> Optional[Future]:
        if reservation is None:
            return None
        config = reservation.config
        return reservation.slot.fill(lambda: fn(config))

    def _vote_count_changed(
        self,
        item: FeedbackItem,
        reservation: Optional[_Reservation],
    ) -> ChangeReceipt:
        self.event_bus.publish(VoteCountChanged(feedback_id=item.id, vote_count=item.vote_count))
        snapshot = item.copy()
        return ChangeReceipt(
            item=item,
            projection=self._hand_off(reservation, lambda config: self.projector.on_vote_count_changed(
                snapshot, config
            )),
        )

    def _store_refs(
        self,
        sink_kind: SinkKind,
        refs: list[tuple[str, RemoteRef]],
    ) -> dict[str, BulkFailure]:
        """
        Save new references, one transaction per item.

        Returns:
            Failures keyed by feedback id for remote items left unlinked
        """
        unlinked: dict[str, BulkFailure] = {}
        for feedback_id, ref in refs:
            try:
                with self.store.transaction() as tx:
                    item = tx.lock_items([feedback_id]).get(feedback_id)
                    if item is None:
                        self.logger.error(
                            f"Feedback {feedback_id} was deleted; {ref.url} is not linked"
                        )
                        unlinked[feedback_id] = BulkFailure(
                            feedback_id, f"feedback deleted before {ref.url} was linked"
                        )
                        continue
                    existing = item.remote_ref(sink_kind)
                    if existing is not None:
                        self.logger.warning(
                            f"Not linking {feedback_id} to {ref.url}: "
                            f"already linked to {existing.url}"
                        )
                        continue
                    item.remote_refs[sink_kind] = ref
                    tx.save_item(item)
            except FeedbackBridgeError as e:
                self.logger.error(f"Created {ref.url} but could not link {feedback_id}: {e}")
                unlinked[feedback_id] = BulkFailure(
                    feedback_id,
                    f"created {ref.url} but could not save the reference: {e}",
                )
        return unlinked
