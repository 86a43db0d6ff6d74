"""
Merge Coordinator - Collapse duplicate feedback into one primary item.

The merge runs in a single store transaction: votes are unioned, comments
are reparented, secondaries become terminal, and the primary records what
was merged into it. Either all of it is committed or none of it is.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional

from ...core.domain.entities import FeedbackItem, utcnow
from ...core.domain.comments import CommentMigrator
from ...core.domain.events import EventBus, FeedbackMerged
from ...core.domain.votes import VoteLedger
from ...core.exceptions import (
    AlreadyMergedError,
    ConflictError,
    FeedbackBridgeError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from ...core.ports.persistence import FeedbackStorePort


@dataclass
class MergeResult:
    """Result of a successful merge."""

    primary_id: str
    merged_ids: list[str] = field(default_factory=list)
    new_vote_count: int = 0
    moved_votes: int = 0
    dropped_votes: int = 0
    moved_comments: int = 0

    @property
    def merged_count(self) -> int:
        return len(self.merged_ids)

    def to_dict(self) -> dict[str, Any]:
        return {
            "primaryId": self.primary_id,
            "mergedCount": self.merged_count,
            "newVoteCount": self.new_vote_count,
        }


class MergeCoordinator:
    """
    Orchestrates merge validation, consolidation, and persistence.

    Phases:
    1. Validate the request against a snapshot (no locks, no writes)
    2. Lock primary + secondaries and re-validate against locked state
    3. Union votes and reparent comments
    4. Mark secondaries terminal, record them on the primary
    5. Commit
    """

    def __init__(
        self,
        store: FeedbackStorePort,
        event_bus: Optional[EventBus] = None,
    ):
        """
        Initialize the coordinator.

        Args:
            store: Feedback persistence port
            event_bus: Optional event bus for FeedbackMerged events
        """
        self.store = store
        self.event_bus = event_bus or EventBus()
        self.logger = logging.getLogger("MergeCoordinator")

    # -------------------------------------------------------------------------
    # Main Entry Point
    # -------------------------------------------------------------------------

    def merge(
        self,
        primary_id: str,
        secondary_ids: Iterable[str],
        on_staged: Optional[Callable[[FeedbackItem], None]] = None,
    ) -> MergeResult:
        """
        Merge secondaries into a primary.

        Args:
            primary_id: Id of the item that survives
            secondary_ids: Ids of the items merged into it, in merge order
            on_staged: Called with the staged primary while its row lock is
                still held, just before commit

        Returns:
            MergeResult with the new vote count and moved row counts

        Raises:
            ValidationError: Self-merge, empty request, cross-project, or
                a primary that is itself merged
            NotFoundError: Any id does not exist
            AlreadyMergedError: A secondary was already merged
            ConflictError: A concurrent merge claimed a secondary first
            PersistenceError: The store failed; nothing was written
        """
        ordered_ids = self._normalize_ids(primary_id, secondary_ids)

        # Phase 1: fail fast on the snapshot
        snapshot = self._load_snapshot(primary_id, ordered_ids)
        self._validate(snapshot[primary_id], [snapshot[i] for i in ordered_ids])

        try:
            with self.store.transaction() as tx:
                # Phase 2: lock and re-check
                locked = tx.lock_items([primary_id, *ordered_ids])
                self._check_races(snapshot, locked, primary_id, ordered_ids)
                primary = locked[primary_id]
                secondaries = [locked[i] for i in ordered_ids]
                self._validate(primary, secondaries)

                # Phase 3: votes
                secondary_votes = [v for s in secondaries for v in tx.votes_for(s.id)]
                votes = VoteLedger.consolidate(
                    primary.id, tx.votes_for(primary.id), secondary_votes
                )
                tx.set_votes(primary.id, tx.votes_for(primary.id) + votes.moved)

                # Phase 3: comments
                migrated = CommentMigrator.migrate(
                    primary.id,
                    [(s, tx.comments_for(s.id)) for s in secondaries],
                )
                tx.set_comments(primary.id, tx.comments_for(primary.id) + migrated)

                # Phase 4: ownership graph
                merged_at = utcnow()
                for secondary in secondaries:
                    tx.set_votes(secondary.id, [])
                    tx.set_comments(secondary.id, [])
                    secondary.merged_into_id = primary.id
                    secondary.merged_at = merged_at
                    secondary.vote_count = 0
                    secondary.updated_at = merged_at
                    tx.save_item(secondary)

                primary.vote_count = votes.vote_count
                primary.merged_feedback_ids |= set(ordered_ids)
                primary.updated_at = merged_at
                tx.save_item(primary)
                if on_staged is not None:
                    on_staged(primary.copy())
        except FeedbackBridgeError:
            raise
        except Exception as e:
            self.logger.error(f"Merge into {primary_id} failed: {e}")
            raise PersistenceError(f"Merge failed: {e}", cause=e) from e

        result = MergeResult(
            primary_id=primary_id,
            merged_ids=list(ordered_ids),
            new_vote_count=votes.vote_count,
            moved_votes=len(votes.moved),
            dropped_votes=len(votes.dropped),
            moved_comments=len(migrated),
        )
        self.logger.info(
            f"Merged {result.merged_count} item(s) into {primary_id}: "
            f"{result.new_vote_count} votes, {result.moved_comments} comments moved"
        )
        self.event_bus.publish(FeedbackMerged(
            primary_id=primary_id,
            secondary_ids=tuple(ordered_ids),
            new_vote_count=result.new_vote_count,
            moved_comments=result.moved_comments,
        ))
        return result

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def _normalize_ids(self, primary_id: str, secondary_ids: Iterable[str]) -> list[str]:
        """Drop duplicate secondary ids while keeping first-seen order."""
        if not primary_id:
            raise ValidationError("Primary feedback id is required")

        ordered: list[str] = []
        for secondary_id in secondary_ids:
            if secondary_id not in ordered:
                ordered.append(secondary_id)

        if not ordered:
            raise ValidationError("At least one secondary feedback id is required")
        if primary_id in ordered:
            raise ValidationError("Cannot merge a feedback item into itself")
        return ordered

    def _load_snapshot(self, primary_id: str, ordered_ids: list[str]) -> dict[str, FeedbackItem]:
        snapshot = {}
        for feedback_id in [primary_id, *ordered_ids]:
            item = self.store.get_item(feedback_id)
            if item is None:
                raise NotFoundError(feedback_id)
            snapshot[feedback_id] = item
        return snapshot

    def _validate(self, primary: FeedbackItem, secondaries: list[FeedbackItem]) -> None:
        if primary.is_merged:
            raise ValidationError(
                f"Primary {primary.id} is itself merged into {primary.merged_into_id}"
            )

        for secondary in secondaries:
            if secondary.project_id != primary.project_id:
                raise ValidationError(
                    f"Feedback {secondary.id} belongs to a different project"
                )
            if secondary.is_merged:
                raise AlreadyMergedError(secondary.id, secondary.merged_into_id)

    def _check_races(
        self,
        snapshot: dict[str, FeedbackItem],
        locked: dict[str, FeedbackItem],
        primary_id: str,
        ordered_ids: list[str],
    ) -> None:
        """Compare locked rows against the snapshot we validated."""
        for feedback_id in [primary_id, *ordered_ids]:
            if feedback_id not in locked:
                raise NotFoundError(feedback_id)

        claimed = [
            feedback_id
            for feedback_id in [primary_id, *ordered_ids]
            if locked[feedback_id].is_merged and not snapshot[feedback_id].is_merged
        ]
        if claimed:
            self.logger.warning(f"Concurrent merge claimed {claimed} first")
            raise ConflictError(
                "A concurrent merge already claimed: " + ", ".join(claimed),
                feedback_ids=claimed,
            )

        changed = [
            feedback_id
            for feedback_id in [primary_id, *ordered_ids]
            if locked[feedback_id].version != snapshot[feedback_id].version
        ]
        if changed:
            self.logger.debug(f"Items changed since snapshot, re-validating: {changed}")
