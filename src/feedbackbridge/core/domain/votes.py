"""
Vote Ledger - Deduplicated voter sets and derived vote counts.
"""

from dataclasses import dataclass, field
from typing import Iterable

from .entities import Vote


@dataclass
class VoteConsolidation:
    """Outcome of folding secondary votes into a primary."""

    primary_id: str
    voter_ids: set[str] = field(default_factory=set)
    moved: list[Vote] = field(default_factory=list)
    dropped: list[Vote] = field(default_factory=list)

    @property
    def vote_count(self) -> int:
        return len(self.voter_ids)


class VoteLedger:
    """
    Computes voter sets and counts.

    A feedback item's vote count is always the number of distinct voter ids
    attached to it. Nothing else may set it.
    """

    @staticmethod
    def voter_ids(votes: Iterable[Vote]) -> set[str]:
        return {vote.voter_id for vote in votes}

    @classmethod
    def count(cls, votes: Iterable[Vote]) -> int:
        return len(cls.voter_ids(votes))

    @classmethod
    def consolidate(
        cls,
        primary_id: str,
        primary_votes: Iterable[Vote],
        secondary_votes: Iterable[Vote],
    ) -> VoteConsolidation:
        """
        Fold secondary votes into the primary.

        Votes from voters already counted on the primary (or seen earlier in
        ``secondary_votes``) are dropped instead of duplicated; the rest are
        reassigned to the primary.

        Args:
            primary_id: Id of the surviving feedback item
            primary_votes: Votes currently on the primary
            secondary_votes: Votes on all secondaries, in merge order

        Returns:
            VoteConsolidation with the union voter set and moved/dropped rows
        """
        result = VoteConsolidation(
            primary_id=primary_id,
            voter_ids=cls.voter_ids(primary_votes),
        )

        for vote in secondary_votes:
            if vote.voter_id in result.voter_ids:
                result.dropped.append(vote)
                continue
            result.voter_ids.add(vote.voter_id)
            result.moved.append(vote.reassigned(primary_id))

        return result
