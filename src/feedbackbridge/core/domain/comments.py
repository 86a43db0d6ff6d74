"""
Comment Migrator - Move comments from merged items onto the primary.
"""

from dataclasses import replace
from typing import Sequence

from .entities import Comment, FeedbackItem


PROVENANCE_TEMPLATE = "[Originally on: {title}] "


class CommentMigrator:
    """Reparents comments while keeping order and origin visible."""

    @staticmethod
    def provenance_prefix(title: str) -> str:
        return PROVENANCE_TEMPLATE.format(title=title)

    @classmethod
    def reparent(cls, comment: Comment, primary_id: str, origin_title: str) -> Comment:
        return replace(
            comment,
            feedback_id=primary_id,
            content=cls.provenance_prefix(origin_title) + comment.content,
        )

    @classmethod
    def migrate(
        cls,
        primary_id: str,
        secondaries: Sequence[tuple[FeedbackItem, Sequence[Comment]]],
    ) -> list[Comment]:
        """
        Reparent every secondary comment onto the primary.

        Each secondary's comments are kept in chronological order and the
        secondaries are concatenated in the order given.

        Args:
            primary_id: Id of the surviving feedback item
            secondaries: (secondary item, its comments) pairs in merge order

        Returns:
            The rewritten comments, ready to be saved
        """
        migrated: list[Comment] = []
        for secondary, comments in secondaries:
            ordered = sorted(comments, key=lambda c: c.created_at)
            migrated.extend(
                cls.reparent(comment, primary_id, secondary.title)
                for comment in ordered
            )
        return migrated
