# ruff: noqa: S608 - All CQL queries use keyspace from config, not user input
"""Vote/reaction ledger.

Business logic for:
- Setting, replacing and toggling off votes and reactions
- Score derivation (upvotes minus downvotes, recomputed from all rows)
- Reaction counts and the viewer's own dispositions
- Purging engagement rows when threads or comments are deleted

Every change follows the same rule: ``None`` removes the actor's row, the
actor's current value toggles it off, anything else replaces it.
"""

from collections import Counter
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID

import structlog

from forum.core.errors import InvalidTargetError, NotFoundError

from .models import (
    EngagementSummary,
    Reaction,
    ReactionResult,
    ReactionType,
    Target,
    TargetKind,
    VoteResult,
    VoteType,
)


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = structlog.get_logger(__name__)


async def resolve_target(
    thread_id: UUID | None,
    comment_id: UUID | None,
    thread_service: Any,
    comment_service: Any,
) -> Target:
    """Resolve exactly one of ``thread_id``/``comment_id`` to a Target.

    Raises:
        InvalidTargetError: Both or neither identifier supplied
        NotFoundError: The referenced thread or comment does not exist
    """
    if (thread_id is None) == (comment_id is None):
        raise InvalidTargetError

    if thread_id is not None:
        thread = await thread_service.get_thread(thread_id)
        if not thread:
            raise NotFoundError("Thread not found")
        return Target(
            kind=TargetKind.THREAD,
            target_id=thread.thread_id,
            owner_id=thread.author_id,
            thread_id=thread.thread_id,
        )

    comment = await comment_service.get_comment(comment_id)
    if not comment:
        raise NotFoundError("Comment not found")
    return Target(
        kind=TargetKind.COMMENT,
        target_id=comment.comment_id,
        owner_id=comment.author_id,
        thread_id=comment.thread_id,
    )


class EngagementService:
    """Service for the vote/reaction ledger."""

    def __init__(self, session: "Session", keyspace: str):
        """Initialize with Cassandra session."""
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for each target kind."""
        self._insert_vote: dict[TargetKind, Any] = {}
        self._get_vote: dict[TargetKind, Any] = {}
        self._get_votes: dict[TargetKind, Any] = {}
        self._delete_vote: dict[TargetKind, Any] = {}
        self._purge_votes: dict[TargetKind, Any] = {}
        self._insert_reaction: dict[TargetKind, Any] = {}
        self._get_reaction: dict[TargetKind, Any] = {}
        self._get_reactions: dict[TargetKind, Any] = {}
        self._delete_reaction: dict[TargetKind, Any] = {}
        self._purge_reactions: dict[TargetKind, Any] = {}

        for kind in TargetKind:
            key = kind.key_column
            votes = f"{self.keyspace}.{kind.value}_votes"
            reactions = f"{self.keyspace}.{kind.value}_reactions"

            self._insert_vote[kind] = self.session.prepare(f"""
                INSERT INTO {votes} ({key}, user_id, vote_type, created_at)
                VALUES (?, ?, ?, ?)
            """)
            self._get_vote[kind] = self.session.prepare(f"""
                SELECT * FROM {votes}
                WHERE {key} = ? AND user_id = ?
            """)
            self._get_votes[kind] = self.session.prepare(f"""
                SELECT * FROM {votes}
                WHERE {key} = ?
            """)
            self._delete_vote[kind] = self.session.prepare(f"""
                DELETE FROM {votes}
                WHERE {key} = ? AND user_id = ?
            """)
            self._purge_votes[kind] = self.session.prepare(f"""
                DELETE FROM {votes}
                WHERE {key} = ?
            """)

            self._insert_reaction[kind] = self.session.prepare(f"""
                INSERT INTO {reactions} ({key}, user_id, reaction_type, created_at)
                VALUES (?, ?, ?, ?)
            """)
            self._get_reaction[kind] = self.session.prepare(f"""
                SELECT * FROM {reactions}
                WHERE {key} = ? AND user_id = ?
            """)
            self._get_reactions[kind] = self.session.prepare(f"""
                SELECT * FROM {reactions}
                WHERE {key} = ?
            """)
            self._delete_reaction[kind] = self.session.prepare(f"""
                DELETE FROM {reactions}
                WHERE {key} = ? AND user_id = ?
            """)
            self._purge_reactions[kind] = self.session.prepare(f"""
                DELETE FROM {reactions}
                WHERE {key} = ?
            """)

    # ==========================================================================
    # Votes
    # ==========================================================================

    async def get_vote(
        self, kind: TargetKind, target_id: UUID, user_id: UUID
    ) -> VoteType | None:
        """Get a user's current vote on a target."""
        result = await self.session.aexecute(self._get_vote[kind], [target_id, user_id])
        row = result[0] if result else None
        return VoteType(row.vote_type) if row else None

    async def get_score(self, kind: TargetKind, target_id: UUID) -> int:
        """Upvotes minus downvotes over every vote row of the target."""
        rows = await self.session.aexecute(self._get_votes[kind], [target_id])
        score = 0
        for row in rows:
            if row.vote_type == VoteType.UPVOTE.value:
                score += 1
            elif row.vote_type == VoteType.DOWNVOTE.value:
                score -= 1
        return score

    async def set_vote(
        self,
        user_id: UUID,
        target: Target,
        value: VoteType | None,
    ) -> VoteResult:
        """Set, replace or retract the user's vote on a target.

        Returns:
            VoteResult with previous/current disposition and the fresh score
        """
        kind = target.kind
        previous = await self.get_vote(kind, target.target_id, user_id)

        current: VoteType | None
        if value is None or value == previous:
            current = None
            await self.session.aexecute(
                self._delete_vote[kind], [target.target_id, user_id]
            )
        else:
            current = value
            if previous is not None:
                await self.session.aexecute(
                    self._delete_vote[kind], [target.target_id, user_id]
                )
            await self.session.aexecute(
                self._insert_vote[kind],
                [target.target_id, user_id, value.value, datetime.now(UTC)],
            )

        score = await self.get_score(kind, target.target_id)
        logger.info(
            "vote_set",
            target_kind=kind.value,
            target_id=str(target.target_id),
            previous=previous.value if previous else None,
            current=current.value if current else None,
            score=score,
        )
        return VoteResult(target=target, previous=previous, current=current, score=score)

    # ==========================================================================
    # Reactions
    # ==========================================================================

    async def get_reaction(
        self, kind: TargetKind, target_id: UUID, user_id: UUID
    ) -> ReactionType | None:
        """Get a user's current reaction on a target."""
        result = await self.session.aexecute(
            self._get_reaction[kind], [target_id, user_id]
        )
        row = result[0] if result else None
        return ReactionType(row.reaction_type) if row else None

    async def list_reactions(self, kind: TargetKind, target_id: UUID) -> list[Reaction]:
        """All reactions on a target, oldest first."""
        rows = await self.session.aexecute(self._get_reactions[kind], [target_id])
        reactions = [Reaction.from_row(row) for row in rows]
        reactions.sort(key=lambda r: r.created_at)
        return reactions

    @staticmethod
    def count_reactions(reactions: Iterable[Reaction]) -> dict[str, int]:
        """Reaction type -> count, omitting types nobody used."""
        counts = Counter(r.reaction_type.value for r in reactions)
        return dict(counts)

    async def set_reaction(
        self,
        user_id: UUID,
        target: Target,
        value: ReactionType | None,
    ) -> ReactionResult:
        """Set, replace or toggle off the user's reaction on a target."""
        kind = target.kind
        previous = await self.get_reaction(kind, target.target_id, user_id)

        current: ReactionType | None
        if value is None or value == previous:
            current = None
            await self.session.aexecute(
                self._delete_reaction[kind], [target.target_id, user_id]
            )
        else:
            current = value
            if previous is not None:
                await self.session.aexecute(
                    self._delete_reaction[kind], [target.target_id, user_id]
                )
            await self.session.aexecute(
                self._insert_reaction[kind],
                [target.target_id, user_id, value.value, datetime.now(UTC)],
            )

        reactions = await self.list_reactions(kind, target.target_id)
        logger.info(
            "reaction_set",
            target_kind=kind.value,
            target_id=str(target.target_id),
            previous=previous.value if previous else None,
            current=current.value if current else None,
        )
        return ReactionResult(
            target=target,
            previous=previous,
            current=current,
            reactions=reactions,
            counts=self.count_reactions(reactions),
        )

    # ==========================================================================
    # Summaries and cleanup
    # ==========================================================================

    async def summarize(
        self,
        kind: TargetKind,
        target_id: UUID,
        user_id: UUID | None = None,
    ) -> EngagementSummary:
        """Score and reaction counts, plus the viewer's own vote/reaction."""
        reactions = await self.list_reactions(kind, target_id)
        summary = EngagementSummary(
            score=await self.get_score(kind, target_id),
            reaction_counts=self.count_reactions(reactions),
        )
        if user_id is not None:
            summary.user_vote = await self.get_vote(kind, target_id, user_id)
            summary.user_reaction = next(
                (r.reaction_type for r in reactions if r.user_id == user_id), None
            )
        return summary

    async def purge(self, kind: TargetKind, target_ids: Iterable[UUID]) -> None:
        """Remove every vote and reaction on the given targets."""
        for target_id in target_ids:
            await self.session.aexecute(self._purge_votes[kind], [target_id])
            await self.session.aexecute(self._purge_reactions[kind], [target_id])
