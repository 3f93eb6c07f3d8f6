"""Pydantic schemas for votes and reactions."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from forum.core.schemas import RequestModel

from .models import Reaction, ReactionType, VoteType


class VoteRequest(RequestModel):
    """Set, replace or clear a vote.

    Exactly one of ``thread_id``/``comment_id`` must be given; a null
    ``vote_type`` removes the caller's vote.
    """

    thread_id: UUID | None = None
    comment_id: UUID | None = None
    vote_type: VoteType | None = None


class ReactionRequest(RequestModel):
    """Set, replace or clear a reaction."""

    thread_id: UUID | None = None
    comment_id: UUID | None = None
    reaction_type: ReactionType | None = None


class VoteResponse(BaseModel):
    """Vote outcome with the recomputed score."""

    success: bool = True
    score: int
    vote_type: VoteType | None = None


class ReactionItem(BaseModel):
    user_id: UUID
    reaction_type: ReactionType
    created_at: datetime

    @classmethod
    def from_reaction(cls, reaction: Reaction) -> "ReactionItem":
        return cls(
            user_id=reaction.user_id,
            reaction_type=reaction.reaction_type,
            created_at=reaction.created_at,
        )


class ReactionResponse(BaseModel):
    """All reactions on the target after the change."""

    success: bool = True
    reaction_type: ReactionType | None = None
    reactions: list[ReactionItem]
    counts: dict[str, int] = Field(default_factory=dict)
