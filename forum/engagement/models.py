"""Database models for the vote/reaction ledger.

Each target kind (thread, comment) has its own votes and reactions table,
partitioned by target and keyed by user. The primary key guarantees at most
one vote and one reaction per (user, target); concurrent writes from the same
user resolve last-write-wins.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID


class TargetKind(str, Enum):
    """What a vote or reaction points at."""

    THREAD = "thread"
    COMMENT = "comment"

    @property
    def key_column(self) -> str:
        return f"{self.value}_id"


class VoteType(str, Enum):
    """Vote disposition."""

    UPVOTE = "upvote"
    DOWNVOTE = "downvote"


class ReactionType(str, Enum):
    """Available reaction types."""

    LIKE = "like"
    LOVE = "love"
    HAHA = "haha"
    WOW = "wow"
    SAD = "sad"
    ANGRY = "angry"


# Reactions that notify the content owner, like an upvote does
POSITIVE_REACTIONS = frozenset({ReactionType.LIKE, ReactionType.LOVE})

VOTE_WEIGHT = {VoteType.UPVOTE: 1, VoteType.DOWNVOTE: -1}


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

THREAD_VOTES_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.thread_votes (
    thread_id UUID,
    user_id UUID,
    vote_type TEXT,
    created_at TIMESTAMP,
    PRIMARY KEY ((thread_id), user_id)
)
"""

COMMENT_VOTES_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.comment_votes (
    comment_id UUID,
    user_id UUID,
    vote_type TEXT,
    created_at TIMESTAMP,
    PRIMARY KEY ((comment_id), user_id)
)
"""

THREAD_REACTIONS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.thread_reactions (
    thread_id UUID,
    user_id UUID,
    reaction_type TEXT,
    created_at TIMESTAMP,
    PRIMARY KEY ((thread_id), user_id)
)
"""

COMMENT_REACTIONS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.comment_reactions (
    comment_id UUID,
    user_id UUID,
    reaction_type TEXT,
    created_at TIMESTAMP,
    PRIMARY KEY ((comment_id), user_id)
)
"""

ENGAGEMENT_TABLES_CQL = [
    THREAD_VOTES_TABLE_CQL,
    COMMENT_VOTES_TABLE_CQL,
    THREAD_REACTIONS_TABLE_CQL,
    COMMENT_REACTIONS_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


@dataclass(frozen=True)
class Target:
    """A resolved vote/reaction target.

    ``thread_id`` is the enclosing thread (the target itself for threads),
    used to link notifications.
    """

    kind: TargetKind
    target_id: UUID
    owner_id: UUID
    thread_id: UUID


@dataclass
class Reaction:
    """A user's reaction to a target."""

    user_id: UUID
    reaction_type: ReactionType
    created_at: datetime

    @classmethod
    def from_row(cls, row: Any) -> "Reaction":
        """Create Reaction from Cassandra row."""
        return cls(
            user_id=row.user_id,
            reaction_type=ReactionType(row.reaction_type),
            created_at=row.created_at,
        )


@dataclass
class VoteResult:
    """Outcome of a vote change."""

    target: Target
    previous: VoteType | None
    current: VoteType | None
    score: int

    @property
    def is_positive(self) -> bool:
        """True when an upvote was stored by this call."""
        return self.current == VoteType.UPVOTE

    @property
    def reputation_delta(self) -> int:
        return VOTE_WEIGHT.get(self.current, 0) - VOTE_WEIGHT.get(self.previous, 0)


@dataclass
class ReactionResult:
    """Outcome of a reaction change."""

    target: Target
    previous: ReactionType | None
    current: ReactionType | None
    reactions: list[Reaction]
    counts: dict[str, int] = field(default_factory=dict)

    @property
    def is_positive(self) -> bool:
        """True when a positive reaction was stored by this call."""
        return self.current in POSITIVE_REACTIONS


@dataclass
class EngagementSummary:
    """Score, reaction counts and the viewer's own dispositions."""

    score: int = 0
    reaction_counts: dict[str, int] = field(default_factory=dict)
    user_vote: VoteType | None = None
    user_reaction: ReactionType | None = None
