"""Pydantic schemas for threads, bookmarks and watchers."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from forum.core.schemas import RequestModel
from forum.engagement.models import EngagementSummary

from .models import Thread


# ==============================================================================
# Request Schemas
# ==============================================================================


class CreateThreadRequest(RequestModel):
    """Request to start a thread."""

    title: str = Field(..., min_length=1, max_length=300)
    content: str = Field(..., min_length=1, max_length=50000)
    category_id: UUID
    tags: list[str] = Field(default_factory=list, max_length=10)


class ModerateThreadRequest(RequestModel):
    """Pin, unpin, lock or unlock."""

    action: str


class ThreadRefRequest(RequestModel):
    """Body of the bookmark and watcher endpoints."""

    thread_id: UUID


# ==============================================================================
# Response Schemas
# ==============================================================================


class ThreadResponse(BaseModel):
    """Response for a single thread."""

    id: UUID
    title: str
    content: str
    category_id: UUID
    author: dict
    tags: list[str] = Field(default_factory=list)
    is_pinned: bool = False
    is_locked: bool = False
    view_count: int = 0
    score: int = 0
    reaction_counts: dict[str, int] = Field(default_factory=dict)
    user_vote: str | None = None
    user_reaction: str | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_thread(
        cls,
        thread: Thread,
        summary: EngagementSummary | None = None,
    ) -> "ThreadResponse":
        """Create response from Thread entity and its engagement summary."""
        response = cls(
            id=thread.thread_id,
            title=thread.title,
            content=thread.content,
            category_id=thread.category_id,
            author={"id": thread.author_id, "name": thread.author_name},
            tags=thread.tags,
            is_pinned=thread.is_pinned,
            is_locked=thread.is_locked,
            view_count=thread.view_count,
            created_at=thread.created_at,
            updated_at=thread.updated_at,
        )
        if summary:
            response.score = summary.score
            response.reaction_counts = summary.reaction_counts
            response.user_vote = summary.user_vote.value if summary.user_vote else None
            response.user_reaction = (
                summary.user_reaction.value if summary.user_reaction else None
            )
        return response


class ThreadEnvelope(BaseModel):
    """Single-thread payload."""

    success: bool = True
    thread: ThreadResponse


class ThreadListResponse(BaseModel):
    """One page of threads."""

    threads: list[ThreadResponse]
    total: int
    page: int = 1
