"""Pydantic schemas for the comment tree."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from forum.core.schemas import RequestModel
from forum.engagement.models import EngagementSummary

from .models import Comment


# ==============================================================================
# Request Schemas
# ==============================================================================


class CreateCommentRequest(RequestModel):
    """Request to create a comment or reply."""

    thread_id: UUID
    parent_id: UUID | None = None
    quoted_comment_id: UUID | None = None
    content: str = Field(..., max_length=10000)


# ==============================================================================
# Response Schemas
# ==============================================================================


class AuthorResponse(BaseModel):
    """Author information in comment response."""

    id: UUID
    name: str


class QuotedCommentResponse(BaseModel):
    """The quoted comment, as shown above the quoting one."""

    id: UUID
    author_name: str
    content: str


class CommentResponse(BaseModel):
    """Response for a single comment."""

    id: UUID
    thread_id: UUID
    parent_id: UUID | None = None
    quoted_comment_id: UUID | None = None
    author: AuthorResponse
    content: str
    display_content: str
    quoted: QuotedCommentResponse | None = None
    depth: int = 0
    reply_count: int = 0
    can_reply: bool = True
    score: int = 0
    reaction_counts: dict[str, int] = Field(default_factory=dict)
    user_vote: str | None = None
    user_reaction: str | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_comment(
        cls,
        comment: Comment,
        summary: EngagementSummary | None = None,
    ) -> "CommentResponse":
        """Create response from Comment entity and its engagement summary."""
        quoted = None
        if comment.quoted:
            quoted = QuotedCommentResponse(
                id=comment.quoted.comment_id,
                author_name=comment.quoted.author_name,
                content=comment.quoted.content,
            )
        response = cls(
            id=comment.comment_id,
            thread_id=comment.thread_id,
            parent_id=comment.parent_id,
            quoted_comment_id=comment.quoted_comment_id,
            author=AuthorResponse(id=comment.author_id, name=comment.author_name),
            content=comment.content,
            display_content=comment.display_content,
            quoted=quoted,
            depth=comment.depth,
            reply_count=comment.reply_count,
            can_reply=comment.can_reply,
            created_at=comment.created_at,
            updated_at=comment.updated_at,
        )
        if summary:
            response.score = summary.score
            response.reaction_counts = summary.reaction_counts
            response.user_vote = summary.user_vote.value if summary.user_vote else None
            response.user_reaction = (
                summary.user_reaction.value if summary.user_reaction else None
            )
        return response


class CommentEnvelope(BaseModel):
    """Single-comment payload."""

    success: bool = True
    comment: CommentResponse


class CommentListResponse(BaseModel):
    """Comments at one level of the tree."""

    comments: list[CommentResponse]
    total: int


class DeleteCommentResponse(BaseModel):
    """Result of a cascading comment delete."""

    success: bool = True
    deleted_ids: list[UUID]
