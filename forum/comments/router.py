"""Comment tree API endpoints.

Provides routes for:
- Creating comments and replies (with optional quote)
- Lazy loading of direct replies
- Owner-only cascading delete
- Reply and @mention notifications
"""

from uuid import UUID

import structlog
from fastapi import APIRouter, status

from forum.auth.dependencies import CurrentActor, OptionalActor
from forum.core.errors import ForumError, NotFoundError, handle_forum_error
from forum.engagement.dependencies import EngagementServiceDep
from forum.engagement.models import TargetKind
from forum.notifications.dependencies import NotificationServiceDep
from forum.profiles.dependencies import ProfileServiceDep
from forum.threads.dependencies import ThreadServiceDep

from .dependencies import CommentServiceDep
from .schemas import (
    CommentEnvelope,
    CommentListResponse,
    CommentResponse,
    CreateCommentRequest,
    DeleteCommentResponse,
)


logger = structlog.get_logger(__name__)


router = APIRouter(prefix="/comments", tags=["comments"])


@router.post(
    "",
    response_model=CommentEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Create comment",
)
async def create_comment(
    data: CreateCommentRequest,
    actor: CurrentActor,
    comment_service: CommentServiceDep,
    thread_service: ThreadServiceDep,
    notification_service: NotificationServiceDep,
    profile_service: ProfileServiceDep,
) -> CommentEnvelope:
    """Create a comment on a thread, or a reply to another comment.

    Rate limited to 10/min, 100/hour per user.
    Content is sanitized. Notifies the parent/thread author and @mentions.
    """
    try:
        thread = await thread_service.get_thread(data.thread_id)
        if not thread:
            raise NotFoundError("Thread not found")

        comment = await comment_service.create_comment(
            thread,
            actor,
            data.content,
            parent_id=data.parent_id,
            quoted_comment_id=data.quoted_comment_id,
        )
    except ForumError as e:
        raise handle_forum_error(e) from e

    # Notifications never fail comment creation
    try:
        parent = (
            await comment_service.get_comment(data.parent_id) if data.parent_id else None
        )
        reply = await notification_service.notify_on_reply(comment, thread, parent)
        await notification_service.notify_mentions(
            comment,
            data.content,
            user_lookup_fn=profile_service.get_profile_by_username,
            skip_user_ids={reply.user_id} if reply else None,
        )
    except Exception as notif_error:
        logger.warning(
            "comment_notification_failed",
            error=str(notif_error),
            comment_id=str(comment.comment_id),
        )

    return CommentEnvelope(comment=CommentResponse.from_comment(comment))


@router.get(
    "/{comment_id}/replies",
    response_model=CommentListResponse,
    summary="Direct replies of a comment",
)
async def get_replies(
    comment_id: UUID,
    actor: OptionalActor,
    comment_service: CommentServiceDep,
    engagement_service: EngagementServiceDep,
) -> CommentListResponse:
    """Oldest first. Each reply reports its depth and whether it can be replied to."""
    try:
        replies = await comment_service.load_replies(comment_id)
    except ForumError as e:
        raise handle_forum_error(e) from e

    viewer_id = actor.user_id if actor else None
    items = [
        CommentResponse.from_comment(
            r,
            await engagement_service.summarize(TargetKind.COMMENT, r.comment_id, viewer_id),
        )
        for r in replies
    ]
    return CommentListResponse(comments=items, total=len(items))


@router.delete(
    "/{comment_id}",
    response_model=DeleteCommentResponse,
    summary="Delete comment",
)
async def delete_comment(
    comment_id: UUID,
    actor: CurrentActor,
    comment_service: CommentServiceDep,
) -> DeleteCommentResponse:
    """Author only. Replies beneath the comment are removed with it."""
    try:
        removed = await comment_service.delete_comment(comment_id, actor)
    except ForumError as e:
        raise handle_forum_error(e) from e
    return DeleteCommentResponse(deleted_ids=removed)
