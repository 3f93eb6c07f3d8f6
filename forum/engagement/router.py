"""Vote and reaction endpoints.

Both endpoints follow the same flow: resolve the target, apply the change in
the ledger, adjust the owner's reputation, then notify the owner when a
positive disposition was stored.
"""

import structlog
from fastapi import APIRouter

from forum.auth.dependencies import CurrentActor
from forum.comments.dependencies import CommentServiceDep
from forum.core.errors import ForumError, handle_forum_error
from forum.notifications.dependencies import NotificationServiceDep
from forum.profiles.dependencies import ProfileServiceDep
from forum.threads.dependencies import ThreadServiceDep

from .dependencies import EngagementServiceDep
from .schemas import (
    ReactionItem,
    ReactionRequest,
    ReactionResponse,
    VoteRequest,
    VoteResponse,
)
from .service import resolve_target


logger = structlog.get_logger(__name__)


router = APIRouter(tags=["engagement"])


@router.post("/votes", response_model=VoteResponse, summary="Vote on a thread or comment")
async def set_vote(
    data: VoteRequest,
    actor: CurrentActor,
    engagement_service: EngagementServiceDep,
    thread_service: ThreadServiceDep,
    comment_service: CommentServiceDep,
    profile_service: ProfileServiceDep,
    notification_service: NotificationServiceDep,
) -> VoteResponse:
    """Repeating the current vote removes it; a null voteType clears it."""
    try:
        target = await resolve_target(
            data.thread_id, data.comment_id, thread_service, comment_service
        )
        result = await engagement_service.set_vote(actor.user_id, target, data.vote_type)
    except ForumError as e:
        raise handle_forum_error(e) from e

    if target.owner_id != actor.user_id:
        try:
            await profile_service.adjust_reputation(
                target.owner_id, result.reputation_delta
            )
        except Exception as rep_error:
            logger.warning(
                "vote_reputation_failed",
                error=str(rep_error),
                owner_id=str(target.owner_id),
            )

        if result.is_positive:
            try:
                await notification_service.notify_on_upvote(actor, target)
            except Exception as notif_error:
                logger.warning(
                    "vote_notification_failed",
                    error=str(notif_error),
                    target_id=str(target.target_id),
                )

    return VoteResponse(score=result.score, vote_type=result.current)


@router.post(
    "/reactions",
    response_model=ReactionResponse,
    summary="React to a thread or comment",
)
async def set_reaction(
    data: ReactionRequest,
    actor: CurrentActor,
    engagement_service: EngagementServiceDep,
    thread_service: ThreadServiceDep,
    comment_service: CommentServiceDep,
    notification_service: NotificationServiceDep,
) -> ReactionResponse:
    """Repeating the current reaction removes it; another type replaces it."""
    try:
        target = await resolve_target(
            data.thread_id, data.comment_id, thread_service, comment_service
        )
        result = await engagement_service.set_reaction(
            actor.user_id, target, data.reaction_type
        )
    except ForumError as e:
        raise handle_forum_error(e) from e

    if result.is_positive and target.owner_id != actor.user_id:
        try:
            await notification_service.notify_on_reaction(actor, target, result.current)
        except Exception as notif_error:
            logger.warning(
                "reaction_notification_failed",
                error=str(notif_error),
                target_id=str(target.target_id),
            )

    return ReactionResponse(
        reaction_type=result.current,
        reactions=[ReactionItem.from_reaction(r) for r in result.reactions],
        counts=result.counts,
    )
