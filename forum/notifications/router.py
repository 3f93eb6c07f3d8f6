"""Notification API routes.

Endpoints for:
- GET /notifications - List the caller's notifications
- PATCH /notifications/mark-read - Mark one (or all) as read
- POST /notifications/mark-all-read - Mark all as read
- DELETE /notifications/{notification_id} - Delete one
"""

from uuid import UUID

from fastapi import APIRouter, Query

from forum.auth.dependencies import CurrentActor
from forum.core.errors import ForumError, handle_forum_error
from forum.core.schemas import SuccessResponse

from .dependencies import NotificationServiceDep
from .schemas import (
    MarkReadRequest,
    MarkReadResponse,
    NotificationListResponse,
    NotificationResponse,
)


router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get(
    "",
    response_model=NotificationListResponse,
    summary="List user notifications",
)
async def list_notifications(
    actor: CurrentActor,
    service: NotificationServiceDep,
    unread: bool = Query(default=False, description="Only show unread"),
    limit: int | None = Query(default=None, ge=1, le=100, description="Max items"),
) -> NotificationListResponse:
    """List notifications for the current user, newest first."""
    notifications = await service.get_notifications(
        user_id=actor.user_id, unread_only=unread, limit=limit
    )
    unread_count = await service.get_unread_count(actor.user_id)
    return NotificationListResponse(
        notifications=[NotificationResponse.from_notification(n) for n in notifications],
        unread_count=unread_count,
    )


@router.patch(
    "/mark-read",
    response_model=MarkReadResponse,
    summary="Mark notifications as read",
)
async def mark_notifications_read(
    body: MarkReadRequest,
    actor: CurrentActor,
    service: NotificationServiceDep,
) -> MarkReadResponse:
    """Mark one notification as read, or all of them with ``markAll``."""
    if body.mark_all:
        marked_count = await service.mark_all_as_read(actor.user_id)
    else:
        marked_count = await service.mark_as_read(actor.user_id, body.notification_id)
    unread_count = await service.get_unread_count(actor.user_id)
    return MarkReadResponse(marked_count=marked_count, unread_count=unread_count)


@router.post(
    "/mark-all-read",
    response_model=MarkReadResponse,
    summary="Mark all notifications as read",
)
async def mark_all_read(
    actor: CurrentActor,
    service: NotificationServiceDep,
) -> MarkReadResponse:
    marked_count = await service.mark_all_as_read(actor.user_id)
    unread_count = await service.get_unread_count(actor.user_id)
    return MarkReadResponse(marked_count=marked_count, unread_count=unread_count)


@router.delete(
    "/{notification_id}",
    response_model=SuccessResponse,
    summary="Delete a notification",
)
async def delete_notification(
    notification_id: UUID,
    actor: CurrentActor,
    service: NotificationServiceDep,
) -> SuccessResponse:
    try:
        await service.delete_notification(actor.user_id, notification_id)
    except ForumError as e:
        raise handle_forum_error(e) from e
    return SuccessResponse()
