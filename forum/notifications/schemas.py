"""Pydantic schemas for notifications.

Request and response models for notification operations.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from forum.core.schemas import RequestModel

from .models import Notification, NotificationType


# ==============================================================================
# Response Schemas
# ==============================================================================


class NotificationResponse(BaseModel):
    """Single notification response."""

    id: UUID = Field(description="Notification ID")
    type: NotificationType = Field(description="Notification type")
    content: str = Field(description="Rendered notification text")
    actor: dict | None = Field(None, description="User who triggered the notification")
    thread_id: UUID | None = Field(None, description="Related thread")
    comment_id: UUID | None = Field(None, description="Related comment")
    is_read: bool = Field(description="Whether notification was read")
    read_at: datetime | None = Field(None, description="When notification was read")
    created_at: datetime = Field(description="When notification was created")

    @classmethod
    def from_notification(cls, notification: Notification) -> "NotificationResponse":
        """Create response from notification entity."""
        actor = None
        if notification.actor_id:
            actor = {"id": notification.actor_id, "name": notification.actor_name}

        return cls(
            id=notification.notification_id,
            type=notification.type,
            content=notification.content,
            actor=actor,
            thread_id=notification.thread_id,
            comment_id=notification.comment_id,
            is_read=notification.is_read,
            read_at=notification.read_at,
            created_at=notification.created_at,
        )


class NotificationListResponse(BaseModel):
    """Notification inbox response."""

    notifications: list[NotificationResponse] = Field(description="Newest first")
    unread_count: int = Field(description="Unread notification count")


class MarkReadResponse(BaseModel):
    """Response after marking notifications as read."""

    success: bool = True
    marked_count: int = Field(description="Number of notifications marked as read")
    unread_count: int = Field(description="Remaining unread count")


# ==============================================================================
# Request Schemas
# ==============================================================================


class MarkReadRequest(RequestModel):
    """Mark one notification, or all of them, as read."""

    notification_id: UUID | None = None
    mark_all: bool = False

    @model_validator(mode="after")
    def require_target(self) -> "MarkReadRequest":
        """Either a notification id or markAll must be given."""
        if self.notification_id is None and not self.mark_all:
            msg = "Provide notificationId or markAll"
            raise ValueError(msg)
        return self
