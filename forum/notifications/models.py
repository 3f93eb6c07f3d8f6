"""Database models for notifications.

Cassandra table definitions for:
- Notifications: per-recipient partition, newest first
- Notifications by id: locates a notification's partition row for
  mark-read and delete

Notification types:
- REPLY: someone replied to your thread or comment
- MENTION: someone mentioned you with @username in a comment
- VOTE: someone upvoted (or positively reacted to) your thread or comment
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4


class NotificationType(str, Enum):
    """Types of notifications."""

    REPLY = "reply"
    MENTION = "mention"
    VOTE = "vote"


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

# Partitioned by recipient for efficient inbox queries
NOTIFICATION_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.notifications (
    user_id UUID,
    created_at TIMESTAMP,
    notification_id UUID,
    type TEXT,
    content TEXT,
    actor_id UUID,
    actor_name TEXT,
    thread_id UUID,
    comment_id UUID,
    is_read BOOLEAN,
    read_at TIMESTAMP,
    PRIMARY KEY ((user_id), created_at, notification_id)
) WITH CLUSTERING ORDER BY (created_at DESC, notification_id ASC)
"""

NOTIFICATIONS_BY_ID_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.notifications_by_id (
    notification_id UUID PRIMARY KEY,
    user_id UUID,
    created_at TIMESTAMP
)
"""

NOTIFICATIONS_TABLES_CQL = [
    NOTIFICATION_TABLE_CQL,
    NOTIFICATIONS_BY_ID_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


@dataclass
class Notification:
    """Notification entity."""

    notification_id: UUID
    user_id: UUID
    type: NotificationType
    content: str
    actor_id: UUID | None
    actor_name: str | None
    thread_id: UUID | None
    comment_id: UUID | None
    is_read: bool
    read_at: datetime | None
    created_at: datetime

    @classmethod
    def from_row(cls, row: Any) -> "Notification":
        """Create Notification from Cassandra row."""
        return cls(
            notification_id=row.notification_id,
            user_id=row.user_id,
            type=NotificationType(row.type),
            content=row.content,
            actor_id=row.actor_id,
            actor_name=row.actor_name,
            thread_id=row.thread_id,
            comment_id=row.comment_id,
            is_read=row.is_read or False,
            read_at=row.read_at,
            created_at=row.created_at,
        )


def create_notification(
    user_id: UUID,
    notification_type: NotificationType,
    content: str,
    actor_id: UUID | None = None,
    actor_name: str | None = None,
    thread_id: UUID | None = None,
    comment_id: UUID | None = None,
) -> Notification:
    """Create a new unread notification."""
    return Notification(
        notification_id=uuid4(),
        user_id=user_id,
        type=notification_type,
        content=content,
        actor_id=actor_id,
        actor_name=actor_name,
        thread_id=thread_id,
        comment_id=comment_id,
        is_read=False,
        read_at=None,
        created_at=datetime.now(UTC),
    )
