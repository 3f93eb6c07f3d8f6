# ruff: noqa: S608 - All CQL queries use keyspace from config, not user input
"""Notification service layer.

Business logic for:
- Fan-out on replies, @mentions, upvotes and positive reactions
- Inbox listing, unread count, mark-read and delete (recipient-scoped)

Self-notifications are never created: every fan-out path drops the event
when the recipient is the actor.
"""

import re
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID

import structlog

from forum.core.errors import NotFoundError

from .models import Notification, NotificationType, create_notification


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = structlog.get_logger(__name__)


# Pattern for @mentions (supports spaces with quotes: @"User Name" or @Username)
MENTION_PATTERN = re.compile(r'@"([^"]+)"|@(\S+)', re.UNICODE)

# Punctuation that may trail an unquoted mention ("thanks @bob!")
MENTION_TRAILING = ".,;:!?)"


def extract_mentions(content: str) -> list[str]:
    """Extract distinct @mentioned usernames from content, in order.

    Supports:
    - @username (single word)
    - @"User Name" (quoted for names with spaces)
    """
    mentions: dict[str, None] = {}
    for match in MENTION_PATTERN.finditer(content):
        # Group 1 is quoted name, group 2 is unquoted
        name = match.group(1) or (match.group(2) or "").rstrip(MENTION_TRAILING)
        if name:
            mentions.setdefault(name, None)
    return list(mentions)


class NotificationService:
    """Service for notification fan-out and inbox management."""

    def __init__(self, session: "Session", keyspace: str, default_limit: int = 50):
        """Initialize with Cassandra session."""
        self.session = session
        self.keyspace = keyspace
        self.default_limit = default_limit
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient queries."""
        self._insert_notification = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.notifications
            (user_id, created_at, notification_id, type, content, actor_id,
             actor_name, thread_id, comment_id, is_read, read_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)

        self._insert_notification_by_id = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.notifications_by_id
            (notification_id, user_id, created_at)
            VALUES (?, ?, ?)
        """)

        self._get_notifications = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.notifications
            WHERE user_id = ?
            ORDER BY created_at DESC
            LIMIT ?
        """)

        self._get_all_notifications = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.notifications
            WHERE user_id = ?
        """)

        self._get_notification_ref = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.notifications_by_id
            WHERE notification_id = ?
        """)

        self._mark_read = self.session.prepare(f"""
            UPDATE {self.keyspace}.notifications
            SET is_read = true, read_at = ?
            WHERE user_id = ? AND created_at = ? AND notification_id = ?
        """)

        self._count_unread = self.session.prepare(f"""
            SELECT COUNT(*) FROM {self.keyspace}.notifications
            WHERE user_id = ? AND is_read = false ALLOW FILTERING
        """)

        self._delete_notification = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.notifications
            WHERE user_id = ? AND created_at = ? AND notification_id = ?
        """)

        self._delete_notification_ref = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.notifications_by_id
            WHERE notification_id = ?
        """)

    # ==========================================================================
    # Notification Creation
    # ==========================================================================

    async def create_notification(self, notification: Notification) -> Notification | None:
        """Store a notification unless the recipient is the actor."""
        if notification.actor_id is not None and notification.actor_id == notification.user_id:
            return None

        await self.session.aexecute(
            self._insert_notification,
            [
                notification.user_id,
                notification.created_at,
                notification.notification_id,
                notification.type.value,
                notification.content,
                notification.actor_id,
                notification.actor_name,
                notification.thread_id,
                notification.comment_id,
                notification.is_read,
                notification.read_at,
            ],
        )
        await self.session.aexecute(
            self._insert_notification_by_id,
            [notification.notification_id, notification.user_id, notification.created_at],
        )

        logger.info(
            "notification_created",
            notification_id=str(notification.notification_id),
            recipient_id=str(notification.user_id),
            type=notification.type.value,
        )
        return notification

    async def notify_on_reply(self, comment: Any, thread: Any, parent: Any = None) -> Notification | None:
        """Notify the parent comment's author, or the thread author for top-level comments."""
        if parent is not None:
            recipient_id = parent.author_id
            noun = "comment"
        else:
            recipient_id = thread.author_id if thread else None
            noun = "thread"

        if recipient_id is None or recipient_id == comment.author_id:
            return None

        return await self.create_notification(
            create_notification(
                user_id=recipient_id,
                notification_type=NotificationType.REPLY,
                content=f"{comment.author_name} replied to your {noun}",
                actor_id=comment.author_id,
                actor_name=comment.author_name,
                thread_id=comment.thread_id,
                comment_id=comment.comment_id,
            )
        )

    async def notify_mentions(
        self,
        comment: Any,
        content: str,
        user_lookup_fn: Callable[[str], Awaitable[Any]],
        skip_user_ids: set[UUID] | None = None,
    ) -> list[Notification]:
        """Process @mentions in ``content`` and notify each mentioned member once.

        Args:
            comment: The comment containing the mentions
            content: Raw comment text to parse
            user_lookup_fn: Async function(name: str) -> Profile | None
            skip_user_ids: Recipients already notified for this comment
        """
        skipped = set(skip_user_ids or ())
        skipped.add(comment.author_id)
        notifications = []

        for mentioned_name in extract_mentions(content):
            profile = await user_lookup_fn(mentioned_name)
            if not profile or profile.user_id in skipped:
                continue
            skipped.add(profile.user_id)
            notification = await self.create_notification(
                create_notification(
                    user_id=profile.user_id,
                    notification_type=NotificationType.MENTION,
                    content=f"{comment.author_name} mentioned you in a comment",
                    actor_id=comment.author_id,
                    actor_name=comment.author_name,
                    thread_id=comment.thread_id,
                    comment_id=comment.comment_id,
                )
            )
            if notification:
                notifications.append(notification)

        return notifications

    async def notify_on_upvote(self, actor: Any, target: Any) -> Notification | None:
        """Notify the target's owner of an upvote."""
        return await self._notify_target_owner(
            actor, target, f"{actor.username} upvoted your {target.kind.value}"
        )

    async def notify_on_reaction(self, actor: Any, target: Any, reaction_type: Any) -> Notification | None:
        """Notify the target's owner of a positive reaction."""
        return await self._notify_target_owner(
            actor,
            target,
            f"{actor.username} reacted {reaction_type.value} to your {target.kind.value}",
        )

    async def _notify_target_owner(self, actor: Any, target: Any, content: str) -> Notification | None:
        if target.owner_id is None or target.owner_id == actor.user_id:
            return None

        comment_id = target.target_id if target.kind.value == "comment" else None
        return await self.create_notification(
            create_notification(
                user_id=target.owner_id,
                notification_type=NotificationType.VOTE,
                content=content,
                actor_id=actor.user_id,
                actor_name=actor.username,
                thread_id=target.thread_id,
                comment_id=comment_id,
            )
        )

    # ==========================================================================
    # Inbox
    # ==========================================================================

    async def get_notifications(
        self,
        user_id: UUID,
        unread_only: bool = False,
        limit: int | None = None,
    ) -> list[Notification]:
        """Get the newest notifications for a user."""
        limit = limit or self.default_limit
        if unread_only:
            rows = await self.session.aexecute(self._get_all_notifications, [user_id])
        else:
            rows = await self.session.aexecute(self._get_notifications, [user_id, limit])

        notifications = []
        for row in rows:
            if unread_only and row.is_read:
                continue
            notifications.append(Notification.from_row(row))
            if len(notifications) >= limit:
                break
        return notifications

    async def get_unread_count(self, user_id: UUID) -> int:
        """Get unread notification count for user."""
        result = await self.session.aexecute(self._count_unread, [user_id])
        row = result[0] if result else None
        return row.count if row else 0

    async def _get_owned_ref(self, user_id: UUID, notification_id: UUID) -> Any:
        result = await self.session.aexecute(
            self._get_notification_ref, [notification_id]
        )
        row = result[0] if result else None
        if not row or row.user_id != user_id:
            return None
        return row

    # ==========================================================================
    # Mark as Read
    # ==========================================================================

    async def mark_as_read(self, user_id: UUID, notification_id: UUID) -> int:
        """Mark one of the user's notifications as read.

        A foreign or missing id is a no-op. Returns the number marked.
        """
        ref = await self._get_owned_ref(user_id, notification_id)
        if not ref:
            return 0

        await self.session.aexecute(
            self._mark_read,
            [datetime.now(UTC), user_id, ref.created_at, notification_id],
        )
        return 1

    async def mark_all_as_read(self, user_id: UUID) -> int:
        """Mark all notifications as read for user.

        Returns count of notifications marked as read.
        """
        now = datetime.now(UTC)
        marked = 0

        rows = await self.session.aexecute(self._get_all_notifications, [user_id])
        for row in rows:
            if not row.is_read:
                await self.session.aexecute(
                    self._mark_read,
                    [now, user_id, row.created_at, row.notification_id],
                )
                marked += 1

        if marked:
            logger.info("notifications_marked_read", user_id=str(user_id), count=marked)
        return marked

    # ==========================================================================
    # Delete
    # ==========================================================================

    async def delete_notification(self, user_id: UUID, notification_id: UUID) -> None:
        """Delete one of the user's notifications.

        Raises:
            NotFoundError: Missing, or owned by someone else
        """
        ref = await self._get_owned_ref(user_id, notification_id)
        if not ref:
            raise NotFoundError("Notification not found")

        await self.session.aexecute(
            self._delete_notification, [user_id, ref.created_at, notification_id]
        )
        await self.session.aexecute(self._delete_notification_ref, [notification_id])
