# ruff: noqa: S608 - All CQL queries use keyspace from config, not user input
"""Comment tree service layer.

Business logic for:
- Comment creation with parent/quote validation and rate limiting
- Lazy loading of top-level comments and direct replies
- Depth derivation (Reply is offered while depth < max depth)
- Owner-only deletion cascading to the reply subtree and its engagement
"""

import html
from typing import TYPE_CHECKING, Any
from uuid import UUID

import structlog

from forum.auth.permissions import Action, authorize
from forum.core.errors import (
    InvalidInputError,
    NotFoundError,
    RateLimitExceededError,
)
from forum.core.redis import rate_limit_key
from forum.engagement.models import TargetKind

from .models import Comment, QuotedComment, create_comment


if TYPE_CHECKING:
    from cassandra.cluster import Session
    from redis.asyncio import Redis

    from forum.engagement.service import EngagementService


logger = structlog.get_logger(__name__)


# ==============================================================================
# Content Sanitization
# ==============================================================================

# Allowed HTML tags (basic formatting only)
ALLOWED_TAGS = {"b", "i", "em", "strong", "code", "pre"}

# Upper bound when walking a parent chain
MAX_ANCESTRY_WALK = 64


def sanitize_content(content: str) -> str:
    """Escape HTML, then re-enable the allowed formatting tags."""
    escaped = html.escape(content)
    for tag in ALLOWED_TAGS:
        escaped = escaped.replace(f"&lt;{tag}&gt;", f"<{tag}>")
        escaped = escaped.replace(f"&lt;/{tag}&gt;", f"</{tag}>")
    return escaped


# ==============================================================================
# Comment Service
# ==============================================================================


class CommentService:
    """Service for the comment tree."""

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        redis: "Redis | None" = None,
        engagement: "EngagementService | None" = None,
        max_reply_depth: int = 3,
        comments_per_minute: int = 10,
        comments_per_hour: int = 100,
    ):
        """Initialize with Cassandra session, optional Redis and the ledger."""
        self.session = session
        self.keyspace = keyspace
        self.redis = redis
        self.engagement = engagement
        self.max_reply_depth = max_reply_depth
        self.comments_per_minute = comments_per_minute
        self.comments_per_hour = comments_per_hour
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient queries."""
        self._insert_comment = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.comments
            (comment_id, thread_id, parent_id, quoted_comment_id, author_id,
             author_name, content, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)

        self._insert_comment_by_thread = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.comments_by_thread
            (thread_id, created_at, comment_id, parent_id)
            VALUES (?, ?, ?, ?)
        """)

        self._insert_comment_by_parent = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.comments_by_parent
            (parent_id, created_at, comment_id)
            VALUES (?, ?, ?)
        """)

        self._get_comment = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.comments
            WHERE comment_id = ?
        """)

        self._get_comments_by_thread = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.comments_by_thread
            WHERE thread_id = ?
            ORDER BY created_at ASC
        """)

        self._get_replies = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.comments_by_parent
            WHERE parent_id = ?
            ORDER BY created_at ASC
        """)

        self._count_replies = self.session.prepare(f"""
            SELECT COUNT(*) FROM {self.keyspace}.comments_by_parent
            WHERE parent_id = ?
        """)

        self._count_thread_comments = self.session.prepare(f"""
            SELECT COUNT(*) FROM {self.keyspace}.comments_by_thread
            WHERE thread_id = ?
        """)

        self._delete_comment = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.comments
            WHERE comment_id = ?
        """)

        self._delete_comment_by_thread = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.comments_by_thread
            WHERE thread_id = ? AND created_at = ? AND comment_id = ?
        """)

        self._delete_comment_by_parent = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.comments_by_parent
            WHERE parent_id = ? AND created_at = ? AND comment_id = ?
        """)

        self._delete_replies_partition = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.comments_by_parent
            WHERE parent_id = ?
        """)

        self._delete_thread_partition = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.comments_by_thread
            WHERE thread_id = ?
        """)

    # ==========================================================================
    # Rate Limiting (Redis-based)
    # ==========================================================================

    async def check_rate_limit(self, user_id: UUID) -> bool:
        """Check if user has exceeded the comment rate limit.

        Returns True if within limit, raises RateLimitExceededError otherwise.
        """
        if not self.redis:
            return True

        minute_count = await self.redis.get(
            rate_limit_key("comments", str(user_id), "minute")
        )
        if minute_count and int(minute_count) >= self.comments_per_minute:
            raise RateLimitExceededError("Too many comments per minute. Slow down.")

        hour_count = await self.redis.get(rate_limit_key("comments", str(user_id), "hour"))
        if hour_count and int(hour_count) >= self.comments_per_hour:
            raise RateLimitExceededError("Hourly comment limit exceeded.")

        return True

    async def increment_rate_limit(self, user_id: UUID) -> None:
        """Increment rate limit counters."""
        if not self.redis:
            return

        key_minute = rate_limit_key("comments", str(user_id), "minute")
        key_hour = rate_limit_key("comments", str(user_id), "hour")

        pipe = self.redis.pipeline()
        pipe.incr(key_minute)
        pipe.expire(key_minute, 60)
        pipe.incr(key_hour)
        pipe.expire(key_hour, 3600)
        await pipe.execute()

    # ==========================================================================
    # Create
    # ==========================================================================

    async def create_comment(
        self,
        thread: Any,
        actor: Any,
        content: str,
        parent_id: UUID | None = None,
        quoted_comment_id: UUID | None = None,
    ) -> Comment:
        """Create a comment on ``thread``.

        Performs:
        - Empty content check
        - Locked-thread check (moderators may still post)
        - Parent and quoted comment validation (same thread)
        - Rate limiting
        - Content sanitization
        - Writes to the main, by-thread and by-parent tables

        Raises:
            InvalidInputError: Empty content, or parent/quote outside the thread
            ForbiddenError: Thread is locked
            RateLimitExceededError: Too many comments
        """
        content = (content or "").strip()
        if not content:
            raise InvalidInputError("Content is required")

        if thread.is_locked:
            authorize(actor, Action.COMMENT_ON_LOCKED_THREAD, thread).ensure()

        parent = None
        if parent_id is not None:
            parent = await self.get_comment(parent_id)
            if not parent or parent.thread_id != thread.thread_id:
                raise InvalidInputError("Parent comment does not belong to this thread")

        quoted = None
        if quoted_comment_id is not None:
            quoted = await self.get_comment(quoted_comment_id)
            if not quoted or quoted.thread_id != thread.thread_id:
                raise InvalidInputError("Quoted comment does not belong to this thread")

        await self.check_rate_limit(actor.user_id)

        comment = create_comment(
            thread_id=thread.thread_id,
            author_id=actor.user_id,
            author_name=actor.username,
            content=sanitize_content(content),
            parent_id=parent_id,
            quoted_comment_id=quoted_comment_id,
        )

        await self.session.aexecute(
            self._insert_comment,
            [
                comment.comment_id,
                comment.thread_id,
                comment.parent_id,
                comment.quoted_comment_id,
                comment.author_id,
                comment.author_name,
                comment.content,
                comment.created_at,
                comment.updated_at,
            ],
        )
        await self.session.aexecute(
            self._insert_comment_by_thread,
            [comment.thread_id, comment.created_at, comment.comment_id, comment.parent_id],
        )
        if parent_id is not None:
            await self.session.aexecute(
                self._insert_comment_by_parent,
                [parent_id, comment.created_at, comment.comment_id],
            )

        await self.increment_rate_limit(actor.user_id)

        comment.depth = await self.get_depth(comment)
        comment.can_reply = comment.depth < self.max_reply_depth
        if quoted:
            comment.quoted = QuotedComment(
                comment_id=quoted.comment_id,
                author_name=quoted.author_name,
                content=quoted.content,
            )

        logger.info(
            "comment_created",
            comment_id=str(comment.comment_id),
            thread_id=str(comment.thread_id),
            parent_id=str(parent_id) if parent_id else None,
            depth=comment.depth,
        )
        return comment

    # ==========================================================================
    # Read
    # ==========================================================================

    async def get_comment(self, comment_id: UUID) -> Comment | None:
        """Get a single comment (without derived fields)."""
        result = await self.session.aexecute(self._get_comment, [comment_id])
        row = result[0] if result else None
        return Comment.from_row(row) if row else None

    async def get_depth(self, comment: Comment) -> int:
        """Number of ancestors above ``comment`` (0 for top-level)."""
        depth = 0
        parent_id = comment.parent_id
        while parent_id is not None and depth < MAX_ANCESTRY_WALK:
            parent = await self.get_comment(parent_id)
            if parent is None:
                break
            depth += 1
            parent_id = parent.parent_id
        return depth

    async def count_replies(self, comment_id: UUID) -> int:
        """Count direct replies of a comment."""
        result = await self.session.aexecute(self._count_replies, [comment_id])
        row = result[0] if result else None
        return row.count if row else 0

    async def count_thread_comments(self, thread_id: UUID) -> int:
        """Count every comment in a thread, replies included."""
        result = await self.session.aexecute(self._count_thread_comments, [thread_id])
        row = result[0] if result else None
        return row.count if row else 0

    async def _decorate(self, comments: list[Comment], depth: int) -> list[Comment]:
        """Fill in depth, reply counts and quotes for display."""
        quote_cache: dict[UUID, Comment | None] = {}
        for comment in comments:
            comment.depth = depth
            comment.can_reply = depth < self.max_reply_depth
            comment.reply_count = await self.count_replies(comment.comment_id)
            if comment.quoted_comment_id is not None:
                if comment.quoted_comment_id not in quote_cache:
                    quote_cache[comment.quoted_comment_id] = await self.get_comment(
                        comment.quoted_comment_id
                    )
                quoted = quote_cache[comment.quoted_comment_id]
                if quoted:
                    comment.quoted = QuotedComment(
                        comment_id=quoted.comment_id,
                        author_name=quoted.author_name,
                        content=quoted.content,
                    )
        return comments

    async def list_thread_comments(self, thread_id: UUID) -> list[Comment]:
        """Top-level comments of a thread, oldest first."""
        rows = await self.session.aexecute(self._get_comments_by_thread, [thread_id])
        comments = []
        for row in rows:
            if row.parent_id is not None:
                continue
            comment = await self.get_comment(row.comment_id)
            if comment:
                comments.append(comment)
        return await self._decorate(comments, depth=0)

    async def load_replies(self, parent_id: UUID) -> list[Comment]:
        """Direct replies of a comment, oldest first.

        Raises:
            NotFoundError: Parent comment does not exist
        """
        parent = await self.get_comment(parent_id)
        if not parent:
            raise NotFoundError("Comment not found")

        rows = await self.session.aexecute(self._get_replies, [parent_id])
        replies = []
        for row in rows:
            reply = await self.get_comment(row.comment_id)
            if reply:
                replies.append(reply)

        parent_depth = await self.get_depth(parent)
        return await self._decorate(replies, depth=parent_depth + 1)

    # ==========================================================================
    # Delete
    # ==========================================================================

    async def _collect_subtree(self, root: Comment) -> list[Comment]:
        """The comment and all its descendants, parents before children."""
        subtree = [root]
        index = 0
        while index < len(subtree):
            current = subtree[index]
            index += 1
            rows = await self.session.aexecute(self._get_replies, [current.comment_id])
            for row in rows:
                child = await self.get_comment(row.comment_id)
                if child:
                    subtree.append(child)
        return subtree

    async def _remove(self, comment: Comment) -> None:
        await self.session.aexecute(self._delete_comment, [comment.comment_id])
        await self.session.aexecute(
            self._delete_comment_by_thread,
            [comment.thread_id, comment.created_at, comment.comment_id],
        )
        if comment.parent_id is not None:
            await self.session.aexecute(
                self._delete_comment_by_parent,
                [comment.parent_id, comment.created_at, comment.comment_id],
            )
        await self.session.aexecute(
            self._delete_replies_partition, [comment.comment_id]
        )

    async def delete_comment(self, comment_id: UUID, actor: Any) -> list[UUID]:
        """Delete a comment and its reply subtree (author only).

        Returns:
            IDs of every removed comment

        Raises:
            NotFoundError: Comment does not exist
            ForbiddenError: Actor is not the author, whatever their role
        """
        comment = await self.get_comment(comment_id)
        if not comment:
            raise NotFoundError("Comment not found")

        authorize(actor, Action.DELETE_COMMENT, comment).ensure()

        subtree = await self._collect_subtree(comment)
        for node in reversed(subtree):
            await self._remove(node)

        removed = [node.comment_id for node in subtree]
        if self.engagement:
            await self.engagement.purge(TargetKind.COMMENT, removed)

        logger.info(
            "comment_deleted",
            comment_id=str(comment_id),
            thread_id=str(comment.thread_id),
            removed_count=len(removed),
        )
        return removed

    async def delete_thread_comments(self, thread_id: UUID) -> list[UUID]:
        """Remove every comment of a thread (thread deletion cascade)."""
        rows = await self.session.aexecute(self._get_comments_by_thread, [thread_id])
        removed = []
        for row in rows:
            await self.session.aexecute(self._delete_comment, [row.comment_id])
            await self.session.aexecute(self._delete_replies_partition, [row.comment_id])
            removed.append(row.comment_id)
        await self.session.aexecute(self._delete_thread_partition, [thread_id])

        if self.engagement and removed:
            await self.engagement.purge(TargetKind.COMMENT, removed)
        return removed
