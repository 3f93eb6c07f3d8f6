# ruff: noqa: S608 - All CQL queries use keyspace from config, not user input
"""Thread service layer.

Business logic for:
- Thread creation in a category, with tags
- Single-thread reads (bumping the view counter) and category/tag listings
- Search over title and content with recent/popular/votes/comments ordering
- Pin/lock moderation and cascading deletion
- Bookmarks and watchers
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID

import structlog

from forum.auth.permissions import THREAD_MODERATION_ACTIONS, Action, authorize
from forum.comments.service import sanitize_content
from forum.core.errors import InvalidInputError, NotFoundError
from forum.engagement.models import TargetKind

from .models import SearchSort, Thread, create_thread


if TYPE_CHECKING:
    from cassandra.cluster import Session

    from forum.categories.service import CategoryService
    from forum.comments.service import CommentService
    from forum.engagement.service import EngagementService


logger = structlog.get_logger(__name__)


# Column and value written for each moderation action
MODERATION_UPDATES: dict[Action, tuple[str, bool]] = {
    Action.PIN_THREAD: ("is_pinned", True),
    Action.UNPIN_THREAD: ("is_pinned", False),
    Action.LOCK_THREAD: ("is_locked", True),
    Action.UNLOCK_THREAD: ("is_locked", False),
}


class ThreadService:
    """Service for threads, bookmarks and watchers."""

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        category_service: "CategoryService",
        comment_service: "CommentService",
        engagement: "EngagementService",
        per_page: int = 20,
        search_limit: int = 50,
        search_scan_limit: int = 1000,
    ):
        """Initialize with Cassandra session and collaborating services."""
        self.session = session
        self.keyspace = keyspace
        self.category_service = category_service
        self.comment_service = comment_service
        self.engagement = engagement
        self.per_page = per_page
        self.search_limit = search_limit
        self.search_scan_limit = search_scan_limit
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient queries."""
        self._insert_thread = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.threads
            (thread_id, category_id, author_id, author_name, title, content,
             tags, is_pinned, is_locked, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)

        self._insert_by_category = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.threads_by_category
            (category_id, created_at, thread_id)
            VALUES (?, ?, ?)
        """)

        self._insert_by_tag = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.threads_by_tag
            (tag, created_at, thread_id)
            VALUES (?, ?, ?)
        """)

        self._get_thread = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.threads
            WHERE thread_id = ?
        """)

        self._scan_threads = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.threads
            LIMIT ?
        """)

        self._get_by_category = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.threads_by_category
            WHERE category_id = ?
        """)

        self._get_by_tag = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.threads_by_tag
            WHERE tag = ?
        """)

        self._incr_views = self.session.prepare(f"""
            UPDATE {self.keyspace}.thread_view_counts
            SET views = views + 1
            WHERE thread_id = ?
        """)

        self._get_views = self.session.prepare(f"""
            SELECT views FROM {self.keyspace}.thread_view_counts
            WHERE thread_id = ?
        """)

        self._set_pinned = self.session.prepare(f"""
            UPDATE {self.keyspace}.threads
            SET is_pinned = ?, updated_at = ?
            WHERE thread_id = ?
        """)

        self._set_locked = self.session.prepare(f"""
            UPDATE {self.keyspace}.threads
            SET is_locked = ?, updated_at = ?
            WHERE thread_id = ?
        """)

        self._delete_thread = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.threads
            WHERE thread_id = ?
        """)

        self._delete_by_category = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.threads_by_category
            WHERE category_id = ? AND created_at = ? AND thread_id = ?
        """)

        self._delete_by_tag = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.threads_by_tag
            WHERE tag = ? AND created_at = ? AND thread_id = ?
        """)

        self._delete_views = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.thread_view_counts
            WHERE thread_id = ?
        """)

        # Bookmarks
        self._insert_bookmark = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.thread_bookmarks
            (user_id, thread_id, created_at)
            VALUES (?, ?, ?)
        """)

        self._get_bookmark = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.thread_bookmarks
            WHERE user_id = ? AND thread_id = ?
        """)

        self._get_bookmarks = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.thread_bookmarks
            WHERE user_id = ?
        """)

        self._delete_bookmark = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.thread_bookmarks
            WHERE user_id = ? AND thread_id = ?
        """)

        # Watchers
        self._insert_watcher = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.thread_watchers
            (thread_id, user_id, created_at)
            VALUES (?, ?, ?)
        """)

        self._get_watcher = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.thread_watchers
            WHERE thread_id = ? AND user_id = ?
        """)

        self._delete_watcher = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.thread_watchers
            WHERE thread_id = ? AND user_id = ?
        """)

        self._delete_watchers = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.thread_watchers
            WHERE thread_id = ?
        """)

    # ==========================================================================
    # Create
    # ==========================================================================

    async def create_thread(
        self,
        actor: Any,
        category_id: UUID,
        title: str,
        content: str,
        tags: list[str] | None = None,
    ) -> Thread:
        """Create a thread in an existing category.

        Title and content are sanitized like comment content.

        Raises:
            InvalidInputError: Blank title/content or unknown category
        """
        title = (title or "").strip()
        content = (content or "").strip()
        if not title or not content:
            raise InvalidInputError("Missing required fields")

        category = await self.category_service.get_category(category_id)
        if not category:
            raise InvalidInputError("Invalid category")

        thread = create_thread(
            category_id=category_id,
            author_id=actor.user_id,
            author_name=actor.username,
            title=sanitize_content(title),
            content=sanitize_content(content),
            tags=tags,
        )

        await self.session.aexecute(
            self._insert_thread,
            [
                thread.thread_id,
                thread.category_id,
                thread.author_id,
                thread.author_name,
                thread.title,
                thread.content,
                thread.tags,
                thread.is_pinned,
                thread.is_locked,
                thread.created_at,
                thread.updated_at,
            ],
        )
        await self.session.aexecute(
            self._insert_by_category,
            [thread.category_id, thread.created_at, thread.thread_id],
        )
        for tag in thread.tags:
            await self.session.aexecute(
                self._insert_by_tag, [tag, thread.created_at, thread.thread_id]
            )

        logger.info(
            "thread_created",
            thread_id=str(thread.thread_id),
            category_id=str(category_id),
            tags=thread.tags,
        )
        return thread

    # ==========================================================================
    # Read
    # ==========================================================================

    async def get_view_count(self, thread_id: UUID) -> int:
        result = await self.session.aexecute(self._get_views, [thread_id])
        row = result[0] if result else None
        return row.views if row and row.views else 0

    async def get_thread(self, thread_id: UUID) -> Thread | None:
        """Get a thread without touching its view counter."""
        result = await self.session.aexecute(self._get_thread, [thread_id])
        row = result[0] if result else None
        if not row:
            return None
        return Thread.from_row(row, view_count=await self.get_view_count(thread_id))

    async def view_thread(self, thread_id: UUID) -> Thread:
        """Read a thread for display, incrementing its view counter.

        Raises:
            NotFoundError: Thread does not exist
        """
        result = await self.session.aexecute(self._get_thread, [thread_id])
        row = result[0] if result else None
        if not row:
            raise NotFoundError("Thread not found")

        await self.session.aexecute(self._incr_views, [thread_id])
        return Thread.from_row(row, view_count=await self.get_view_count(thread_id))

    async def _load_threads(self, thread_ids: list[UUID]) -> list[Thread]:
        threads = []
        for thread_id in thread_ids:
            thread = await self.get_thread(thread_id)
            if thread:
                threads.append(thread)
        return threads

    async def list_threads(
        self,
        category_id: UUID | None = None,
        tag: str | None = None,
        page: int = 1,
    ) -> tuple[list[Thread], int]:
        """List threads pinned first, then newest first.

        Returns:
            (threads on the requested page, total thread count)
        """
        if category_id is not None:
            rows = await self.session.aexecute(self._get_by_category, [category_id])
            threads = await self._load_threads([row.thread_id for row in rows])
        elif tag:
            rows = await self.session.aexecute(self._get_by_tag, [tag.strip().lower()])
            threads = await self._load_threads([row.thread_id for row in rows])
        else:
            rows = await self.session.aexecute(
                self._scan_threads, [self.search_scan_limit]
            )
            threads = []
            for row in rows:
                threads.append(
                    Thread.from_row(row, view_count=await self.get_view_count(row.thread_id))
                )

        threads.sort(key=lambda t: t.created_at, reverse=True)
        threads.sort(key=lambda t: t.is_pinned, reverse=True)

        total = len(threads)
        page = max(page, 1)
        start = (page - 1) * self.per_page
        return threads[start : start + self.per_page], total

    async def search(
        self,
        query: str | None = None,
        category_id: UUID | None = None,
        tag: str | None = None,
        sort: SearchSort = SearchSort.RECENT,
    ) -> list[Thread]:
        """Case-insensitive substring search over title and content."""
        needle = (query or "").strip().lower()
        tag_name = tag.strip().lower() if tag else None

        rows = await self.session.aexecute(self._scan_threads, [self.search_scan_limit])
        matches = []
        for row in rows:
            if category_id is not None and row.category_id != category_id:
                continue
            if tag_name and tag_name not in (row.tags or []):
                continue
            if needle and needle not in row.title.lower() and needle not in row.content.lower():
                continue
            matches.append(row)

        threads = [
            Thread.from_row(row, view_count=await self.get_view_count(row.thread_id))
            for row in matches
        ]
        threads.sort(key=lambda t: t.created_at, reverse=True)

        if sort == SearchSort.POPULAR:
            threads.sort(key=lambda t: t.view_count, reverse=True)
        elif sort == SearchSort.VOTES:
            scores = {
                t.thread_id: await self.engagement.get_score(TargetKind.THREAD, t.thread_id)
                for t in threads
            }
            threads.sort(key=lambda t: scores[t.thread_id], reverse=True)
        elif sort == SearchSort.COMMENTS:
            counts = {
                t.thread_id: await self.comment_service.count_thread_comments(t.thread_id)
                for t in threads
            }
            threads.sort(key=lambda t: counts[t.thread_id], reverse=True)

        return threads[: self.search_limit]

    # ==========================================================================
    # Moderation
    # ==========================================================================

    async def moderate(self, actor: Any, thread_id: UUID, action: str) -> Thread:
        """Pin, unpin, lock or unlock a thread.

        Raises:
            NotFoundError: Thread does not exist
            InvalidInputError: Unknown action
            ForbiddenError: Actor is below moderator
        """
        thread = await self.get_thread(thread_id)
        if not thread:
            raise NotFoundError("Thread not found")

        try:
            parsed = Action(action)
        except ValueError:
            parsed = None
        if parsed not in THREAD_MODERATION_ACTIONS:
            raise InvalidInputError("Invalid action")

        authorize(actor, parsed, thread).ensure()

        column, value = MODERATION_UPDATES[parsed]
        statement = self._set_pinned if column == "is_pinned" else self._set_locked
        await self.session.aexecute(statement, [value, datetime.now(UTC), thread_id])
        setattr(thread, column, value)

        logger.info(
            "thread_moderated",
            thread_id=str(thread_id),
            action=parsed.value,
            moderator_id=str(actor.user_id),
        )
        return thread

    # ==========================================================================
    # Delete
    # ==========================================================================

    async def delete_thread(self, actor: Any, thread_id: UUID) -> None:
        """Delete a thread with its comments, engagement, indexes and watchers.

        Raises:
            NotFoundError: Thread does not exist
            ForbiddenError: Actor is neither the author nor a moderator
        """
        thread = await self.get_thread(thread_id)
        if not thread:
            raise NotFoundError("Thread not found")

        authorize(actor, Action.DELETE_THREAD, thread).ensure()

        removed_comments = await self.comment_service.delete_thread_comments(thread_id)
        await self.engagement.purge(TargetKind.THREAD, [thread_id])

        await self.session.aexecute(
            self._delete_by_category,
            [thread.category_id, thread.created_at, thread_id],
        )
        for tag in thread.tags:
            await self.session.aexecute(
                self._delete_by_tag, [tag, thread.created_at, thread_id]
            )
        await self.session.aexecute(self._delete_watchers, [thread_id])
        await self.session.aexecute(self._delete_views, [thread_id])
        await self.session.aexecute(self._delete_thread, [thread_id])

        logger.info(
            "thread_deleted",
            thread_id=str(thread_id),
            deleted_by=str(actor.user_id),
            removed_comments=len(removed_comments),
        )

    # ==========================================================================
    # Bookmarks
    # ==========================================================================

    async def add_bookmark(self, user_id: UUID, thread_id: UUID) -> None:
        """Raises InvalidInputError when already bookmarked."""
        if not await self.get_thread(thread_id):
            raise NotFoundError("Thread not found")

        result = await self.session.aexecute(self._get_bookmark, [user_id, thread_id])
        if result:
            raise InvalidInputError("Already bookmarked")

        await self.session.aexecute(
            self._insert_bookmark, [user_id, thread_id, datetime.now(UTC)]
        )

    async def remove_bookmark(self, user_id: UUID, thread_id: UUID) -> None:
        await self.session.aexecute(self._delete_bookmark, [user_id, thread_id])

    async def list_bookmarks(self, user_id: UUID) -> list[Thread]:
        """Bookmarked threads, newest bookmark first; deleted threads are skipped."""
        rows = list(await self.session.aexecute(self._get_bookmarks, [user_id]))
        rows.sort(key=lambda r: r.created_at, reverse=True)
        return await self._load_threads([row.thread_id for row in rows])

    # ==========================================================================
    # Watchers
    # ==========================================================================

    async def add_watcher(self, user_id: UUID, thread_id: UUID) -> None:
        """Raises InvalidInputError when already watching."""
        if not await self.get_thread(thread_id):
            raise NotFoundError("Thread not found")

        result = await self.session.aexecute(self._get_watcher, [thread_id, user_id])
        if result:
            raise InvalidInputError("Already watching")

        await self.session.aexecute(
            self._insert_watcher, [thread_id, user_id, datetime.now(UTC)]
        )

    async def remove_watcher(self, user_id: UUID, thread_id: UUID) -> None:
        await self.session.aexecute(self._delete_watcher, [thread_id, user_id])
