"""Database models for threads, bookmarks and watchers.

Cassandra table definitions for:
- Threads: main table keyed by thread_id
- Threads by category / by tag: listing indexes, newest first
- Thread view counts: counter table, bumped on every single-thread read
- Bookmarks (per user) and watchers (per thread)
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4


class SearchSort(str, Enum):
    """Search result orderings."""

    RECENT = "recent"
    POPULAR = "popular"
    VOTES = "votes"
    COMMENTS = "comments"


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

THREAD_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.threads (
    thread_id UUID PRIMARY KEY,
    category_id UUID,
    author_id UUID,
    author_name TEXT,
    title TEXT,
    content TEXT,
    tags LIST<TEXT>,
    is_pinned BOOLEAN,
    is_locked BOOLEAN,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

THREADS_BY_CATEGORY_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.threads_by_category (
    category_id UUID,
    created_at TIMESTAMP,
    thread_id UUID,
    PRIMARY KEY ((category_id), created_at, thread_id)
) WITH CLUSTERING ORDER BY (created_at DESC, thread_id ASC)
"""

THREADS_BY_TAG_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.threads_by_tag (
    tag TEXT,
    created_at TIMESTAMP,
    thread_id UUID,
    PRIMARY KEY ((tag), created_at, thread_id)
) WITH CLUSTERING ORDER BY (created_at DESC, thread_id ASC)
"""

THREAD_VIEW_COUNTS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.thread_view_counts (
    thread_id UUID PRIMARY KEY,
    views COUNTER
)
"""

THREAD_BOOKMARKS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.thread_bookmarks (
    user_id UUID,
    thread_id UUID,
    created_at TIMESTAMP,
    PRIMARY KEY ((user_id), thread_id)
)
"""

THREAD_WATCHERS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.thread_watchers (
    thread_id UUID,
    user_id UUID,
    created_at TIMESTAMP,
    PRIMARY KEY ((thread_id), user_id)
)
"""

THREADS_TABLES_CQL = [
    THREAD_TABLE_CQL,
    THREADS_BY_CATEGORY_TABLE_CQL,
    THREADS_BY_TAG_TABLE_CQL,
    THREAD_VIEW_COUNTS_TABLE_CQL,
    THREAD_BOOKMARKS_TABLE_CQL,
    THREAD_WATCHERS_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


@dataclass
class Thread:
    """Top-level discussion post."""

    thread_id: UUID
    category_id: UUID
    author_id: UUID
    author_name: str
    title: str
    content: str
    tags: list[str] = field(default_factory=list)
    is_pinned: bool = False
    is_locked: bool = False
    view_count: int = 0
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def from_row(cls, row: Any, view_count: int = 0) -> "Thread":
        """Create Thread from Cassandra row."""
        return cls(
            thread_id=row.thread_id,
            category_id=row.category_id,
            author_id=row.author_id,
            author_name=row.author_name or "Member",
            title=row.title,
            content=row.content,
            tags=list(row.tags or []),
            is_pinned=row.is_pinned or False,
            is_locked=row.is_locked or False,
            view_count=view_count,
            created_at=row.created_at,
            updated_at=row.updated_at or row.created_at,
        )


def normalize_tags(tags: list[str] | None) -> list[str]:
    """Trim, lowercase and de-duplicate tag names, keeping first-seen order."""
    seen: dict[str, None] = {}
    for tag in tags or []:
        name = tag.strip().lower()
        if name:
            seen.setdefault(name, None)
    return list(seen)


def create_thread(
    category_id: UUID,
    author_id: UUID,
    author_name: str,
    title: str,
    content: str,
    tags: list[str] | None = None,
) -> Thread:
    """Create a new thread with default values."""
    now = datetime.now(UTC)
    return Thread(
        thread_id=uuid4(),
        category_id=category_id,
        author_id=author_id,
        author_name=author_name,
        title=title,
        content=content,
        tags=normalize_tags(tags),
        is_pinned=False,
        is_locked=False,
        view_count=0,
        created_at=now,
        updated_at=now,
    )
