"""Database models for the comment tree.

Cassandra table definitions for:
- Comments: main table keyed by comment_id (O(1) lookup)
- Comments by thread: every comment of a thread, oldest first
- Comments by parent: direct replies of a comment, oldest first

Architecture: adjacency list. ``parent_id`` references the parent comment
(NULL for top-level comments); depth and reply counts are derived on read.
``quoted_comment_id`` is a non-owning reference to another comment of the
same thread.
"""

import html
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

COMMENT_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.comments (
    comment_id UUID PRIMARY KEY,
    thread_id UUID,
    parent_id UUID,
    quoted_comment_id UUID,
    author_id UUID,
    author_name TEXT,
    content TEXT,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

COMMENTS_BY_THREAD_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.comments_by_thread (
    thread_id UUID,
    created_at TIMESTAMP,
    comment_id UUID,
    parent_id UUID,
    PRIMARY KEY ((thread_id), created_at, comment_id)
) WITH CLUSTERING ORDER BY (created_at ASC, comment_id ASC)
"""

COMMENTS_BY_PARENT_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.comments_by_parent (
    parent_id UUID,
    created_at TIMESTAMP,
    comment_id UUID,
    PRIMARY KEY ((parent_id), created_at, comment_id)
) WITH CLUSTERING ORDER BY (created_at ASC, comment_id ASC)
"""

COMMENTS_TABLES_CQL = [
    COMMENT_TABLE_CQL,
    COMMENTS_BY_THREAD_TABLE_CQL,
    COMMENTS_BY_PARENT_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


@dataclass
class QuotedComment:
    """The part of a quoted comment shown above the quoting one."""

    comment_id: UUID
    author_name: str
    content: str

    def to_blockquote(self) -> str:
        """Render as ``<author> said:`` followed by the quoted content."""
        return (
            f"<blockquote><strong>{html.escape(self.author_name)} said:</strong>\n"
            f"{self.content}</blockquote>\n"
        )


@dataclass
class Comment:
    """Comment with its derived tree fields.

    ``depth``, ``reply_count`` and ``quoted`` are filled in by the service
    when a comment is loaded for display.
    """

    comment_id: UUID
    thread_id: UUID
    parent_id: UUID | None
    quoted_comment_id: UUID | None
    author_id: UUID
    author_name: str
    content: str
    created_at: datetime
    updated_at: datetime
    depth: int = 0
    reply_count: int = 0
    can_reply: bool = True
    quoted: QuotedComment | None = None

    @classmethod
    def from_row(cls, row: Any) -> "Comment":
        """Create Comment from Cassandra row."""
        return cls(
            comment_id=row.comment_id,
            thread_id=row.thread_id,
            parent_id=row.parent_id,
            quoted_comment_id=row.quoted_comment_id,
            author_id=row.author_id,
            author_name=row.author_name or "Member",
            content=row.content,
            created_at=row.created_at,
            updated_at=row.updated_at or row.created_at,
        )

    @property
    def display_content(self) -> str:
        """Content as rendered, with the quoted comment prepended."""
        if self.quoted is None:
            return self.content
        return self.quoted.to_blockquote() + self.content


def create_comment(
    thread_id: UUID,
    author_id: UUID,
    author_name: str,
    content: str,
    parent_id: UUID | None = None,
    quoted_comment_id: UUID | None = None,
) -> Comment:
    """Create a new comment with default values."""
    now = datetime.now(UTC)
    return Comment(
        comment_id=uuid4(),
        thread_id=thread_id,
        parent_id=parent_id,
        quoted_comment_id=quoted_comment_id,
        author_id=author_id,
        author_name=author_name,
        content=content,
        created_at=now,
        updated_at=now,
    )
