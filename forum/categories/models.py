"""Database models for forum categories."""

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4


CATEGORY_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.categories (
    category_id UUID PRIMARY KEY,
    name TEXT,
    slug TEXT,
    description TEXT,
    icon TEXT,
    color TEXT,
    created_at TIMESTAMP
)
"""

# Slug lookup - category pages are addressed by slug
CATEGORIES_BY_SLUG_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.categories_by_slug (
    slug TEXT PRIMARY KEY,
    category_id UUID
)
"""

CATEGORIES_TABLES_CQL = [
    CATEGORY_TABLE_CQL,
    CATEGORIES_BY_SLUG_TABLE_CQL,
]


@dataclass
class Category:
    """Forum category."""

    category_id: UUID
    name: str
    slug: str
    description: str | None
    icon: str | None
    color: str | None
    created_at: datetime

    @classmethod
    def from_row(cls, row: Any) -> "Category":
        """Create Category from Cassandra row."""
        return cls(
            category_id=row.category_id,
            name=row.name,
            slug=row.slug,
            description=row.description,
            icon=row.icon,
            color=row.color,
            created_at=row.created_at,
        )


def create_category(
    name: str,
    slug: str,
    description: str | None = None,
    icon: str | None = None,
    color: str | None = None,
) -> Category:
    """Create a new category with default values."""
    return Category(
        category_id=uuid4(),
        name=name,
        slug=slug,
        description=description,
        icon=icon,
        color=color,
        created_at=datetime.now(UTC),
    )
