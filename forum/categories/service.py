# ruff: noqa: S608 - All CQL queries use keyspace from config, not user input
"""Category service layer."""

from typing import TYPE_CHECKING, Any
from uuid import UUID

import structlog

from forum.auth.permissions import Action, authorize
from forum.core.errors import InvalidInputError

from .models import Category, create_category


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = structlog.get_logger(__name__)


class CategoryService:
    """Service for forum categories."""

    def __init__(self, session: "Session", keyspace: str):
        """Initialize with Cassandra session."""
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient queries."""
        self._insert_category = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.categories
            (category_id, name, slug, description, icon, color, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
        """)

        self._insert_slug = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.categories_by_slug
            (slug, category_id)
            VALUES (?, ?)
        """)

        self._get_category = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.categories
            WHERE category_id = ?
        """)

        self._get_slug = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.categories_by_slug
            WHERE slug = ?
        """)

        self._list_categories = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.categories
        """)

    async def get_category(self, category_id: UUID) -> Category | None:
        """Get a category by ID."""
        result = await self.session.aexecute(self._get_category, [category_id])
        row = result[0] if result else None
        return Category.from_row(row) if row else None

    async def get_category_by_slug(self, slug: str) -> Category | None:
        """Get a category by slug."""
        result = await self.session.aexecute(self._get_slug, [slug])
        row = result[0] if result else None
        if not row:
            return None
        return await self.get_category(row.category_id)

    async def list_categories(self) -> list[Category]:
        """All categories sorted by name."""
        rows = await self.session.aexecute(self._list_categories)
        categories = [Category.from_row(row) for row in rows]
        categories.sort(key=lambda c: c.name.lower())
        return categories

    async def create_category(
        self,
        actor: Any,
        name: str,
        slug: str,
        description: str | None = None,
        icon: str | None = None,
        color: str | None = None,
    ) -> Category:
        """Create a category (admin only).

        Raises:
            ForbiddenError: Actor is not an admin
            InvalidInputError: Slug already in use
        """
        authorize(actor, Action.MANAGE_CATEGORIES).ensure()

        if await self.get_category_by_slug(slug):
            raise InvalidInputError(f"Category slug '{slug}' already exists")

        category = create_category(
            name=name, slug=slug, description=description, icon=icon, color=color
        )
        await self.session.aexecute(
            self._insert_category,
            [
                category.category_id,
                category.name,
                category.slug,
                category.description,
                category.icon,
                category.color,
                category.created_at,
            ],
        )
        await self.session.aexecute(self._insert_slug, [category.slug, category.category_id])

        logger.info("category_created", category_id=str(category.category_id), slug=slug)
        return category
