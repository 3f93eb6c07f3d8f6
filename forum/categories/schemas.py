"""Pydantic schemas for categories."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from forum.core.schemas import RequestModel

from .models import Category


class CreateCategoryRequest(RequestModel):
    """Request to create a category."""

    name: str = Field(..., min_length=1, max_length=100)
    slug: str = Field(..., min_length=1, max_length=100, pattern=r"^[a-z0-9-]+$")
    description: str | None = Field(None, max_length=500)
    icon: str | None = Field(None, max_length=50)
    color: str | None = Field(None, max_length=20)


class CategoryResponse(BaseModel):
    """Category details."""

    category_id: UUID
    name: str
    slug: str
    description: str | None = None
    icon: str | None = None
    color: str | None = None
    created_at: datetime

    @classmethod
    def from_category(cls, category: Category) -> "CategoryResponse":
        """Create response from category entity."""
        return cls(
            category_id=category.category_id,
            name=category.name,
            slug=category.slug,
            description=category.description,
            icon=category.icon,
            color=category.color,
            created_at=category.created_at,
        )


class CategoryListResponse(BaseModel):
    """All categories."""

    categories: list[CategoryResponse]


class CategoryEnvelope(BaseModel):
    """Single category payload."""

    success: bool = True
    category: CategoryResponse
