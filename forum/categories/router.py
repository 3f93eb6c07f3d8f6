"""Category endpoints."""

from fastapi import APIRouter, status

from forum.auth.dependencies import CurrentActor
from forum.core.errors import ForumError, handle_forum_error

from .dependencies import CategoryServiceDep
from .schemas import (
    CategoryEnvelope,
    CategoryListResponse,
    CategoryResponse,
    CreateCategoryRequest,
)


router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("", response_model=CategoryListResponse, summary="List categories")
async def list_categories(category_service: CategoryServiceDep) -> CategoryListResponse:
    categories = await category_service.list_categories()
    return CategoryListResponse(
        categories=[CategoryResponse.from_category(c) for c in categories]
    )


@router.post(
    "",
    response_model=CategoryEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Create category",
)
async def create_category(
    data: CreateCategoryRequest,
    actor: CurrentActor,
    category_service: CategoryServiceDep,
) -> CategoryEnvelope:
    """Admin only."""
    try:
        category = await category_service.create_category(
            actor,
            name=data.name,
            slug=data.slug,
            description=data.description,
            icon=data.icon,
            color=data.color,
        )
    except ForumError as e:
        raise handle_forum_error(e) from e
    return CategoryEnvelope(category=CategoryResponse.from_category(category))
