"""FastAPI dependencies for categories."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from .service import CategoryService


async def get_category_service(request: Request) -> CategoryService:
    """Get category service from app state."""
    app_state = request.app.state
    if not getattr(app_state, "category_service", None):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Category service not available",
        )
    return app_state.category_service


CategoryServiceDep = Annotated[CategoryService, Depends(get_category_service)]
