"""FastAPI dependencies for profiles."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from .service import ProfileService


async def get_profile_service(request: Request) -> ProfileService:
    """Get profile service from app state."""
    app_state = request.app.state
    if not getattr(app_state, "profile_service", None):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Profile service not available",
        )
    return app_state.profile_service


ProfileServiceDep = Annotated[ProfileService, Depends(get_profile_service)]
