"""FastAPI dependencies for the vote/reaction ledger."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from .service import EngagementService


async def get_engagement_service(request: Request) -> EngagementService:
    """Get engagement service from app state."""
    app_state = request.app.state
    if not getattr(app_state, "engagement_service", None):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Engagement service not available",
        )
    return app_state.engagement_service


EngagementServiceDep = Annotated[EngagementService, Depends(get_engagement_service)]
