"""FastAPI dependencies for threads."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from .service import ThreadService


async def get_thread_service(request: Request) -> ThreadService:
    """Get thread service from app state."""
    app_state = request.app.state
    if not getattr(app_state, "thread_service", None):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Thread service not available",
        )
    return app_state.thread_service


ThreadServiceDep = Annotated[ThreadService, Depends(get_thread_service)]
