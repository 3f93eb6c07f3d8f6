"""FastAPI dependencies for notifications."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from .service import NotificationService


async def get_notification_service(request: Request) -> NotificationService:
    """Get notification service from app state."""
    app_state = request.app.state
    if not getattr(app_state, "notification_service", None):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Notification service not available",
        )
    return app_state.notification_service


NotificationServiceDep = Annotated[NotificationService, Depends(get_notification_service)]
