"""FastAPI dependencies for authentication.

Provides dependency injection for:
- Session token extraction (Authorization header or session cookie)
- The request-scoped ``Actor`` resolved from the caller's profile
"""

from typing import Annotated
from uuid import UUID

import structlog
from fastapi import Depends, HTTPException, Request, status
from jose import JWTError

from forum.auth.models import Actor
from forum.auth.security import decode_session_token
from forum.config.settings import get_settings
from forum.core.context import set_user_id


logger = structlog.get_logger(__name__)


def get_session_token(request: Request) -> str | None:
    """Extract the session token from a Bearer header or the session cookie."""
    auth_header = request.headers.get("Authorization")
    if auth_header:
        expected_parts = 2
        parts = auth_header.split()
        if len(parts) == expected_parts and parts[0].lower() == "bearer":
            return parts[1]
        return None

    return request.cookies.get(get_settings().auth_cookie_name)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def _resolve_actor(request: Request, token: str) -> Actor:
    payload = decode_session_token(token)
    user_id = UUID(payload["sub"])
    set_user_id(user_id)

    profile_service = getattr(request.app.state, "profile_service", None)
    if profile_service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Profile service not available",
        )

    metadata = payload.get("user_metadata") or {}
    profile = await profile_service.ensure_profile(
        user_id=user_id,
        email=payload.get("email"),
        username_hint=metadata.get("username"),
    )
    return Actor(
        user_id=profile.user_id,
        username=profile.username,
        role=profile.role,
        email=profile.email,
    )


async def get_current_actor(
    request: Request,
    token: Annotated[str | None, Depends(get_session_token)],
) -> Actor:
    """Resolve the authenticated actor for this request.

    Raises:
        HTTPException(401): If the token is missing, invalid, or expired
    """
    if not token:
        raise _unauthorized("Unauthorized")

    try:
        return await _resolve_actor(request, token)
    except JWTError as e:
        logger.info("session_token_rejected", error=str(e))
        raise _unauthorized("Invalid or expired session") from e


async def get_optional_actor(
    request: Request,
    token: Annotated[str | None, Depends(get_session_token)],
) -> Actor | None:
    """Resolve the actor if a valid session is present, else None."""
    if not token:
        return None

    try:
        return await _resolve_actor(request, token)
    except JWTError:
        return None


# ==============================================================================
# Type Aliases for Cleaner Code
# ==============================================================================

CurrentActor = Annotated[Actor, Depends(get_current_actor)]
OptionalActor = Annotated[Actor | None, Depends(get_optional_actor)]
