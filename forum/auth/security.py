"""Validation of session tokens issued by the identity provider.

Tokens are HS256 JWTs. ``sub`` is the user ID; ``email`` and
``user_metadata.username`` seed the profile on first sight.
"""

from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

from jose import JWTError, jwt

from forum.config.settings import get_settings


def decode_session_token(token: str) -> dict[str, Any]:
    """Decode and validate a session token.

    Validates signature, expiration, audience (when configured) and that
    ``sub`` is a UUID.

    Raises:
        JWTError: If the token is invalid, expired or has no usable subject
    """
    settings = get_settings()

    options = {"verify_aud": settings.auth_audience is not None}
    payload = jwt.decode(
        token,
        settings.auth_jwt_secret,
        algorithms=[settings.auth_algorithm],
        audience=settings.auth_audience,
        options=options,
    )

    try:
        UUID(str(payload.get("sub")))
    except ValueError as e:
        msg = "Invalid token subject"
        raise JWTError(msg) from e

    return payload


def create_session_token(
    user_id: UUID,
    email: str,
    username: str | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """Mint a token in the identity provider's format.

    Used by local tooling and tests; production tokens come from the provider.
    """
    settings = get_settings()
    now = datetime.now(UTC)
    claims: dict[str, Any] = {
        "sub": str(user_id),
        "email": email,
        "iat": now,
        "exp": now + (expires_delta or timedelta(hours=1)),
        "user_metadata": {"username": username} if username else {},
    }
    if settings.auth_audience:
        claims["aud"] = settings.auth_audience
    return jwt.encode(claims, settings.auth_jwt_secret, algorithm=settings.auth_algorithm)
