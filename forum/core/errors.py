"""Domain error taxonomy shared by all forum services.

Services raise these; routers convert them with :func:`handle_forum_error`.
"""

from fastapi import HTTPException, status


class ForumError(Exception):
    """Base forum error."""

    def __init__(self, message: str, code: str = "forum_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class UnauthorizedError(ForumError):
    """No valid session."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message, "unauthorized")


class ForbiddenError(ForumError):
    """Authenticated but lacking role or ownership."""

    def __init__(self, message: str = "Forbidden"):
        super().__init__(message, "forbidden")


class NotFoundError(ForumError):
    """Target row absent."""

    def __init__(self, message: str = "Not found"):
        super().__init__(message, "not_found")


class InvalidInputError(ForumError):
    """Missing or malformed input."""

    def __init__(self, message: str = "Invalid input", code: str = "invalid_input"):
        super().__init__(message, code)


class InvalidTargetError(InvalidInputError):
    """Vote/reaction target must be exactly one of thread or comment."""

    def __init__(self, message: str = "Provide exactly one of threadId or commentId"):
        super().__init__(message, "invalid_target")


class RateLimitExceededError(ForumError):
    """Too many writes in the current window."""

    def __init__(self, message: str = "Rate limit exceeded"):
        super().__init__(message, "rate_limit_exceeded")


STATUS_BY_CODE = {
    "unauthorized": status.HTTP_401_UNAUTHORIZED,
    "forbidden": status.HTTP_403_FORBIDDEN,
    "not_found": status.HTTP_404_NOT_FOUND,
    "invalid_input": status.HTTP_400_BAD_REQUEST,
    "invalid_target": status.HTTP_400_BAD_REQUEST,
    "rate_limit_exceeded": status.HTTP_429_TOO_MANY_REQUESTS,
}


def handle_forum_error(error: ForumError) -> HTTPException:
    """Convert a forum error to an HTTP exception.

    Unknown codes map to 500; the app-level handler hides their message.
    """
    status_code = STATUS_BY_CODE.get(error.code, status.HTTP_500_INTERNAL_SERVER_ERROR)
    headers = (
        {"WWW-Authenticate": "Bearer"}
        if status_code == status.HTTP_401_UNAUTHORIZED
        else None
    )
    return HTTPException(status_code=status_code, detail=error.message, headers=headers)
