# Core infrastructure
from forum.core.context import (
    clear_context,
    get_context,
    get_request_id,
    get_user_id,
    set_request_id,
    set_user_id,
)
from forum.core.errors import (
    ForbiddenError,
    ForumError,
    InvalidInputError,
    InvalidTargetError,
    NotFoundError,
    RateLimitExceededError,
    UnauthorizedError,
    handle_forum_error,
)
from forum.core.logging import configure_structlog, get_logger
from forum.core.middleware import RequestContextMiddleware


__all__ = [
    "ForbiddenError",
    "ForumError",
    "InvalidInputError",
    "InvalidTargetError",
    "NotFoundError",
    "RateLimitExceededError",
    "RequestContextMiddleware",
    "UnauthorizedError",
    "clear_context",
    "configure_structlog",
    "get_context",
    "get_logger",
    "get_request_id",
    "get_user_id",
    "handle_forum_error",
    "set_request_id",
    "set_user_id",
]
