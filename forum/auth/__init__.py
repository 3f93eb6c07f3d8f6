"""Authentication and authorization."""

from forum.auth.models import Actor
from forum.auth.permissions import (
    Action,
    Decision,
    RoleChange,
    UserRole,
    authorize,
    has_permission,
)


__all__ = [
    "Action",
    "Actor",
    "Decision",
    "RoleChange",
    "UserRole",
    "authorize",
    "has_permission",
]
