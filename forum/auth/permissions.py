"""Role hierarchy and the moderation gate.

Hierarchical roles:
- ADMIN (level 2): role management plus everything a moderator can do
- MODERATOR (level 1): pin, lock and delete any thread
- USER (level 0): regular member

``authorize`` is the single place where pin/lock/delete/role actions are
checked against role and ownership.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any
from uuid import UUID

from forum.core.errors import ForbiddenError, InvalidInputError


class UserRole(str, Enum):
    """User roles with hierarchical levels."""

    USER = "user"
    MODERATOR = "moderator"
    ADMIN = "admin"


ROLE_HIERARCHY: dict[UserRole, int] = {
    UserRole.USER: 0,
    UserRole.MODERATOR: 1,
    UserRole.ADMIN: 2,
}


def get_role_level(role: UserRole | str) -> int:
    """Get the permission level for a role.

    Unknown role strings map to level 0.
    """
    if isinstance(role, str):
        try:
            role = UserRole(role)
        except ValueError:
            return 0
    return ROLE_HIERARCHY.get(role, 0)


def has_permission(user_role: UserRole | str, required_role: UserRole | str) -> bool:
    """Check if user has at least the required permission level.

    Examples:
        >>> has_permission(UserRole.ADMIN, UserRole.MODERATOR)
        True
        >>> has_permission("user", "moderator")
        False
    """
    return get_role_level(user_role) >= get_role_level(required_role)


def is_admin(role: UserRole | str) -> bool:
    """Check if role is ADMIN."""
    if isinstance(role, str):
        return role == UserRole.ADMIN.value
    return role == UserRole.ADMIN


def is_at_least_moderator(role: UserRole | str) -> bool:
    """Check if role is MODERATOR or higher."""
    return has_permission(role, UserRole.MODERATOR)


# ==============================================================================
# Moderation Gate
# ==============================================================================


class Action(str, Enum):
    """Actions guarded by the moderation gate."""

    PIN_THREAD = "pin"
    UNPIN_THREAD = "unpin"
    LOCK_THREAD = "lock"
    UNLOCK_THREAD = "unlock"
    DELETE_THREAD = "delete_thread"
    DELETE_COMMENT = "delete_comment"
    COMMENT_ON_LOCKED_THREAD = "comment_on_locked_thread"
    CHANGE_ROLE = "change_role"
    MANAGE_CATEGORIES = "manage_categories"


THREAD_MODERATION_ACTIONS = frozenset(
    {Action.PIN_THREAD, Action.UNPIN_THREAD, Action.LOCK_THREAD, Action.UNLOCK_THREAD}
)


@dataclass(frozen=True)
class RoleChange:
    """Resource for ``Action.CHANGE_ROLE``."""

    user_id: UUID
    new_role: UserRole


@dataclass(frozen=True)
class Decision:
    """Outcome of an authorization check."""

    allowed: bool
    reason: str | None = None
    code: str = "forbidden"

    @classmethod
    def allow(cls) -> "Decision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: str, code: str = "forbidden") -> "Decision":
        return cls(allowed=False, reason=reason, code=code)

    def ensure(self) -> None:
        """Raise the matching forum error when the decision is a denial."""
        if self.allowed:
            return
        if self.code == "invalid_input":
            raise InvalidInputError(self.reason or "Invalid request")
        raise ForbiddenError(self.reason or "Forbidden")


def _is_owner(actor: Any, resource: Any) -> bool:
    return getattr(resource, "author_id", None) == actor.user_id


def authorize(actor: Any, action: Action, resource: Any = None) -> Decision:
    """Decide whether ``actor`` may perform ``action`` on ``resource``.

    Args:
        actor: Authenticated actor (``user_id`` and ``role`` attributes)
        action: The guarded action
        resource: Thread or comment (``author_id``), a ``RoleChange``, or None

    Returns:
        Decision; denials carry a user-facing reason
    """
    if action in THREAD_MODERATION_ACTIONS:
        if is_at_least_moderator(actor.role):
            return Decision.allow()
        return Decision.deny("Only moderators and admins can moderate threads")

    if action == Action.DELETE_THREAD:
        if _is_owner(actor, resource) or is_at_least_moderator(actor.role):
            return Decision.allow()
        return Decision.deny("You can only delete your own threads")

    if action == Action.DELETE_COMMENT:
        # Strictly owner-only, moderators and admins included
        if _is_owner(actor, resource):
            return Decision.allow()
        return Decision.deny("You can only delete your own comments")

    if action == Action.COMMENT_ON_LOCKED_THREAD:
        if is_at_least_moderator(actor.role):
            return Decision.allow()
        return Decision.deny("This thread is locked")

    if action == Action.MANAGE_CATEGORIES:
        if is_admin(actor.role):
            return Decision.allow()
        return Decision.deny("Only admins can manage categories")

    if action == Action.CHANGE_ROLE:
        if not is_admin(actor.role):
            return Decision.deny("Only admins can update user roles")
        if actor.user_id == resource.user_id and resource.new_role != UserRole.ADMIN:
            return Decision.deny("You cannot demote yourself", code="invalid_input")
        return Decision.allow()

    return Decision.deny(f"Unknown action: {action}")
