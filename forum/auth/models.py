"""Request-scoped identity of the authenticated user."""

from dataclasses import dataclass
from uuid import UUID

from forum.auth.permissions import UserRole


@dataclass(frozen=True)
class Actor:
    """The authenticated user performing the current request."""

    user_id: UUID
    username: str
    role: UserRole
    email: str | None = None

    @property
    def is_moderator(self) -> bool:
        return self.role in (UserRole.MODERATOR, UserRole.ADMIN)
