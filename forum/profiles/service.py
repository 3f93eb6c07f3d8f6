# ruff: noqa: S608 - All CQL queries use keyspace from config, not user input
"""Profile service layer.

Business logic for:
- Provisioning profiles from identity provider claims
- Profile reads and updates (unique usernames)
- Admin role changes through the moderation gate
- Follow / unfollow
- Reputation bookkeeping and the leaderboard
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID

import structlog

from forum.auth.permissions import Action, RoleChange, UserRole, authorize, is_admin
from forum.core.errors import ForbiddenError, InvalidInputError, NotFoundError

from .models import Profile, create_profile, username_key


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = structlog.get_logger(__name__)


LEADERBOARD_SIZE = 10

# Fields a member may edit on their own profile
EDITABLE_FIELDS = ("username", "full_name", "avatar_url", "bio", "location", "website")


class ProfileService:
    """Service for member profiles and the follow graph."""

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        leaderboard_scan_limit: int = 10000,
    ):
        """Initialize with Cassandra session."""
        self.session = session
        self.keyspace = keyspace
        self.leaderboard_scan_limit = leaderboard_scan_limit
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient queries."""
        self._insert_profile = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.profiles
            (user_id, username, email, full_name, avatar_url, bio, location,
             website, role, reputation, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)

        self._get_profile = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.profiles
            WHERE user_id = ?
        """)

        self._list_profiles = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.profiles
            LIMIT ?
        """)

        self._update_profile = self.session.prepare(f"""
            UPDATE {self.keyspace}.profiles
            SET username = ?, full_name = ?, avatar_url = ?, bio = ?,
                location = ?, website = ?, updated_at = ?
            WHERE user_id = ?
        """)

        self._update_role = self.session.prepare(f"""
            UPDATE {self.keyspace}.profiles
            SET role = ?, updated_at = ?
            WHERE user_id = ?
        """)

        self._update_reputation = self.session.prepare(f"""
            UPDATE {self.keyspace}.profiles
            SET reputation = ?
            WHERE user_id = ?
        """)

        self._insert_username = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.profiles_by_username
            (username_key, user_id)
            VALUES (?, ?)
        """)

        self._get_username = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.profiles_by_username
            WHERE username_key = ?
        """)

        self._delete_username = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.profiles_by_username
            WHERE username_key = ?
        """)

        # Follow graph
        self._insert_follower = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.followers
            (following_id, follower_id, created_at)
            VALUES (?, ?, ?)
        """)

        self._insert_following = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.following
            (follower_id, following_id, created_at)
            VALUES (?, ?, ?)
        """)

        self._get_follow = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.following
            WHERE follower_id = ? AND following_id = ?
        """)

        self._delete_follower = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.followers
            WHERE following_id = ? AND follower_id = ?
        """)

        self._delete_following = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.following
            WHERE follower_id = ? AND following_id = ?
        """)

        self._count_followers = self.session.prepare(f"""
            SELECT COUNT(*) FROM {self.keyspace}.followers
            WHERE following_id = ?
        """)

        self._count_following = self.session.prepare(f"""
            SELECT COUNT(*) FROM {self.keyspace}.following
            WHERE follower_id = ?
        """)

    # ==========================================================================
    # Reads
    # ==========================================================================

    async def get_profile(self, user_id: UUID) -> Profile | None:
        """Get a profile by user ID."""
        result = await self.session.aexecute(self._get_profile, [user_id])
        row = result[0] if result else None
        return Profile.from_row(row) if row else None

    async def get_profile_by_username(self, username: str) -> Profile | None:
        """Get a profile by username (case-insensitive)."""
        result = await self.session.aexecute(self._get_username, [username_key(username)])
        row = result[0] if result else None
        if not row:
            return None
        return await self.get_profile(row.user_id)

    async def get_follow_counts(self, user_id: UUID) -> tuple[int, int]:
        """Return (followers, following) counts for a user."""
        followers = await self.session.aexecute(self._count_followers, [user_id])
        following = await self.session.aexecute(self._count_following, [user_id])
        return (
            followers[0].count if followers else 0,
            following[0].count if following else 0,
        )

    async def get_leaderboard(self, limit: int = LEADERBOARD_SIZE) -> list[Profile]:
        """Top members by reputation."""
        rows = await self.session.aexecute(
            self._list_profiles, [self.leaderboard_scan_limit]
        )
        profiles = [Profile.from_row(row) for row in rows]
        profiles.sort(key=lambda p: (-p.reputation, p.username.lower()))
        return profiles[:limit]

    # ==========================================================================
    # Provisioning and updates
    # ==========================================================================

    async def ensure_profile(
        self,
        user_id: UUID,
        email: str | None,
        username_hint: str | None = None,
    ) -> Profile:
        """Return the user's profile, creating it from token claims if missing.

        The username comes from the provider's metadata, else the email local
        part; a suffix from the user ID is appended when it is already taken.
        """
        profile = await self.get_profile(user_id)
        if profile:
            return profile

        base = (username_hint or (email or "").split("@")[0] or "member").strip()
        username = base
        owner = await self._username_owner(username)
        if owner is not None and owner != user_id:
            username = f"{base}_{user_id.hex[:6]}"

        profile = create_profile(user_id=user_id, username=username, email=email)
        await self._write_profile(profile)
        await self.session.aexecute(
            self._insert_username, [username_key(username), user_id]
        )
        logger.info("profile_created", user_id=str(user_id), username=username)
        return profile

    async def _username_owner(self, username: str) -> UUID | None:
        result = await self.session.aexecute(self._get_username, [username_key(username)])
        row = result[0] if result else None
        return row.user_id if row else None

    async def _write_profile(self, profile: Profile) -> None:
        await self.session.aexecute(
            self._insert_profile,
            [
                profile.user_id,
                profile.username,
                profile.email,
                profile.full_name,
                profile.avatar_url,
                profile.bio,
                profile.location,
                profile.website,
                profile.role.value,
                profile.reputation,
                profile.created_at,
                profile.updated_at,
            ],
        )

    async def update_profile(self, user_id: UUID, changes: dict[str, Any]) -> Profile:
        """Apply the given field changes to the user's own profile.

        Raises:
            NotFoundError: Profile does not exist
            InvalidInputError: Username is already taken
        """
        profile = await self.get_profile(user_id)
        if not profile:
            raise NotFoundError("Profile not found")

        new_username = changes.get("username")
        old_key = username_key(profile.username)
        if new_username and username_key(new_username) != old_key:
            owner = await self._username_owner(new_username)
            if owner is not None and owner != user_id:
                raise InvalidInputError("Username is already taken")

        for field_name in EDITABLE_FIELDS:
            if field_name in changes:
                value = changes[field_name]
                if field_name == "username" and not value:
                    continue
                setattr(profile, field_name, value or None)
        profile.updated_at = datetime.now(UTC)

        await self.session.aexecute(
            self._update_profile,
            [
                profile.username,
                profile.full_name,
                profile.avatar_url,
                profile.bio,
                profile.location,
                profile.website,
                profile.updated_at,
                user_id,
            ],
        )

        if username_key(profile.username) != old_key:
            await self.session.aexecute(self._delete_username, [old_key])
            await self.session.aexecute(
                self._insert_username, [username_key(profile.username), user_id]
            )

        logger.info("profile_updated", user_id=str(user_id), fields=sorted(changes))
        return profile

    async def update_role(self, actor: Any, user_id: UUID, role: str) -> Profile:
        """Change a member's role (admin only).

        An admin may not demote themself; re-asserting admin on self is a
        no-op success.

        Raises:
            ForbiddenError: Actor is not an admin
            InvalidInputError: Unknown role or self-demotion
            NotFoundError: Target user does not exist
        """
        # Role check comes before payload validation
        if not is_admin(actor.role):
            raise ForbiddenError("Only admins can update user roles")

        try:
            new_role = UserRole(role)
        except ValueError as e:
            raise InvalidInputError(
                "Invalid role. Must be one of: user, moderator, admin"
            ) from e

        authorize(actor, Action.CHANGE_ROLE, RoleChange(user_id, new_role)).ensure()

        profile = await self.get_profile(user_id)
        if not profile:
            raise NotFoundError("User not found")

        if profile.role == new_role:
            return profile

        profile.role = new_role
        profile.updated_at = datetime.now(UTC)
        await self.session.aexecute(
            self._update_role, [new_role.value, profile.updated_at, user_id]
        )
        logger.info(
            "user_role_updated",
            admin_id=str(actor.user_id),
            target_user_id=str(user_id),
            role=new_role.value,
        )
        return profile

    async def adjust_reputation(self, user_id: UUID, delta: int) -> None:
        """Add ``delta`` to a member's reputation."""
        if delta == 0:
            return
        profile = await self.get_profile(user_id)
        if not profile:
            return
        await self.session.aexecute(
            self._update_reputation, [profile.reputation + delta, user_id]
        )

    # ==========================================================================
    # Follows
    # ==========================================================================

    async def follow(self, follower_id: UUID, following_id: UUID) -> None:
        """Follow another member.

        Raises:
            InvalidInputError: Self-follow or already following
            NotFoundError: Target user does not exist
        """
        if follower_id == following_id:
            raise InvalidInputError("You cannot follow yourself")

        if not await self.get_profile(following_id):
            raise NotFoundError("User not found")

        existing = await self.session.aexecute(
            self._get_follow, [follower_id, following_id]
        )
        if existing:
            raise InvalidInputError("Already following")

        now = datetime.now(UTC)
        await self.session.aexecute(
            self._insert_follower, [following_id, follower_id, now]
        )
        await self.session.aexecute(
            self._insert_following, [follower_id, following_id, now]
        )
        logger.info(
            "user_followed",
            follower_id=str(follower_id),
            following_id=str(following_id),
        )

    async def unfollow(self, follower_id: UUID, following_id: UUID) -> None:
        """Remove a follow edge; succeeds when none existed."""
        await self.session.aexecute(
            self._delete_follower, [following_id, follower_id]
        )
        await self.session.aexecute(
            self._delete_following, [follower_id, following_id]
        )
