"""Database models for member profiles and follows.

Cassandra table definitions for:
- Profiles: one row per user, created on first authenticated request
- Profiles by username: unique username lookup (lowercased key)
- Followers / following: the two directions of a follow edge
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from forum.auth.permissions import UserRole


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

PROFILE_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.profiles (
    user_id UUID PRIMARY KEY,
    username TEXT,
    email TEXT,
    full_name TEXT,
    avatar_url TEXT,
    bio TEXT,
    location TEXT,
    website TEXT,
    role TEXT,
    reputation INT,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

PROFILES_BY_USERNAME_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.profiles_by_username (
    username_key TEXT PRIMARY KEY,
    user_id UUID
)
"""

FOLLOWERS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.followers (
    following_id UUID,
    follower_id UUID,
    created_at TIMESTAMP,
    PRIMARY KEY ((following_id), follower_id)
)
"""

FOLLOWING_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.following (
    follower_id UUID,
    following_id UUID,
    created_at TIMESTAMP,
    PRIMARY KEY ((follower_id), following_id)
)
"""

PROFILES_TABLES_CQL = [
    PROFILE_TABLE_CQL,
    PROFILES_BY_USERNAME_TABLE_CQL,
    FOLLOWERS_TABLE_CQL,
    FOLLOWING_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


@dataclass
class Profile:
    """Member profile."""

    user_id: UUID
    username: str
    email: str | None
    full_name: str | None
    avatar_url: str | None
    bio: str | None
    location: str | None
    website: str | None
    role: UserRole
    reputation: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_row(cls, row: Any) -> "Profile":
        """Create Profile from Cassandra row."""
        try:
            role = UserRole(row.role)
        except ValueError:
            role = UserRole.USER
        return cls(
            user_id=row.user_id,
            username=row.username,
            email=row.email,
            full_name=row.full_name,
            avatar_url=row.avatar_url,
            bio=row.bio,
            location=row.location,
            website=row.website,
            role=role,
            reputation=row.reputation or 0,
            created_at=row.created_at,
            updated_at=row.updated_at or row.created_at,
        )


def username_key(username: str) -> str:
    """Case-insensitive key used for uniqueness and @mention lookup."""
    return username.strip().lower()


def create_profile(user_id: UUID, username: str, email: str | None) -> Profile:
    """Create a new profile with default values."""
    now = datetime.now(UTC)
    return Profile(
        user_id=user_id,
        username=username,
        email=email,
        full_name=None,
        avatar_url=None,
        bio=None,
        location=None,
        website=None,
        role=UserRole.USER,
        reputation=0,
        created_at=now,
        updated_at=now,
    )
