"""Pydantic schemas for profiles, roles and follows."""

from datetime import datetime
from urllib.parse import urlparse
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from forum.core.schemas import RequestModel

from .models import Profile


USERNAME_PATTERN = r"^[A-Za-z0-9_.-]+$"


class UpdateProfileRequest(RequestModel):
    """Partial profile update; omitted fields are left untouched."""

    username: str | None = Field(None, min_length=3, max_length=30, pattern=USERNAME_PATTERN)
    full_name: str | None = Field(None, max_length=100)
    avatar_url: str | None = Field(None, max_length=500)
    bio: str | None = Field(None, max_length=500)
    location: str | None = Field(None, max_length=100)
    website: str | None = Field(None, max_length=200)

    @field_validator("website")
    @classmethod
    def validate_website(cls, v: str | None) -> str | None:
        """Require an absolute http(s) URL."""
        if not v:
            return v
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            msg = "Website must be a valid URL"
            raise ValueError(msg)
        return v


class UpdateRoleRequest(RequestModel):
    """Admin request to change a member's role."""

    user_id: UUID
    role: str


class FollowRequest(RequestModel):
    """Follow or unfollow a member."""

    following_id: UUID


class ProfileResponse(BaseModel):
    """Public profile."""

    user_id: UUID
    username: str
    full_name: str | None = None
    avatar_url: str | None = None
    bio: str | None = None
    location: str | None = None
    website: str | None = None
    role: str
    reputation: int = 0
    followers_count: int | None = None
    following_count: int | None = None
    created_at: datetime

    @classmethod
    def from_profile(
        cls,
        profile: Profile,
        followers_count: int | None = None,
        following_count: int | None = None,
    ) -> "ProfileResponse":
        """Create response from profile entity."""
        return cls(
            user_id=profile.user_id,
            username=profile.username,
            full_name=profile.full_name,
            avatar_url=profile.avatar_url,
            bio=profile.bio,
            location=profile.location,
            website=profile.website,
            role=profile.role.value,
            reputation=profile.reputation,
            followers_count=followers_count,
            following_count=following_count,
            created_at=profile.created_at,
        )


class ProfileEnvelope(BaseModel):
    """Single-profile payload."""

    success: bool = True
    profile: ProfileResponse


class LeaderboardResponse(BaseModel):
    """Top members by reputation."""

    profiles: list[ProfileResponse]
