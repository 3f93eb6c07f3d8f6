"""Profile, role management and follow endpoints."""

import structlog
from fastapi import APIRouter

from forum.auth.dependencies import CurrentActor
from forum.core.errors import ForumError, NotFoundError, handle_forum_error
from forum.core.schemas import SuccessResponse

from .dependencies import ProfileServiceDep
from .schemas import (
    FollowRequest,
    LeaderboardResponse,
    ProfileEnvelope,
    ProfileResponse,
    UpdateProfileRequest,
    UpdateRoleRequest,
)


logger = structlog.get_logger(__name__)


router = APIRouter(tags=["profiles"])


@router.get("/profiles/me", response_model=ProfileEnvelope, summary="Own profile")
async def get_my_profile(
    actor: CurrentActor,
    profile_service: ProfileServiceDep,
) -> ProfileEnvelope:
    """Return the authenticated member's profile."""
    profile = await profile_service.get_profile(actor.user_id)
    if not profile:
        raise handle_forum_error(NotFoundError("Profile not found"))
    followers, following = await profile_service.get_follow_counts(actor.user_id)
    return ProfileEnvelope(
        profile=ProfileResponse.from_profile(profile, followers, following)
    )


@router.get(
    "/profiles/leaderboard",
    response_model=LeaderboardResponse,
    summary="Top members by reputation",
)
async def get_leaderboard(profile_service: ProfileServiceDep) -> LeaderboardResponse:
    profiles = await profile_service.get_leaderboard()
    return LeaderboardResponse(
        profiles=[ProfileResponse.from_profile(p) for p in profiles]
    )


@router.get(
    "/profiles/{username}",
    response_model=ProfileEnvelope,
    summary="Public profile",
)
async def get_profile(
    username: str,
    profile_service: ProfileServiceDep,
) -> ProfileEnvelope:
    """Look up a member by username."""
    profile = await profile_service.get_profile_by_username(username)
    if not profile:
        raise handle_forum_error(NotFoundError("Profile not found"))
    followers, following = await profile_service.get_follow_counts(profile.user_id)
    return ProfileEnvelope(
        profile=ProfileResponse.from_profile(profile, followers, following)
    )


@router.patch("/profile", response_model=ProfileEnvelope, summary="Update own profile")
async def update_profile(
    data: UpdateProfileRequest,
    actor: CurrentActor,
    profile_service: ProfileServiceDep,
) -> ProfileEnvelope:
    """Update the caller's profile. Only the supplied fields change."""
    try:
        profile = await profile_service.update_profile(
            actor.user_id, data.model_dump(exclude_unset=True)
        )
    except ForumError as e:
        raise handle_forum_error(e) from e
    return ProfileEnvelope(profile=ProfileResponse.from_profile(profile))


@router.patch(
    "/admin/update-role",
    response_model=SuccessResponse,
    summary="Change a member's role",
)
async def update_role(
    data: UpdateRoleRequest,
    actor: CurrentActor,
    profile_service: ProfileServiceDep,
) -> SuccessResponse:
    """Admin only. Admins cannot demote themselves."""
    try:
        profile = await profile_service.update_role(actor, data.user_id, data.role)
    except ForumError as e:
        raise handle_forum_error(e) from e
    return SuccessResponse(message=f"{profile.username} is now {profile.role.value}")


@router.post("/followers", response_model=SuccessResponse, summary="Follow a member")
async def follow(
    data: FollowRequest,
    actor: CurrentActor,
    profile_service: ProfileServiceDep,
) -> SuccessResponse:
    try:
        await profile_service.follow(actor.user_id, data.following_id)
    except ForumError as e:
        raise handle_forum_error(e) from e
    return SuccessResponse()


@router.delete("/followers", response_model=SuccessResponse, summary="Unfollow a member")
async def unfollow(
    data: FollowRequest,
    actor: CurrentActor,
    profile_service: ProfileServiceDep,
) -> SuccessResponse:
    await profile_service.unfollow(actor.user_id, data.following_id)
    return SuccessResponse()
