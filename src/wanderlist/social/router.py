"""Social router: user search, public profiles, follows."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query

from wanderlist.auth.dependencies import get_current_session
from wanderlist.dependencies import get_follow_manager, get_profile_service
from wanderlist.errors import NotFound
from wanderlist.session import SessionContext
from wanderlist.social.follow_manager import FollowManager
from wanderlist.social.profile_service import ProfileService
from wanderlist.social.schemas import FollowState, ProfileSummary, ProfileUpdateRequest, PublicProfile

router = APIRouter(prefix="/api/v1", tags=["Social"])


def _resolve_user_id(user_id: str, ctx: SessionContext) -> str:
    """Accept "me" or a UUID; anything else cannot name a profile."""
    if user_id == "me":
        return ctx.user_id
    try:
        return str(uuid.UUID(user_id))
    except ValueError:
        msg = "User not found"
        raise NotFound(msg) from None


@router.get("/users", response_model=list[ProfileSummary])
async def search_users(
    search: str = Query("", max_length=64),
    ctx: SessionContext = Depends(get_current_session),
    profiles: ProfileService = Depends(get_profile_service),
) -> list[ProfileSummary]:
    return await profiles.search_profiles(ctx, search)


@router.patch("/me/profile", response_model=PublicProfile)
async def update_my_profile(
    body: ProfileUpdateRequest,
    ctx: SessionContext = Depends(get_current_session),
    profiles: ProfileService = Depends(get_profile_service),
) -> PublicProfile:
    return await profiles.update_profile(ctx, username=body.username, city=body.city)


@router.get("/users/{user_id}", response_model=PublicProfile)
async def get_user(
    user_id: str,
    ctx: SessionContext = Depends(get_current_session),
    profiles: ProfileService = Depends(get_profile_service),
) -> PublicProfile:
    """Public profile; ``me`` resolves to the caller."""
    return await profiles.get_public_profile(ctx, _resolve_user_id(user_id, ctx))


@router.get("/users/{user_id}/followers", response_model=list[ProfileSummary])
async def get_followers(
    user_id: str,
    ctx: SessionContext = Depends(get_current_session),
    profiles: ProfileService = Depends(get_profile_service),
) -> list[ProfileSummary]:
    return await profiles.list_followers(ctx, _resolve_user_id(user_id, ctx))


@router.get("/users/{user_id}/following", response_model=list[ProfileSummary])
async def get_following(
    user_id: str,
    ctx: SessionContext = Depends(get_current_session),
    profiles: ProfileService = Depends(get_profile_service),
) -> list[ProfileSummary]:
    return await profiles.list_following(ctx, _resolve_user_id(user_id, ctx))


@router.post("/users/{user_id}/follow", response_model=FollowState)
async def follow_user(
    user_id: uuid.UUID,
    ctx: SessionContext = Depends(get_current_session),
    follows: FollowManager = Depends(get_follow_manager),
) -> FollowState:
    return await follows.follow(ctx, str(user_id))


@router.delete("/users/{user_id}/follow", response_model=FollowState)
async def unfollow_user(
    user_id: uuid.UUID,
    ctx: SessionContext = Depends(get_current_session),
    follows: FollowManager = Depends(get_follow_manager),
) -> FollowState:
    return await follows.unfollow(ctx, str(user_id))
