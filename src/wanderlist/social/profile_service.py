"""Public profiles and user search.

Avatars are stored as blob-store paths and returned as short-lived signed
URLs. A signing failure hides the avatar rather than failing the request.
"""

from __future__ import annotations

from typing import Any

import structlog

from wanderlist.config import Settings
from wanderlist.errors import NotFound, StoreUnavailable
from wanderlist.gateway.base import Contains, PersistenceGateway
from wanderlist.session import SessionContext
from wanderlist.social.follow_manager import FollowManager
from wanderlist.social.schemas import ProfileSummary, PublicProfile
from wanderlist.storage.blob_store import BaseBlobStore

logger = structlog.get_logger()


class ProfileService:
    def __init__(
        self,
        gateway: PersistenceGateway,
        follows: FollowManager,
        blob_store: BaseBlobStore,
        settings: Settings,
    ) -> None:
        self.gateway = gateway
        self.follows = follows
        self.blob_store = blob_store
        self.settings = settings

    async def sign_avatar(self, path: str | None) -> str | None:
        """Signed URL for a stored avatar path, or None."""
        if not path:
            return None
        try:
            return await self.blob_store.get_signed_url(
                self.settings.avatar_bucket, path, self.settings.signed_url_ttl_seconds
            )
        except StoreUnavailable:
            logger.warning("avatar_sign_failed", path=path)
            return None

    async def _signed(self, summaries: list[ProfileSummary]) -> list[ProfileSummary]:
        return [
            summary.model_copy(update={"avatar_url": await self.sign_avatar(summary.avatar_url)})
            for summary in summaries
        ]

    async def _profile(self, user_id: str) -> dict[str, Any]:
        profile = await self.gateway.get_one("profiles", {"id": user_id})
        if profile is None:
            msg = "User not found"
            raise NotFound(msg)
        return profile

    async def get_public_profile(self, ctx: SessionContext, user_id: str) -> PublicProfile:
        """Profile card with counters and the viewer's follow status."""
        profile = await self._profile(user_id)
        is_me = user_id == ctx.user_id
        return PublicProfile(
            id=profile["id"],
            username=profile["username"],
            city=profile.get("city"),
            avatar_url=await self.sign_avatar(profile.get("avatar_url")),
            counts=await self.follows.get_counts(user_id),
            is_following=False if is_me else await self.follows.is_following(ctx.user_id, user_id),
            is_me=is_me,
        )

    async def update_profile(
        self,
        ctx: SessionContext,
        username: str | None = None,
        city: str | None = None,
    ) -> PublicProfile:
        """Edit the session user's own username and/or city."""
        patch: dict[str, Any] = {}
        if username is not None and username.strip():
            patch["username"] = username.strip()
        if city is not None:
            patch["city"] = city.strip() or None
        if patch:
            updated = await self.gateway.update("profiles", {"id": ctx.user_id}, patch)
            if not updated:
                msg = "User not found"
                raise NotFound(msg)
            logger.info("profile_updated", user_id=ctx.user_id, fields=sorted(patch))
        return await self.get_public_profile(ctx, ctx.user_id)

    async def search_profiles(self, ctx: SessionContext, query: str, limit: int | None = None) -> list[ProfileSummary]:
        """Case-insensitive username search; a blank query returns nothing."""
        term = query.strip()
        if not term:
            return []
        rows = await self.gateway.query(
            "profiles",
            {"username": Contains(term)},
            order_by="username",
            limit=limit or self.settings.search_limit,
        )
        return await self._signed(
            [ProfileSummary(id=row["id"], username=row["username"], avatar_url=row.get("avatar_url")) for row in rows]
        )

    async def list_followers(self, ctx: SessionContext, user_id: str) -> list[ProfileSummary]:
        await self._profile(user_id)
        return await self._signed(await self.follows.list_followers(user_id))

    async def list_following(self, ctx: SessionContext, user_id: str) -> list[ProfileSummary]:
        await self._profile(user_id)
        return await self._signed(await self.follows.list_following(user_id))
