"""Follow relationship business logic.

Rules:
- A user cannot follow themselves
- At most one follows row per (follower, following); following twice is a no-op
- Each follows row has exactly one new_follower entry, owned by the followed user
- Unfollowing removes the entry first, then the relationship
- Counters are recounted from follows rows on load, then adjusted in memory
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import structlog

from wanderlist.errors import NotFound, PreconditionFailed, StoreUnavailable
from wanderlist.feed.synchronizer import ActivityFeedSynchronizer
from wanderlist.gateway.base import PersistenceGateway
from wanderlist.session import SessionContext
from wanderlist.social.schemas import FollowCounts, FollowState, ProfileSummary

logger = structlog.get_logger()


class FollowManager:
    """Owns the follower/following graph and its derived counters."""

    def __init__(self, gateway: PersistenceGateway, feed: ActivityFeedSynchronizer) -> None:
        self.gateway = gateway
        self.feed = feed

    async def _require_profile(self, user_id: str) -> dict[str, Any]:
        profile = await self.gateway.get_one("profiles", {"id": user_id})
        if profile is None:
            msg = "User not found"
            raise NotFound(msg)
        return profile

    async def _get_relationship(self, follower_id: str, target_id: str) -> dict[str, Any] | None:
        return await self.gateway.get_one("follows", {"follower_id": follower_id, "following_id": target_id})

    async def _follower_name(self, ctx: SessionContext) -> str | None:
        if ctx.display_name:
            return ctx.display_name
        profile = await self.gateway.get_one("profiles", {"id": ctx.user_id})
        return profile["username"] if profile else None

    async def is_following(self, follower_id: str, target_id: str) -> bool:
        return await self.gateway.exists("follows", {"follower_id": follower_id, "following_id": target_id})

    async def get_counts(self, user_id: str) -> FollowCounts:
        """Recount followers and following from the follows table."""
        return FollowCounts(
            followers=await self.gateway.count("follows", {"following_id": user_id}),
            following=await self.gateway.count("follows", {"follower_id": user_id}),
        )

    async def follow(self, ctx: SessionContext, target_id: str) -> FollowState:
        """Follow ``target_id``.

        Raises:
            PreconditionFailed: On self-follow.
            NotFound: If the target profile does not exist.
        """
        if target_id == ctx.user_id:
            msg = "You cannot follow yourself"
            raise PreconditionFailed(msg, code="self_follow")
        await self._require_profile(target_id)

        target_counts = await self.get_counts(target_id)
        viewer_counts = await self.get_counts(ctx.user_id)
        follower_name = await self._follower_name(ctx)

        existing = await self._get_relationship(ctx.user_id, target_id)
        if existing is not None:
            return await self._ensure_follow_entry(ctx, target_id, existing, follower_name, target_counts, viewer_counts)

        try:
            follow_id = await self.gateway.insert(
                "follows",
                {
                    "follower_id": ctx.user_id,
                    "following_id": target_id,
                    "created_at": datetime.now(timezone.utc),
                },
            )
        except PreconditionFailed as e:
            existing = await self._get_relationship(ctx.user_id, target_id) if e.code == "conflict" else None
            if existing is None:
                raise
            # Another request created the relationship first and owns its feed entry.
            logger.info("follow_write_conflict", follower_id=ctx.user_id, following_id=target_id)
            return FollowState(
                target_id=target_id,
                is_following=True,
                target_counts=await self.get_counts(target_id),
                viewer_counts=await self.get_counts(ctx.user_id),
            )

        try:
            await self.feed.record_new_follower(target_id, ctx.user_id, follower_name, follow_id)
        except StoreUnavailable:
            logger.error("follow_incomplete", follower_id=ctx.user_id, following_id=target_id, follow_id=follow_id)
            raise

        target_counts.add_follower()
        viewer_counts.add_following()
        logger.info("follow_created", follower_id=ctx.user_id, following_id=target_id, follow_id=follow_id)
        return FollowState(
            target_id=target_id,
            is_following=True,
            target_counts=target_counts,
            viewer_counts=viewer_counts,
        )

    async def _ensure_follow_entry(
        self,
        ctx: SessionContext,
        target_id: str,
        existing: dict[str, Any],
        follower_name: str | None,
        target_counts: FollowCounts,
        viewer_counts: FollowCounts,
    ) -> FollowState:
        # A previous follow may have stopped between the two writes.
        if not await self.feed.has_follow_entry(existing["id"]):
            await self.feed.record_new_follower(target_id, ctx.user_id, follower_name, existing["id"])
        logger.info("follow_exists", follower_id=ctx.user_id, following_id=target_id)
        return FollowState(
            target_id=target_id,
            is_following=True,
            target_counts=target_counts,
            viewer_counts=viewer_counts,
        )

    async def unfollow(self, ctx: SessionContext, target_id: str) -> FollowState:
        """Stop following ``target_id``; a no-op when not following."""
        if target_id == ctx.user_id:
            msg = "You cannot unfollow yourself"
            raise PreconditionFailed(msg, code="self_follow")

        target_counts = await self.get_counts(target_id)
        viewer_counts = await self.get_counts(ctx.user_id)

        existing = await self._get_relationship(ctx.user_id, target_id)
        if existing is None:
            logger.info("follow_absent", follower_id=ctx.user_id, following_id=target_id)
            return FollowState(
                target_id=target_id,
                is_following=False,
                target_counts=target_counts,
                viewer_counts=viewer_counts,
            )

        await self.feed.remove_follow_entries(existing["id"])
        await self.gateway.delete("follows", {"id": existing["id"]})

        target_counts.remove_follower()
        viewer_counts.remove_following()
        logger.info("follow_removed", follower_id=ctx.user_id, following_id=target_id, follow_id=existing["id"])
        return FollowState(
            target_id=target_id,
            is_following=False,
            target_counts=target_counts,
            viewer_counts=viewer_counts,
        )

    async def _summaries(self, user_ids: list[str]) -> list[ProfileSummary]:
        if not user_ids:
            return []
        profiles = {p["id"]: p for p in await self.gateway.query("profiles", {"id": user_ids})}
        return [
            ProfileSummary(id=p["id"], username=p["username"], avatar_url=p.get("avatar_url"))
            for p in (profiles.get(user_id) for user_id in user_ids)
            if p is not None
        ]

    async def list_followers(self, user_id: str) -> list[ProfileSummary]:
        """Profiles following ``user_id``, newest first. ``avatar_url`` is the stored path."""
        rows = await self.gateway.query("follows", {"following_id": user_id}, order_by="-created_at")
        return await self._summaries([row["follower_id"] for row in rows])

    async def list_following(self, user_id: str) -> list[ProfileSummary]:
        """Profiles ``user_id`` follows, newest first. ``avatar_url`` is the stored path."""
        rows = await self.gateway.query("follows", {"follower_id": user_id}, order_by="-created_at")
        return await self._summaries([row["following_id"] for row in rows])
