"""Activity feed synchronization and listing.

The synchronizer is the only writer of ``activity_feed``. Objective-scoped
entries are derived from progress through ``reconcile_feed``; follower
entries are linked 1:1 to a follow relationship through ``follow_id``.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import structlog

from wanderlist.feed.reconcile import (
    NEW_FOLLOWER,
    OBJECTIVE_SCOPED_TYPES,
    FeedPlan,
    FeedState,
    ProgressState,
    StoredEntry,
    reconcile_feed,
)
from wanderlist.feed.schemas import FeedEntry
from wanderlist.gateway.base import PersistenceGateway
from wanderlist.session import SessionContext

logger = structlog.get_logger()

FEED_TABLE = "activity_feed"


class ActivityFeedSynchronizer:
    """Keeps derived feed entries consistent with progress and follows."""

    def __init__(self, gateway: PersistenceGateway) -> None:
        self.gateway = gateway

    async def load_feed_state(self, user_id: str, objective_id: str) -> FeedState:
        """Load the stored objective-scoped entries for (user, objective)."""
        rows = await self.gateway.query(
            FEED_TABLE,
            {
                "user_id": user_id,
                "objective_id": objective_id,
                "activity_type": OBJECTIVE_SCOPED_TYPES,
            },
        )
        return FeedState(
            entries=tuple(
                StoredEntry(
                    id=row["id"],
                    activity_type=row["activity_type"],
                    objective_item_id=row.get("objective_item_id"),
                    created_at=row.get("created_at"),
                )
                for row in rows
            )
        )

    async def reconcile_objective(self, ctx: SessionContext, progress: ProgressState) -> FeedPlan:
        """Bring the objective-scoped feed in line with ``progress``.

        Deletes run before inserts so a failure part-way never leaves a
        duplicate behind; the next reconcile finishes the job.
        """
        previous = await self.load_feed_state(ctx.user_id, progress.objective_id)
        plan = reconcile_feed(previous, progress)
        if plan.is_empty:
            return plan

        if plan.to_delete:
            await self.gateway.delete(FEED_TABLE, {"id": list(plan.to_delete)})

        if plan.to_insert:
            now = datetime.now(timezone.utc)
            rows = [
                {
                    "user_id": ctx.user_id,
                    "activity_type": draft.activity_type,
                    "objective_id": progress.objective_id,
                    "objective_title": progress.objective_title,
                    "objective_item_id": draft.objective_item_id,
                    "item_name": draft.item_name,
                    # Keep insertion order visible in a created_at-sorted feed.
                    "created_at": now + timedelta(microseconds=i),
                }
                for i, draft in enumerate(plan.to_insert)
            ]
            await self.gateway.insert_many(FEED_TABLE, rows)

        logger.info(
            "feed_reconciled",
            user_id=ctx.user_id,
            objective_id=progress.objective_id,
            inserted=[d.activity_type for d in plan.to_insert],
            deleted=len(plan.to_delete),
        )
        return plan

    async def clear_objective(self, ctx: SessionContext, objective_id: str) -> int:
        """Delete every visited_place/completed_objective entry for (user, objective)."""
        removed = await self.gateway.delete(
            FEED_TABLE,
            {
                "user_id": ctx.user_id,
                "objective_id": objective_id,
                "activity_type": OBJECTIVE_SCOPED_TYPES,
            },
        )
        logger.info("feed_objective_cleared", user_id=ctx.user_id, objective_id=objective_id, removed=removed)
        return removed

    async def record_new_follower(
        self,
        owner_id: str,
        follower_id: str,
        follower_name: str | None,
        follow_id: str,
    ) -> str:
        """Insert the new_follower entry owned by the followed user."""
        entry_id = await self.gateway.insert(
            FEED_TABLE,
            {
                "user_id": owner_id,
                "activity_type": NEW_FOLLOWER,
                "item_name": follower_name,
                "actor_id": follower_id,
                "follow_id": follow_id,
                "created_at": datetime.now(timezone.utc),
            },
        )
        logger.info("feed_new_follower", owner_id=owner_id, follower_id=follower_id, follow_id=follow_id)
        return entry_id

    async def has_follow_entry(self, follow_id: str) -> bool:
        return await self.gateway.exists(FEED_TABLE, {"follow_id": follow_id, "activity_type": NEW_FOLLOWER})

    async def remove_follow_entries(self, follow_id: str) -> int:
        """Delete the entry linked to a follow relationship."""
        return await self.gateway.delete(FEED_TABLE, {"follow_id": follow_id, "activity_type": NEW_FOLLOWER})

    async def list_feed(
        self, ctx: SessionContext, page: int = 1, per_page: int = 50
    ) -> tuple[list[FeedEntry], int]:
        """Get one page of the user's feed, newest first, and the total entry count."""
        match = {"user_id": ctx.user_id}
        total = await self.gateway.count(FEED_TABLE, match)
        rows = await self.gateway.query(
            FEED_TABLE, match, order_by="-created_at", limit=per_page, offset=(page - 1) * per_page
        )
        return [FeedEntry.from_row(row) for row in rows], total
