"""Objective membership business logic.

Rules:
- At most one user_objectives edge per (user, objective); adding twice is a no-op
- Adding records no activity of its own; it reconciles the objective's feed with existing progress
- Removing runs a compensating list: edge, progress rows, objective-scoped feed entries
- Removal is idempotent, so a partly failed removal is finished by running it again
"""

from __future__ import annotations

from collections import Counter
from datetime import datetime, timezone

import structlog

from wanderlist.errors import PreconditionFailed, StoreUnavailable
from wanderlist.feed.synchronizer import ActivityFeedSynchronizer
from wanderlist.gateway.base import PersistenceGateway
from wanderlist.objectives.schemas import ObjectiveSummary
from wanderlist.progress.schemas import ObjectiveProgress
from wanderlist.progress.tracker import ProgressTracker, completion_percentage
from wanderlist.session import SessionContext

logger = structlog.get_logger()


class MembershipManager:
    """Owns whether a user has added an objective to their list."""

    def __init__(
        self,
        gateway: PersistenceGateway,
        tracker: ProgressTracker,
        feed: ActivityFeedSynchronizer,
    ) -> None:
        self.gateway = gateway
        self.tracker = tracker
        self.feed = feed

    async def add_objective(self, ctx: SessionContext, objective_id: str) -> ObjectiveProgress:
        """Add an objective to the user's list.

        The feed is reconciled afterwards, so entries left behind by an
        interrupted removal are dropped or restored to match progress.
        """
        objective = await self.tracker.get_objective(objective_id)

        key = {"user_id": ctx.user_id, "objective_id": objective_id}
        if await self.gateway.exists("user_objectives", key):
            logger.info("objective_already_held", user_id=ctx.user_id, objective_id=objective_id)
        else:
            try:
                await self.gateway.insert("user_objectives", {**key, "created_at": datetime.now(timezone.utc)})
            except PreconditionFailed as e:
                if e.code != "conflict":
                    raise
                logger.info("objective_already_held", user_id=ctx.user_id, objective_id=objective_id)
            else:
                logger.info("objective_added", user_id=ctx.user_id, objective_id=objective_id)

        items = await self.tracker.get_items(objective_id)
        visited = await self.tracker.visited_ids(ctx.user_id, [item["id"] for item in items])
        await self.feed.reconcile_objective(
            ctx, self.tracker.progress_state(ctx, objective, items, visited, held=True)
        )
        return self.tracker.build_view(objective, items, visited, held=True)

    async def remove_objective(self, ctx: SessionContext, objective_id: str) -> ObjectiveProgress:
        """Remove an objective and everything scoped to it.

        Store failures abort the remaining steps; completed steps are logged
        and left in place.
        """
        await self.tracker.get_objective(objective_id)
        items = await self.tracker.get_items(objective_id)
        item_ids = [item["id"] for item in items]

        completed_steps: list[str] = []
        try:
            await self.gateway.delete("user_objectives", {"user_id": ctx.user_id, "objective_id": objective_id})
            completed_steps.append("membership")
            if item_ids:
                await self.gateway.delete("user_progress", {"user_id": ctx.user_id, "objective_item_id": item_ids})
            completed_steps.append("progress")
            await self.feed.clear_objective(ctx, objective_id)
            completed_steps.append("feed")
        except StoreUnavailable:
            logger.error(
                "objective_removal_incomplete",
                user_id=ctx.user_id,
                objective_id=objective_id,
                completed_steps=completed_steps,
            )
            raise

        logger.info("objective_removed", user_id=ctx.user_id, objective_id=objective_id)
        return await self.tracker.load_objective(ctx, objective_id)

    async def list_user_objectives(self, ctx: SessionContext) -> list[ObjectiveSummary]:
        """The user's objectives with progress, oldest addition first."""
        edges = await self.gateway.query("user_objectives", {"user_id": ctx.user_id}, order_by="created_at")
        if not edges:
            return []

        objective_ids = [edge["objective_id"] for edge in edges]
        objectives = {o["id"]: o for o in await self.gateway.query("objectives", {"id": objective_ids})}
        items = await self.gateway.query("objective_items", {"objective_id": objective_ids})
        item_objective = {item["id"]: item["objective_id"] for item in items}
        visited = await self.tracker.visited_ids(ctx.user_id, list(item_objective))
        completed = Counter(item_objective[item_id] for item_id in visited)

        summaries: list[ObjectiveSummary] = []
        for edge in edges:
            objective = objectives.get(edge["objective_id"])
            if objective is None:
                continue
            done = completed[objective["id"]]
            summaries.append(ObjectiveSummary(
                id=objective["id"],
                title=objective["title"],
                image_url=objective.get("image_url"),
                total_items=objective["total_items"],
                completed_count=done,
                percentage=completion_percentage(done, objective["total_items"]),
                added_at=edge.get("created_at"),
            ))
        return summaries
