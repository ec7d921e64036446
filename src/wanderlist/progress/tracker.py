"""Progress tracking: visited/unvisited state of objective items.

Rules:
- Items can only be toggled while the user holds the objective
- A visited item has exactly one user_progress row and one visited_place entry
- Completion is derived (completed_count == total_items), never stored
- Bulk mark/unmark evaluates completion once, after the whole batch
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import structlog

from wanderlist.errors import NotFound, PreconditionFailed
from wanderlist.feed.reconcile import ItemRef, ProgressState
from wanderlist.feed.synchronizer import ActivityFeedSynchronizer
from wanderlist.gateway.base import PersistenceGateway
from wanderlist.progress.schemas import ItemProgress, ObjectiveProgress, ToggleResult, VisitedPlace
from wanderlist.session import SessionContext

logger = structlog.get_logger()

UNTITLED_OBJECTIVE = "No objective"


def completion_percentage(completed: int, total: int) -> float:
    """Percentage of visited items; 0 for an empty objective, never above 100."""
    if total <= 0:
        return 0.0
    return min(completed / total * 100, 100.0)


class ProgressTracker:
    """Owns the visited state of one user's objective items."""

    def __init__(self, gateway: PersistenceGateway, feed: ActivityFeedSynchronizer) -> None:
        self.gateway = gateway
        self.feed = feed

    # ── Loading ──

    async def get_objective(self, objective_id: str) -> dict[str, Any]:
        objective = await self.gateway.get_one("objectives", {"id": objective_id})
        if objective is None:
            msg = "Objective not found"
            raise NotFound(msg)
        return objective

    async def get_items(self, objective_id: str) -> list[dict[str, Any]]:
        return await self.gateway.query("objective_items", {"objective_id": objective_id}, order_by="order_index")

    async def is_held(self, user_id: str, objective_id: str) -> bool:
        return await self.gateway.exists("user_objectives", {"user_id": user_id, "objective_id": objective_id})

    async def visited_ids(self, user_id: str, item_ids: list[str]) -> set[str]:
        if not item_ids:
            return set()
        rows = await self.gateway.query("user_progress", {"user_id": user_id, "objective_item_id": item_ids})
        return {row["objective_item_id"] for row in rows}

    async def _record_visits(self, user_id: str, item_ids: list[str]) -> int:
        """Insert progress rows for ``item_ids``. Returns how many were written.

        Rows written concurrently by another request are skipped: a conflicting
        batch is retried row by row against a fresh read of the visited set.
        """
        now = datetime.now(timezone.utc)
        rows = [{"user_id": user_id, "objective_item_id": item_id, "created_at": now} for item_id in item_ids]
        try:
            return len(await self.gateway.insert_many("user_progress", rows))
        except PreconditionFailed as e:
            if e.code != "conflict":
                raise

        logger.info("progress_write_conflict", user_id=user_id, items=len(rows))
        already = await self.visited_ids(user_id, item_ids)
        written = 0
        for row in rows:
            if row["objective_item_id"] in already:
                continue
            try:
                await self.gateway.insert("user_progress", row)
            except PreconditionFailed as e:
                if e.code != "conflict":
                    raise
            else:
                written += 1
        return written

    async def _require_held(self, ctx: SessionContext, objective_id: str) -> None:
        if not await self.is_held(ctx.user_id, objective_id):
            msg = "Add this objective to your list before marking places"
            raise PreconditionFailed(msg, code="objective_not_held")

    @staticmethod
    def progress_state(
        ctx: SessionContext,
        objective: dict[str, Any],
        items: list[dict[str, Any]],
        visited: set[str],
        held: bool,
    ) -> ProgressState:
        return ProgressState(
            user_id=ctx.user_id,
            objective_id=objective["id"],
            objective_title=objective["title"],
            total_items=objective["total_items"],
            held=held,
            items=tuple(ItemRef(id=item["id"], name=item["name"]) for item in items),
            visited_item_ids=frozenset(visited),
        )

    @staticmethod
    def build_view(
        objective: dict[str, Any],
        items: list[dict[str, Any]],
        visited: set[str],
        held: bool,
    ) -> ObjectiveProgress:
        completed = sum(1 for item in items if item["id"] in visited)
        total = objective["total_items"]
        return ObjectiveProgress(
            id=objective["id"],
            title=objective["title"],
            description=objective.get("description"),
            image_url=objective.get("image_url"),
            total_items=total,
            held=held,
            items=[
                ItemProgress(
                    id=item["id"],
                    name=item["name"],
                    latitude=item["latitude"],
                    longitude=item["longitude"],
                    order_index=item["order_index"],
                    visited=item["id"] in visited,
                )
                for item in items
            ],
            completed_count=completed,
            percentage=completion_percentage(completed, total),
            is_completed=held and total > 0 and completed >= total,
        )

    async def load_objective(self, ctx: SessionContext, objective_id: str) -> ObjectiveProgress:
        """Objective detail with the user's visited flags."""
        objective = await self.get_objective(objective_id)
        items = await self.get_items(objective_id)
        held = await self.is_held(ctx.user_id, objective_id)
        visited = await self.visited_ids(ctx.user_id, [item["id"] for item in items])
        return self.build_view(objective, items, visited, held)

    # ── Commands ──

    async def toggle_item(
        self,
        ctx: SessionContext,
        item_id: str,
        currently_visited: bool,
        objective_id: str | None = None,
    ) -> ToggleResult:
        """Flip one item between visited and unvisited.

        When ``objective_id`` is given the item must belong to it.

        Raises:
            NotFound: If the item or its objective no longer exists.
            PreconditionFailed: If the user does not hold the objective.
        """
        item = await self.gateway.get_one("objective_items", {"id": item_id})
        if item is None or (objective_id is not None and item["objective_id"] != objective_id):
            msg = "Place not found"
            raise NotFound(msg)
        objective = await self.get_objective(item["objective_id"])
        await self._require_held(ctx, objective["id"])

        key = {"user_id": ctx.user_id, "objective_item_id": item_id}
        if currently_visited:
            await self.gateway.delete("user_progress", key)
        elif not await self.gateway.exists("user_progress", key):
            await self._record_visits(ctx.user_id, [item_id])

        items = await self.get_items(objective["id"])
        visited = await self.visited_ids(ctx.user_id, [i["id"] for i in items])
        await self.feed.reconcile_objective(ctx, self.progress_state(ctx, objective, items, visited, held=True))

        now_visited = item_id in visited
        logger.info(
            "item_toggled",
            user_id=ctx.user_id,
            objective_id=objective["id"],
            item_id=item_id,
            visited=now_visited,
            completed=len(visited),
            total=objective["total_items"],
        )
        return ToggleResult(
            item_id=item_id,
            visited=now_visited,
            objective=self.build_view(objective, items, visited, held=True),
        )

    async def mark_all(self, ctx: SessionContext, objective_id: str) -> bool:
        """Mark every unvisited item of a held objective as visited."""
        objective = await self.get_objective(objective_id)
        await self._require_held(ctx, objective_id)

        items = await self.get_items(objective_id)
        item_ids = [item["id"] for item in items]
        visited = await self.visited_ids(ctx.user_id, item_ids)
        inserted = await self._record_visits(ctx.user_id, [i for i in item_ids if i not in visited])
        visited = await self.visited_ids(ctx.user_id, item_ids)

        await self.feed.reconcile_objective(ctx, self.progress_state(ctx, objective, items, visited, held=True))
        logger.info("objective_marked_all", user_id=ctx.user_id, objective_id=objective_id, inserted=inserted)
        return True

    async def unmark_all(self, ctx: SessionContext, objective_id: str) -> bool:
        """Clear every visit mark of a held objective and its feed entries."""
        await self.get_objective(objective_id)
        await self._require_held(ctx, objective_id)

        items = await self.get_items(objective_id)
        item_ids = [item["id"] for item in items]
        removed = 0
        if item_ids:
            removed = await self.gateway.delete("user_progress", {"user_id": ctx.user_id, "objective_item_id": item_ids})
        await self.feed.clear_objective(ctx, objective_id)

        logger.info("objective_unmarked_all", user_id=ctx.user_id, objective_id=objective_id, removed=removed)
        return False

    # ── World map ──

    async def list_visited_places(self, ctx: SessionContext, user_id: str | None = None) -> list[VisitedPlace]:
        """Every place the user has visited, across all objectives."""
        user_id = user_id or ctx.user_id
        progress = await self.gateway.query("user_progress", {"user_id": user_id}, order_by="created_at")
        if not progress:
            return []

        items = await self.gateway.query("objective_items", {"id": [p["objective_item_id"] for p in progress]})
        objectives = await self.gateway.query("objectives", {"id": list({item["objective_id"] for item in items})})
        titles = {o["id"]: o["title"] for o in objectives}
        by_id = {item["id"]: item for item in items}

        places: list[VisitedPlace] = []
        for row in progress:
            item = by_id.get(row["objective_item_id"])
            if item is None:
                continue
            places.append(VisitedPlace(
                id=item["id"],
                name=item["name"],
                latitude=item["latitude"],
                longitude=item["longitude"],
                objective_id=item["objective_id"],
                objective_title=titles.get(item["objective_id"], UNTITLED_OBJECTIVE),
            ))
        return places
