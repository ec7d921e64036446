"""Progress router: objective detail, item toggles, bulk marks, world map."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends

from wanderlist.auth.dependencies import get_current_session
from wanderlist.dependencies import get_progress_tracker
from wanderlist.progress.schemas import (
    BulkMarkResult,
    ObjectiveProgress,
    ToggleItemRequest,
    ToggleResult,
    VisitedPlace,
)
from wanderlist.progress.tracker import ProgressTracker
from wanderlist.session import SessionContext

router = APIRouter(prefix="/api/v1", tags=["Progress"])


@router.get("/objectives/{objective_id}", response_model=ObjectiveProgress)
async def get_objective(
    objective_id: uuid.UUID,
    ctx: SessionContext = Depends(get_current_session),
    tracker: ProgressTracker = Depends(get_progress_tracker),
) -> ObjectiveProgress:
    """Objective detail with the caller's visited flags."""
    return await tracker.load_objective(ctx, str(objective_id))


@router.post("/objectives/{objective_id}/items/{item_id}/toggle", response_model=ToggleResult)
async def toggle_item(
    objective_id: uuid.UUID,
    item_id: uuid.UUID,
    body: ToggleItemRequest,
    ctx: SessionContext = Depends(get_current_session),
    tracker: ProgressTracker = Depends(get_progress_tracker),
) -> ToggleResult:
    return await tracker.toggle_item(
        ctx,
        str(item_id),
        currently_visited=body.currently_visited,
        objective_id=str(objective_id),
    )


@router.post("/objectives/{objective_id}/mark-all", response_model=BulkMarkResult)
async def mark_all(
    objective_id: uuid.UUID,
    ctx: SessionContext = Depends(get_current_session),
    tracker: ProgressTracker = Depends(get_progress_tracker),
) -> BulkMarkResult:
    all_visited = await tracker.mark_all(ctx, str(objective_id))
    return BulkMarkResult(all_visited=all_visited, objective=await tracker.load_objective(ctx, str(objective_id)))


@router.post("/objectives/{objective_id}/unmark-all", response_model=BulkMarkResult)
async def unmark_all(
    objective_id: uuid.UUID,
    ctx: SessionContext = Depends(get_current_session),
    tracker: ProgressTracker = Depends(get_progress_tracker),
) -> BulkMarkResult:
    all_visited = await tracker.unmark_all(ctx, str(objective_id))
    return BulkMarkResult(all_visited=all_visited, objective=await tracker.load_objective(ctx, str(objective_id)))


@router.get("/me/visited-places", response_model=list[VisitedPlace])
async def my_visited_places(
    ctx: SessionContext = Depends(get_current_session),
    tracker: ProgressTracker = Depends(get_progress_tracker),
) -> list[VisitedPlace]:
    return await tracker.list_visited_places(ctx)


@router.get("/users/{user_id}/visited-places", response_model=list[VisitedPlace])
async def user_visited_places(
    user_id: uuid.UUID,
    ctx: SessionContext = Depends(get_current_session),
    tracker: ProgressTracker = Depends(get_progress_tracker),
) -> list[VisitedPlace]:
    """World-map places of another user."""
    return await tracker.list_visited_places(ctx, str(user_id))
