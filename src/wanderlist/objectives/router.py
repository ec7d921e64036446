"""Objective catalog and membership router."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query

from wanderlist.auth.dependencies import get_current_session
from wanderlist.dependencies import get_membership_manager, get_objective_catalog
from wanderlist.objectives.catalog import ObjectiveCatalog
from wanderlist.objectives.membership import MembershipManager
from wanderlist.objectives.schemas import CatalogResponse, CategoryListResponse, UserObjectivesResponse
from wanderlist.progress.schemas import ObjectiveProgress
from wanderlist.session import SessionContext

router = APIRouter(prefix="/api/v1", tags=["Objectives"])


# ── Catalog ──


@router.get("/categories", response_model=CategoryListResponse)
async def list_categories(
    ctx: SessionContext = Depends(get_current_session),
    catalog: ObjectiveCatalog = Depends(get_objective_catalog),
) -> CategoryListResponse:
    return CategoryListResponse(categories=await catalog.list_categories())


@router.get("/objectives", response_model=CatalogResponse)
async def list_objectives(
    category: str | None = Query(None, max_length=64),
    search: str = Query("", max_length=200),
    ctx: SessionContext = Depends(get_current_session),
    catalog: ObjectiveCatalog = Depends(get_objective_catalog),
) -> CatalogResponse:
    """Objectives ordered by title, optionally within one category slug and matching a title search."""
    objectives = await catalog.list_objectives(category_slug=category, search=search)
    return CatalogResponse(objectives=objectives, total=len(objectives))


# ── Membership ──


@router.post("/objectives/{objective_id}/membership", response_model=ObjectiveProgress)
async def add_objective(
    objective_id: uuid.UUID,
    ctx: SessionContext = Depends(get_current_session),
    manager: MembershipManager = Depends(get_membership_manager),
) -> ObjectiveProgress:
    """Add an objective to the caller's list."""
    return await manager.add_objective(ctx, str(objective_id))


@router.delete("/objectives/{objective_id}/membership", response_model=ObjectiveProgress)
async def remove_objective(
    objective_id: uuid.UUID,
    ctx: SessionContext = Depends(get_current_session),
    manager: MembershipManager = Depends(get_membership_manager),
) -> ObjectiveProgress:
    """Remove an objective together with its progress and feed entries."""
    return await manager.remove_objective(ctx, str(objective_id))


@router.get("/me/objectives", response_model=UserObjectivesResponse)
async def my_objectives(
    ctx: SessionContext = Depends(get_current_session),
    manager: MembershipManager = Depends(get_membership_manager),
) -> UserObjectivesResponse:
    objectives = await manager.list_user_objectives(ctx)
    return UserObjectivesResponse(objectives=objectives, total=len(objectives))
