"""Pydantic schemas for objective progress."""

from __future__ import annotations

from pydantic import BaseModel


class ItemProgress(BaseModel):
    id: str
    name: str
    latitude: float
    longitude: float
    order_index: int
    visited: bool


class ObjectiveProgress(BaseModel):
    id: str
    title: str
    description: str | None = None
    image_url: str | None = None
    total_items: int
    held: bool
    items: list[ItemProgress] = []
    completed_count: int
    percentage: float
    is_completed: bool

    @property
    def visited_item_ids(self) -> set[str]:
        return {item.id for item in self.items if item.visited}


class ToggleItemRequest(BaseModel):
    currently_visited: bool


class ToggleResult(BaseModel):
    item_id: str
    visited: bool
    objective: ObjectiveProgress


class BulkMarkResult(BaseModel):
    all_visited: bool
    objective: ObjectiveProgress


class VisitedPlace(BaseModel):
    id: str
    name: str
    latitude: float
    longitude: float
    objective_id: str | None = None
    objective_title: str
