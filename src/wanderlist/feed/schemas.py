"""Pydantic schemas for the activity feed."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Literal

from pydantic import BaseModel, field_validator

from wanderlist.feed.reconcile import as_utc

ActivityType = Literal["visited_place", "completed_objective", "new_follower"]


class FeedEntry(BaseModel):
    id: str
    user_id: str
    activity_type: ActivityType
    objective_id: str | None = None
    objective_title: str | None = None
    objective_item_id: str | None = None
    item_name: str | None = None
    actor_id: str | None = None
    follow_id: str | None = None
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return as_utc(value)

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> FeedEntry:
        return cls.model_validate(row)


class FeedItemResponse(BaseModel):
    id: str
    type: ActivityType
    text: str
    relative_time: str
    target_path: str | None = None
    timestamp: datetime


class FeedDayResponse(BaseModel):
    day: date
    header: str
    entries: list[FeedItemResponse]


class FeedResponse(BaseModel):
    days: list[FeedDayResponse]
    total: int
    page: int = 1
    per_page: int
