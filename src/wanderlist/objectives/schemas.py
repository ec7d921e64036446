"""Pydantic schemas for the objective catalog and membership."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class ObjectiveSummary(BaseModel):
    id: str
    title: str
    image_url: str | None = None
    total_items: int
    completed_count: int
    percentage: float
    added_at: datetime | None = None


class UserObjectivesResponse(BaseModel):
    objectives: list[ObjectiveSummary]
    total: int


class CategoryResponse(BaseModel):
    id: str
    name: str
    slug: str
    icon: str | None = None


class CategoryListResponse(BaseModel):
    categories: list[CategoryResponse]


class CatalogObjective(BaseModel):
    id: str
    title: str
    description: str | None = None
    image_url: str | None = None
    total_items: int
    category_id: str | None = None


class CatalogResponse(BaseModel):
    objectives: list[CatalogObjective]
    total: int
