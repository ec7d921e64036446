"""Browsable objective catalog: categories and objectives, filtered for the explore view."""

from __future__ import annotations

from typing import Any

import structlog

from wanderlist.gateway.base import Contains, PersistenceGateway
from wanderlist.objectives.schemas import CatalogObjective, CategoryResponse

logger = structlog.get_logger()


class ObjectiveCatalog:
    """Read-only listing of the reference data."""

    def __init__(self, gateway: PersistenceGateway) -> None:
        self.gateway = gateway

    async def list_categories(self) -> list[CategoryResponse]:
        """All categories ordered by name."""
        rows = await self.gateway.query("categories", {}, order_by="name")
        return [CategoryResponse.model_validate(row) for row in rows]

    async def list_objectives(self, category_slug: str | None = None, search: str = "") -> list[CatalogObjective]:
        """Objectives ordered by title.

        ``category_slug`` narrows to one category; an unknown slug matches
        nothing. ``search`` is a case-insensitive substring of the title.
        """
        match: dict[str, Any] = {}
        if category_slug:
            category = await self.gateway.get_one("categories", {"slug": category_slug})
            if category is None:
                logger.info("catalog_unknown_category", slug=category_slug)
                return []
            match["category_id"] = category["id"]
        term = search.strip()
        if term:
            match["title"] = Contains(term)

        rows = await self.gateway.query("objectives", match, order_by="title")
        return [CatalogObjective.model_validate(row) for row in rows]
