"""Persistence gateway contract.

A generic row store: the managers only ever talk to the durable record
through these six calls. No call spans more than one statement, so a
multi-write command is a sequence of independent writes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

Row = dict[str, Any]
Match = Mapping[str, Any]


@dataclass(frozen=True)
class Contains:
    """Match value: case-insensitive substring of a text column."""

    term: str


class PersistenceGateway(ABC):
    """Abstract row-level access to the consumed tables.

    ``match`` maps column names to values. A list/tuple/set value means
    ``column IN (...)`` (an empty collection matches nothing) and ``None``
    means ``IS NULL``. ``Contains(term)`` is a case-insensitive substring match.
    """

    @abstractmethod
    async def insert(self, table: str, row: Row) -> str:
        """Insert one row and return its id."""
        ...

    @abstractmethod
    async def insert_many(self, table: str, rows: Sequence[Row]) -> list[str]:
        """Insert rows in one batch and return their ids."""
        ...

    @abstractmethod
    async def update(self, table: str, match: Match, patch: Row) -> int:
        """Apply ``patch`` to matching rows. Returns the number of rows changed."""
        ...

    @abstractmethod
    async def delete(self, table: str, match: Match) -> int:
        """Delete matching rows. Returns the number of rows removed."""
        ...

    @abstractmethod
    async def query(
        self,
        table: str,
        match: Match,
        order_by: str | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[Row]:
        """Select matching rows. ``order_by`` of ``-col`` sorts descending.

        ``offset`` skips that many rows of the ordered result.
        """
        ...

    @abstractmethod
    async def count(self, table: str, match: Match) -> int:
        """Count matching rows."""
        ...

    async def exists(self, table: str, match: Match) -> bool:
        """Return True if any row matches."""
        return await self.count(table, match) > 0

    async def get_one(self, table: str, match: Match) -> Row | None:
        """Return the first matching row, or None."""
        rows = await self.query(table, match, limit=1)
        return rows[0] if rows else None
