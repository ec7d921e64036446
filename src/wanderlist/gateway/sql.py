"""SQLAlchemy implementation of the persistence gateway."""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from typing import Any

import structlog
from sqlalchemy import ColumnElement, Table, delete, false, func, insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from wanderlist.db.base import Base
from wanderlist.errors import PreconditionFailed, StoreUnavailable
from wanderlist.gateway.base import Contains, Match, PersistenceGateway, Row

logger = structlog.get_logger()

_COLLECTION_TYPES = (list, tuple, set, frozenset)


class SqlGateway(PersistenceGateway):
    """Row store backed by an ``AsyncSession``.

    Every write commits on its own. A failed statement rolls the session
    back to its last commit and raises a domain error; writes committed
    earlier in the same command stay in place.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # -- helpers --

    def _table(self, name: str) -> Table:
        table = Base.metadata.tables.get(name)
        if table is None:
            msg = f"Unknown table: {name}"
            raise ValueError(msg)
        return table

    def _column(self, table: Table, name: str) -> Any:
        if name not in table.c:
            msg = f"Unknown column {table.name}.{name}"
            raise ValueError(msg)
        return table.c[name]

    def _where(self, table: Table, match: Match) -> list[ColumnElement[bool]]:
        clauses: list[ColumnElement[bool]] = []
        for name, value in match.items():
            column = self._column(table, name)
            if isinstance(value, _COLLECTION_TYPES):
                values = list(value)
                clauses.append(column.in_(values) if values else false())
            elif isinstance(value, Contains):
                clauses.append(column.icontains(value.term, autoescape=True))
            elif value is None:
                clauses.append(column.is_(None))
            else:
                clauses.append(column == value)
        return clauses

    def _prepare(self, table: Table, row: Row) -> Row:
        for name in row:
            self._column(table, name)
        prepared = dict(row)
        if "id" in table.c and prepared.get("id") is None:
            prepared["id"] = str(uuid.uuid4())
        return prepared

    def _require_scope(self, operation: str, table: str, match: Match) -> None:
        if not match:
            msg = f"Refusing unscoped {operation} on {table}"
            raise ValueError(msg)

    async def _write(self, operation: str, table: str, statement: Any) -> Any:
        try:
            result = await self.db.execute(statement)
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            logger.warning("store_integrity_violation", operation=operation, table=table, error=str(e.orig))
            msg = f"Duplicate or invalid {table} row"
            raise PreconditionFailed(msg, code="conflict") from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("store_write_failed", operation=operation, table=table, error=str(e))
            msg = f"Could not {operation} {table}"
            raise StoreUnavailable(msg) from e
        return result

    async def _read(self, table: str, statement: Any) -> Any:
        try:
            return await self.db.execute(statement)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("store_read_failed", table=table, error=str(e))
            msg = f"Could not read {table}"
            raise StoreUnavailable(msg) from e

    # -- contract --

    async def insert(self, table: str, row: Row) -> str:
        t = self._table(table)
        prepared = self._prepare(t, row)
        await self._write("insert", table, insert(t).values(**prepared))
        return prepared["id"]

    async def insert_many(self, table: str, rows: Sequence[Row]) -> list[str]:
        if not rows:
            return []
        t = self._table(table)
        prepared = [self._prepare(t, row) for row in rows]
        await self._write("insert", table, insert(t).values(prepared))
        return [row["id"] for row in prepared]

    async def update(self, table: str, match: Match, patch: Row) -> int:
        t = self._table(table)
        self._require_scope("update", table, match)
        for name in patch:
            self._column(t, name)
        result = await self._write("update", table, update(t).where(*self._where(t, match)).values(**patch))
        return result.rowcount or 0

    async def delete(self, table: str, match: Match) -> int:
        t = self._table(table)
        self._require_scope("delete", table, match)
        result = await self._write("delete", table, delete(t).where(*self._where(t, match)))
        return result.rowcount or 0

    async def query(
        self,
        table: str,
        match: Match,
        order_by: str | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[Row]:
        t = self._table(table)
        stmt = select(t).where(*self._where(t, match))
        if order_by:
            descending = order_by.startswith("-")
            column = self._column(t, order_by.lstrip("-"))
            stmt = stmt.order_by(column.desc() if descending else column.asc())
        if limit is not None:
            stmt = stmt.limit(limit)
        if offset:
            stmt = stmt.offset(offset)
        result = await self._read(table, stmt)
        return [dict(row) for row in result.mappings().all()]

    async def count(self, table: str, match: Match) -> int:
        t = self._table(table)
        stmt = select(func.count()).select_from(t).where(*self._where(t, match))
        result = await self._read(table, stmt)
        return int(result.scalar_one())
