from collections.abc import Mapping
from typing import Any

from sqlalchemy import ColumnElement, delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlmodel import SQLModel

from todo_api.core.pagination import (
    LIKE_ESCAPE,
    FetchOptions,
    SearchOptions,
    SortOrder,
)
from todo_api.shared.logger import Logger

__all__ = ["Repository"]

logger = Logger(__name__).get_logger()


class Repository[M: SQLModel]:
    """Generic data access for one table.

    ``conditions`` map column names to values and are ANDed together. Every
    call opens its own session, so independent calls may run concurrently.
    """

    def __init__(self, model: type[M], session_factory: async_sessionmaker[AsyncSession]):
        self.model = model
        self._session_factory = session_factory

    def _column(self, name: str) -> ColumnElement:
        try:
            return self.model.__table__.c[name]
        except KeyError:
            raise ValueError(f"{self.model.__name__} has no column {name!r}") from None

    def _where(self, statement, conditions: Mapping[str, Any], search: SearchOptions | None = None):
        for name, value in conditions.items():
            statement = statement.where(self._column(name) == value)

        if search is not None and search.active:
            # search.search is already escaped
            pattern = f"%{search.search}%"
            statement = statement.where(
                or_(
                    *(
                        self._column(name).ilike(pattern, escape=LIKE_ESCAPE)
                        for name in search.columns
                    )
                )
            )
        return statement

    async def create(self, values: Mapping[str, Any]) -> M:
        row = self.model(**values)
        async with self._session_factory() as session:
            session.add(row)
            await session.commit()
            await session.refresh(row)
        return row

    async def find_one(self, conditions: Mapping[str, Any]) -> M | None:
        statement = self._where(select(self.model), conditions).limit(1)
        async with self._session_factory() as session:
            return await session.scalar(statement)

    async def find_many_paginated(
        self, conditions: Mapping[str, Any], options: FetchOptions
    ) -> list[M]:
        statement = self._where(select(self.model), conditions, options.search)

        for order in options.orders:
            column = self._column(order.column)
            statement = statement.order_by(
                column.asc() if order.order is SortOrder.ASC else column.desc()
            )

        statement = statement.limit(options.limit).offset(options.offset)

        async with self._session_factory() as session:
            result = await session.scalars(statement)
            return list(result.all())

    async def count(self, conditions: Mapping[str, Any], search: SearchOptions | None = None) -> int:
        statement = self._where(
            select(func.count()).select_from(self.model), conditions, search
        )
        async with self._session_factory() as session:
            return await session.scalar(statement) or 0

    async def update(self, conditions: Mapping[str, Any], values: Mapping[str, Any]) -> M | None:
        """Update the first row matching ``conditions``; ``None`` when nothing matches."""
        statement = self._where(select(self.model), conditions).limit(1)
        async with self._session_factory() as session:
            row = await session.scalar(statement)
            if row is None:
                return None

            for name, value in values.items():
                setattr(row, name, value)

            session.add(row)
            await session.commit()
            await session.refresh(row)
            return row

    async def remove(self, conditions: Mapping[str, Any]) -> int:
        if not conditions:
            raise ValueError("refusing to delete without conditions")

        statement = self._where(delete(self.model), conditions)
        async with self._session_factory() as session:
            result = await session.execute(statement)
            await session.commit()

        logger.debug("Removed %d %s row(s)", result.rowcount, self.model.__name__)
        return result.rowcount
