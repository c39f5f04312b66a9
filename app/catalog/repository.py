"""Repository for admin-side catalog database operations.

Provides get/list/save/delete for one mapped table with filtering,
ordering and page-based pagination.
"""

from collections.abc import Sequence
from typing import Any, Generic, TypeVar

from sqlalchemy import ColumnElement, and_, delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

ModelT = TypeVar("ModelT")


class CatalogRepository(Generic[ModelT]):
    """Repository for one table.

    SQLAlchemy errors are not caught here; the admin gateway translates
    them into domain errors.

    Example usage:
        async with get_session() as session:
            repo = CatalogRepository(session, Brand)
            brands, total = await repo.find_page(
                order_by=[Brand.name.asc()],
                page=0,
                limit=20,
            )
    """

    def __init__(self, session: AsyncSession, model: type[ModelT]) -> None:
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session.
            model: Mapped class the repository serves.
        """
        self.session = session
        self.model = model

    async def get_by_id(self, entity_id: Any) -> ModelT | None:
        """Get a row by primary key.

        Args:
            entity_id: Primary key value.

        Returns:
            Row if found, None otherwise.
        """
        return await self.session.get(self.model, entity_id)

    async def find_all(
        self,
        conditions: Sequence[ColumnElement[bool]] = (),
        order_by: Sequence[ColumnElement[Any]] = (),
    ) -> list[ModelT]:
        """Find every row matching the conditions.

        Args:
            conditions: Filters combined with AND.
            order_by: ORDER BY clauses.

        Returns:
            Matching rows.
        """
        query = select(self.model)
        if conditions:
            query = query.where(and_(*conditions))
        if order_by:
            query = query.order_by(*order_by)

        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def find_page(
        self,
        conditions: Sequence[ColumnElement[bool]] = (),
        order_by: Sequence[ColumnElement[Any]] = (),
        page: int = 0,
        limit: int = 20,
    ) -> tuple[list[ModelT], int]:
        """Find one page of rows plus the total count.

        Args:
            conditions: Filters combined with AND.
            order_by: ORDER BY clauses.
            page: Zero-based page number.
            limit: Rows per page.

        Returns:
            Tuple of (rows, total matching rows).
        """
        query = select(self.model)
        count_query = select(func.count()).select_from(self.model)

        if conditions:
            query = query.where(and_(*conditions))
            count_query = count_query.where(and_(*conditions))

        if order_by:
            query = query.order_by(*order_by)

        query = query.limit(limit).offset(page * limit)

        result = await self.session.execute(query)
        total = await self.session.scalar(count_query)
        return list(result.scalars().all()), total or 0

    async def count(self) -> int:
        """Count every row of the table."""
        total = await self.session.scalar(select(func.count()).select_from(self.model))
        return total or 0

    async def save(self, entity: ModelT) -> ModelT:
        """Add (or re-add) a row and flush it.

        Args:
            entity: Row to save.

        Returns:
            Saved row with generated keys populated.
        """
        self.session.add(entity)
        await self.session.flush()
        return entity

    async def delete_by_id(self, entity_id: Any) -> int:
        """Delete a row by primary key with a single DELETE statement.

        Referencing rows are left to the database's foreign key rules;
        no ORM cascade or nulling runs first.

        Args:
            entity_id: Primary key value.

        Returns:
            Number of deleted rows (0 or 1).
        """
        primary_key = self.model.__mapper__.primary_key[0]  # type: ignore[attr-defined]
        result = await self.session.execute(
            delete(self.model).where(primary_key == entity_id)
        )
        return result.rowcount
