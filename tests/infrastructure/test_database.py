"""Tests for the database engine setup and the test schema reset."""

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.catalog.models import Category
from app.infrastructure.database import is_sqlite
from conftest import CatalogBuilder, reset_schema


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("sqlite+aiosqlite:///catalog.db", True),
        ("postgresql+asyncpg://user:pw@db:5432/storefront", False),
    ],
)
def test_is_sqlite(url: str, expected: bool) -> None:
    assert is_sqlite(url) is expected


@pytest.mark.asyncio
async def test_sqlite_enforces_foreign_keys(session: AsyncSession) -> None:
    """An unknown parent is rejected, as on PostgreSQL."""
    session.add(Category(name="Rice", slug="rice", parent_id=999, path="999/1", depth=1))

    with pytest.raises(IntegrityError):
        await session.flush()


@pytest.mark.asyncio
async def test_reset_after_category_tree(
    session: AsyncSession, builder: CatalogBuilder
) -> None:
    """A committed parent/child pair does not block the next reset."""
    root = await builder.category("Grocery")
    await builder.category("Rice", parent=root)
    await builder.commit()

    await reset_schema()

    assert await session.scalar(select(func.count(Category.id))) == 0
