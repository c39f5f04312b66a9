"""Shared fixtures: an isolated SQLite database and catalog builders.

The database URL is pointed at a throwaway SQLite file before any
application module is imported, so the module-level engine never tries
to reach PostgreSQL.
"""

import os
import tempfile

DB_PATH = os.path.join(tempfile.gettempdir(), f"storefront-catalog-tests-{os.getpid()}.db")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{DB_PATH}"
os.environ["LOG_JSON"] = "false"

import asyncio
import contextlib
from collections.abc import AsyncGenerator, Generator
from decimal import Decimal
from typing import Any

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy import insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.cache_service import CacheService
from app.catalog.models import Brand, Category, GlobalProduct, StoreProduct
from app.infrastructure.config import settings
from app.infrastructure.database import Base, async_session_factory, engine
from app.infrastructure.models import AreaModel, OrderModel, StoreModel, store_areas
from app.main import app


async def reset_schema() -> None:
    """Replace the database file with a freshly created schema.

    SQLite cannot drop `categories` while it holds a parent/child pair and
    foreign keys are enforced, so the file itself is removed.
    """
    for leftover in (DB_PATH, f"{DB_PATH}-journal"):
        with contextlib.suppress(FileNotFoundError):
            os.remove(leftover)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


# ============================================================================
# Catalog Builder
# ============================================================================


class CatalogBuilder:
    """Inserts catalog rows directly, bypassing the admin gateway.

    Each method flushes so generated ids are available; call
    ``commit()`` when done.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def _add(self, row: Any) -> Any:
        self.session.add(row)
        await self.session.flush()
        return row

    async def commit(self) -> None:
        await self.session.commit()

    async def area(self, name: str = "Sector F-7", city: str = "Islamabad", **kw: Any) -> AreaModel:
        return await self._add(AreaModel(name=name, city=city, **kw))

    async def store(
        self,
        slug: str = "fresh-mart",
        status: str = "active",
        area_ids: list[int] | None = None,
        **kw: Any,
    ) -> StoreModel:
        kw.setdefault("name", slug.replace("-", " ").title())
        store = await self._add(StoreModel(slug=slug, status=status, **kw))
        if area_ids:
            await self.session.execute(
                insert(store_areas),
                [{"store_id": store.id, "area_id": area_id} for area_id in area_ids],
            )
        return store

    async def category(
        self, name: str = "Grocery", parent: Category | None = None, **kw: Any
    ) -> Category:
        kw.setdefault("slug", name.lower().replace(" ", "_"))
        category = await self._add(
            Category(name=name, parent_id=parent.id if parent else None, **kw)
        )
        category.path = f"{parent.path}/{category.id}" if parent else str(category.id)
        category.depth = parent.depth + 1 if parent else 0
        await self.session.flush()
        return category

    async def brand(self, name: str = "Nestle", **kw: Any) -> Brand:
        kw.setdefault("slug", name.lower().replace(" ", "-"))
        return await self._add(Brand(name=name, **kw))

    async def product(
        self,
        name: str,
        category: Category,
        base_price: str | int = "100",
        brand: Brand | None = None,
        **kw: Any,
    ) -> GlobalProduct:
        kw.setdefault("slug", name.lower().replace(" ", "-"))
        return await self._add(
            GlobalProduct(
                name=name,
                category_id=category.id,
                brand_id=brand.id if brand else None,
                base_price=Decimal(str(base_price)),
                **kw,
            )
        )

    async def listing(
        self, store: StoreModel, product: GlobalProduct, **kw: Any
    ) -> StoreProduct:
        for money in ("price_override", "old_price_override", "custom_price"):
            if kw.get(money) is not None:
                kw[money] = Decimal(str(kw[money]))
        return await self._add(
            StoreProduct(store_id=store.id, global_product_id=product.id, **kw)
        )

    async def custom(
        self,
        store: StoreModel,
        name: str,
        category: Category,
        price: str | int = "100",
        **kw: Any,
    ) -> StoreProduct:
        kw.setdefault("custom_slug", name.lower().replace(" ", "-"))
        return await self._add(
            StoreProduct(
                store_id=store.id,
                custom_name=name,
                custom_category_id=category.id,
                custom_price=Decimal(str(price)),
                **kw,
            )
        )

    async def order(self, store: StoreModel, order_number: str = "ORD-0001", **kw: Any) -> OrderModel:
        kw.setdefault("status", "pending")
        return await self._add(
            OrderModel(
                order_number=order_number,
                store_id=store.id,
                store_name_snapshot=store.name,
                subtotal=Decimal("500"),
                total=Decimal("600"),
                delivery_fee=Decimal("100"),
                **kw,
            )
        )


# ============================================================================
# Async Fixtures
# ============================================================================


@pytest_asyncio.fixture
async def session() -> AsyncGenerator[AsyncSession, None]:
    """Session on a freshly created schema."""
    await reset_schema()
    async with async_session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def builder(session: AsyncSession) -> CatalogBuilder:
    """Catalog builder sharing the test session."""
    return CatalogBuilder(session)


@pytest.fixture
def cache() -> CacheService:
    """Empty cache service."""
    return CacheService()


# ============================================================================
# API Fixtures
# ============================================================================


def run(coro: Any) -> Any:
    """Run a coroutine to completion from a sync test or fixture."""
    return asyncio.run(coro)


async def build(populate: Any) -> Any:
    """Run ``populate(builder)`` in its own committed session."""
    async with async_session_factory() as session:
        result = await populate(CatalogBuilder(session))
        await session.commit()
        return result


@pytest.fixture
def fresh_db() -> None:
    """Recreate the schema for a sync (TestClient) test."""
    run(reset_schema())


@pytest.fixture
def client(fresh_db: None, monkeypatch: pytest.MonkeyPatch) -> Generator[TestClient, None, None]:
    """Test client with the lifespan running; clears dependency overrides after."""
    monkeypatch.setattr(settings, "revalidation_secret", "test-revalidation-secret")
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers() -> dict[str, str]:
    """Admin authentication headers."""
    return {"Authorization": f"Bearer {settings.admin_api_key}"}


@pytest.fixture
def seed() -> Any:
    """Populate the test database from a sync test.

    Example:
        ids = seed(lambda b: make_store(b))
    """
    return lambda populate: run(build(populate))
