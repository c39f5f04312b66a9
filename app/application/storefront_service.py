"""Storefront read service.

Wraps store directory and catalog reads with the cache layer. Every method
returns plain JSON-ready values so cached entries can be served as-is.
"""

import json
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.application.cache_service import CacheService, ResourceClass
from app.application.store_directory import StoreDirectory
from app.catalog.pagination import PaginationEngine, ProductQuery


class StorefrontService:
    """Cached reads for storefront clients.

    Example usage:
        service = StorefrontService(session, cache)
        page = await service.product_page(ProductQuery(store_slug="fresh-mart"))
    """

    def __init__(self, session: AsyncSession, cache: CacheService) -> None:
        """Initialize service.

        Args:
            session: Async SQLAlchemy session (used only on cache misses).
            cache: Process-wide cache service.
        """
        self.cache = cache
        self.directory = StoreDirectory(session)
        self.engine = PaginationEngine(session)

    async def areas(self, path: str | None = None) -> list[dict[str, Any]]:
        """Active areas."""
        return await self.cache.read(
            ResourceClass.AREAS, "all", self.directory.list_areas, path=path
        )

    async def stores(
        self, area_id: int | None = None, path: str | None = None
    ) -> list[dict[str, Any]]:
        """Active stores, optionally filtered by area."""
        return await self.cache.read(
            ResourceClass.STORES,
            json.dumps({"area_id": area_id}),
            lambda: self.directory.list_stores(area_id),
            path=path,
        )

    async def store(self, slug: str, path: str | None = None) -> dict[str, Any] | None:
        """One active store by slug, None if unknown or inactive."""
        return await self.cache.read(
            ResourceClass.STORE,
            slug,
            lambda: self.directory.get_store_by_slug(slug),
            path=path,
        )

    async def categories(self, path: str | None = None) -> list[dict[str, Any]]:
        """Active categories."""
        return await self.cache.read(
            ResourceClass.CATEGORIES, "all", self.directory.list_categories, path=path
        )

    async def home(self, path: str | None = None) -> list[dict[str, Any]]:
        """Areas with their active store counts."""
        return await self.cache.read(
            ResourceClass.HOMEPAGE, "area_stats", self.directory.area_stats, path=path
        )

    async def product_page(
        self, query: ProductQuery, path: str | None = None
    ) -> dict[str, Any]:
        """One page of a storefront product listing.

        The query is validated before the cache is consulted, so out of
        bounds requests never reach storage or pollute the cache.

        Args:
            query: Listing request.
            path: Request path, for path-addressed invalidation.

        Returns:
            ``{products, nextCursor, hasMore, total}``.
        """
        query = query.normalized(self.engine.max_page_size, self.engine.max_cursor)

        async def load() -> dict[str, Any]:
            page = await self.engine.page(query)
            return page.to_dict()

        return await self.cache.read(
            ResourceClass.PRODUCT_PAGE, query.cache_key(), load, path=path
        )
