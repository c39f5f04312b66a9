"""Store directory.

Read-only lookups of areas, stores, store-area membership and the
category list. Only active stores and active areas are listed.
"""

from collections import defaultdict
from typing import Any

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.catalog.models import Category, StoreProduct
from app.catalog.resolver import EFFECTIVE_IS_ACTIVE, CatalogResolver
from app.domain.exceptions import StorageError
from app.domain.state_machines import StoreStatus
from app.infrastructure.models import AreaModel, StoreModel, store_areas

logger = structlog.get_logger()


class StoreDirectory:
    """Lookup service for stores and the areas they deliver to.

    Example usage:
        async with get_session() as session:
            directory = StoreDirectory(session)
            stores = await directory.list_stores(area_id=4)
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize directory with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self.session = session

    async def list_areas(self) -> list[dict[str, Any]]:
        """List active areas ordered by city then name.

        Returns:
            Area dicts.
        """
        try:
            result = await self.session.execute(
                select(AreaModel)
                .where(AreaModel.is_active.is_(True))
                .order_by(AreaModel.city, AreaModel.name)
            )
            areas = result.scalars().all()
        except SQLAlchemyError as e:
            raise self._storage_error("list_areas", e) from e

        return [{"id": a.id, "name": a.name, "city": a.city} for a in areas]

    async def list_stores(self, area_id: int | None = None) -> list[dict[str, Any]]:
        """List active stores, optionally only those serving an area.

        Args:
            area_id: Restrict to stores linked to this area.

        Returns:
            Store dicts ordered by name, each with its area ids.
        """
        try:
            result = await self.session.execute(
                select(StoreModel)
                .where(StoreModel.status == StoreStatus.ACTIVE.value)
                .order_by(StoreModel.name, StoreModel.id)
            )
            stores = list(result.scalars().all())
            area_map = await self.area_ids([s.id for s in stores])
        except SQLAlchemyError as e:
            raise self._storage_error("list_stores", e) from e

        listed = [store.to_dict(area_map.get(store.id, [])) for store in stores]
        if area_id is not None:
            listed = [store for store in listed if area_id in store["areas"]]
        return listed

    async def get_store_by_slug(self, slug: str) -> dict[str, Any] | None:
        """Get an active store with its live product count and area names.

        Args:
            slug: Store slug.

        Returns:
            Store dict with ``productCount`` and ``areaNames``, or None if
            the store is unknown or not active.
        """
        try:
            store = await self.session.scalar(
                select(StoreModel).where(StoreModel.slug == slug)
            )
            if store is None or store.status != StoreStatus.ACTIVE.value:
                return None

            area_ids = (await self.area_ids([store.id])).get(store.id, [])
            area_names: list[str] = []
            if area_ids:
                result = await self.session.execute(
                    select(AreaModel.name)
                    .where(AreaModel.id.in_(area_ids))
                    .order_by(AreaModel.name)
                )
                area_names = list(result.scalars().all())

            product_count = await self.session.scalar(
                select(func.count()).select_from(
                    CatalogResolver(self.session)
                    .statement()
                    .where(
                        StoreProduct.store_id == store.id,
                        EFFECTIVE_IS_ACTIVE.is_(True),
                    )
                    .subquery()
                )
            )
        except SQLAlchemyError as e:
            raise self._storage_error("get_store_by_slug", e) from e

        return {
            **store.to_dict(area_ids),
            "productCount": product_count or 0,
            "areaNames": area_names,
        }

    async def list_categories(self) -> list[dict[str, Any]]:
        """List active categories ordered by sort order then name."""
        try:
            result = await self.session.execute(
                select(Category)
                .where(Category.is_active.is_(True))
                .order_by(Category.sort_order, Category.name)
            )
            categories = result.scalars().all()
        except SQLAlchemyError as e:
            raise self._storage_error("list_categories", e) from e

        return [
            {"id": c.id, "name": c.name, "slug": c.slug, "parent_id": c.parent_id}
            for c in categories
        ]

    async def area_stats(self) -> list[dict[str, Any]]:
        """List active areas with the number of active stores serving each."""
        areas = await self.list_areas()
        stores = await self.list_stores()
        return [
            {
                **area,
                "storeCount": sum(1 for s in stores if area["id"] in s["areas"]),
            }
            for area in areas
        ]

    async def area_ids(self, store_ids: list[int]) -> dict[int, list[int]]:
        """Map store id to the ids of the areas it serves.

        Args:
            store_ids: Stores to look up (any status).

        Returns:
            Mapping of store id to sorted area ids; stores without areas
            are absent.
        """
        if not store_ids:
            return {}
        result = await self.session.execute(
            select(store_areas.c.store_id, store_areas.c.area_id)
            .where(store_areas.c.store_id.in_(store_ids))
            .order_by(store_areas.c.area_id)
        )
        area_map: dict[int, list[int]] = defaultdict(list)
        for store_id, area_id in result.all():
            area_map[store_id].append(area_id)
        return area_map

    @staticmethod
    def _storage_error(operation: str, error: Exception) -> StorageError:
        logger.error("Store directory query failed", operation=operation, error=str(error))
        return StorageError(
            "Store directory is unavailable",
            details={"operation": operation},
        )
