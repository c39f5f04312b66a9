"""Catalog resolver.

Merges the global catalog with per-store overrides and store-only custom
products into one effective product view. Resolution happens in SQL so the
pagination engine can push filters, ordering and counting down to the
database; :func:`precedence` is the single place that decides which column
wins for a display field.
"""

from typing import Any

import structlog
from sqlalchemy import ColumnElement, Select, and_, case, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.catalog.models import Brand, Category, GlobalProduct, StoreProduct
from app.domain.exceptions import CatalogStorageError, StoreNotResolvableError
from app.domain.state_machines import StoreStatus
from app.domain.value_objects import EffectiveProduct, ProductSource
from app.infrastructure.models import StoreModel

logger = structlog.get_logger()

# A store product with no global reference is a custom (standalone) row.
IS_CUSTOM = StoreProduct.global_product_id.is_(None)


def precedence(
    custom: ColumnElement[Any] | None,
    override: ColumnElement[Any] | None = None,
    global_: ColumnElement[Any] | None = None,
) -> ColumnElement[Any]:
    """Build the effective value of one display field.

    Custom rows take the ``custom_*`` column and nothing else. Override
    rows take the override column when it is set and fall back to the
    global product column; their ``custom_*`` columns are never read.

    Args:
        custom: Column authoritative for custom rows.
        override: Optional store-level override column.
        global_: Optional global product column.

    Returns:
        SQL expression for the effective value.
    """
    if override is not None and global_ is not None:
        inherited = func.coalesce(override, global_)
    else:
        inherited = override if override is not None else global_
    return case((IS_CUSTOM, custom), else_=inherited)


# Effective field expressions, shared by the resolver and the pagination engine.
EFFECTIVE_NAME = precedence(StoreProduct.custom_name, global_=GlobalProduct.name)
EFFECTIVE_PRICE = precedence(
    StoreProduct.custom_price, StoreProduct.price_override, GlobalProduct.base_price
)
EFFECTIVE_CATEGORY_ID = precedence(
    StoreProduct.custom_category_id, global_=GlobalProduct.category_id
)
EFFECTIVE_IS_ACTIVE = case(
    (IS_CUSTOM, StoreProduct.is_active),
    else_=and_(StoreProduct.is_active, GlobalProduct.is_active),
)


def effective_columns() -> list[ColumnElement[Any]]:
    """Labelled columns of the effective product projection."""
    return [
        StoreProduct.id.label("id"),
        StoreProduct.store_id.label("store_id"),
        StoreModel.slug.label("store_slug"),
        StoreModel.name.label("store_name"),
        EFFECTIVE_NAME.label("name"),
        precedence(StoreProduct.custom_slug, global_=GlobalProduct.slug).label("slug"),
        precedence(
            StoreProduct.custom_description, global_=GlobalProduct.description
        ).label("description"),
        EFFECTIVE_PRICE.label("price"),
        precedence(StoreProduct.custom_old_price, StoreProduct.old_price_override).label(
            "old_price"
        ),
        precedence(StoreProduct.custom_weight, global_=GlobalProduct.weight).label("weight"),
        precedence(StoreProduct.custom_image_url, global_=GlobalProduct.image_url).label(
            "image_url"
        ),
        precedence(StoreProduct.custom_images, global_=GlobalProduct.images).label("images"),
        precedence(StoreProduct.custom_attributes, global_=GlobalProduct.attributes).label(
            "attributes"
        ),
        EFFECTIVE_CATEGORY_ID.label("category_id"),
        Category.name.label("category_name"),
        Category.path.label("category_path"),
        precedence(StoreProduct.custom_brand_name, global_=Brand.name).label("brand_name"),
        StoreProduct.stock_quantity.label("stock_quantity"),
        StoreProduct.is_in_stock.label("is_in_stock"),
        EFFECTIVE_IS_ACTIVE.label("is_active"),
        StoreProduct.sort_order.label("sort_order"),
        StoreProduct.global_product_id.label("global_product_id"),
    ]


def row_to_effective(row: Any) -> EffectiveProduct:
    """Convert a row of :func:`effective_columns` into a value object.

    Args:
        row: SQLAlchemy result row.

    Returns:
        EffectiveProduct.
    """
    data = dict(row._mapping)
    data["source"] = ProductSource.of(data["global_product_id"])
    data["is_in_stock"] = bool(data["is_in_stock"])
    data["is_active"] = bool(data["is_active"])
    data["images"] = list(data["images"] or [])
    data["attributes"] = dict(data["attributes"] or {})
    return EffectiveProduct(**data)


class CatalogResolver:
    """Resolves store product rows into effective products.

    Example usage:
        async with get_session() as session:
            resolver = CatalogResolver(session)
            products = await resolver.resolve(store_id=3)
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize resolver with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self.session = session

    def statement(self, active_stores_only: bool = True) -> Select:
        """Queryable form of the effective product view.

        Joins every store product with its store, its global product (if
        any), that product's brand, and the effective category. No row
        filters are applied beyond the store being active.

        Args:
            active_stores_only: Drop rows of stores that are not active.
                Only admin listings pass False.

        Returns:
            SQLAlchemy select over :func:`effective_columns`.
        """
        statement = (
            select(*effective_columns())
            .select_from(StoreProduct)
            .join(StoreModel, StoreModel.id == StoreProduct.store_id)
            .outerjoin(GlobalProduct, GlobalProduct.id == StoreProduct.global_product_id)
            .outerjoin(Brand, Brand.id == GlobalProduct.brand_id)
            .outerjoin(Category, Category.id == EFFECTIVE_CATEGORY_ID)
        )
        if active_stores_only:
            statement = statement.where(StoreModel.status == StoreStatus.ACTIVE.value)
        return statement

    async def resolve(self, store_id: int) -> list[EffectiveProduct]:
        """Resolve every product row of one store.

        Inactive rows are included with ``is_active=False``; filtering is
        left to the caller.

        Args:
            store_id: Store to resolve.

        Returns:
            Effective products ordered by store product id.

        Raises:
            StoreNotResolvableError: If the store is unknown or not active.
            CatalogStorageError: If the database query fails.
        """
        try:
            store = await self.session.get(StoreModel, store_id)
            if store is None or store.status != StoreStatus.ACTIVE.value:
                raise StoreNotResolvableError(store_id)

            result = await self.session.execute(
                self.statement()
                .where(StoreProduct.store_id == store_id)
                .order_by(StoreProduct.id.asc())
            )
            rows = result.all()
        except SQLAlchemyError as e:
            logger.error("Catalog resolve failed", store_id=store_id, error=str(e))
            raise CatalogStorageError(
                "Catalog could not be resolved",
                details={"store_id": store_id},
            ) from e

        logger.debug("Catalog resolved", store_id=store_id, rows=len(rows))
        return [row_to_effective(row) for row in rows]
