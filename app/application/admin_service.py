"""Admin mutation gateway.

The only writer of catalog, store, area and order data. Handles:
- Field whitelisting, required fields and numeric sanity checks
- Slug derivation and category path/depth maintenance
- Translation of integrity and storage failures into domain errors
- Tag invalidation after each committed mutation
"""

from collections.abc import AsyncIterator, Awaitable, Sequence
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

import structlog
from sqlalchemy import ColumnElement, delete, func, insert, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.cache_service import CacheService, CacheTag
from app.application.store_directory import StoreDirectory
from app.catalog.models import Brand, Category, GlobalProduct, StoreProduct
from app.catalog.pagination import LIKE_ESCAPE, escape_like
from app.catalog.repository import CatalogRepository
from app.catalog.resolver import EFFECTIVE_NAME, CatalogResolver, row_to_effective
from app.catalog.taxonomy import (
    TreePosition,
    derive_position,
    descendant_prefix,
    is_within,
    rebase,
)
from app.domain.exceptions import (
    ConflictError,
    DomainError,
    NotFoundError,
    ReferencedRecordError,
    RequiredFieldError,
    StorageError,
    ValidationError,
)
from app.domain.state_machines import OrderStatus, StoreStatus
from app.domain.value_objects import slugify
from app.infrastructure.models import AreaModel, OrderModel, StoreModel, store_areas

logger = structlog.get_logger()


class EntityKind(str, Enum):
    """Entities the gateway writes."""

    PRODUCT = "product"
    CATEGORY = "category"
    BRAND = "brand"
    STORE = "store"
    AREA = "area"
    STORE_PRODUCT = "store_product"
    ORDER = "order"


class MutationAction(str, Enum):
    """Kinds of write."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


INVALIDATION_TAGS: dict[EntityKind, tuple[CacheTag, ...]] = {
    EntityKind.PRODUCT: (CacheTag.PRODUCTS,),
    EntityKind.CATEGORY: (CacheTag.PRODUCTS,),
    EntityKind.BRAND: (CacheTag.PRODUCTS,),
    EntityKind.STORE_PRODUCT: (CacheTag.PRODUCTS,),
    EntityKind.STORE: (CacheTag.STORES, CacheTag.AREAS, CacheTag.PRODUCTS),
    EntityKind.AREA: (CacheTag.AREAS,),
    EntityKind.ORDER: (CacheTag.ORDERS,),
}


def invalidation_tags(kind: EntityKind, action: MutationAction) -> tuple[CacheTag, ...]:
    """Tags a committed mutation invalidates.

    Deleting an area also drops its store links, so store and product
    listings are invalidated along with the area list.
    """
    if kind is EntityKind.AREA and action is MutationAction.DELETE:
        return (CacheTag.AREAS, CacheTag.STORES, CacheTag.PRODUCTS)
    return INVALIDATION_TAGS[kind]


# Writable fields per entity; anything else in a payload is ignored.
PRODUCT_FIELDS = (
    "name",
    "slug",
    "description",
    "brand_id",
    "category_id",
    "base_price",
    "weight",
    "image_url",
    "images",
    "attributes",
    "is_active",
)
CATEGORY_FIELDS = ("name", "slug", "parent_id", "sort_order", "image_url", "is_active")
BRAND_FIELDS = ("name", "slug", "logo_url", "is_active")
STORE_FIELDS = (
    "name",
    "slug",
    "description",
    "logo_url",
    "banner_url",
    "store_type",
    "status",
    "same_day_delivery",
    "delivery_charges",
    "min_order_value",
    "free_delivery_threshold",
    "store_hours",
    "delivery_hours",
    "contact_phone",
    "contact_email",
    "address",
)
AREA_FIELDS = ("name", "city", "lat", "lng", "is_active")
STORE_PRODUCT_FIELDS = (
    "price_override",
    "old_price_override",
    "stock_quantity",
    "is_in_stock",
    "is_active",
    "sort_order",
    "custom_name",
    "custom_slug",
    "custom_description",
    "custom_brand_name",
    "custom_category_id",
    "custom_price",
    "custom_old_price",
    "custom_weight",
    "custom_image_url",
    "custom_images",
    "custom_attributes",
)

MONEY_FIELDS = frozenset(
    {
        "base_price",
        "price_override",
        "old_price_override",
        "custom_price",
        "custom_old_price",
        "delivery_charges",
        "min_order_value",
        "free_delivery_threshold",
    }
)
NON_NEGATIVE_FIELDS = MONEY_FIELDS | {"stock_quantity"}


def _pick(data: dict[str, Any], fields: Sequence[str]) -> dict[str, Any]:
    return {name: data[name] for name in fields if name in data}


def _require(entity_type: str, data: dict[str, Any], *fields: str) -> None:
    """Raise if any field is absent, None or blank."""
    for name in fields:
        value = data.get(name)
        if value is None or (isinstance(value, str) and not value.strip()):
            raise RequiredFieldError(entity_type, name)


def _normalize_numbers(entity_type: str, data: dict[str, Any]) -> dict[str, Any]:
    """Convert money to Decimal and reject negative prices or stock."""
    normalized = dict(data)
    for name in NON_NEGATIVE_FIELDS & normalized.keys():
        value = normalized[name]
        if value is None:
            continue
        if name in MONEY_FIELDS:
            try:
                value = Decimal(str(value))
            except InvalidOperation as e:
                raise ValidationError(
                    f"{name} must be a number",
                    details={"entity_type": entity_type, "field": name},
                ) from e
            normalized[name] = value
        if value < 0:
            raise ValidationError(
                f"{name} must be non-negative",
                details={"entity_type": entity_type, "field": name, "value": str(value)},
            )
    return normalized


def _with_slug(
    data: dict[str, Any],
    source_field: str = "name",
    slug_field: str = "slug",
    separator: str = "-",
) -> dict[str, Any]:
    if not data.get(slug_field) and data.get(source_field):
        data[slug_field] = slugify(data[source_field], separator)
    return data


def _apply(entity: Any, data: dict[str, Any]) -> None:
    for name, value in data.items():
        setattr(entity, name, value)


class AdminGateway:
    """Admin CRUD over the catalog, stores, areas and orders.

    Every mutation is committed on its own; the bound cache tags are
    invalidated only after the commit succeeds.

    Example usage:
        gateway = AdminGateway(session, cache)
        product = await gateway.create_product({"name": "Milk", "category_id": 3, ...})
    """

    def __init__(self, session: AsyncSession, cache: CacheService) -> None:
        """Initialize gateway.

        Args:
            session: Async SQLAlchemy session.
            cache: Process-wide cache service to invalidate.
        """
        self.session = session
        self.cache = cache
        self.products = CatalogRepository(session, GlobalProduct)
        self.categories = CatalogRepository(session, Category)
        self.brands = CatalogRepository(session, Brand)
        self.stores = CatalogRepository(session, StoreModel)
        self.areas = CatalogRepository(session, AreaModel)
        self.store_products = CatalogRepository(session, StoreProduct)
        self.orders = CatalogRepository(session, OrderModel)
        self.resolver = CatalogResolver(session)
        self.directory = StoreDirectory(session)

    # =========================================================================
    # Write plumbing
    # =========================================================================

    @asynccontextmanager
    async def _write(
        self,
        kind: EntityKind,
        action: MutationAction,
        entity_id: Any = None,
    ) -> AsyncIterator[None]:
        """Run one mutation: commit, translate failures, invalidate tags."""
        try:
            yield
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            logger.warning(
                "Admin mutation rejected by integrity constraint",
                entity_type=kind.value,
                action=action.value,
                entity_id=entity_id,
                error=str(e.orig),
            )
            if action is MutationAction.DELETE:
                raise ReferencedRecordError(kind.value, entity_id) from e
            raise ConflictError(
                f"{kind.value} conflicts with existing records",
                details={"entity_type": kind.value, "action": action.value},
            ) from e
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(
                "Admin mutation failed",
                entity_type=kind.value,
                action=action.value,
                entity_id=entity_id,
                error=str(e),
            )
            raise StorageError(
                "Storage is unavailable",
                details={"entity_type": kind.value, "action": action.value},
            ) from e
        except DomainError:
            await self.session.rollback()
            raise

        tags = invalidation_tags(kind, action)
        self.cache.invalidate_tags(tags)
        logger.info(
            "Admin mutation applied",
            entity_type=kind.value,
            action=action.value,
            entity_id=entity_id,
            tags=[tag.value for tag in tags],
        )

    async def _get_or_404(self, repo: CatalogRepository, kind: EntityKind, entity_id: Any) -> Any:
        entity = await self._read(f"get_{kind.value}", repo.get_by_id(entity_id))
        if entity is None:
            raise NotFoundError(kind.value, entity_id)
        return entity

    async def _delete(
        self, repo: CatalogRepository, kind: EntityKind, entity_id: Any
    ) -> None:
        async with self._write(kind, MutationAction.DELETE, entity_id):
            if await repo.delete_by_id(entity_id) == 0:
                raise NotFoundError(kind.value, entity_id)

    async def _read(self, operation: str, pending: Awaitable[Any]) -> Any:
        try:
            return await pending
        except SQLAlchemyError as e:
            logger.error("Admin read failed", operation=operation, error=str(e))
            raise StorageError("Storage is unavailable", details={"operation": operation}) from e

    # =========================================================================
    # Global products
    # =========================================================================

    async def list_products(
        self, page: int = 0, limit: int = 20, search: str | None = None
    ) -> dict[str, Any]:
        """List global products, optionally filtered by name substring.

        Returns:
            ``{data, total}``.
        """
        conditions: list[ColumnElement[bool]] = []
        if search and search.strip():
            pattern = f"%{escape_like(search.strip())}%"
            conditions.append(GlobalProduct.name.ilike(pattern, escape=LIKE_ESCAPE))
        rows, total = await self._read(
            "list_products",
            self.products.find_page(conditions, [GlobalProduct.id.asc()], page, limit),
        )
        return {"data": [row.to_dict() for row in rows], "total": total}

    async def get_product(self, product_id: int) -> dict[str, Any]:
        """Get one global product."""
        product = await self._get_or_404(self.products, EntityKind.PRODUCT, product_id)
        return product.to_dict()

    async def create_product(self, data: dict[str, Any]) -> dict[str, Any]:
        """Create a global product.

        Args:
            data: Product fields; ``name`` and ``category_id`` are required
                and ``slug`` is derived from the name when omitted.

        Returns:
            Created product.
        """
        fields = _with_slug(_normalize_numbers("product", _pick(data, PRODUCT_FIELDS)))
        _require("product", fields, "name", "category_id")
        fields.setdefault("base_price", Decimal("0"))

        product = GlobalProduct(**fields)
        async with self._write(EntityKind.PRODUCT, MutationAction.CREATE):
            await self.products.save(product)
        return product.to_dict()

    async def update_product(self, product_id: int, data: dict[str, Any]) -> dict[str, Any]:
        """Update a global product."""
        fields = _normalize_numbers("product", _pick(data, PRODUCT_FIELDS))
        for name in ("name", "category_id", "base_price", "slug"):
            if name in fields:
                _require("product", fields, name)

        async with self._write(EntityKind.PRODUCT, MutationAction.UPDATE, product_id):
            product = await self._get_or_404(self.products, EntityKind.PRODUCT, product_id)
            _apply(product, fields)
            await self.products.save(product)
        return product.to_dict()

    async def delete_product(self, product_id: int) -> None:
        """Delete a global product not listed by any store."""
        await self._delete(self.products, EntityKind.PRODUCT, product_id)

    # =========================================================================
    # Categories
    # =========================================================================

    async def list_categories(self, page: int = 0, limit: int = 100) -> dict[str, Any]:
        """List categories in tree order."""
        rows, total = await self._read(
            "list_categories",
            self.categories.find_page(
                order_by=[Category.path.asc(), Category.id.asc()], page=page, limit=limit
            ),
        )
        return {"data": [row.to_dict() for row in rows], "total": total}

    async def get_category(self, category_id: int) -> dict[str, Any]:
        """Get one category."""
        category = await self._get_or_404(self.categories, EntityKind.CATEGORY, category_id)
        return category.to_dict()

    async def _parent_position(self, parent_id: int | None) -> TreePosition | None:
        if parent_id is None:
            return None
        parent = await self._get_or_404(self.categories, EntityKind.CATEGORY, parent_id)
        return TreePosition(path=parent.path or str(parent.id), depth=parent.depth)

    async def create_category(self, data: dict[str, Any]) -> dict[str, Any]:
        """Create a category.

        The slug defaults to the name with ``_`` separators; path and depth
        are derived from the parent.
        """
        fields = _with_slug(_pick(data, CATEGORY_FIELDS), separator="_")
        _require("category", fields, "name")

        async with self._write(EntityKind.CATEGORY, MutationAction.CREATE):
            parent = await self._parent_position(fields.get("parent_id"))
            category = Category(**fields)
            await self.categories.save(category)
            position = derive_position(category.id, parent)
            category.path = position.path
            category.depth = position.depth
            await self.categories.save(category)
        return category.to_dict()

    async def update_category(self, category_id: int, data: dict[str, Any]) -> dict[str, Any]:
        """Update a category, re-rooting its subtree if the parent changes.

        Raises:
            ValidationError: If the new parent is the category itself or
                one of its descendants.
        """
        fields = _pick(data, CATEGORY_FIELDS)
        for name in ("name", "slug"):
            if name in fields:
                _require("category", fields, name)

        async with self._write(EntityKind.CATEGORY, MutationAction.UPDATE, category_id):
            category = await self._get_or_404(self.categories, EntityKind.CATEGORY, category_id)
            old = TreePosition(path=category.path or str(category.id), depth=category.depth)

            if "parent_id" in fields and fields["parent_id"] != category.parent_id:
                parent = await self._parent_position(fields["parent_id"])
                if parent is not None and is_within(parent.path, old.path):
                    raise ValidationError(
                        "category cannot be moved under itself",
                        details={"category_id": category_id, "parent_id": fields["parent_id"]},
                    )
                new = derive_position(category.id, parent)
                descendants = await self.categories.find_all(
                    [Category.path.startswith(descendant_prefix(old.path))]
                )
                for child in descendants:
                    moved = rebase(TreePosition(child.path, child.depth), old, new)
                    child.path = moved.path
                    child.depth = moved.depth
                category.path = new.path
                category.depth = new.depth

            _apply(category, fields)
            await self.categories.save(category)
        return category.to_dict()

    async def delete_category(self, category_id: int) -> None:
        """Delete a category with no children and no products."""
        await self._delete(self.categories, EntityKind.CATEGORY, category_id)

    # =========================================================================
    # Brands
    # =========================================================================

    async def list_brands(self, page: int = 0, limit: int = 100) -> dict[str, Any]:
        """List brands by name."""
        rows, total = await self._read(
            "list_brands",
            self.brands.find_page(order_by=[Brand.name.asc(), Brand.id.asc()], page=page, limit=limit),
        )
        return {"data": [row.to_dict() for row in rows], "total": total}

    async def get_brand(self, brand_id: int) -> dict[str, Any]:
        """Get one brand."""
        brand = await self._get_or_404(self.brands, EntityKind.BRAND, brand_id)
        return brand.to_dict()

    async def create_brand(self, data: dict[str, Any]) -> dict[str, Any]:
        """Create a brand."""
        fields = _with_slug(_pick(data, BRAND_FIELDS))
        _require("brand", fields, "name")

        brand = Brand(**fields)
        async with self._write(EntityKind.BRAND, MutationAction.CREATE):
            await self.brands.save(brand)
        return brand.to_dict()

    async def update_brand(self, brand_id: int, data: dict[str, Any]) -> dict[str, Any]:
        """Update a brand."""
        fields = _pick(data, BRAND_FIELDS)
        for name in ("name", "slug"):
            if name in fields:
                _require("brand", fields, name)

        async with self._write(EntityKind.BRAND, MutationAction.UPDATE, brand_id):
            brand = await self._get_or_404(self.brands, EntityKind.BRAND, brand_id)
            _apply(brand, fields)
            await self.brands.save(brand)
        return brand.to_dict()

    async def delete_brand(self, brand_id: int) -> None:
        """Delete a brand no product references."""
        await self._delete(self.brands, EntityKind.BRAND, brand_id)

    # =========================================================================
    # Stores
    # =========================================================================

    async def _set_areas(self, store_id: int, area_ids: list[int]) -> None:
        await self.session.execute(delete(store_areas).where(store_areas.c.store_id == store_id))
        unique_ids = sorted(set(area_ids))
        if unique_ids:
            await self.session.execute(
                insert(store_areas),
                [{"store_id": store_id, "area_id": area_id} for area_id in unique_ids],
            )

    @staticmethod
    def _check_store_status(fields: dict[str, Any]) -> None:
        if "status" not in fields:
            return
        try:
            StoreStatus(fields["status"])
        except ValueError as e:
            raise ValidationError(
                f"Invalid store status: {fields['status']}",
                details={"allowed": [status.value for status in StoreStatus]},
            ) from e

    async def list_stores(self, page: int = 0, limit: int = 100) -> dict[str, Any]:
        """List stores of every status, with their area ids."""

        async def load() -> tuple[list[StoreModel], int, dict[int, list[int]]]:
            rows, total = await self.stores.find_page(
                order_by=[StoreModel.name.asc(), StoreModel.id.asc()], page=page, limit=limit
            )
            return rows, total, await self.directory.area_ids([row.id for row in rows])

        rows, total, area_map = await self._read("list_stores", load())
        return {
            "data": [row.to_dict(area_map.get(row.id, [])) for row in rows],
            "total": total,
        }

    async def get_store(self, store_id: int) -> dict[str, Any]:
        """Get one store of any status."""
        store = await self._get_or_404(self.stores, EntityKind.STORE, store_id)
        area_map = await self._read("get_store", self.directory.area_ids([store.id]))
        return store.to_dict(area_map.get(store.id, []))

    async def create_store(self, data: dict[str, Any]) -> dict[str, Any]:
        """Create a store and link it to ``area_ids``."""
        fields = _with_slug(_normalize_numbers("store", _pick(data, STORE_FIELDS)))
        _require("store", fields, "name")
        self._check_store_status(fields)
        area_ids = list(data.get("area_ids") or [])

        store = StoreModel(**fields)
        async with self._write(EntityKind.STORE, MutationAction.CREATE):
            await self.stores.save(store)
            await self._set_areas(store.id, area_ids)
        return store.to_dict(sorted(set(area_ids)))

    async def update_store(self, store_id: int, data: dict[str, Any]) -> dict[str, Any]:
        """Update a store; ``area_ids``, when present, replaces its area links."""
        fields = _normalize_numbers("store", _pick(data, STORE_FIELDS))
        for name in ("name", "slug"):
            if name in fields:
                _require("store", fields, name)
        self._check_store_status(fields)

        async with self._write(EntityKind.STORE, MutationAction.UPDATE, store_id):
            store = await self._get_or_404(self.stores, EntityKind.STORE, store_id)
            _apply(store, fields)
            await self.stores.save(store)
            if data.get("area_ids") is not None:
                await self._set_areas(store.id, list(data["area_ids"]))
            area_ids = (await self.directory.area_ids([store.id])).get(store.id, [])
        return store.to_dict(area_ids)

    async def delete_store(self, store_id: int) -> None:
        """Delete a store, its product rows and its area links.

        Stores with orders cannot be deleted.
        """
        await self._delete(self.stores, EntityKind.STORE, store_id)

    # =========================================================================
    # Areas
    # =========================================================================

    async def list_areas(self, page: int = 0, limit: int = 100) -> dict[str, Any]:
        """List areas of any active state."""
        rows, total = await self._read(
            "list_areas",
            self.areas.find_page(
                order_by=[AreaModel.city.asc(), AreaModel.name.asc()], page=page, limit=limit
            ),
        )
        return {"data": [row.to_dict() for row in rows], "total": total}

    async def get_area(self, area_id: int) -> dict[str, Any]:
        """Get one area."""
        area = await self._get_or_404(self.areas, EntityKind.AREA, area_id)
        return area.to_dict()

    async def create_area(self, data: dict[str, Any]) -> dict[str, Any]:
        """Create an area."""
        fields = _pick(data, AREA_FIELDS)
        _require("area", fields, "name", "city")

        area = AreaModel(**fields)
        async with self._write(EntityKind.AREA, MutationAction.CREATE):
            await self.areas.save(area)
        return area.to_dict()

    async def update_area(self, area_id: int, data: dict[str, Any]) -> dict[str, Any]:
        """Update an area."""
        fields = _pick(data, AREA_FIELDS)
        for name in ("name", "city"):
            if name in fields:
                _require("area", fields, name)

        async with self._write(EntityKind.AREA, MutationAction.UPDATE, area_id):
            area = await self._get_or_404(self.areas, EntityKind.AREA, area_id)
            _apply(area, fields)
            await self.areas.save(area)
        return area.to_dict()

    async def delete_area(self, area_id: int) -> None:
        """Delete an area; its store links go with it."""
        await self._delete(self.areas, EntityKind.AREA, area_id)

    # =========================================================================
    # Store products
    # =========================================================================

    async def list_store_products(
        self,
        page: int = 0,
        limit: int = 20,
        store_id: int | None = None,
        search: str | None = None,
    ) -> dict[str, Any]:
        """List resolved store products of stores of any status.

        Args:
            page: Zero-based page number.
            limit: Rows per page.
            store_id: Restrict to one store.
            search: Case-insensitive substring of the effective name.

        Returns:
            ``{data, total}`` with admin-shaped effective products.
        """
        statement = self.resolver.statement(active_stores_only=False)
        if store_id is not None:
            statement = statement.where(StoreProduct.store_id == store_id)
        if search and search.strip():
            pattern = f"%{escape_like(search.strip())}%"
            statement = statement.where(EFFECTIVE_NAME.ilike(pattern, escape=LIKE_ESCAPE))

        async def load() -> tuple[list[Any], int]:
            total = await self.session.scalar(
                select(func.count()).select_from(statement.subquery())
            )
            result = await self.session.execute(
                statement.order_by(StoreProduct.id.asc()).limit(limit).offset(page * limit)
            )
            return result.all(), total or 0

        rows, total = await self._read("list_store_products", load())
        return {
            "data": [row_to_effective(row).to_admin_dict() for row in rows],
            "total": total,
        }

    async def get_store_product(self, store_product_id: int) -> dict[str, Any]:
        """Get one resolved store product."""
        result = await self._read(
            "get_store_product",
            self.session.execute(
                self.resolver.statement(active_stores_only=False).where(
                    StoreProduct.id == store_product_id
                )
            ),
        )
        row = result.first()
        if row is None:
            raise NotFoundError(EntityKind.STORE_PRODUCT.value, store_product_id)
        return row_to_effective(row).to_admin_dict()

    async def _check_variant(self, row: StoreProduct) -> None:
        """Enforce the fields each store product variant needs."""
        if row.global_product_id is None:
            values = {
                "custom_name": row.custom_name,
                "custom_category_id": row.custom_category_id,
                "custom_price": row.custom_price,
            }
            _require("store_product", values, *values)
            if not row.custom_slug:
                row.custom_slug = slugify(row.custom_name)
        elif await self.products.get_by_id(row.global_product_id) is None:
            raise NotFoundError(EntityKind.PRODUCT.value, row.global_product_id)

    async def create_store_product(self, data: dict[str, Any]) -> dict[str, Any]:
        """List a product in a store.

        With ``global_product_id`` the row overrides an existing global
        product; without it the row is a custom product and must carry
        ``custom_name``, ``custom_category_id`` and ``custom_price``.
        """
        _require("store_product", data, "store_id")
        fields = _normalize_numbers("store_product", _pick(data, STORE_PRODUCT_FIELDS))
        row = StoreProduct(
            store_id=data["store_id"],
            global_product_id=data.get("global_product_id"),
            **fields,
        )

        async with self._write(EntityKind.STORE_PRODUCT, MutationAction.CREATE):
            await self._check_variant(row)
            await self.store_products.save(row)
        return await self.get_store_product(row.id)

    async def update_store_product(
        self, store_product_id: int, data: dict[str, Any]
    ) -> dict[str, Any]:
        """Update a store product. Its variant (global or custom) is fixed."""
        fields = _normalize_numbers("store_product", _pick(data, STORE_PRODUCT_FIELDS))

        async with self._write(
            EntityKind.STORE_PRODUCT, MutationAction.UPDATE, store_product_id
        ):
            row = await self._get_or_404(
                self.store_products, EntityKind.STORE_PRODUCT, store_product_id
            )
            _apply(row, fields)
            await self._check_variant(row)
            await self.store_products.save(row)
        return await self.get_store_product(store_product_id)

    async def delete_store_product(self, store_product_id: int) -> None:
        """Remove a product from a store."""
        await self._delete(self.store_products, EntityKind.STORE_PRODUCT, store_product_id)

    # =========================================================================
    # Orders
    # =========================================================================

    async def list_orders(
        self, page: int = 0, limit: int = 20, status: str | None = None
    ) -> dict[str, Any]:
        """List orders, newest first, optionally by status."""
        conditions: list[ColumnElement[bool]] = []
        if status:
            conditions.append(OrderModel.status == self._parse_status(status).value)
        rows, total = await self._read(
            "list_orders",
            self.orders.find_page(
                conditions,
                [OrderModel.placed_at.desc(), OrderModel.id.asc()],
                page,
                limit,
            ),
        )
        return {"data": [row.to_dict() for row in rows], "total": total}

    async def get_order(self, order_id: str) -> dict[str, Any]:
        """Get one order with its items."""
        order = await self._get_or_404(self.orders, EntityKind.ORDER, order_id)
        return order.to_dict(include_items=True)

    @staticmethod
    def _parse_status(value: str) -> OrderStatus:
        try:
            return OrderStatus(value)
        except ValueError as e:
            raise ValidationError(
                f"Invalid order status: {value}",
                details={"allowed": [status.value for status in OrderStatus]},
            ) from e

    async def update_order_status(
        self, order_id: str, status: str, note: str | None = None
    ) -> dict[str, Any]:
        """Move an order along the order state machine.

        Args:
            order_id: Order to update.
            status: Target status.
            note: Optional note stored in the status history.

        Returns:
            Updated order with items.

        Raises:
            ValidationError: If the status is unknown or the transition is
                not allowed from the current status.
        """
        target = self._parse_status(status)

        async with self._write(EntityKind.ORDER, MutationAction.UPDATE, order_id):
            order = await self._get_or_404(self.orders, EntityKind.ORDER, order_id)
            current = OrderStatus(order.status)
            current.transition_to(target, order_id)
            order.status = target.value
            order.status_history = [
                *(order.status_history or []),
                {
                    "from": current.value,
                    "to": target.value,
                    "note": note,
                    "at": datetime.now(timezone.utc).isoformat(),
                },
            ]
            await self.orders.save(order)
        return order.to_dict(include_items=True)

    # =========================================================================
    # Stats
    # =========================================================================

    async def stats(self) -> dict[str, int]:
        """Row counts for the admin dashboard."""

        async def load() -> dict[str, int]:
            return {
                "products": await self.products.count(),
                "stores": await self.stores.count(),
                "brands": await self.brands.count(),
                "categories": await self.categories.count(),
                "areas": await self.areas.count(),
                "orders": await self.orders.count(),
            }

        return await self._read("stats", load())
