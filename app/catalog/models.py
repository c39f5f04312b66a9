"""SQLAlchemy models for the product catalog.

Defines the global catalog (brands, categories, global products) and the
per-store overlay table (store products) that the resolver merges into
effective products.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.domain.value_objects import ProductSource
from app.infrastructure.database import Base
from app.infrastructure.models import JSONType


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _money(value: Decimal | None) -> float | None:
    return float(value) if value is not None else None


class Brand(Base):
    """Product brand.

    Attributes:
        id: Brand identifier.
        name: Display name.
        slug: Unique URL slug.
        logo_url: Logo image URL.
        is_active: Whether the brand is shown.
    """

    __tablename__ = "brands"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    slug: Mapped[str] = mapped_column(String(200), nullable=False, unique=True)
    logo_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"<Brand(id={self.id}, slug={self.slug})>"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "logo_url": self.logo_url,
            "is_active": self.is_active,
        }


class Category(Base):
    """Hierarchical product category.

    ``path`` and ``depth`` are derived from the parent chain by the admin
    gateway and never accepted from clients: roots have depth 0 and
    path ``"<id>"``, children have ``parent.depth + 1`` and
    ``"<parent.path>/<id>"``.
    """

    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    slug: Mapped[str] = mapped_column(String(200), nullable=False, unique=True)
    parent_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("categories.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
    )
    path: Mapped[str | None] = mapped_column(String(500), nullable=True, index=True)
    depth: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    image_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"<Category(id={self.id}, path={self.path})>"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "parent_id": self.parent_id,
            "path": self.path,
            "depth": self.depth,
            "sort_order": self.sort_order,
            "image_url": self.image_url,
            "is_active": self.is_active,
        }


class GlobalProduct(Base):
    """Product in the shared global catalog.

    Canonical source of product identity. Stores list global products
    through store product rows that may override price and stock.
    """

    __tablename__ = "global_products"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(500), nullable=False)
    slug: Mapped[str] = mapped_column(String(500), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    brand_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("brands.id", ondelete="RESTRICT"), nullable=True, index=True
    )
    category_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("categories.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    base_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    weight: Mapped[str | None] = mapped_column(String(100), nullable=True)
    image_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    images: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)
    attributes: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"<GlobalProduct(id={self.id}, name={self.name[:30]})>"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "description": self.description,
            "brand_id": self.brand_id,
            "category_id": self.category_id,
            "base_price": _money(self.base_price),
            "weight": self.weight,
            "image_url": self.image_url,
            "images": list(self.images or []),
            "attributes": dict(self.attributes or {}),
            "is_active": self.is_active,
        }


class StoreProduct(Base):
    """Store-level listing: an override of a global product or a custom item.

    Override mode (``global_product_id`` set): ``price_override`` and
    ``old_price_override`` replace the global values when set; every
    ``custom_*`` column is ignored.

    Custom mode (``global_product_id`` NULL): every display field comes from
    the ``custom_*`` columns; ``price_override``/``old_price_override`` are
    ignored.

    Stock, in-stock flag, active flag and sort order always live on this row.
    """

    __tablename__ = "store_products"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    store_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("stores.id", ondelete="CASCADE"), nullable=False, index=True
    )
    global_product_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("global_products.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
    )

    # Override fields
    price_override: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    old_price_override: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    stock_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_in_stock: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Custom fields
    custom_name: Mapped[str | None] = mapped_column(String(500), nullable=True)
    custom_slug: Mapped[str | None] = mapped_column(String(500), nullable=True)
    custom_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    custom_brand_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    custom_category_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("categories.id", ondelete="RESTRICT"), nullable=True
    )
    custom_price: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    custom_old_price: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    custom_weight: Mapped[str | None] = mapped_column(String(100), nullable=True)
    custom_image_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    custom_images: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)
    custom_attributes: Mapped[dict[str, Any]] = mapped_column(
        JSONType, nullable=False, default=dict
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"<StoreProduct(id={self.id}, store_id={self.store_id}, source={self.source.value})>"

    @property
    def source(self) -> ProductSource:
        """Which variant this row is."""
        return ProductSource.of(self.global_product_id)
