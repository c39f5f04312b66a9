"""SQLAlchemy models for database tables.

Provides ORM models for areas, stores, the store-area membership table,
orders and order items. Catalog tables live in ``app.catalog.models``.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any
from uuid import uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Table,
    Text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from app.infrastructure.database import Base

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _money(value: Decimal | None) -> float | None:
    return float(value) if value is not None else None


# ============================================================================
# Area Models
# ============================================================================


class AreaModel(Base):
    """Delivery area (neighbourhood within a city)."""

    __tablename__ = "areas"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    city = Column(String(100), nullable=False, index=True)
    lat = Column(Float, nullable=True)
    lng = Column(Float, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "city": self.city,
            "lat": self.lat,
            "lng": self.lng,
            "is_active": self.is_active,
        }


# Store <-> area membership
store_areas = Table(
    "store_areas",
    Base.metadata,
    Column("store_id", Integer, ForeignKey("stores.id", ondelete="CASCADE"), primary_key=True),
    Column("area_id", Integer, ForeignKey("areas.id", ondelete="CASCADE"), primary_key=True),
)


# ============================================================================
# Store Models
# ============================================================================


class StoreModel(Base):
    """Store model for database persistence.

    Holds store metadata, delivery economics and lifecycle status.
    Only stores with status ``active`` are listable or resolvable.
    """

    __tablename__ = "stores"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    slug = Column(String(200), nullable=False, unique=True, index=True)
    description = Column(Text, nullable=True)
    logo_url = Column(String(1000), nullable=True)
    banner_url = Column(String(1000), nullable=True)
    store_type = Column(String(50), nullable=False, default="grocery")
    status = Column(String(20), nullable=False, default="pending", index=True)

    # Delivery economics
    same_day_delivery = Column(Boolean, nullable=False, default=False)
    delivery_charges = Column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    min_order_value = Column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    free_delivery_threshold = Column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    store_hours = Column(String(200), nullable=True)
    delivery_hours = Column(String(200), nullable=True)

    # Contact
    contact_phone = Column(String(50), nullable=True)
    contact_email = Column(String(255), nullable=True)
    address = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    def to_dict(self, area_ids: list[int] | None = None) -> dict[str, Any]:
        """Convert to the storefront JSON shape.

        Args:
            area_ids: Areas the store delivers to.

        Returns:
            Dictionary representation.
        """
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "description": self.description,
            "logo_url": self.logo_url,
            "store_type": self.store_type,
            "status": self.status,
            "same_day_delivery": self.same_day_delivery,
            "delivery_charges": _money(self.delivery_charges),
            "min_order_value": _money(self.min_order_value),
            "free_delivery_threshold": _money(self.free_delivery_threshold),
            "areas": list(area_ids or []),
            "store_hours": self.store_hours or "",
            "delivery_hours": self.delivery_hours or "",
            "contact_phone": self.contact_phone,
            "contact_email": self.contact_email,
            "address": self.address,
        }


# ============================================================================
# Order Models
# ============================================================================


class OrderModel(Base):
    """Order model for database persistence.

    Orders are created by the checkout flow; this service only reads them
    and moves them through the order state machine.
    """

    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    order_number = Column(String(30), nullable=False, unique=True)
    store_id = Column(Integer, ForeignKey("stores.id", ondelete="RESTRICT"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default="pending", index=True)
    status_history = Column(JSONType, nullable=False, default=list)
    store_name_snapshot = Column(String(200), nullable=False)
    delivery_address = Column(JSONType, nullable=False, default=dict)

    # Totals
    subtotal = Column(Numeric(10, 2), nullable=False)
    delivery_fee = Column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    discount = Column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    total = Column(Numeric(10, 2), nullable=False)

    # Payment
    payment_method = Column(String(20), nullable=False, default="cod")
    payment_status = Column(String(20), nullable=False, default="pending")

    placed_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    items = relationship(
        "OrderItemModel",
        back_populates="order",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def to_dict(self, include_items: bool = False) -> dict[str, Any]:
        """Convert to dictionary.

        Args:
            include_items: Whether to embed order items.

        Returns:
            Dictionary representation.
        """
        data = {
            "id": self.id,
            "order_number": self.order_number,
            "store_id": self.store_id,
            "status": self.status,
            "status_history": list(self.status_history or []),
            "store_name_snapshot": self.store_name_snapshot,
            "delivery_address": dict(self.delivery_address or {}),
            "subtotal": _money(self.subtotal),
            "delivery_fee": _money(self.delivery_fee),
            "discount": _money(self.discount),
            "total": _money(self.total),
            "payment_method": self.payment_method,
            "payment_status": self.payment_status,
            "placed_at": self.placed_at.isoformat() if self.placed_at else None,
        }
        if include_items:
            data["order_items"] = [item.to_dict() for item in self.items]
        return data


class OrderItemModel(Base):
    """Order line item with product snapshots taken at checkout."""

    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(
        String(36),
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    store_product_id = Column(
        Integer, ForeignKey("store_products.id", ondelete="SET NULL"), nullable=True
    )
    product_name_snapshot = Column(String(500), nullable=False)
    product_image_snapshot = Column(String(1000), nullable=True)
    product_weight_snapshot = Column(String(100), nullable=True)
    unit_price = Column(Numeric(10, 2), nullable=False)
    quantity = Column(Integer, nullable=False)
    line_total = Column(Numeric(10, 2), nullable=False)

    order = relationship("OrderModel", back_populates="items")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "store_product_id": self.store_product_id,
            "product_name_snapshot": self.product_name_snapshot,
            "product_image_snapshot": self.product_image_snapshot,
            "product_weight_snapshot": self.product_weight_snapshot,
            "unit_price": _money(self.unit_price),
            "quantity": self.quantity,
            "line_total": _money(self.line_total),
        }
