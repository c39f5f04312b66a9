"""Value Objects for the domain layer.

Value objects are immutable objects that are defined by their attributes
rather than identity. They are interchangeable when their values are equal.
"""

import re
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Self

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(value: str, separator: str = "-") -> str:
    """Derive a URL slug from a display name.

    Lower-cases the name and collapses every run of non-alphanumeric
    characters into a single separator.

    Args:
        value: Display name.
        separator: Replacement for non-alphanumeric runs.

    Returns:
        Slug string (may be empty if the name had no alphanumerics).
    """
    return _NON_ALNUM.sub(separator, value.lower()).strip(separator)


# ============================================================================
# Product Source
# ============================================================================


class ProductSource(str, Enum):
    """Which variant a store product row belongs to.

    GLOBAL rows overlay a global catalog product (OverrideOfGlobal);
    CUSTOM rows carry every display field themselves (CustomStandalone).
    """

    GLOBAL = "global"
    CUSTOM = "custom"

    @classmethod
    def of(cls, global_product_id: int | None) -> Self:
        """Classify a store product by its global reference.

        Args:
            global_product_id: Linked global product, if any.

        Returns:
            CUSTOM when there is no global reference, GLOBAL otherwise.
        """
        return cls.CUSTOM if global_product_id is None else cls.GLOBAL


# ============================================================================
# Effective Product
# ============================================================================


def _money(value: Decimal | None) -> float | None:
    return float(value) if value is not None else None


@dataclass(frozen=True)
class EffectiveProduct:
    """Resolved, read-only projection of one store product row.

    Never persisted; rebuilt by the catalog resolver on every call.

    Attributes:
        id: Store product identifier (stable pagination key).
        store_id: Owning store.
        store_slug: Owning store slug.
        name: Effective display name.
        price: Effective selling price.
        category_id: Effective category.
        is_in_stock: Effective stock flag.
        is_active: Logical AND of the override and global active flags.
        source: Whether the row overlays a global product or is custom.
    """

    id: int
    store_id: int
    store_slug: str
    store_name: str
    name: str
    slug: str | None
    price: Decimal
    category_id: int | None
    is_in_stock: bool
    is_active: bool
    source: ProductSource
    description: str | None = None
    old_price: Decimal | None = None
    weight: str | None = None
    image_url: str | None = None
    images: list[str] = field(default_factory=list)
    category_name: str | None = None
    category_path: str | None = None
    brand_name: str | None = None
    attributes: dict[str, Any] = field(default_factory=dict)
    stock_quantity: int = 0
    sort_order: int = 0
    global_product_id: int | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to the JSON shape served to storefront clients.

        Returns:
            Dictionary representation.
        """
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "description": self.description,
            "weight": self.weight or "",
            "price": _money(self.price),
            "oldPrice": _money(self.old_price),
            "category_id": self.category_id,
            "category_name": self.category_name,
            "brand_name": self.brand_name,
            "image": self.image_url or "",
            "images": list(self.images),
            "attributes": dict(self.attributes),
            "in_stock": self.is_in_stock,
            "stock_quantity": self.stock_quantity,
            "store_slug": self.store_slug,
            "source": self.source.value,
        }

    def to_admin_dict(self) -> dict[str, Any]:
        """Storefront shape plus the fields only admins see."""
        return {
            **self.to_dict(),
            "store_id": self.store_id,
            "store_name": self.store_name,
            "category_path": self.category_path,
            "is_active": self.is_active,
            "sort_order": self.sort_order,
            "global_product_id": self.global_product_id,
        }
