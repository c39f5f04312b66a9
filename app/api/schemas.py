"""API schemas for the storefront catalog service.

Pydantic models for request validation and response serialization.
Admin update models leave every field optional; only fields present in
the request body are written.
"""

from decimal import Decimal
from typing import Any, Literal

from pydantic import BaseModel, Field


# ============================================================================
# Common Schemas
# ============================================================================


class ErrorResponse(BaseModel):
    """Standard error response.

    All API errors follow this format for consistency.
    """

    error: str = Field(..., description="Human-readable error message")
    error_code: str = Field(..., description="Machine-readable error code")
    details: dict[str, Any] | list[Any] = Field(
        default_factory=dict, description="Additional error details"
    )
    request_id: str | None = Field(default=None, description="Request ID for correlation")


class PageResponse(BaseModel):
    """Admin list response."""

    data: list[dict[str, Any]] = Field(..., description="Rows of the requested page")
    total: int = Field(..., description="Total number of matching rows")


# ============================================================================
# Storefront Schemas
# ============================================================================


class AreasResponse(BaseModel):
    """Active areas."""

    areas: list[dict[str, Any]]
    total: int


class StoresResponse(BaseModel):
    """Active stores."""

    stores: list[dict[str, Any]]
    total: int


class StoreResponse(BaseModel):
    """A single store with product count and area names."""

    store: dict[str, Any]


class CategoriesResponse(BaseModel):
    """Active categories."""

    categories: list[dict[str, Any]]
    total: int


class ProductPageResponse(BaseModel):
    """One page of a product listing."""

    products: list[dict[str, Any]]
    nextCursor: int | None = Field(default=None, description="Cursor of the next page")
    hasMore: bool
    total: int


# ============================================================================
# Revalidation Schemas
# ============================================================================


class RevalidateResponse(BaseModel):
    """Successful cache invalidation."""

    revalidated: bool
    type: Literal["tag", "path"]
    tag: str | None = None
    path: str | None = None
    discarded: int
    timestamp: int = Field(..., description="Epoch milliseconds")


# ============================================================================
# Admin Schemas
# ============================================================================


class ProductCreate(BaseModel):
    """Request to create a global product."""

    name: str = Field(..., min_length=1, max_length=500)
    slug: str | None = Field(default=None, max_length=500)
    description: str | None = None
    brand_id: int | None = None
    category_id: int
    base_price: Decimal = Field(default=Decimal("0"), ge=0)
    weight: str | None = None
    image_url: str | None = None
    images: list[str] = Field(default_factory=list)
    attributes: dict[str, Any] = Field(default_factory=dict)
    is_active: bool = True


class ProductUpdate(BaseModel):
    """Request to update a global product."""

    name: str | None = Field(default=None, min_length=1, max_length=500)
    slug: str | None = Field(default=None, max_length=500)
    description: str | None = None
    brand_id: int | None = None
    category_id: int | None = None
    base_price: Decimal | None = Field(default=None, ge=0)
    weight: str | None = None
    image_url: str | None = None
    images: list[str] | None = None
    attributes: dict[str, Any] | None = None
    is_active: bool | None = None


class CategoryCreate(BaseModel):
    """Request to create a category."""

    name: str = Field(..., min_length=1, max_length=200)
    slug: str | None = Field(default=None, max_length=200)
    parent_id: int | None = None
    sort_order: int = 0
    image_url: str | None = None
    is_active: bool = True


class CategoryUpdate(BaseModel):
    """Request to update a category."""

    name: str | None = Field(default=None, min_length=1, max_length=200)
    slug: str | None = Field(default=None, max_length=200)
    parent_id: int | None = None
    sort_order: int | None = None
    image_url: str | None = None
    is_active: bool | None = None


class BrandCreate(BaseModel):
    """Request to create a brand."""

    name: str = Field(..., min_length=1, max_length=200)
    slug: str | None = Field(default=None, max_length=200)
    logo_url: str | None = None
    is_active: bool = True


class BrandUpdate(BaseModel):
    """Request to update a brand."""

    name: str | None = Field(default=None, min_length=1, max_length=200)
    slug: str | None = Field(default=None, max_length=200)
    logo_url: str | None = None
    is_active: bool | None = None


class StoreCreate(BaseModel):
    """Request to create a store."""

    name: str = Field(..., min_length=1, max_length=200)
    slug: str | None = Field(default=None, max_length=200)
    description: str | None = None
    logo_url: str | None = None
    banner_url: str | None = None
    store_type: str = "grocery"
    status: str = "pending"
    same_day_delivery: bool = False
    delivery_charges: Decimal = Field(default=Decimal("0"), ge=0)
    min_order_value: Decimal = Field(default=Decimal("0"), ge=0)
    free_delivery_threshold: Decimal = Field(default=Decimal("0"), ge=0)
    store_hours: str | None = None
    delivery_hours: str | None = None
    contact_phone: str | None = None
    contact_email: str | None = None
    address: str | None = None
    area_ids: list[int] = Field(default_factory=list)


class StoreUpdate(BaseModel):
    """Request to update a store."""

    name: str | None = Field(default=None, min_length=1, max_length=200)
    slug: str | None = Field(default=None, max_length=200)
    description: str | None = None
    logo_url: str | None = None
    banner_url: str | None = None
    store_type: str | None = None
    status: str | None = None
    same_day_delivery: bool | None = None
    delivery_charges: Decimal | None = Field(default=None, ge=0)
    min_order_value: Decimal | None = Field(default=None, ge=0)
    free_delivery_threshold: Decimal | None = Field(default=None, ge=0)
    store_hours: str | None = None
    delivery_hours: str | None = None
    contact_phone: str | None = None
    contact_email: str | None = None
    address: str | None = None
    area_ids: list[int] | None = None


class AreaCreate(BaseModel):
    """Request to create an area."""

    name: str = Field(..., min_length=1, max_length=200)
    city: str = Field(..., min_length=1, max_length=100)
    lat: float | None = None
    lng: float | None = None
    is_active: bool = True


class AreaUpdate(BaseModel):
    """Request to update an area."""

    name: str | None = Field(default=None, min_length=1, max_length=200)
    city: str | None = Field(default=None, min_length=1, max_length=100)
    lat: float | None = None
    lng: float | None = None
    is_active: bool | None = None


class StoreProductFields(BaseModel):
    """Fields shared by store product create and update requests."""

    price_override: Decimal | None = Field(default=None, ge=0)
    old_price_override: Decimal | None = Field(default=None, ge=0)
    stock_quantity: int | None = Field(default=None, ge=0)
    is_in_stock: bool | None = None
    is_active: bool | None = None
    sort_order: int | None = None
    custom_name: str | None = Field(default=None, max_length=500)
    custom_slug: str | None = Field(default=None, max_length=500)
    custom_description: str | None = None
    custom_brand_name: str | None = Field(default=None, max_length=200)
    custom_category_id: int | None = None
    custom_price: Decimal | None = Field(default=None, ge=0)
    custom_old_price: Decimal | None = Field(default=None, ge=0)
    custom_weight: str | None = Field(default=None, max_length=100)
    custom_image_url: str | None = None
    custom_images: list[str] | None = None
    custom_attributes: dict[str, Any] | None = None


class StoreProductCreate(StoreProductFields):
    """Request to list a product in a store.

    Omit ``global_product_id`` to create a custom product.
    """

    store_id: int
    global_product_id: int | None = None


class StoreProductUpdate(StoreProductFields):
    """Request to update a store product."""


class OrderStatusUpdate(BaseModel):
    """Request to move an order to a new status."""

    status: str = Field(..., min_length=1)
    note: str | None = Field(default=None, max_length=500)


class StatsResponse(BaseModel):
    """Admin dashboard counts."""

    products: int
    stores: int
    brands: int
    categories: int
    areas: int
    orders: int
