"""Admin API endpoints.

CRUD for global products, categories, brands, stores, areas and store
products; order listing and status changes; dashboard stats. Every route
is behind the admin API key (see ``app.api.middleware``) and is never
cached. Writes invalidate the cache tags bound to the mutated entity.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.schemas import (
    AreaCreate,
    AreaUpdate,
    BrandCreate,
    BrandUpdate,
    CategoryCreate,
    CategoryUpdate,
    OrderStatusUpdate,
    PageResponse,
    ProductCreate,
    ProductUpdate,
    StatsResponse,
    StoreCreate,
    StoreProductCreate,
    StoreProductUpdate,
    StoreUpdate,
)
from app.application.admin_service import AdminGateway
from app.infrastructure.database import get_session

router = APIRouter(prefix="/api/admin", tags=["Admin"])

DELETED = {"success": True}


# ============================================================================
# Dependencies
# ============================================================================


def get_gateway(
    request: Request,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> AdminGateway:
    """Get admin gateway bound to the process-wide cache."""
    return AdminGateway(session, request.app.state.cache)


GatewayDep = Annotated[AdminGateway, Depends(get_gateway)]
Page = Annotated[int, Query(ge=0, description="Zero-based page number")]
Limit = Annotated[int, Query(ge=1, le=100, description="Rows per page")]


# ============================================================================
# Global Products
# ============================================================================


@router.get("/products", response_model=PageResponse)
async def list_products(
    gateway: GatewayDep,
    page: Page = 0,
    limit: Limit = 20,
    search: str | None = None,
) -> dict[str, Any]:
    """List global products."""
    return await gateway.list_products(page=page, limit=limit, search=search)


@router.post("/products", status_code=status.HTTP_201_CREATED)
async def create_product(body: ProductCreate, gateway: GatewayDep) -> dict[str, Any]:
    """Create a global product."""
    return await gateway.create_product(body.model_dump(exclude_unset=True))


@router.get("/products/{product_id}")
async def get_product(product_id: int, gateway: GatewayDep) -> dict[str, Any]:
    """Get a global product."""
    return await gateway.get_product(product_id)


@router.put("/products/{product_id}")
async def update_product(
    product_id: int, body: ProductUpdate, gateway: GatewayDep
) -> dict[str, Any]:
    """Update a global product."""
    return await gateway.update_product(product_id, body.model_dump(exclude_unset=True))


@router.delete("/products/{product_id}")
async def delete_product(product_id: int, gateway: GatewayDep) -> dict[str, bool]:
    """Delete a global product."""
    await gateway.delete_product(product_id)
    return DELETED


# ============================================================================
# Categories
# ============================================================================


@router.get("/categories", response_model=PageResponse)
async def list_categories(
    gateway: GatewayDep, page: Page = 0, limit: Limit = 100
) -> dict[str, Any]:
    """List categories in tree order."""
    return await gateway.list_categories(page=page, limit=limit)


@router.post("/categories", status_code=status.HTTP_201_CREATED)
async def create_category(body: CategoryCreate, gateway: GatewayDep) -> dict[str, Any]:
    """Create a category."""
    return await gateway.create_category(body.model_dump(exclude_unset=True))


@router.get("/categories/{category_id}")
async def get_category(category_id: int, gateway: GatewayDep) -> dict[str, Any]:
    """Get a category."""
    return await gateway.get_category(category_id)


@router.put("/categories/{category_id}")
async def update_category(
    category_id: int, body: CategoryUpdate, gateway: GatewayDep
) -> dict[str, Any]:
    """Update a category."""
    return await gateway.update_category(category_id, body.model_dump(exclude_unset=True))


@router.delete("/categories/{category_id}")
async def delete_category(category_id: int, gateway: GatewayDep) -> dict[str, bool]:
    """Delete a category."""
    await gateway.delete_category(category_id)
    return DELETED


# ============================================================================
# Brands
# ============================================================================


@router.get("/brands", response_model=PageResponse)
async def list_brands(gateway: GatewayDep, page: Page = 0, limit: Limit = 100) -> dict[str, Any]:
    """List brands."""
    return await gateway.list_brands(page=page, limit=limit)


@router.post("/brands", status_code=status.HTTP_201_CREATED)
async def create_brand(body: BrandCreate, gateway: GatewayDep) -> dict[str, Any]:
    """Create a brand."""
    return await gateway.create_brand(body.model_dump(exclude_unset=True))


@router.get("/brands/{brand_id}")
async def get_brand(brand_id: int, gateway: GatewayDep) -> dict[str, Any]:
    """Get a brand."""
    return await gateway.get_brand(brand_id)


@router.put("/brands/{brand_id}")
async def update_brand(brand_id: int, body: BrandUpdate, gateway: GatewayDep) -> dict[str, Any]:
    """Update a brand."""
    return await gateway.update_brand(brand_id, body.model_dump(exclude_unset=True))


@router.delete("/brands/{brand_id}")
async def delete_brand(brand_id: int, gateway: GatewayDep) -> dict[str, bool]:
    """Delete a brand."""
    await gateway.delete_brand(brand_id)
    return DELETED


# ============================================================================
# Stores
# ============================================================================


@router.get("/stores", response_model=PageResponse)
async def list_stores(gateway: GatewayDep, page: Page = 0, limit: Limit = 100) -> dict[str, Any]:
    """List stores of every status."""
    return await gateway.list_stores(page=page, limit=limit)


@router.post("/stores", status_code=status.HTTP_201_CREATED)
async def create_store(body: StoreCreate, gateway: GatewayDep) -> dict[str, Any]:
    """Create a store."""
    return await gateway.create_store(body.model_dump(exclude_unset=True))


@router.get("/stores/{store_id}")
async def get_store(store_id: int, gateway: GatewayDep) -> dict[str, Any]:
    """Get a store."""
    return await gateway.get_store(store_id)


@router.put("/stores/{store_id}")
async def update_store(store_id: int, body: StoreUpdate, gateway: GatewayDep) -> dict[str, Any]:
    """Update a store and, when given, its area links."""
    return await gateway.update_store(store_id, body.model_dump(exclude_unset=True))


@router.delete("/stores/{store_id}")
async def delete_store(store_id: int, gateway: GatewayDep) -> dict[str, bool]:
    """Delete a store."""
    await gateway.delete_store(store_id)
    return DELETED


# ============================================================================
# Areas
# ============================================================================


@router.get("/areas", response_model=PageResponse)
async def list_areas(gateway: GatewayDep, page: Page = 0, limit: Limit = 100) -> dict[str, Any]:
    """List areas."""
    return await gateway.list_areas(page=page, limit=limit)


@router.post("/areas", status_code=status.HTTP_201_CREATED)
async def create_area(body: AreaCreate, gateway: GatewayDep) -> dict[str, Any]:
    """Create an area."""
    return await gateway.create_area(body.model_dump(exclude_unset=True))


@router.get("/areas/{area_id}")
async def get_area(area_id: int, gateway: GatewayDep) -> dict[str, Any]:
    """Get an area."""
    return await gateway.get_area(area_id)


@router.put("/areas/{area_id}")
async def update_area(area_id: int, body: AreaUpdate, gateway: GatewayDep) -> dict[str, Any]:
    """Update an area."""
    return await gateway.update_area(area_id, body.model_dump(exclude_unset=True))


@router.delete("/areas/{area_id}")
async def delete_area(area_id: int, gateway: GatewayDep) -> dict[str, bool]:
    """Delete an area."""
    await gateway.delete_area(area_id)
    return DELETED


# ============================================================================
# Store Products
# ============================================================================


@router.get("/store-products", response_model=PageResponse)
async def list_store_products(
    gateway: GatewayDep,
    page: Page = 0,
    limit: Limit = 20,
    store_id: Annotated[int | None, Query(ge=1)] = None,
    search: str | None = None,
) -> dict[str, Any]:
    """List resolved store products."""
    return await gateway.list_store_products(
        page=page, limit=limit, store_id=store_id, search=search
    )


@router.post("/store-products", status_code=status.HTTP_201_CREATED)
async def create_store_product(
    body: StoreProductCreate, gateway: GatewayDep
) -> dict[str, Any]:
    """List a global or custom product in a store."""
    return await gateway.create_store_product(body.model_dump(exclude_unset=True))


@router.get("/store-products/{store_product_id}")
async def get_store_product(store_product_id: int, gateway: GatewayDep) -> dict[str, Any]:
    """Get a resolved store product."""
    return await gateway.get_store_product(store_product_id)


@router.put("/store-products/{store_product_id}")
async def update_store_product(
    store_product_id: int, body: StoreProductUpdate, gateway: GatewayDep
) -> dict[str, Any]:
    """Update a store product."""
    return await gateway.update_store_product(
        store_product_id, body.model_dump(exclude_unset=True)
    )


@router.delete("/store-products/{store_product_id}")
async def delete_store_product(store_product_id: int, gateway: GatewayDep) -> dict[str, bool]:
    """Remove a product from a store."""
    await gateway.delete_store_product(store_product_id)
    return DELETED


# ============================================================================
# Orders
# ============================================================================


@router.get("/orders", response_model=PageResponse)
async def list_orders(
    gateway: GatewayDep,
    page: Page = 0,
    limit: Limit = 20,
    status_filter: Annotated[str | None, Query(alias="status")] = None,
) -> dict[str, Any]:
    """List orders, newest first."""
    return await gateway.list_orders(page=page, limit=limit, status=status_filter)


@router.get("/orders/{order_id}")
async def get_order(order_id: str, gateway: GatewayDep) -> dict[str, Any]:
    """Get an order with its items."""
    return await gateway.get_order(order_id)


@router.patch("/orders/{order_id}")
async def update_order_status(
    order_id: str, body: OrderStatusUpdate, gateway: GatewayDep
) -> dict[str, Any]:
    """Move an order to a new status."""
    return await gateway.update_order_status(order_id, body.status, note=body.note)


# ============================================================================
# Stats
# ============================================================================


@router.get("/stats", response_model=StatsResponse)
async def stats(gateway: GatewayDep) -> dict[str, int]:
    """Row counts for the dashboard."""
    return await gateway.stats()
