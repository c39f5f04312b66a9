"""Storefront API endpoints.

Provides cacheable read endpoints for storefront clients:
- GET /api/areas - active delivery areas
- GET /api/stores - active stores, optionally by area
- GET /api/stores/{slug} - one store with product count
- GET /api/products - paginated, filtered product listing
- GET /api/categories - active categories
- GET /api/home - areas with their store counts

List endpoints degrade storage failures to an empty result flagged with
the ``X-Catalog-Degraded`` header.
"""

import re
from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.schemas import (
    AreasResponse,
    CategoriesResponse,
    ProductPageResponse,
    StoreResponse,
    StoresResponse,
)
from app.application.cache_service import CACHE_POLICIES, ResourceClass
from app.application.storefront_service import StorefrontService
from app.catalog.pagination import ProductPage, ProductQuery, SortMode
from app.domain.exceptions import NotFoundError, StorageError, ValidationError
from app.infrastructure.config import settings
from app.infrastructure.database import get_session

logger = structlog.get_logger()

router = APIRouter(prefix="/api", tags=["Storefront"])

SLUG_PATTERN = re.compile(r"^[a-z0-9-]+$")
DEGRADED_HEADER = "X-Catalog-Degraded"


# ============================================================================
# Dependencies
# ============================================================================


def get_storefront(
    request: Request,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> StorefrontService:
    """Get storefront service bound to the process-wide cache."""
    return StorefrontService(session, request.app.state.cache)


StorefrontDep = Annotated[StorefrontService, Depends(get_storefront)]


def _cacheable(response: Response, resource_class: ResourceClass) -> None:
    response.headers["Cache-Control"] = CACHE_POLICIES[resource_class].cache_control()


def _degraded(response: Response, resource: str, error: StorageError) -> None:
    response.headers[DEGRADED_HEADER] = "true"
    response.headers["Cache-Control"] = "no-store"
    logger.warning(
        "Storefront read degraded",
        resource=resource,
        error_code=error.error_code,
        error=error.message,
    )


def _validate_slug(slug: str) -> str:
    if not SLUG_PATTERN.match(slug):
        raise ValidationError("Invalid store slug", details={"slug": slug})
    return slug


# ============================================================================
# Endpoints
# ============================================================================


@router.get("/areas", response_model=AreasResponse, summary="List areas")
async def list_areas(
    request: Request, response: Response, storefront: StorefrontDep
) -> dict[str, Any]:
    """List active delivery areas."""
    try:
        areas = await storefront.areas(path=request.url.path)
    except StorageError as e:
        _degraded(response, "areas", e)
        areas = []
    else:
        _cacheable(response, ResourceClass.AREAS)
    return {"areas": areas, "total": len(areas)}


@router.get("/stores", response_model=StoresResponse, summary="List stores")
async def list_stores(
    request: Request,
    response: Response,
    storefront: StorefrontDep,
    area_id: Annotated[int | None, Query(alias="areaId", ge=1)] = None,
) -> dict[str, Any]:
    """List active stores, optionally only those delivering to an area."""
    try:
        stores = await storefront.stores(area_id, path=request.url.path)
    except StorageError as e:
        _degraded(response, "stores", e)
        stores = []
    else:
        _cacheable(response, ResourceClass.STORES)
    return {"stores": stores, "total": len(stores)}


@router.get("/stores/{slug}", response_model=StoreResponse, summary="Get store")
async def get_store(
    slug: str, request: Request, response: Response, storefront: StorefrontDep
) -> dict[str, Any]:
    """Get an active store by slug.

    Raises:
        ValidationError: If the slug is malformed.
        NotFoundError: If no active store has the slug.
    """
    store = await storefront.store(_validate_slug(slug), path=request.url.path)
    if store is None:
        raise NotFoundError("store", slug)
    _cacheable(response, ResourceClass.STORE)
    return {"store": store}


@router.get("/products", response_model=ProductPageResponse, summary="List products")
async def list_products(
    request: Request,
    response: Response,
    storefront: StorefrontDep,
    store_slug: Annotated[str | None, Query(alias="storeSlug")] = None,
    store: Annotated[str | None, Query()] = None,
    cursor: Annotated[int, Query()] = 0,
    limit: Annotated[int | None, Query()] = None,
    search: Annotated[str | None, Query()] = None,
    category_id: Annotated[int | None, Query(alias="categoryId", ge=1)] = None,
    in_stock_only: Annotated[bool, Query(alias="inStockOnly")] = True,
    sort_by: Annotated[str | None, Query(alias="sortBy")] = None,
) -> dict[str, Any]:
    """Get one page of a store's (or every store's) product listing.

    ``storeSlug`` and its short form ``store`` scope the listing to one
    store. The cursor is an offset; ``nextCursor`` is null on the last page.
    """
    slug = store_slug or store
    query = ProductQuery(
        store_slug=_validate_slug(slug) if slug else None,
        search_text=search,
        category_id=category_id,
        stock_only=in_stock_only,
        sort_mode=SortMode.parse(sort_by),
        cursor=cursor,
        page_size=limit if limit is not None else settings.default_page_size,
    )

    try:
        page = await storefront.product_page(query, path=request.url.path)
    except StorageError as e:
        response.headers[DEGRADED_HEADER] = "true"
        response.headers["Cache-Control"] = "no-store"
        logger.warning(
            "Product page degraded",
            store_slug=query.store_slug,
            cursor=query.cursor,
            error_code=e.error_code,
            error=e.message,
        )
        return ProductPage.empty().to_dict()

    _cacheable(response, ResourceClass.PRODUCT_PAGE)
    return page


@router.get("/categories", response_model=CategoriesResponse, summary="List categories")
async def list_categories(
    request: Request, response: Response, storefront: StorefrontDep
) -> dict[str, Any]:
    """List active categories."""
    try:
        categories = await storefront.categories(path=request.url.path)
    except StorageError as e:
        _degraded(response, "categories", e)
        categories = []
    else:
        _cacheable(response, ResourceClass.CATEGORIES)
    return {"categories": categories, "total": len(categories)}


@router.get("/home", response_model=AreasResponse, summary="Homepage data")
async def home(
    request: Request, response: Response, storefront: StorefrontDep
) -> dict[str, Any]:
    """List active areas with the number of stores serving each."""
    try:
        areas = await storefront.home(path=request.url.path)
    except StorageError as e:
        _degraded(response, "home", e)
        areas = []
    else:
        _cacheable(response, ResourceClass.HOMEPAGE)
    return {"areas": areas, "total": len(areas)}
