"""Product Catalog.

Merges the global catalog with per-store overrides and custom products,
and pages the result for storefront listings.
"""

from app.catalog.models import Brand, Category, GlobalProduct, StoreProduct
from app.catalog.pagination import PaginationEngine, ProductPage, ProductQuery, SortMode
from app.catalog.repository import CatalogRepository
from app.catalog.resolver import CatalogResolver, precedence
from app.catalog.taxonomy import TreePosition, derive_position

__all__ = [
    # Models
    "Brand",
    "Category",
    "GlobalProduct",
    "StoreProduct",
    # Resolver
    "CatalogResolver",
    "precedence",
    # Pagination
    "PaginationEngine",
    "ProductPage",
    "ProductQuery",
    "SortMode",
    # Repository
    "CatalogRepository",
    # Taxonomy
    "TreePosition",
    "derive_position",
]
