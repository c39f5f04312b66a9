"""Pagination and filter engine for storefront product listings.

Applies search, category, stock and store filters to the effective product
view, orders the result with a stable tie-break, and slices one page at an
offset cursor.

The cursor is a plain offset into the filtered, ordered result. Rows
inserted or deleted ahead of the cursor between two requests shift later
pages by the same amount, so a client paging through a catalog that is
being edited can see a row twice or miss one. Under a static catalog,
paging until ``has_more`` is false yields every row exactly once.
"""

import json
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Self

import structlog
from sqlalchemy import ColumnElement, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.catalog.models import StoreProduct
from app.catalog.resolver import (
    EFFECTIVE_CATEGORY_ID,
    EFFECTIVE_IS_ACTIVE,
    EFFECTIVE_NAME,
    EFFECTIVE_PRICE,
    CatalogResolver,
    row_to_effective,
)
from app.domain.exceptions import CatalogStorageError, ValidationError
from app.domain.value_objects import EffectiveProduct
from app.infrastructure.config import settings
from app.infrastructure.models import StoreModel

logger = structlog.get_logger()

LIKE_ESCAPE = "\\"
MAX_SEARCH_LENGTH = 100


def escape_like(text: str) -> str:
    """Escape LIKE wildcards so user input matches literally.

    Args:
        text: Raw search text.

    Returns:
        Text with ``%``, ``_`` and the escape character itself escaped.
    """
    return "".join(
        f"{LIKE_ESCAPE}{ch}" if ch in ("%", "_", LIKE_ESCAPE) else ch for ch in text
    )


class SortMode(str, Enum):
    """Listing order. Every mode breaks ties on store product id."""

    RELEVANCE = "relevance"
    PRICE_ASC = "price_asc"
    PRICE_DESC = "price_desc"
    NAME_ASC = "name_asc"

    @classmethod
    def parse(cls, value: str | None) -> Self:
        """Parse a sort mode, accepting hyphenated spellings.

        Args:
            value: Raw value (e.g., "price-asc"); None means relevance.

        Returns:
            SortMode.

        Raises:
            ValidationError: If the value is not a known mode.
        """
        if value is None or value == "":
            return cls.RELEVANCE
        try:
            return cls(value.strip().lower().replace("-", "_"))
        except ValueError:
            raise ValidationError(
                f"Invalid sortBy value: {value}",
                details={"allowed": [mode.value for mode in cls]},
            ) from None


@dataclass(frozen=True)
class ProductQuery:
    """One storefront listing request.

    Attributes:
        store_id: Restrict to one store by id.
        store_slug: Restrict to one store by slug.
        search_text: Case-insensitive substring of the product name.
        category_id: Effective category equality.
        stock_only: Exclude rows that are out of stock.
        sort_mode: Listing order.
        cursor: Offset into the filtered, ordered result.
        page_size: Number of items per page.
    """

    store_id: int | None = None
    store_slug: str | None = None
    search_text: str | None = None
    category_id: int | None = None
    stock_only: bool = True
    sort_mode: SortMode = SortMode.RELEVANCE
    cursor: int = 0
    page_size: int = 8

    def normalized(self, max_page_size: int, max_cursor: int) -> "ProductQuery":
        """Validate bounds and canonicalize free-text fields.

        Args:
            max_page_size: Largest accepted page size.
            max_cursor: Cursor values above this are clamped.

        Returns:
            Normalized copy of the query.

        Raises:
            ValidationError: If page size, cursor or sort mode is invalid.
        """
        if not isinstance(self.sort_mode, SortMode):
            raise ValidationError(f"Invalid sortBy value: {self.sort_mode}")
        if not 1 <= self.page_size <= max_page_size:
            raise ValidationError(
                f"page size must be between 1 and {max_page_size}",
                details={"page_size": self.page_size},
            )
        if self.cursor < 0:
            raise ValidationError("cursor must not be negative", details={"cursor": self.cursor})

        search = (self.search_text or "").strip()[:MAX_SEARCH_LENGTH].lower() or None
        return replace(
            self,
            search_text=search,
            cursor=min(self.cursor, max_cursor),
        )

    def cache_key(self) -> str:
        """Deterministic key of the resolved query parameters."""
        return json.dumps(
            {
                "store_id": self.store_id,
                "store_slug": self.store_slug,
                "search": self.search_text,
                "category_id": self.category_id,
                "stock_only": self.stock_only,
                "sort": self.sort_mode.value,
                "cursor": self.cursor,
                "page_size": self.page_size,
            },
            sort_keys=True,
        )


@dataclass
class ProductPage:
    """One page of effective products.

    Attributes:
        items: Products on this page.
        next_cursor: Cursor of the next page, None on the last page.
        has_more: Whether rows remain after this page.
        total: Size of the whole filtered result.
    """

    items: list[EffectiveProduct] = field(default_factory=list)
    next_cursor: int | None = None
    has_more: bool = False
    total: int = 0

    @classmethod
    def empty(cls) -> Self:
        """A page with no rows and no continuation."""
        return cls()

    def to_dict(self) -> dict[str, Any]:
        """Convert to the storefront JSON shape."""
        return {
            "products": [item.to_dict() for item in self.items],
            "nextCursor": self.next_cursor,
            "hasMore": self.has_more,
            "total": self.total,
        }


class PaginationEngine:
    """Filters, orders and pages the effective product view.

    Example usage:
        async with get_session() as session:
            engine = PaginationEngine(session)
            page = await engine.page(
                ProductQuery(store_slug="fresh-mart", sort_mode=SortMode.PRICE_ASC)
            )
    """

    def __init__(
        self,
        session: AsyncSession,
        resolver: CatalogResolver | None = None,
        max_page_size: int | None = None,
        max_cursor: int | None = None,
    ) -> None:
        """Initialize engine.

        Args:
            session: Async SQLAlchemy session.
            resolver: Resolver providing the effective view.
            max_page_size: Largest accepted page size.
            max_cursor: Cursor clamp.
        """
        self.session = session
        self.resolver = resolver or CatalogResolver(session)
        self.max_page_size = max_page_size or settings.max_page_size
        self.max_cursor = max_cursor or settings.max_cursor

    async def page(self, query: ProductQuery) -> ProductPage:
        """Fetch one page of products.

        Args:
            query: Listing request.

        Returns:
            ProductPage. An empty page is a normal result.

        Raises:
            ValidationError: If the query is out of bounds (before any I/O).
            CatalogStorageError: If the database query fails.
        """
        query = query.normalized(self.max_page_size, self.max_cursor)
        conditions = self._conditions(query)
        filtered = self.resolver.statement().where(*conditions)

        try:
            total = await self.session.scalar(
                select(func.count()).select_from(filtered.subquery())
            )
            result = await self.session.execute(
                filtered.order_by(*self._ordering(query.sort_mode))
                .offset(query.cursor)
                .limit(query.page_size)
            )
            rows = result.all()
        except SQLAlchemyError as e:
            logger.error(
                "Product page query failed",
                store_slug=query.store_slug,
                store_id=query.store_id,
                cursor=query.cursor,
                error=str(e),
            )
            raise CatalogStorageError(
                "Product page could not be loaded",
                details={"cursor": query.cursor, "page_size": query.page_size},
            ) from e

        total = total or 0
        has_more = query.cursor + query.page_size < total
        return ProductPage(
            items=[row_to_effective(row) for row in rows],
            next_cursor=query.cursor + query.page_size if has_more else None,
            has_more=has_more,
            total=total,
        )

    def _conditions(self, query: ProductQuery) -> list[ColumnElement[bool]]:
        """Build the conjunctive filter list for a query."""
        conditions: list[ColumnElement[bool]] = [EFFECTIVE_IS_ACTIVE.is_(True)]

        if query.store_id is not None:
            conditions.append(StoreProduct.store_id == query.store_id)

        if query.store_slug is not None:
            conditions.append(StoreModel.slug == query.store_slug)

        if query.search_text:
            pattern = f"%{escape_like(query.search_text)}%"
            conditions.append(EFFECTIVE_NAME.ilike(pattern, escape=LIKE_ESCAPE))

        if query.category_id is not None:
            conditions.append(EFFECTIVE_CATEGORY_ID == query.category_id)

        if query.stock_only:
            conditions.append(StoreProduct.is_in_stock.is_(True))

        return conditions

    def _ordering(self, sort_mode: SortMode) -> list[ColumnElement[Any]]:
        """Get ORDER BY clauses, always ending with the stable id key."""
        tie_break = StoreProduct.id.asc()
        orderings = {
            SortMode.RELEVANCE: [],
            SortMode.PRICE_ASC: [EFFECTIVE_PRICE.asc()],
            SortMode.PRICE_DESC: [EFFECTIVE_PRICE.desc()],
            SortMode.NAME_ASC: [EFFECTIVE_NAME.asc()],
        }
        return [*orderings[sort_mode], tie_break]
