"""Cache and invalidation service.

Provides:
- Per-resource-class freshness policy (fixed TTL)
- Tag and path addressed invalidation
- Fall-through to the loader on any cache-store failure
- Eviction of expired entries (on stale read and by periodic sweep)
"""

import threading
import time
from collections import defaultdict
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any, TypeVar

import structlog

logger = structlog.get_logger()

T = TypeVar("T")

# Minimum seconds between sweeps of expired entries.
PURGE_INTERVAL_SECONDS = 60


class CacheTag(str, Enum):
    """Invalidation tags that cache entries can be bound to."""

    PRODUCTS = "products"
    STORES = "stores"
    AREAS = "areas"
    ORDERS = "orders"


class ResourceClass(str, Enum):
    """Classes of cached read results."""

    AREAS = "areas"
    STORES = "stores"
    STORE = "store"
    PRODUCT_PAGE = "product_page"
    HOMEPAGE = "homepage"
    CATEGORIES = "categories"


@dataclass(frozen=True)
class CachePolicy:
    """Freshness policy of one resource class.

    Attributes:
        ttl_seconds: Entries older than this are recomputed.
        stale_while_revalidate: Downstream (CDN/browser) grace period.
        tags: Tags every entry of the class is bound to.
    """

    ttl_seconds: int
    stale_while_revalidate: int
    tags: tuple[CacheTag, ...]

    def cache_control(self) -> str:
        """Cache-Control header value for responses of this class."""
        return (
            f"public, max-age={self.ttl_seconds}, s-maxage={self.ttl_seconds}, "
            f"stale-while-revalidate={self.stale_while_revalidate}"
        )


CACHE_POLICIES: dict[ResourceClass, CachePolicy] = {
    ResourceClass.AREAS: CachePolicy(3600, 86400, (CacheTag.AREAS,)),
    ResourceClass.STORES: CachePolicy(1800, 3600, (CacheTag.STORES, CacheTag.AREAS)),
    ResourceClass.STORE: CachePolicy(
        600, 1200, (CacheTag.STORES, CacheTag.AREAS, CacheTag.PRODUCTS)
    ),
    ResourceClass.PRODUCT_PAGE: CachePolicy(300, 600, (CacheTag.PRODUCTS,)),
    ResourceClass.HOMEPAGE: CachePolicy(3600, 86400, (CacheTag.AREAS, CacheTag.STORES)),
    ResourceClass.CATEGORIES: CachePolicy(3600, 86400, (CacheTag.PRODUCTS,)),
}


@dataclass(frozen=True)
class CacheEntry:
    """A cached value. Never mutated; stale entries are replaced.

    Attributes:
        key: Composite key (resource class + resolved parameters).
        value: Cached value.
        created_at: Clock reading when the value was stored.
        ttl_seconds: Freshness window.
        tags: Tags the entry is bound to.
        path: Request path that produced the entry, if any.
    """

    key: str
    value: Any
    created_at: float
    ttl_seconds: float
    tags: frozenset[str]
    path: str | None = None

    def is_fresh(self, now: float) -> bool:
        """Check whether the entry is still inside its TTL."""
        return now - self.created_at < self.ttl_seconds


class CacheStore:
    """In-process, tag-indexed cache store.

    Keeps an arena of entries by key plus tag -> keys and path -> keys
    indexes. Each tag and path also carries a generation counter that is
    bumped on invalidation, so a value loaded while an invalidation was in
    flight is never stored.

    One instance is created per process at startup.
    """

    def __init__(self) -> None:
        """Initialize an empty store."""
        self._entries: dict[str, CacheEntry] = {}
        self._tag_index: dict[str, set[str]] = defaultdict(set)
        self._path_index: dict[str, set[str]] = defaultdict(set)
        self._generations: dict[str, int] = defaultdict(int)
        self._lock = threading.Lock()

    def __len__(self) -> int:
        """Number of live entries."""
        return len(self._entries)

    def get(self, key: str) -> CacheEntry | None:
        """Get an entry by key, fresh or not."""
        with self._lock:
            return self._entries.get(key)

    def snapshot(self, tags: Iterable[str], path: str | None = None) -> dict[str, int]:
        """Capture the current generations of the given tags and path.

        Args:
            tags: Tags the pending entry will be bound to.
            path: Path the pending entry will be bound to.

        Returns:
            Mapping of index name to generation.
        """
        names = [f"tag:{tag}" for tag in tags]
        if path is not None:
            names.append(f"path:{path}")
        with self._lock:
            return {name: self._generations[name] for name in names}

    def put(self, entry: CacheEntry, snapshot: dict[str, int]) -> bool:
        """Store an entry unless one of its tags/paths moved since ``snapshot``.

        Args:
            entry: Entry to store.
            snapshot: Generations captured before the value was loaded.

        Returns:
            True if stored, False if an invalidation raced the load.
        """
        with self._lock:
            if any(self._generations[name] != gen for name, gen in snapshot.items()):
                return False
            self._discard_locked(entry.key)
            self._entries[entry.key] = entry
            for tag in entry.tags:
                self._tag_index[tag].add(entry.key)
            if entry.path is not None:
                self._path_index[entry.path].add(entry.key)
            return True

    def discard(self, key: str) -> None:
        """Remove one entry if present."""
        with self._lock:
            self._discard_locked(key)

    def invalidate_tag(self, tag: str) -> int:
        """Discard every entry bound to ``tag``.

        Returns:
            Number of entries discarded.
        """
        with self._lock:
            self._generations[f"tag:{tag}"] += 1
            keys = list(self._tag_index.pop(tag, set()))
            for key in keys:
                self._discard_locked(key)
            return len(keys)

    def invalidate_path(self, path: str) -> int:
        """Discard every entry produced for ``path``.

        Returns:
            Number of entries discarded.
        """
        with self._lock:
            self._generations[f"path:{path}"] += 1
            keys = list(self._path_index.pop(path, set()))
            for key in keys:
                self._discard_locked(key)
            return len(keys)

    def purge_expired(self, now: float) -> int:
        """Remove every entry past its TTL.

        Args:
            now: Current clock reading.

        Returns:
            Number of entries removed.
        """
        with self._lock:
            expired = [key for key, entry in self._entries.items() if not entry.is_fresh(now)]
            for key in expired:
                self._discard_locked(key)
            return len(expired)

    def clear(self) -> None:
        """Drop every entry and index."""
        with self._lock:
            self._entries.clear()
            self._tag_index.clear()
            self._path_index.clear()

    def _discard_locked(self, key: str) -> None:
        entry = self._entries.pop(key, None)
        if entry is None:
            return
        for tag in entry.tags:
            self._tag_index.get(tag, set()).discard(key)
        if entry.path is not None:
            self._path_index.get(entry.path, set()).discard(key)


class CacheService:
    """Read-through cache with time and event based invalidation.

    Example usage:
        cache = CacheService(CacheStore())
        areas = await cache.read(
            ResourceClass.AREAS,
            "all",
            directory.list_areas,
        )
        cache.invalidate_tag(CacheTag.AREAS)
    """

    def __init__(
        self,
        store: CacheStore | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize service.

        Args:
            store: Backing store (a fresh in-process store by default).
            clock: Monotonic clock in seconds.
        """
        self.store = store if store is not None else CacheStore()
        self.clock = clock
        self._last_purge = clock()

    async def read(
        self,
        resource_class: ResourceClass,
        key: str,
        loader: Callable[[], Awaitable[T]],
        path: str | None = None,
    ) -> T:
        """Return a fresh cached value or load, store and return a new one.

        Cache-store failures are logged and fall through to ``loader``.
        Loader failures propagate unchanged and nothing is cached.

        Args:
            resource_class: Class of the resource (selects TTL and tags).
            key: Resolved query parameters.
            loader: Coroutine factory producing the value on a miss.
            path: Request path, for path-addressed invalidation.

        Returns:
            The cached or freshly loaded value.
        """
        policy = CACHE_POLICIES[resource_class]
        cache_key = f"{resource_class.value}:{key}"
        tags = [tag.value for tag in policy.tags]

        try:
            entry = self.store.get(cache_key)
            if entry is not None:
                if entry.is_fresh(self.clock()):
                    logger.debug("Cache hit", resource_class=resource_class.value, key=key)
                    return entry.value
                self.store.discard(cache_key)
            snapshot = self.store.snapshot(tags, path)
        except Exception as e:
            logger.warning(
                "Cache read failed, serving uncached",
                resource_class=resource_class.value,
                error=str(e),
            )
            return await loader()

        value = await loader()

        try:
            stored = self.store.put(
                CacheEntry(
                    key=cache_key,
                    value=value,
                    created_at=self.clock(),
                    ttl_seconds=policy.ttl_seconds,
                    tags=frozenset(tags),
                    path=path,
                ),
                snapshot,
            )
            self._purge_if_due()
            if not stored:
                logger.info(
                    "Cache entry invalidated during load, not stored",
                    resource_class=resource_class.value,
                    key=key,
                )
        except Exception as e:
            logger.warning(
                "Cache write failed",
                resource_class=resource_class.value,
                error=str(e),
            )

        return value

    def _purge_if_due(self) -> None:
        now = self.clock()
        if now - self._last_purge < PURGE_INTERVAL_SECONDS:
            return
        self._last_purge = now
        purged = self.store.purge_expired(now)
        if purged:
            logger.debug("Expired cache entries purged", purged=purged)

    def invalidate_tag(self, tag: CacheTag | str) -> int:
        """Discard every entry bound to a tag.

        Args:
            tag: Tag to invalidate.

        Returns:
            Number of entries discarded.
        """
        tag_value = tag.value if isinstance(tag, CacheTag) else tag
        discarded = self.store.invalidate_tag(tag_value)
        logger.info("Cache tag invalidated", tag=tag_value, discarded=discarded)
        return discarded

    def invalidate_tags(self, tags: Iterable[CacheTag | str]) -> int:
        """Invalidate several tags.

        Returns:
            Total number of entries discarded.
        """
        return sum(self.invalidate_tag(tag) for tag in tags)

    def invalidate_path(self, path: str) -> int:
        """Discard every entry produced for a request path.

        Returns:
            Number of entries discarded.
        """
        discarded = self.store.invalidate_path(path)
        logger.info("Cache path invalidated", path=path, discarded=discarded)
        return discarded
