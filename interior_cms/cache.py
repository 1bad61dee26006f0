"""
Process-wide query cache for resource reads.

Reads are addressed by a QueryKey (entity x variant x optional parameter).
Fresh entries are served from memory; concurrent reads of the same key share
one fetch. The map is bounded: least recently used entries are evicted, and
parameterized lookups that find nothing are not stored.

Mutations never write here: after a successful write the caller invalidates
the entity and the next read of any of its keys re-fetches.
"""
from collections import OrderedDict
from concurrent.futures import Future
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Optional, Union
import logging
import threading
import time

from fastapi import Response

from interior_cms.config import settings

logger = logging.getLogger(__name__)

# Set on responses built from stale data after a failed refetch
STALE_DATA_HEADER = "X-Cache-Stale"


class Entity(str, Enum):
    PORTFOLIOS = "portfolios"
    INQUIRIES = "inquiries"
    HERO_SLIDES = "heroSlides"
    SITE_SETTINGS = "siteSettings"
    CATEGORIES = "categories"
    ABOUT_CONTENT = "aboutContent"


@dataclass(frozen=True)
class QueryKey:
    entity: Entity
    variant: str
    param: Optional[str] = None

    def __str__(self) -> str:
        parts = [self.entity.value, self.variant]
        if self.param is not None:
            parts.append(self.param)
        return "/".join(parts)


class Keys:
    """Every cache key the application reads through."""

    PUBLISHED_PORTFOLIOS = QueryKey(Entity.PORTFOLIOS, "published")
    ALL_PORTFOLIOS = QueryKey(Entity.PORTFOLIOS, "all")
    ACTIVE_HERO_SLIDES = QueryKey(Entity.HERO_SLIDES, "active")
    ALL_HERO_SLIDES = QueryKey(Entity.HERO_SLIDES, "all")
    ALL_INQUIRIES = QueryKey(Entity.INQUIRIES, "all")
    ALL_SITE_SETTINGS = QueryKey(Entity.SITE_SETTINGS, "all")
    LOGO = QueryKey(Entity.SITE_SETTINGS, "logo")
    ALL_CATEGORIES = QueryKey(Entity.CATEGORIES, "all")
    ALL_ABOUT_CONTENT = QueryKey(Entity.ABOUT_CONTENT, "all")

    @staticmethod
    def portfolio_detail(portfolio_id: str) -> QueryKey:
        return QueryKey(Entity.PORTFOLIOS, "detail", portfolio_id)

    @staticmethod
    def about_section(section: str) -> QueryKey:
        return QueryKey(Entity.ABOUT_CONTENT, "section", section)


@dataclass
class CacheEntry:
    data: Any
    fetched_at: float
    invalidated: bool = False


@dataclass
class QueryResult:
    """
    Outcome of a cached read.
    `error` is set when a refetch failed and stale data is being served instead.
    """
    data: Any
    from_cache: bool = False
    error: Optional[Exception] = None

    @property
    def is_error(self) -> bool:
        return self.error is not None


class QueryCache:
    """
    In-memory cache with per-key freshness, single-flight fetches and
    entity-wide invalidation.

    Args:
        stale_seconds: Default freshness window
        retry: Extra attempts made when a fetch fails
        stale_overrides: Per-key freshness windows
        max_entries: Entries kept before the least recently used is evicted
        clock: Monotonic time source (injectable for tests)
    """

    def __init__(
        self,
        stale_seconds: float = 300,
        retry: int = 1,
        stale_overrides: Optional[Dict[QueryKey, float]] = None,
        max_entries: int = 256,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.stale_seconds = stale_seconds
        self.retry = retry
        self.stale_overrides = dict(stale_overrides or {})
        self.max_entries = max_entries
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: "OrderedDict[QueryKey, CacheEntry]" = OrderedDict()
        self._in_flight: Dict[QueryKey, Future] = {}
        # Bumped on every invalidation; a fetch that started before the bump is stored as stale
        self._generations: Dict[Entity, int] = {}

    def _is_fresh(self, key: QueryKey, entry: CacheEntry) -> bool:
        if entry.invalidated:
            return False
        window = self.stale_overrides.get(key, self.stale_seconds)
        return self._clock() - entry.fetched_at < window

    def _store(self, key: QueryKey, data: Any, superseded: bool) -> None:
        # Called with the lock held
        if data is None and key.param is not None:
            self._entries.pop(key, None)
            return

        self._entries[key] = CacheEntry(data=data, fetched_at=self._clock(), invalidated=superseded)
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug(f"Evicted {evicted} from cache")

    def _fetch_with_retry(self, key: QueryKey, fetcher: Callable[[], Any]) -> Any:
        attempts = self.retry + 1
        for attempt in range(attempts):
            try:
                return fetcher()
            except Exception as e:
                if attempt < attempts - 1:
                    logger.warning(f"Fetch for {key} failed (attempt {attempt + 1}/{attempts}): {str(e)}")
                    continue
                logger.error(f"Fetch for {key} failed after {attempts} attempts: {str(e)}")
                raise

    def fetch(self, key: QueryKey, fetcher: Callable[[], Any]) -> QueryResult:
        """
        Read `key`, calling `fetcher` only when there is no fresh entry.

        Raises:
            Exception: Whatever the fetcher raised, when no cached data exists
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and self._is_fresh(key, entry):
                self._entries.move_to_end(key)
                logger.debug(f"Cache HIT for {key}")
                return QueryResult(data=entry.data, from_cache=True)

            future = self._in_flight.get(key)
            is_owner = future is None
            if is_owner:
                future = Future()
                self._in_flight[key] = future
                generation = self._generations.get(key.entity, 0)
                logger.debug(f"Cache MISS for {key}")
            else:
                logger.debug(f"Joining in-flight fetch for {key}")

        if is_owner:
            try:
                data = self._fetch_with_retry(key, fetcher)
            except Exception as e:
                future.set_exception(e)
            else:
                with self._lock:
                    superseded = self._generations.get(key.entity, 0) != generation
                    self._store(key, data, superseded)
                future.set_result(data)
            finally:
                with self._lock:
                    self._in_flight.pop(key, None)

        try:
            return QueryResult(data=future.result())
        except Exception as e:
            entry = self.peek(key)
            if entry is None:
                raise
            logger.warning(f"Serving stale data for {key} after failed refetch")
            return QueryResult(data=entry.data, from_cache=True, error=e)

    def invalidate(self, *targets: Union[Entity, QueryKey]) -> int:
        """
        Mark cached keys stale. An Entity target covers every key of that
        entity; a QueryKey target covers that key only.

        Returns:
            int: Number of cached entries marked stale
        """
        count = 0
        with self._lock:
            for target in targets:
                entity = target if isinstance(target, Entity) else target.entity
                self._generations[entity] = self._generations.get(entity, 0) + 1
                for key, entry in self._entries.items():
                    if key == target or key.entity == target:
                        entry.invalidated = True
                        count += 1
        logger.debug(f"Invalidated {count} cache entries for {[str(t) for t in targets]}")
        return count

    def peek(self, key: QueryKey) -> Optional[CacheEntry]:
        with self._lock:
            return self._entries.get(key)

    def keys(self) -> Iterable[QueryKey]:
        with self._lock:
            return list(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._generations.clear()


query_cache = QueryCache(
    stale_seconds=settings.CACHE_STALE_SECONDS,
    stale_overrides={Keys.LOGO: settings.LOGO_CACHE_STALE_SECONDS},
    max_entries=settings.CACHE_MAX_ENTRIES,
)


def read_cached(key: QueryKey, fetcher: Callable[[], Any], response: Optional[Response] = None) -> Any:
    """
    Read `key` through the process cache for a route handler.
    When stale data is served after a failed refetch, the response carries
    the STALE_DATA_HEADER so clients can tell.

    Raises:
        Exception: Whatever the fetcher raised, when no cached data exists
    """
    result = query_cache.fetch(key, fetcher)
    if result.is_error:
        logger.warning(f"Responding with stale {key}: {str(result.error)}")
        if response is not None:
            response.headers[STALE_DATA_HEADER] = "true"
    return result.data
