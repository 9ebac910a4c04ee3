"""
Menu Cache - Time-bounded view of the menu source.

The menu source (a database table maintained by the shop) can be slow or
unavailable, so the parsed menu is cached and only re-read once it is older
than the TTL. If a fetch fails, or succeeds without a single priced item, the
cache serves a fallback snapshot instead of failing the request.

Features:
- Lazy first fetch on the first get_menu() call
- TTL-based refresh (default: 5 minutes)
- Fallback to the hardcoded default menu, or to an empty menu
- Manual refresh/invalidate for admin tooling and tests

Refreshes are not serialized. Two requests that both find the snapshot
expired may both fetch; the last one to finish wins. Fetches are read-only,
so this only costs an extra query.

Usage:
    from coffee_bot.menu_cache import MenuCache
    from coffee_bot.menu import DatabaseMenuSource

    cache = MenuCache(DatabaseMenuSource(SessionLocal))
    menu = cache.get_menu()
    price = menu["latte"]["large"]
"""

import logging
import time
from typing import Any, Callable, Dict, Optional

from .config import MENU_CACHE_TTL_SECONDS, MENU_FALLBACK
from .menu import MenuSnapshot, MenuSource, default_snapshot, empty_snapshot

logger = logging.getLogger(__name__)


class MenuCache:
    """Owns the cached MenuSnapshot for one application instance."""

    def __init__(
        self,
        source: MenuSource,
        ttl_seconds: float = MENU_CACHE_TTL_SECONDS,
        fallback: str = MENU_FALLBACK,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            source: Where raw menu rows come from
            ttl_seconds: Maximum age of a cached snapshot
            fallback: "default" to serve the hardcoded menu on failure,
                      "empty" to serve an empty menu
            clock: Monotonic time source (injectable for tests)
        """
        self._source = source
        self._ttl_seconds = ttl_seconds
        self._fallback = fallback
        self._clock = clock

        self._snapshot: Optional[MenuSnapshot] = None
        self._loaded_at: float = 0.0
        self._fetch_count = 0
        self._failure_count = 0

    @property
    def ttl_seconds(self) -> float:
        return self._ttl_seconds

    @property
    def fetch_count(self) -> int:
        """Number of times the source has been queried."""
        return self._fetch_count

    def _is_stale(self) -> bool:
        if self._snapshot is None:
            return True
        return (self._clock() - self._loaded_at) > self._ttl_seconds

    def _fallback_snapshot(self) -> MenuSnapshot:
        if self._fallback == "empty":
            return empty_snapshot()
        return default_snapshot()

    def get_menu(self) -> MenuSnapshot:
        """
        Return the current menu, fetching from the source if the cached
        snapshot is missing or older than the TTL.

        Never raises on source failure; the fallback is returned instead and
        the next call tries the source again.
        """
        if self._is_stale():
            return self.refresh()
        return self._snapshot

    def refresh(self) -> MenuSnapshot:
        """Force a fetch from the source."""
        self._fetch_count += 1
        try:
            rows = self._source.fetch_rows()
            snapshot = MenuSnapshot.from_rows(rows)
        except Exception as e:
            self._failure_count += 1
            logger.error("Error fetching menu, serving %s fallback: %s", self._fallback, e)
            return self._fallback_snapshot()

        if len(snapshot) == 0:
            self._failure_count += 1
            logger.warning("Menu source returned no priced items, serving %s fallback", self._fallback)
            return self._fallback_snapshot()

        self._snapshot = snapshot
        self._loaded_at = self._clock()
        logger.info("Menu cache refreshed: %d items", len(snapshot))
        return snapshot

    def invalidate(self) -> None:
        """Drop the cached snapshot so the next get_menu() fetches."""
        self._snapshot = None
        self._loaded_at = 0.0

    def get_stats(self) -> Dict[str, Any]:
        age = None
        if self._snapshot is not None:
            age = round(self._clock() - self._loaded_at, 1)
        return {
            "items": len(self._snapshot) if self._snapshot is not None else 0,
            "age_seconds": age,
            "ttl_seconds": self._ttl_seconds,
            "fetch_count": self._fetch_count,
            "failure_count": self._failure_count,
        }
