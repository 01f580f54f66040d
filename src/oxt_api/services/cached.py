"""
services/cached.py — Read-through cache helper shared by the data-fetching services.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from oxt_shared.config import Settings
from oxt_api.sources.base import SourceError, StakingDataSource
from oxt_api.utils.cache import CacheStore
from oxt_api.utils.degraded import Fetched

T = TypeVar("T")


class CachedReader:
    """Base for services that read upstream through one CacheStore."""

    def __init__(
        self,
        source: StakingDataSource,
        cache: CacheStore,
        settings: Settings,
        log: Any,
    ) -> None:
        self._source = source
        self._cache = cache
        self._settings = settings
        self._log = log

    @property
    def cache(self) -> CacheStore:
        return self._cache

    async def _read(
        self,
        key: str,
        fetch: Callable[[], Awaitable[T]],
        fallback: T,
        *,
        ttl_ms: float | None = None,
    ) -> Fetched[T]:
        """
        Return the cached value for key, else fetch and cache it.

        A SourceError yields the fallback flagged as degraded; fallbacks
        are never written to the cache.
        """
        cached = self._cache.get(key)
        if cached is not None:
            return Fetched.ok(cached)
        try:
            value = await fetch()
        except SourceError as exc:
            self._log.warning("upstream_read_failed", key=key, error=str(exc))
            return Fetched.fallback(fallback, str(exc))
        self._cache.set(key, value, ttl_ms)
        return Fetched.ok(value)
