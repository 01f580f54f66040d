"""
utils/cache.py — Namespaced in-memory cache with per-entry TTL and LRU eviction.

Every data-fetching service owns one CacheStore, obtained from the
process-wide CacheRegistry held by the application context. Each
namespace gets its own independent mapping and its own max_size bound;
keys are still stored as "{namespace}:{key}" so a dump of any store is
self-describing.

Expiry is enforced twice:
  - lazily, on get(): an expired entry is deleted and reported absent;
  - proactively, by a periodic cleanup sweep task per store, so entries
    written once and never read again do not pin memory.

Recency for LRU is read recency: get() hits and set() both move an
entry to the most-recently-used end; eviction pops the other end.

Usage:
    registry = CacheRegistry(max_size=1000, default_ttl_ms=30_000)
    store = registry.get_store("validators")
    store.set("validator_info_0xabc", info, ttl_ms=10_000)
    cached = store.get("validator_info_0xabc")   # None once expired
"""

from __future__ import annotations

import asyncio
import threading
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import structlog

Clock = Callable[[], float]


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


@dataclass
class CacheEntry:
    value: Any
    created_at: float
    ttl_ms: float
    last_accessed_at: float

    def is_expired(self, now: float) -> bool:
        return now - self.created_at > self.ttl_ms


class CacheStore:
    """Bounded TTL cache for one namespace."""

    def __init__(
        self,
        namespace: str,
        *,
        max_size: int = 1000,
        default_ttl_ms: float = 30_000,
        cleanup_interval: float = 60.0,
        clock: Clock = monotonic_ms,
        log: Any = None,
    ) -> None:
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.namespace = namespace
        self.max_size = max_size
        self.default_ttl_ms = default_ttl_ms
        self.cleanup_interval = cleanup_interval
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._lock = threading.Lock()
        self._cleanup_task: asyncio.Task[None] | None = None
        self._log = (log or structlog.get_logger(__name__)).bind(cache_namespace=namespace)

    # ------------------------------------------------------------------
    # Keys
    # ------------------------------------------------------------------

    @property
    def _prefix(self) -> str:
        return f"{self.namespace}:"

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def set(self, key: str, value: Any, ttl_ms: float | None = None) -> bool:
        namespaced = self._key(key)
        now = self._clock()
        with self._lock:
            if namespaced in self._entries:
                del self._entries[namespaced]
            elif len(self._entries) >= self.max_size:
                self._evict_lru()
            self._entries[namespaced] = CacheEntry(
                value=value,
                created_at=now,
                ttl_ms=self.default_ttl_ms if ttl_ms is None else ttl_ms,
                last_accessed_at=now,
            )
        return True

    def get(self, key: str, default: Any = None) -> Any:
        """Return the cached value, or default if never set or expired."""
        namespaced = self._key(key)
        now = self._clock()
        with self._lock:
            entry = self._entries.get(namespaced)
            if entry is None:
                return default
            if entry.is_expired(now):
                del self._entries[namespaced]
                return default
            entry.last_accessed_at = now
            self._entries.move_to_end(namespaced)
            return entry.value

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(self._key(key), None) is not None

    def clear(self) -> int:
        with self._lock:
            removed = len(self._entries)
            self._entries.clear()
        return removed

    def keys(self) -> list[str]:
        """Namespace-relative keys, expired-but-unswept entries included."""
        prefix_len = len(self._prefix)
        with self._lock:
            return [k[prefix_len:] for k in self._entries]

    def __len__(self) -> int:
        return len(self._entries)

    def cleanup(self) -> int:
        """Delete every expired entry. Returns the number removed."""
        now = self._clock()
        with self._lock:
            expired = [k for k, e in self._entries.items() if e.is_expired(now)]
            for k in expired:
                del self._entries[k]
        if expired:
            self._log.debug("cache_swept", removed=len(expired))
        return len(expired)

    def _evict_lru(self) -> None:
        # Caller holds the lock; the store is non-empty because it is full.
        evicted_key, _ = self._entries.popitem(last=False)
        self._log.debug("cache_evicted", key=evicted_key[len(self._prefix):])

    def stats(self) -> dict[str, Any]:
        return {"namespace": self.namespace, "size": len(self), "max_size": self.max_size}

    # ------------------------------------------------------------------
    # Background sweep
    # ------------------------------------------------------------------

    def start_cleanup(self) -> bool:
        """
        Schedule the periodic sweep on the running event loop.

        Returns False when there is no running loop (nothing is scheduled;
        lazy expiry still keeps get() correct).
        """
        if self._cleanup_task is not None and not self._cleanup_task.done():
            return True
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return False
        self._cleanup_task = loop.create_task(
            self._cleanup_loop(), name=f"cache-cleanup:{self.namespace}"
        )
        return True

    async def _cleanup_loop(self) -> None:
        while True:
            await asyncio.sleep(self.cleanup_interval)
            self.cleanup()

    @property
    def cleanup_running(self) -> bool:
        return self._cleanup_task is not None and not self._cleanup_task.done()

    def destroy(self) -> None:
        """Cancel the sweep and drop every entry. Safe to call repeatedly."""
        if self._cleanup_task is not None:
            self._cleanup_task.cancel()
            self._cleanup_task = None
        self.clear()


class CacheRegistry:
    """One CacheStore per namespace for the lifetime of the process."""

    def __init__(
        self,
        *,
        max_size: int = 1000,
        default_ttl_ms: float = 30_000,
        cleanup_interval: float = 60.0,
        clock: Clock = monotonic_ms,
        log: Any = None,
    ) -> None:
        self._max_size = max_size
        self._default_ttl_ms = default_ttl_ms
        self._cleanup_interval = cleanup_interval
        self._clock = clock
        self._log = log or structlog.get_logger(__name__)
        self._stores: dict[str, CacheStore] = {}
        self._started = False

    def get_store(self, namespace: str) -> CacheStore:
        store = self._stores.get(namespace)
        if store is None:
            store = CacheStore(
                namespace,
                max_size=self._max_size,
                default_ttl_ms=self._default_ttl_ms,
                cleanup_interval=self._cleanup_interval,
                clock=self._clock,
                log=self._log,
            )
            self._stores[namespace] = store
            if self._started:
                store.start_cleanup()
            self._log.debug("cache_store_created", cache_namespace=namespace)
        return store

    @property
    def namespaces(self) -> list[str]:
        return list(self._stores)

    def all_stats(self) -> dict[str, dict[str, Any]]:
        return {ns: {"namespace": ns, "size": len(s)} for ns, s in self._stores.items()}

    def clear_all(self) -> int:
        return sum(store.clear() for store in self._stores.values())

    def start(self) -> None:
        """Start cleanup sweeps for existing and future stores."""
        self._started = True
        for store in self._stores.values():
            store.start_cleanup()

    def destroy(self) -> None:
        for store in self._stores.values():
            store.destroy()
        self._stores.clear()
        self._started = False
        self._log.info("cache_registry_destroyed")
