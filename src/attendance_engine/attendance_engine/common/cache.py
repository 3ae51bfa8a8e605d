from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Executor
from dataclasses import dataclass
from typing import Callable, Generic, Hashable, Optional, TypeVar

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


@dataclass(frozen=True)
class CacheEntry(Generic[V]):
    value: V
    stored_at: float
    is_stale: bool


class TTLCache(Generic[K, V]):
    """Time-bounded cache with stale-while-revalidate reads.

    The clock is injected (seconds as float, monotonic by default). When an
    executor is given, a stale hit returns the old value at once and refreshes
    it in the background; at most one refresh per key runs at a time. Without
    an executor, stale entries are reloaded inline.
    """

    def __init__(
        self,
        *,
        ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
        executor: Optional[Executor] = None,
    ):
        if ttl_seconds < 0:
            raise ValueError("ttl_seconds must be >= 0")
        self._ttl = float(ttl_seconds)
        self._clock = clock
        self._executor = executor
        self._lock = threading.Lock()
        self._items: dict[K, tuple[V, float]] = {}
        self._refreshing: set[K] = set()
        # Bumped on invalidation; a refresh started under an older generation is dropped.
        self._epoch = 0
        self._generations: dict[K, int] = {}

    def get(self, key: K) -> Optional[CacheEntry[V]]:
        with self._lock:
            item = self._items.get(key)
        if item is None:
            return None
        value, stored_at = item
        return CacheEntry(value=value, stored_at=stored_at, is_stale=self._clock() - stored_at > self._ttl)

    def put(self, key: K, value: V) -> None:
        with self._lock:
            self._items[key] = (value, self._clock())

    def invalidate(self, key: Optional[K] = None) -> None:
        with self._lock:
            if key is None:
                self._items.clear()
                self._epoch += 1
            else:
                self._items.pop(key, None)
                self._generations[key] = self._generations.get(key, 0) + 1

    def get_or_load(self, key: K, loader: Callable[[], V]) -> V:
        entry = self.get(key)
        if entry is None:
            value = loader()
            self.put(key, value)
            return value
        if not entry.is_stale:
            return entry.value

        if self._executor is None:
            value = loader()
            self.put(key, value)
            return value

        with self._lock:
            already = key in self._refreshing
            if not already:
                self._refreshing.add(key)
                generation = self._generation(key)
        if not already:
            self._executor.submit(self._refresh, key, loader, generation)
        return entry.value

    def _generation(self, key: K) -> tuple[int, int]:
        return self._epoch, self._generations.get(key, 0)

    def _refresh(self, key: K, loader: Callable[[], V], generation: tuple[int, int]) -> None:
        try:
            value = loader()
            with self._lock:
                if self._generation(key) != generation:
                    logger.debug("Dropping refresh for cache key %r invalidated while loading", key)
                    return
                self._items[key] = (value, self._clock())
        except Exception:
            logger.exception("Background refresh failed for cache key %r; keeping stale value", key)
        finally:
            with self._lock:
                self._refreshing.discard(key)
