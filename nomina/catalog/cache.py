#!/usr/bin/env python3
"""
Pool Cache
==========
Process-wide read-through cache of catalog pools.

Keys are (kind, culture_id, categorie_id). Entries are immutable tuples, so
readers can share them across threads. Entries are only dropped through
invalidate(), which the catalog owner calls when the catalog changes.

Usage:
    cache = PoolCache()
    pool = cache.get_or_load(key, loader)
    cache.invalidate(FragmentKind.TITRE, culture_id=2)
"""

import logging
import threading
from typing import Any, Callable, Dict, Hashable, Optional, Tuple

logger = logging.getLogger(__name__)

PoolKey = Tuple[Hashable, Optional[int], Optional[int]]


class PoolCache:
    """Thread-safe, lazily populated pool cache."""

    def __init__(self):
        self._entries: Dict[PoolKey, Tuple[Any, ...]] = {}
        self._loading: Dict[PoolKey, threading.Lock] = {}
        self._lock = threading.Lock()
        self._generation = 0
        self.hits = 0
        self.misses = 0

    def get(self, key: PoolKey) -> Optional[Tuple[Any, ...]]:
        with self._lock:
            return self._entries.get(key)

    def _lookup(self, key: PoolKey) -> Optional[Tuple[Any, ...]]:
        with self._lock:
            pool = self._entries.get(key)
            if pool is not None:
                self.hits += 1
            return pool

    def get_or_load(self, key: PoolKey, loader: Callable[[], Tuple[Any, ...]]) -> Tuple[Any, ...]:
        """
        Return the cached pool for key, loading it on a miss.

        Concurrent misses on one key wait on that key's load lock, so the
        backing store is hit once. The shared lock only guards the entry
        map: hits never wait behind a load, and a loader may read other
        cached pools. A load overtaken by invalidate() is returned but not
        cached. Loader errors propagate and nothing is cached.
        """
        pool = self._lookup(key)
        if pool is not None:
            return pool
        with self._lock:
            key_lock = self._loading.setdefault(key, threading.Lock())

        with key_lock:
            pool = self._lookup(key)
            if pool is not None:
                return pool
            with self._lock:
                self.misses += 1
                generation = self._generation
            pool = tuple(loader())
            with self._lock:
                if generation == self._generation:
                    self._entries[key] = pool
                self._loading.pop(key, None)
            return pool

    def invalidate(self, kind: Hashable, culture_id: Optional[int] = None,
                   categorie_id: Optional[int] = None) -> int:
        """
        Drop cached pools of a kind.

        A None culture_id/categorie_id matches every cached value for that
        part of the key. Wildcard records appear in every scoped pool, so a
        change to one should be invalidated without a scope.

        Returns:
            Number of entries dropped
        """
        with self._lock:
            stale = [
                key for key in self._entries
                if key[0] == kind
                and (culture_id is None or key[1] == culture_id)
                and (categorie_id is None or key[2] == categorie_id)
            ]
            for key in stale:
                del self._entries[key]
            self._generation += 1
        if stale:
            logger.debug("Invalidated %d cached pool(s) for %s", len(stale), kind)
        return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._generation += 1

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
