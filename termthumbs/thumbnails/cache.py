"""In-memory cache of rendered thumbnails.

Features:
- Thread-safe with a shared read / exclusive write lock
- Pluggable eviction: clear-all on overflow (default), LRU or LFU
- Hit, miss and eviction statistics
"""

from __future__ import annotations

import logging
import threading
from collections import Counter, OrderedDict
from typing import Callable, Protocol

from pydantic import BaseModel

from termthumbs.thumbnails.locks import ReadWriteLock

logger = logging.getLogger(__name__)


class CacheStats(BaseModel):
    """Statistics for the thumbnail cache."""

    hits: int
    misses: int
    evictions: int
    size: int
    max_size: int
    policy: str


class EvictionPolicy(Protocol):
    """Decides which entries to drop when the cache is full.

    Hooks are always called with the cache's exclusive lock held.
    """

    name: str
    # Whether on_access must run, which makes reads take the exclusive lock
    tracks_access: bool

    def on_access(self, entries: OrderedDict[str, str], key: str) -> None: ...

    def on_insert(self, entries: OrderedDict[str, str], key: str) -> None: ...

    def on_remove(self, key: str) -> None: ...

    def on_clear(self) -> None: ...

    def make_room(self, entries: OrderedDict[str, str], capacity: int) -> int:
        """Evict until a new key fits. Returns the number of entries dropped."""
        ...


class ClearAllPolicy:
    """Drops every entry once the cache reaches capacity.

    No recency bookkeeping at all, at the cost of losing the whole working
    set on overflow.
    """

    name = "clear"
    tracks_access = False

    def on_access(self, entries: OrderedDict[str, str], key: str) -> None:
        pass

    def on_insert(self, entries: OrderedDict[str, str], key: str) -> None:
        pass

    def on_remove(self, key: str) -> None:
        pass

    def on_clear(self) -> None:
        pass

    def make_room(self, entries: OrderedDict[str, str], capacity: int) -> int:
        if len(entries) < capacity:
            return 0
        count = len(entries)
        entries.clear()
        return count


class LRUPolicy:
    """Drops the least recently used entry."""

    name = "lru"
    tracks_access = True

    def on_access(self, entries: OrderedDict[str, str], key: str) -> None:
        entries.move_to_end(key)

    def on_insert(self, entries: OrderedDict[str, str], key: str) -> None:
        entries.move_to_end(key)

    def on_remove(self, key: str) -> None:
        pass

    def on_clear(self) -> None:
        pass

    def make_room(self, entries: OrderedDict[str, str], capacity: int) -> int:
        evicted = 0
        while entries and len(entries) >= capacity:
            entries.popitem(last=False)
            evicted += 1
        return evicted


class LFUPolicy:
    """Drops the least frequently used entry, oldest first on ties."""

    name = "lfu"
    tracks_access = True

    def __init__(self) -> None:
        self._counts: Counter[str] = Counter()

    def on_access(self, entries: OrderedDict[str, str], key: str) -> None:
        self._counts[key] += 1

    def on_insert(self, entries: OrderedDict[str, str], key: str) -> None:
        self._counts[key] += 1

    def on_remove(self, key: str) -> None:
        self._counts.pop(key, None)

    def on_clear(self) -> None:
        self._counts.clear()

    def make_room(self, entries: OrderedDict[str, str], capacity: int) -> int:
        evicted = 0
        while entries and len(entries) >= capacity:
            # min() keeps the first of equal counts, which is the oldest key
            victim = min(entries, key=lambda k: self._counts[k])
            del entries[victim]
            self._counts.pop(victim, None)
            evicted += 1
        return evicted


POLICIES: dict[str, Callable[[], EvictionPolicy]] = {
    ClearAllPolicy.name: ClearAllPolicy,
    LRUPolicy.name: LRUPolicy,
    LFUPolicy.name: LFUPolicy,
}


def build_policy(name: str) -> EvictionPolicy:
    """Create an eviction policy by name ("clear", "lru" or "lfu")."""
    try:
        return POLICIES[name.lower()]()
    except KeyError:
        raise ValueError(f"Unknown eviction policy: {name!r}") from None


class ThumbnailCache:
    """Bounded mapping from source path to rendered thumbnail string."""

    def __init__(self, max_size: int = 100, policy: EvictionPolicy | None = None) -> None:
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self._entries: OrderedDict[str, str] = OrderedDict()
        self._max_size = max_size
        self._policy = policy or ClearAllPolicy()
        self._lock = ReadWriteLock()
        self._stats = {"hits": 0, "misses": 0, "evictions": 0}
        self._stats_lock = threading.Lock()

    @property
    def max_size(self) -> int:
        return self._max_size

    @property
    def policy(self) -> EvictionPolicy:
        return self._policy

    def get(self, key: str) -> str | None:
        """Get a cached thumbnail, or None on a miss."""
        if self._policy.tracks_access:
            with self._lock.write():
                value = self._entries.get(key)
                if value is not None:
                    self._policy.on_access(self._entries, key)
        else:
            with self._lock.read():
                value = self._entries.get(key)

        self._count("misses" if value is None else "hits")
        return value

    def peek(self, key: str) -> str | None:
        """Look up an entry without touching statistics or eviction order."""
        with self._lock.read():
            return self._entries.get(key)

    def set(self, key: str, value: str) -> None:
        """Store a thumbnail, evicting according to the policy when full."""
        with self._lock.write():
            if key not in self._entries:
                evicted = self._policy.make_room(self._entries, self._max_size)
                if evicted:
                    logger.debug(
                        f"Evicted {evicted} thumbnail(s) with {self._policy.name} policy"
                    )
                    self._count("evictions", evicted)
            self._entries[key] = value
            self._policy.on_insert(self._entries, key)

    def remove(self, key: str) -> bool:
        """Remove a single entry. Returns True if it was present."""
        with self._lock.write():
            if key not in self._entries:
                return False
            del self._entries[key]
            self._policy.on_remove(key)
            return True

    def clear(self) -> int:
        """Remove all entries. Returns count removed."""
        with self._lock.write():
            count = len(self._entries)
            self._entries.clear()
            self._policy.on_clear()
        if count:
            logger.debug(f"Cleared {count} cached thumbnail(s)")
        return count

    def size(self) -> int:
        """Number of cached thumbnails."""
        with self._lock.read():
            return len(self._entries)

    def __len__(self) -> int:
        return self.size()

    def __contains__(self, key: object) -> bool:
        with self._lock.read():
            return key in self._entries

    @property
    def stats(self) -> CacheStats:
        """Get cache statistics."""
        with self._stats_lock:
            counters = dict(self._stats)
        return CacheStats(
            **counters,
            size=self.size(),
            max_size=self._max_size,
            policy=self._policy.name,
        )

    def _count(self, name: str, amount: int = 1) -> None:
        with self._stats_lock:
            self._stats[name] += amount
