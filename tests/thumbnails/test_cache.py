"""Tests for thumbnail cache."""

from __future__ import annotations

import threading

import pytest

from termthumbs.thumbnails import (
    ClearAllPolicy,
    LFUPolicy,
    LRUPolicy,
    ThumbnailCache,
    build_policy,
)


class TestThumbnailCache:
    """Tests for ThumbnailCache class."""

    @pytest.fixture
    def cache(self) -> ThumbnailCache:
        """Create a small cache for testing."""
        return ThumbnailCache(max_size=3)

    def test_set_and_get(self, cache: ThumbnailCache) -> None:
        """Test storing and retrieving a thumbnail."""
        cache.set("a.png", "rendered-a")
        assert cache.get("a.png") == "rendered-a"
        assert cache.get("b.png") is None

    def test_overwrite(self, cache: ThumbnailCache) -> None:
        """Test setting an existing key replaces the value."""
        cache.set("a.png", "old")
        cache.set("a.png", "new")
        assert cache.get("a.png") == "new"
        assert cache.size() == 1

    def test_remove(self, cache: ThumbnailCache) -> None:
        """Test removing a single entry."""
        cache.set("a.png", "x")
        assert cache.remove("a.png") is True
        assert cache.remove("a.png") is False
        assert "a.png" not in cache

    def test_clear(self, cache: ThumbnailCache) -> None:
        """Test clearing all entries."""
        cache.set("a.png", "x")
        cache.set("b.png", "y")
        assert cache.clear() == 2
        assert len(cache) == 0

    def test_peek_does_not_count(self, cache: ThumbnailCache) -> None:
        """Test peek leaves statistics alone."""
        cache.set("a.png", "x")
        assert cache.peek("a.png") == "x"
        assert cache.peek("b.png") is None

        stats = cache.stats
        assert stats.hits == 0
        assert stats.misses == 0

    def test_stats(self, cache: ThumbnailCache) -> None:
        """Test hit and miss counting."""
        cache.set("a.png", "x")
        cache.get("a.png")
        cache.get("a.png")
        cache.get("missing.png")

        stats = cache.stats
        assert stats.hits == 2
        assert stats.misses == 1
        assert stats.size == 1
        assert stats.max_size == 3
        assert stats.policy == "clear"

    def test_invalid_size(self) -> None:
        """Test a cache must hold at least one entry."""
        with pytest.raises(ValueError):
            ThumbnailCache(max_size=0)

    def test_concurrent_access(self) -> None:
        """Test many threads writing and reading never exceed the bound."""
        cache = ThumbnailCache(max_size=10, policy=LRUPolicy())
        errors: list[Exception] = []

        def worker(offset: int) -> None:
            try:
                for i in range(200):
                    key = f"{offset}-{i % 15}"
                    cache.set(key, key)
                    value = cache.get(key)
                    assert value in (None, key)
                    assert cache.size() <= 10
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert cache.size() <= 10


class TestClearAllPolicy:
    """Tests for the default wholesale eviction."""

    def test_overflow_clears_everything(self) -> None:
        """Test inserting past capacity leaves only the new entry."""
        cache = ThumbnailCache(max_size=3)
        for name in ("a", "b", "c"):
            cache.set(name, name)
        assert cache.size() == 3

        cache.set("d", "d")
        assert cache.size() == 1
        assert cache.get("d") == "d"
        assert cache.get("a") is None
        assert cache.stats.evictions == 3

    def test_overwrite_at_capacity_keeps_entries(self) -> None:
        """Test updating an existing key never evicts."""
        cache = ThumbnailCache(max_size=2)
        cache.set("a", "1")
        cache.set("b", "2")
        cache.set("a", "3")
        assert cache.size() == 2
        assert cache.stats.evictions == 0

    def test_is_default(self) -> None:
        """Test ThumbnailCache uses clear-all when no policy is given."""
        assert isinstance(ThumbnailCache().policy, ClearAllPolicy)


class TestLRUPolicy:
    """Tests for least recently used eviction."""

    def test_evicts_least_recent(self) -> None:
        """Test a read protects an entry from eviction."""
        cache = ThumbnailCache(max_size=3, policy=LRUPolicy())
        for name in ("a", "b", "c"):
            cache.set(name, name)
        cache.get("a")

        cache.set("d", "d")
        assert "a" in cache
        assert "b" not in cache
        assert cache.size() == 3
        assert cache.stats.evictions == 1


class TestLFUPolicy:
    """Tests for least frequently used eviction."""

    def test_evicts_least_frequent(self) -> None:
        """Test the entry with the fewest reads goes first."""
        cache = ThumbnailCache(max_size=3, policy=LFUPolicy())
        for name in ("a", "b", "c"):
            cache.set(name, name)
        cache.get("a")
        cache.get("a")
        cache.get("c")

        cache.set("d", "d")
        assert "b" not in cache
        assert "a" in cache
        assert "c" in cache
        assert "d" in cache

    def test_ties_evict_oldest(self) -> None:
        """Test equal counts fall back to insertion order."""
        cache = ThumbnailCache(max_size=2, policy=LFUPolicy())
        cache.set("a", "a")
        cache.set("b", "b")
        cache.set("c", "c")
        assert "a" not in cache
        assert "b" in cache

    def test_counts_reset_on_clear(self) -> None:
        """Test clearing forgets access counts."""
        policy = LFUPolicy()
        cache = ThumbnailCache(max_size=2, policy=policy)
        cache.set("a", "a")
        for _ in range(5):
            cache.get("a")
        cache.clear()

        cache.set("b", "b")
        cache.set("a", "a")
        cache.set("c", "c")
        assert "b" not in cache
        assert "a" in cache


class TestBuildPolicy:
    """Tests for policy lookup by name."""

    @pytest.mark.parametrize(
        "name,policy_type",
        [("clear", ClearAllPolicy), ("LRU", LRUPolicy), ("lfu", LFUPolicy)],
    )
    def test_known(self, name: str, policy_type: type) -> None:
        """Test names map to policies."""
        assert isinstance(build_policy(name), policy_type)

    def test_unknown(self) -> None:
        """Test unknown names raise."""
        with pytest.raises(ValueError):
            build_policy("fifo")
