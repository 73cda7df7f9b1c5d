"""Tests for the in-process expiring cache."""

import threading

import pytest

from src.cache import CacheDestroyedError, ExpiringCache, repositories_key
from src.secrets_vault.identity import derive_partition_key

from conftest import FakeClock, VALID_TOKEN


class TestCacheKeys:

    def test_repositories_key(self):
        assert repositories_key("abc123") == "repositories:abc123"

    def test_key_never_contains_secret(self):
        key = repositories_key(derive_partition_key(VALID_TOKEN))
        assert VALID_TOKEN not in key
        assert key.startswith("repositories:")
        assert len(key) == len("repositories:") + 16


class TestExpiringCache:
    """Tests for lazy expiry, capacity eviction, and sweeping."""

    def setup_method(self):
        self.clock = FakeClock()
        self.cache = ExpiringCache(
            max_entries=3, default_ttl=300, sweep_interval=60,
            clock=self.clock, start_sweeper=False,
        )

    def teardown_method(self):
        self.cache.destroy()

    def test_set_and_get(self):
        self.cache.set("a", [1, 2, 3])
        assert self.cache.get("a") == [1, 2, 3]
        assert "a" in self.cache
        assert len(self.cache) == 1

    def test_missing_key(self):
        assert self.cache.get("nope") is None
        assert self.cache.get_entry("nope") is None

    def test_entry_records_stored_at(self):
        self.cache.set("a", "value")
        entry = self.cache.get_entry("a")
        assert entry.key == "a"
        assert entry.value == "value"
        assert entry.stored_at == self.clock.now

    def test_fresh_at_exact_ttl(self):
        self.cache.set("a", 1)
        self.clock.advance(300)
        assert self.cache.get("a") == 1

    def test_expired_after_ttl_and_removed(self):
        self.cache.set("a", 1)
        self.clock.advance(301)
        assert self.cache.get("a") is None
        assert "a" not in self.cache
        assert self.cache.stats()["expirations"] == 1

    def test_caller_supplied_max_age(self):
        self.cache.set("a", 1)
        self.clock.advance(10)
        assert self.cache.get("a", max_age=60) == 1
        assert self.cache.get("a", max_age=5) is None

    def test_overwrite_refreshes_timestamp(self):
        self.cache.set("a", 1)
        self.clock.advance(200)
        self.cache.set("a", 2)
        self.clock.advance(200)
        assert self.cache.get("a") == 2
        assert len(self.cache) == 1

    def test_capacity_evicts_oldest(self):
        for i, key in enumerate(["a", "b", "c"]):
            self.cache.set(key, i)
            self.clock.advance(1)

        self.cache.set("d", 3)

        assert len(self.cache) == 3
        assert self.cache.get("a") is None
        assert self.cache.get("b") == 1
        assert self.cache.get("d") == 3
        assert self.cache.stats()["evictions"] == 1

    def test_overwrite_at_capacity_does_not_evict(self):
        for key in ("a", "b", "c"):
            self.cache.set(key, key)
        self.cache.set("a", "again")
        assert len(self.cache) == 3
        assert self.cache.stats()["evictions"] == 0

    def test_overwritten_key_becomes_newest(self):
        for key in ("a", "b", "c"):
            self.cache.set(key, key)
            self.clock.advance(1)
        self.cache.set("a", "again")
        self.cache.set("d", "d")
        assert self.cache.get("a") == "again"
        assert self.cache.get("b") is None

    def test_size_never_exceeds_capacity(self):
        for i in range(50):
            self.cache.set(f"k{i}", i)
            assert len(self.cache) <= 3

    def test_delete(self):
        self.cache.set("a", 1)
        assert self.cache.delete("a") is True
        assert self.cache.delete("a") is False
        assert self.cache.get("a") is None

    def test_clear(self):
        self.cache.set("a", 1)
        self.cache.set("b", 2)
        assert self.cache.clear() == 2
        assert len(self.cache) == 0

    def test_sweep_removes_only_expired(self):
        self.cache.set("old", 1)
        self.clock.advance(200)
        self.cache.set("new", 2)
        self.clock.advance(150)

        assert self.cache.sweep() == 1
        assert "old" not in self.cache
        assert self.cache.get("new") == 2

    def test_sweep_on_fresh_cache_is_noop(self):
        self.cache.set("a", 1)
        assert self.cache.sweep() == 0

    def test_stats_report_keys(self):
        self.cache.set("repositories:abc", [])
        stats = self.cache.stats()
        assert stats["size"] == 1
        assert stats["capacity"] == 3
        assert stats["keys"] == ["repositories:abc"]
        assert stats["ttl_seconds"] == 300

    def test_invalid_construction(self):
        with pytest.raises(ValueError):
            ExpiringCache(max_entries=0, start_sweeper=False)
        with pytest.raises(ValueError):
            ExpiringCache(default_ttl=0, start_sweeper=False)


class TestCacheLifecycle:
    """Tests for destroy() and the background sweeper."""

    def test_destroy_is_terminal(self):
        cache = ExpiringCache(start_sweeper=False)
        cache.set("a", 1)
        cache.destroy()

        assert cache.destroyed is True
        assert len(cache) == 0
        for call in (
            lambda: cache.get("a"),
            lambda: cache.set("a", 1),
            lambda: cache.delete("a"),
            lambda: cache.clear(),
            lambda: cache.sweep(),
            lambda: cache.stats(),
        ):
            with pytest.raises(CacheDestroyedError):
                call()

    def test_destroy_twice_is_safe(self):
        cache = ExpiringCache(start_sweeper=False)
        cache.destroy()
        cache.destroy()
        assert cache.destroyed is True

    def test_destroy_stops_sweeper_thread(self):
        cache = ExpiringCache(sweep_interval=0.01)
        sweeper = cache._sweeper
        assert sweeper is not None and sweeper.is_alive()

        cache.destroy()

        assert not sweeper.is_alive()

    def test_sweeper_expires_entries(self):
        clock = FakeClock()
        cache = ExpiringCache(default_ttl=5, sweep_interval=0.01, clock=clock)
        try:
            cache.set("a", 1)
            clock.advance(10)
            for _ in range(200):
                if "a" not in cache:
                    break
                threading.Event().wait(0.01)
            assert "a" not in cache
        finally:
            cache.destroy()


class TestCacheConcurrency:

    def test_concurrent_writers_respect_capacity(self):
        cache = ExpiringCache(max_entries=20, start_sweeper=False)
        errors = []

        def writer(thread_id: int):
            try:
                for i in range(200):
                    cache.set(f"t{thread_id}-{i}", i)
                    cache.get(f"t{thread_id}-{i // 2}")
                    assert len(cache) <= 20
            except Exception as e:  # pragma: no cover - surfaced below
                errors.append(e)

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert len(cache) == 20
        cache.destroy()
