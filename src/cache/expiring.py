"""Bounded in-process cache with age-based expiry.

Entries are kept in an OrderedDict ordered by ``stored_at``: every write
moves its key to the end, so the oldest entry is always first. That keeps
capacity eviction O(1) and lets the periodic sweep stop at the first
entry that is still fresh.

All state sits behind one lock. Critical sections are O(1) apart from
the sweep, which is O(number of expired entries); with a capacity in
the low hundreds contention is negligible.
"""

import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TTL_SECONDS = 300.0
DEFAULT_MAX_ENTRIES = 100
DEFAULT_SWEEP_INTERVAL_SECONDS = 300.0


class CacheDestroyedError(RuntimeError):
    """Raised when a destroyed cache is used."""


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """Cached value with the clock reading at which it was stored."""

    key: str
    value: T
    stored_at: float


class ExpiringCache(Generic[T]):
    """Key/value cache with lazy expiry, a hard capacity, and a sweeper.

    Args:
        max_entries: Hard ceiling on the number of entries.
        default_ttl: Age in seconds past which entries are stale.
        sweep_interval: Seconds between background sweeps.
        clock: Monotonic time source, injectable for tests.
        start_sweeper: Start the background sweep thread immediately.
    """

    def __init__(
        self,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        default_ttl: float = DEFAULT_TTL_SECONDS,
        sweep_interval: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        start_sweeper: bool = True,
    ):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        if default_ttl <= 0 or sweep_interval <= 0:
            raise ValueError("default_ttl and sweep_interval must be positive")

        self.max_entries = max_entries
        self.default_ttl = default_ttl
        self.sweep_interval = sweep_interval
        self._clock = clock
        self._entries: "OrderedDict[str, CacheEntry[T]]" = OrderedDict()
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._destroyed = False
        self._sweeper: Optional[threading.Thread] = None
        self._evictions = 0
        self._expirations = 0

        if start_sweeper:
            self._start_sweeper()

    # ── Sweeper lifecycle ─────────────────────────────────────────────

    def _start_sweeper(self) -> None:
        self._sweeper = threading.Thread(
            target=self._sweep_loop, daemon=True, name="expiring-cache-sweeper"
        )
        self._sweeper.start()
        logger.debug("Cache sweeper started (interval=%ss)", self.sweep_interval)

    def _sweep_loop(self) -> None:
        while not self._stop.wait(self.sweep_interval):
            try:
                self.sweep()
            except CacheDestroyedError:
                return
            except Exception:
                logger.exception("Cache sweep failed")

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    def _check_alive(self) -> None:
        if self._destroyed:
            raise CacheDestroyedError("Cache has been destroyed")

    def destroy(self) -> None:
        """Stop the sweeper and drop all entries. The cache cannot be reused."""
        with self._lock:
            if self._destroyed:
                return
            self._destroyed = True
            self._entries.clear()
        self._stop.set()
        if self._sweeper is not None and self._sweeper is not threading.current_thread():
            self._sweeper.join(timeout=5)
        self._sweeper = None
        logger.info("Cache destroyed")

    # ── Point operations ──────────────────────────────────────────────

    def get(self, key: str, max_age: Optional[float] = None) -> Optional[T]:
        """Return the value for ``key`` if it is at most ``max_age`` seconds old.

        A stale entry is removed on the spot and None is returned.
        """
        entry = self.get_entry(key, max_age)
        return entry.value if entry is not None else None

    def get_entry(self, key: str, max_age: Optional[float] = None) -> Optional[CacheEntry[T]]:
        """Like :meth:`get` but returns the immutable entry with its timestamp."""
        max_age = self.default_ttl if max_age is None else max_age
        with self._lock:
            self._check_alive()
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() - entry.stored_at > max_age:
                del self._entries[key]
                self._expirations += 1
                return None
            return entry

    def set(self, key: str, value: T) -> None:
        """Store ``value`` under ``key``, replacing any previous entry.

        Inserting a new key into a full cache first evicts the oldest entry.
        """
        with self._lock:
            self._check_alive()
            if key in self._entries:
                del self._entries[key]
            elif len(self._entries) >= self.max_entries:
                oldest_key, _ = self._entries.popitem(last=False)
                self._evictions += 1
                logger.debug("Cache full, evicted %s", oldest_key)
            self._entries[key] = CacheEntry(key=key, value=value, stored_at=self._clock())

    def delete(self, key: str) -> bool:
        """Remove ``key``. Returns True if an entry was removed."""
        with self._lock:
            self._check_alive()
            return self._entries.pop(key, None) is not None

    def clear(self) -> int:
        """Remove every entry. Returns the number removed."""
        with self._lock:
            self._check_alive()
            count = len(self._entries)
            self._entries.clear()
            return count

    # ── Maintenance ───────────────────────────────────────────────────

    def sweep(self) -> int:
        """Drop entries older than the default TTL, then trim to capacity.

        Returns:
            Number of entries removed.
        """
        removed = 0
        with self._lock:
            self._check_alive()
            now = self._clock()
            while self._entries:
                oldest = next(iter(self._entries.values()))
                if now - oldest.stored_at <= self.default_ttl:
                    break
                self._entries.popitem(last=False)
                self._expirations += 1
                removed += 1

            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)
                self._evictions += 1
                removed += 1

        if removed:
            logger.debug("Cache sweep removed %d entries", removed)
        return removed

    def stats(self) -> Dict[str, Any]:
        """Introspection snapshot. Keys are partition keys, never secrets."""
        with self._lock:
            self._check_alive()
            return {
                "size": len(self._entries),
                "capacity": self.max_entries,
                "keys": list(self._entries.keys()),
                "evictions": self._evictions,
                "expirations": self._expirations,
                "ttl_seconds": self.default_ttl,
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries
