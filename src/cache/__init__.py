"""In-process caching package for RepoDeck."""

from src.cache.expiring import CacheDestroyedError, CacheEntry, ExpiringCache
from src.cache.keys import repositories_key

__all__ = ["CacheDestroyedError", "CacheEntry", "ExpiringCache", "repositories_key"]
