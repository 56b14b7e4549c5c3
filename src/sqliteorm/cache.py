"""
Caching for entity metadata.

Column descriptors are derived once per entity type and kept in a bounded
cachetools cache. Explicit registrations live in `metadata` and are never
evicted.
"""
import threading

import cachetools

MAPPING_CACHE_SIZE = 256


class Cache:
    """Thread-safe singleton holding the ORM's named LRU caches.
    """

    _instance = None
    _lock = threading.RLock()

    def __init__(self) -> None:
        self._caches: dict[str, cachetools.LRUCache] = {}

    @classmethod
    def get_instance(cls) -> 'Cache':
        """Get singleton instance."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    def get_cache(self, name: str, maxsize: int) -> cachetools.LRUCache:
        """Get or create the LRU cache with the given name.
        """
        with self._lock:
            if name not in self._caches:
                self._caches[name] = cachetools.LRUCache(maxsize=maxsize)
            return self._caches[name]

    def clear_all(self) -> None:
        """Clear all managed caches."""
        with self._lock:
            for cache in self._caches.values():
                cache.clear()


def get_mapping_cache() -> cachetools.LRUCache:
    """Get the cache holding derived entity mappings keyed by entity type."""
    return Cache.get_instance().get_cache('entity_mappings', maxsize=MAPPING_CACHE_SIZE)
