import cachetools
from sqliteorm import clear_mappings, get_mapping
from sqliteorm.cache import MAPPING_CACHE_SIZE, Cache, get_mapping_cache

from tests.fixtures.models import Sample


def test_singleton():
    assert Cache.get_instance() is Cache.get_instance()


def test_named_caches():
    cache = Cache.get_instance()
    plain = cache.get_cache('plain', maxsize=4)
    assert isinstance(plain, cachetools.LRUCache)
    assert cache.get_cache('plain', maxsize=4) is plain


def test_mapping_cache_is_bounded():
    assert get_mapping_cache().maxsize == MAPPING_CACHE_SIZE


def test_clear_mappings():
    get_mapping(Sample)
    assert Sample in get_mapping_cache()
    clear_mappings()
    assert Sample not in get_mapping_cache()
