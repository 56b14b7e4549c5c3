import pathlib
import site

import pytest
from sqliteorm import clear_mappings
from sqliteorm.cache import Cache

HERE = pathlib.Path(pathlib.Path(__file__).resolve()).parent
site.addsitedir(HERE)


@pytest.fixture(autouse=True)
def clear_caches():
    """Clear all caches and registrations before and after each test to ensure test isolation."""
    clear_mappings()
    Cache.get_instance().clear_all()
    yield
    clear_mappings()
    Cache.get_instance().clear_all()


pytest_plugins = [
    'tests.fixtures.models',
    'tests.fixtures.sqlite',
]
