import pytest
from sqliteorm import ConnectionManager, DatabaseService, Table

from tests.fixtures.models import Sample


@pytest.fixture
def memory_cn():
    """Open an in-memory SQLite connection"""
    cn = ConnectionManager(':memory:')
    yield cn
    cn.close()


@pytest.fixture
def sample_table(memory_cn):
    """Samples table created on the in-memory connection"""
    table = Table(Sample, memory_cn)
    table.create_table()
    return table


@pytest.fixture
def seeded_table(sample_table, samples):
    """Samples table holding the six seed rows"""
    sample_table.insert_many(samples)
    return sample_table


@pytest.fixture
def db_path(tmp_path):
    """Path to a database file that does not exist yet"""
    return tmp_path / 'data' / 'test_db.db'


@pytest.fixture
def service(db_path):
    """DatabaseService with one registered file database"""
    return DatabaseService({'test_db': db_path})
