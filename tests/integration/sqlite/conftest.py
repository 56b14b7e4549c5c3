"""
Fixtures for SQLite-specific integration tests.
"""
import pytest
from sqliteorm import ConnectionManager


@pytest.fixture
def sqlite_file_db(tmp_path):
    """Path of a file-based SQLite database for tests that reopen connections."""
    path = tmp_path / 'test_sqlite.db'
    path.touch()
    return path


@pytest.fixture
def sqlite_file_conn(sqlite_file_db):
    """File-based SQLite connection with a small test table."""
    cn = ConnectionManager(sqlite_file_db)
    cn.connection.execute("""
    CREATE TABLE test_table (
        id INTEGER PRIMARY KEY,
        name TEXT UNIQUE,
        value INTEGER
    )
    """)
    cn.connection.execute("""
    INSERT INTO test_table (name, value) VALUES
    ('Alice', 10),
    ('Bob', 20),
    ('Charlie', 30)
    """)

    yield cn

    cn.close()
