"""
Cursor wrapper adding SQL logging and call statistics.
"""
import logging
import sqlite3
import time
from collections.abc import Iterator
from functools import wraps
from typing import Any

from sqliteorm.exceptions import ConnectionError

logger = logging.getLogger(__name__)


def dumpsql(func):
    """Decorator for logging SQL queries and parameters."""
    @wraps(func)
    def wrapper(self, operation: str, *args: Any, **kwargs: Any):
        start = time.time()
        logger.debug(f'SQL:\n{operation}\nargs: {args}')
        try:
            return func(self, operation, *args, **kwargs)
        except Exception:
            logger.error(f'Error with query:\nSQL:\n{operation}\nargs: {args}')
            raise
        finally:
            elapsed = time.time() - start
            self.connwrapper.addcall(elapsed)
            logger.debug(f'Query time: {elapsed:.4f}s')
    return wrapper


class Cursor:
    """Thin wrapper over a sqlite3 cursor returning sqlite3.Row rows.
    """

    def __init__(self, cursor: sqlite3.Cursor, connection_wrapper: Any) -> None:
        self.dbapi_cursor = cursor
        self.connwrapper = connection_wrapper

    def __enter__(self) -> 'Cursor':
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None,
                 exc_tb: Any | None) -> None:
        self.close()

    def __iter__(self) -> Iterator[sqlite3.Row]:
        """Return iterator for cursor results."""
        return IterChunk(self.dbapi_cursor)

    @property
    def lastrowid(self) -> int | None:
        """Rowid of the last inserted row."""
        return self.dbapi_cursor.lastrowid

    def close(self) -> None:
        """Close cursor."""
        self.dbapi_cursor.close()

    def fetchone(self) -> sqlite3.Row | None:
        """Fetch next row."""
        return self.dbapi_cursor.fetchone()

    def fetchall(self) -> list[sqlite3.Row]:
        """Fetch all remaining rows."""
        return self.dbapi_cursor.fetchall()

    @dumpsql
    def execute(self, operation: str, params: tuple = ()) -> int:
        """Execute a database operation and return the affected row count."""
        self.dbapi_cursor.execute(operation, params)
        return self.dbapi_cursor.rowcount


def IterChunk(cursor: Any, size: int = 5000) -> Iterator[sqlite3.Row]:
    """Iterate through cursor results in chunks."""
    while True:
        chunked = cursor.fetchmany(size)
        if not chunked:
            break
        yield from chunked


def get_dict_cursor(cn: Any) -> Cursor:
    """Get cursor that returns rows addressable by column name."""
    raw_conn = cn.connection
    if raw_conn is None:
        raise ConnectionError('Connection has been released')
    raw_conn.row_factory = sqlite3.Row
    return Cursor(raw_conn.cursor(), cn)
