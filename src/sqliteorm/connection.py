"""
Connection handling with SQLAlchemy.

This module provides:
1. Engine creation and management through a thread-safe registry
2. The `ConnectionManager` class that opens one SQLite connection on
   construction and releases it on `close()` or context-manager exit

Engines use NullPool: every ConnectionManager gets a fresh DBAPI connection
and closing it really closes the file handle.
"""
import atexit
import logging
import sqlite3
import threading
from collections.abc import Callable
from os import PathLike
from typing import Any, Self

import sqlalchemy as sa
from sqlalchemy.engine import Engine
from sqlalchemy.pool import NullPool
from sqliteorm.cursor import Cursor, get_dict_cursor
from sqliteorm.options import OrmOptions

__all__ = [
    'ConnectionManager',
    'configure_connection',
    'create_url',
    'get_engine',
    'dispose_all_engines',
]

logger = logging.getLogger(__name__)

_engine_registry: dict[tuple, Engine] = {}
_engine_registry_lock = threading.RLock()


def create_url(path: str | PathLike,
               url_creator: Callable[..., sa.URL] = sa.URL.create) -> sa.URL:
    """Build the SQLAlchemy URL for a SQLite file.
    """
    return url_creator(drivername='sqlite', database=str(path))


def get_engine(path: str | PathLike, timeout: float = 5.0, echo: bool = False,
               engine_factory: Callable[..., Engine] = sa.create_engine) -> Engine:
    """Get or create a SQLAlchemy engine for a database file.
    """
    key = (str(path), timeout, echo)

    with _engine_registry_lock:
        if key in _engine_registry:
            logger.debug(f'Using existing engine for {path}')
            return _engine_registry[key]

        engine = engine_factory(
            create_url(path),
            echo=echo,
            poolclass=NullPool,
            connect_args={'timeout': timeout},
        )
        _engine_registry[key] = engine
        logger.debug(f'Created new engine for {path}')

        return engine


def dispose_all_engines() -> None:
    """Dispose all engines in the registry.
    """
    with _engine_registry_lock:
        for engine in _engine_registry.values():
            engine.dispose()
        _engine_registry.clear()
        logger.debug('All database engines disposed')


atexit.register(dispose_all_engines)


def configure_connection(raw_conn: sqlite3.Connection) -> None:
    """Configure a raw sqlite3 connection.

    Rows come back as sqlite3.Row and statements auto-commit unless a
    Transaction is active.
    """
    raw_conn.row_factory = sqlite3.Row
    raw_conn.isolation_level = None


class ConnectionManager:
    """Owns one open SQLite connection.

    The connection is opened eagerly and released exactly once. After release
    `connection` is None and every consumer must fail instead of silently
    reconnecting.

    Examples
        with ConnectionManager('data/app.db') as cn:
            Table(Person, cn).create_table()
    """

    def __init__(self, path: str | PathLike, options: OrmOptions | None = None) -> None:
        self.path = str(path)
        timeout = options.timeout if options else 5.0
        echo = options.echo if options else False
        self.engine = get_engine(self.path, timeout=timeout, echo=echo)
        self.sa_connection = self.engine.connect()
        try:
            self.connection: sqlite3.Connection | None = self.sa_connection.connection.driver_connection
            configure_connection(self.connection)
        except Exception:
            self.sa_connection.close()
            raise
        self.calls = 0
        self.time = 0
        self.in_transaction = False
        logger.debug(f'Opened connection to {self.path}')

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None,
                 exc_tb: Any | None) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self.connection is None

    def cursor(self) -> Cursor:
        """Get a wrapped cursor for this connection.

        Raises ConnectionError once the connection has been released.
        """
        return get_dict_cursor(self)

    def addcall(self, elapsed: float) -> None:
        """Track execution statistics
        """
        self.time += elapsed
        self.calls += 1

    def close(self) -> None:
        """Release the connection; safe to call more than once.
        """
        if self.sa_connection is None:
            return
        try:
            if self.connection is not None and self.connection.in_transaction:
                logger.warning(f'Rolling back open transaction on {self.path}')
                self.connection.rollback()
        finally:
            self.sa_connection.close()
            self.sa_connection = None
            self.connection = None
            self.in_transaction = False
            logger.debug(f'Connection closed: {self.calls} queries in {self.time:.2f}s '
                         f'(avg: {self.time/max(1,self.calls):.3f}s per query)')
