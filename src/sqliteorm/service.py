"""
CRUD entry points over named SQLite databases.

Each logical database name resolves to a file through a path provider. Every
call opens its own connection, does its work through a Table and releases
the connection before returning. Batches share one connection and one
transaction.
"""
import logging
from collections.abc import Iterable, Iterator, Mapping
from contextlib import contextmanager
from dataclasses import fields
from os import PathLike
from pathlib import Path
from typing import Any, Protocol, TypeVar

from sqliteorm.connection import ConnectionManager
from sqliteorm.exceptions import NotFoundError, OperationalError
from sqliteorm.exceptions import is_missing_table_error
from sqliteorm.gateway import Table
from sqliteorm.options import OrmOptions
from sqliteorm.query import QueryBuilder

from libb import isiterable, load_options

__all__ = [
    'PathProvider',
    'StaticPathProvider',
    'DatabaseService',
    'connect',
]

logger = logging.getLogger(__name__)

T = TypeVar('T')

MEMORY_DATABASE = ':memory:'


class PathProvider(Protocol):
    """Maps logical database names to SQLite files."""

    @property
    def paths(self) -> Mapping[str, Path]: ...


class StaticPathProvider:
    """PathProvider over a fixed mapping."""

    def __init__(self, paths: Mapping[str, str | PathLike]) -> None:
        self._paths = {str(name): Path(path) for name, path in paths.items()}

    @property
    def paths(self) -> dict[str, Path]:
        return self._paths


class DatabaseService:
    """Read and write entities in named databases.

    Construction creates every registered database file, and its directory,
    when missing.

    Examples
        service = DatabaseService({'main': 'data/main.db'})
        service.insert(Person(Name='Ann'), 'main')
        people = service.read(Person, 'main')
    """

    def __init__(self, path_provider: PathProvider | Mapping[str, str | PathLike],
                 options: OrmOptions | None = None) -> None:
        if isinstance(path_provider, Mapping):
            path_provider = StaticPathProvider(path_provider)
        self.path_provider = path_provider
        self.options = options
        if options is None or options.create_missing:
            self.provision()

    def provision(self) -> None:
        """Create missing directories and database files; idempotent.
        """
        for name, path in self.path_provider.paths.items():
            if str(path) == MEMORY_DATABASE:
                continue
            path = Path(path)
            path.parent.mkdir(parents=True, exist_ok=True)
            if not path.exists():
                path.touch()
                logger.debug(f'Created database file {path} for {name}')

    def get_database_path(self, target: str) -> Path:
        """Resolve a logical database name.

        Raises NotFoundError when the name is not registered.
        """
        paths = self.path_provider.paths
        if target not in paths:
            raise NotFoundError(f'Error finding database {target}')
        return Path(paths[target])

    @contextmanager
    def _table(self, entity_type: type[T], target: str) -> Iterator[Table[T]]:
        with ConnectionManager(self.get_database_path(target), self.options) as cn:
            yield Table(entity_type, cn)

    def read(self, entity_type: type[T], target: str) -> list[T]:
        """Return every row of the entity's table.

        A missing table is created and read again, giving an empty list.
        """
        with self._table(entity_type, target) as table:
            try:
                return table.query().to_list()
            except OperationalError as err:
                if not is_missing_table_error(err):
                    raise
                logger.info(f'Table {table.table_name} missing in {target}, creating it')
                table.create_table()
                return table.query().to_list()

    def insert(self, item: T | Iterable[T], target: str) -> int:
        """Insert one entity, or a list of entities in one transaction.
        """
        if isiterable(item):
            return self.insert_many(item, target)
        with self._table(type(item), target) as table:
            table.create_table()
            return table.insert(item)

    def insert_many(self, items: Iterable[T], target: str) -> int:
        """Insert entities in one transaction.
        """
        items = list(items)
        if not items:
            logger.debug('Skipping insert of empty batch')
            return 0
        with self._table(type(items[0]), target) as table:
            table.create_table()
            return table.insert_many(items)

    def update(self, item: T | Iterable[T], target: str) -> int:
        """Update one entity, or a list of entities in one transaction.
        """
        if isiterable(item):
            return self.update_many(item, target)
        with self._table(type(item), target) as table:
            table.create_table()
            return table.update(item)

    def update_many(self, items: Iterable[T], target: str) -> int:
        """Update entities in one transaction.
        """
        items = list(items)
        if not items:
            logger.debug('Skipping update of empty batch')
            return 0
        with self._table(type(items[0]), target) as table:
            table.create_table()
            return table.update_many(items)

    def delete(self, item: T, target: str) -> int:
        """Delete the row matching the entity's primary key.
        """
        with self._table(type(item), target) as table:
            table.create_table()
            return table.delete(item)

    def drop_table(self, entity_type: type[T], target: str) -> None:
        """Drop the entity's table. Destructive and not reversible.
        """
        with self._table(entity_type, target) as table:
            table.drop_table()

    @contextmanager
    def query(self, entity_type: type[T], target: str) -> Iterator[QueryBuilder[T]]:
        """Open a connection and yield a QueryBuilder for ad-hoc reads.

        Examples
            with service.query(Person, 'main') as q:
                oldest = q.order_by('Age', ascending=False).first_or_default()
        """
        with self._table(entity_type, target) as table:
            table.create_table()
            yield table.query()


@load_options(cls=OrmOptions)
def connect(options: OrmOptions | dict[str, Any] | str,
            config: Any | None = None, **kw: Any) -> DatabaseService:
    """Build a DatabaseService from options

    Args:
        options: Can be:
                - OrmOptions object
                - String path to configuration
                - Dictionary of options
                - Options specified as keyword arguments
        config: Configuration object (for loading from config files)
        **kw: Additional keyword arguments to override options

    Returns
        DatabaseService over options.paths
    """
    if isinstance(options, OrmOptions):
        for field in fields(options):
            kw.pop(field.name, None)
    else:
        options_func = load_options(cls=OrmOptions)(lambda o, c: o)
        options = options_func(options, config, **kw)

    return DatabaseService(StaticPathProvider(options.paths), options)
