"""
Per-entity CRUD gateway bound to one open connection.

Single-item operations run one statement each. Batch operations run every
statement inside one Transaction, so a failure leaves none of the batch
persisted.
"""
import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from sqliteorm.connection import ConnectionManager
from sqliteorm.cursor import Cursor
from sqliteorm.exceptions import ConnectionError
from sqliteorm.metadata import EntityMapping, get_mapping
from sqliteorm.schema import build_create_table_statement
from sqliteorm.statements import Statement, build_delete, build_drop, build_insert
from sqliteorm.statements import build_update
from sqliteorm.transaction import Transaction

if TYPE_CHECKING:
    from sqliteorm.query import QueryBuilder

__all__ = ['Table']

logger = logging.getLogger(__name__)

T = TypeVar('T')


class Table(Generic[T]):
    """CRUD facade for one entity type.

    Holds no state besides the entity mapping and the connection manager.

    Examples
        with ConnectionManager(path) as cn:
            people = Table(Person, cn)
            people.create_table()
            people.insert(Person(Name='Ann'))
            adults = people.query().where('Age >= 18').to_list()
    """

    def __init__(self, entity_type: type[T], cn: ConnectionManager) -> None:
        self.entity_type = entity_type
        self.cn = cn
        self.mapping: EntityMapping = get_mapping(entity_type)

    @property
    def table_name(self) -> str:
        return self.mapping.table_name

    def _check_connection(self) -> None:
        if self.cn is None or self.cn.connection is None:
            raise ConnectionError(f'No open connection for table {self.table_name}')

    def _execute(self, statement: Statement) -> tuple[int, int | None]:
        """Run one statement and return the affected row count and last rowid.
        """
        self._check_connection()
        with self.cn.cursor() as cursor:
            rowcount = cursor.execute(statement.sql, statement.params)
            return rowcount, cursor.lastrowid

    def _assign_key(self, entity: Any, rowid: int | None) -> None:
        """Write a generated key back to an AUTOINCREMENT primary key attribute."""
        key = self.mapping.primary_key
        if key is None or not key.is_autoincrement or rowid is None:
            return
        params = getattr(entity, '__dataclass_params__', None)
        if params is not None and params.frozen:
            return
        setattr(entity, key.name, rowid)

    def select(self, statement: Statement) -> Cursor:
        """Execute a SELECT and return the open cursor.

        The caller owns the cursor and must close it.
        """
        self._check_connection()
        cursor = self.cn.cursor()
        try:
            cursor.execute(statement.sql, statement.params)
        except Exception:
            cursor.close()
            raise
        return cursor

    def create_table(self) -> None:
        """Create the table if it does not exist.
        """
        self._check_connection()
        sql = build_create_table_statement(self.table_name, self.mapping.columns)
        self._execute(Statement(sql))

    def drop_table(self) -> None:
        """Drop the table if it exists.
        """
        self._check_connection()
        self._execute(build_drop(self.table_name))
        logger.debug(f'Dropped table {self.table_name}')

    def insert(self, entity: T) -> int:
        """Insert one entity.
        """
        self._check_connection()
        rowcount, rowid = self._execute(build_insert(self.mapping, entity))
        self._assign_key(entity, rowid)
        return rowcount

    def update(self, entity: T) -> int:
        """Update the row matching the entity's primary key.
        """
        self._check_connection()
        rowcount, _ = self._execute(build_update(self.mapping, entity))
        return rowcount

    def delete(self, entity: T) -> int:
        """Delete the row matching the entity's primary key.
        """
        self._check_connection()
        rowcount, _ = self._execute(build_delete(self.mapping, entity))
        return rowcount

    def insert_many(self, entities: Iterable[T]) -> int:
        """Insert entities in one transaction.
        """
        entities = list(entities)
        if not entities:
            logger.debug(f'Skipping insert of empty batch into {self.table_name}')
            return 0

        self._check_connection()
        total = 0
        generated = []
        with Transaction(self.cn):
            for entity in entities:
                rowcount, rowid = self._execute(build_insert(self.mapping, entity))
                generated.append((entity, rowid))
                total += rowcount
        for entity, rowid in generated:
            self._assign_key(entity, rowid)
        logger.debug(f'Inserted {total} rows into {self.table_name}')
        return total

    def update_many(self, entities: Iterable[T]) -> int:
        """Update entities in one transaction.
        """
        entities = list(entities)
        if not entities:
            logger.debug(f'Skipping update of empty batch in {self.table_name}')
            return 0

        self._check_connection()
        total = 0
        with Transaction(self.cn):
            for entity in entities:
                rowcount, _ = self._execute(build_update(self.mapping, entity))
                total += rowcount
        logger.debug(f'Updated {total} rows in {self.table_name}')
        return total

    def query(self) -> 'QueryBuilder[T]':
        """Start a fluent query on this table."""
        from sqliteorm.query import QueryBuilder
        return QueryBuilder(self)
