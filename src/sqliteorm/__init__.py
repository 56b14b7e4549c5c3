"""
Minimal object-relational mapping over SQLite.

Data classes map to tables, one table per entity type:

- DatabaseService: per-call CRUD over named database files
- Table: CRUD gateway bound to one open connection
- QueryBuilder: fluent where / order_by / limit reads

The module functions below are facades over DatabaseService, in the same
spirit as `service.read(Person, 'main')`.
"""
__version__ = '0.1.0'

from typing import Any

from sqliteorm.codec import materialize, normalize_column, normalize_for_write
from sqliteorm.connection import ConnectionManager
from sqliteorm.exceptions import ConnectionError, ConversionError, MappingError
from sqliteorm.exceptions import IntegrityError, NotFoundError, OperationalError
from sqliteorm.exceptions import OrmError, ProgrammingError, SchemaError
from sqliteorm.gateway import Table
from sqliteorm.metadata import ColumnDescriptor, EntityMapping, Role, SemanticType
from sqliteorm.metadata import clear_mappings, column, get_mapping, register, table
from sqliteorm.options import OrmOptions
from sqliteorm.query import QueryBuilder
from sqliteorm.service import DatabaseService, PathProvider, StaticPathProvider
from sqliteorm.service import connect
from sqliteorm.transaction import Transaction as transaction


def read(service: DatabaseService, entity_type: type, target: str) -> list[Any]:
    """Read every row of an entity's table.
    """
    return service.read(entity_type, target)


def insert(service: DatabaseService, item: Any, target: str) -> int:
    """Insert one entity or a list of entities.
    """
    return service.insert(item, target)


def update(service: DatabaseService, item: Any, target: str) -> int:
    """Update one entity or a list of entities by primary key.
    """
    return service.update(item, target)


def delete(service: DatabaseService, item: Any, target: str) -> int:
    """Delete one entity by primary key.
    """
    return service.delete(item, target)


def drop_table(service: DatabaseService, entity_type: type, target: str) -> None:
    """Drop an entity's table.
    """
    service.drop_table(entity_type, target)


__all__ = [
    'connect',
    'DatabaseService',
    'PathProvider',
    'StaticPathProvider',
    'OrmOptions',
    'ConnectionManager',
    'Table',
    'QueryBuilder',
    'transaction',
    'read',
    'insert',
    'update',
    'delete',
    'drop_table',
    'column',
    'table',
    'register',
    'get_mapping',
    'clear_mappings',
    'Role',
    'SemanticType',
    'ColumnDescriptor',
    'EntityMapping',
    'normalize_for_write',
    'normalize_column',
    'materialize',
    'OrmError',
    'NotFoundError',
    'ConnectionError',
    'SchemaError',
    'MappingError',
    'ConversionError',
    'IntegrityError',
    'OperationalError',
    'ProgrammingError',
]
