"""
Parameterized SQL generation for entity CRUD.

Every builder returns a Statement of SQL text and positional parameters.
Parameter values go through `normalize_column`. Table and column names come
from entity metadata and are used verbatim.

WHERE and ORDER BY fragments given to `build_select` are raw SQL supplied by the
caller. They are neither parameterized nor escaped, so they must never carry
untrusted input.
"""
import logging
from collections.abc import Sequence
from typing import Any, NamedTuple

from sqliteorm.codec import normalize_column
from sqliteorm.exceptions import MappingError, SchemaError
from sqliteorm.metadata import ColumnDescriptor, EntityMapping
from sqliteorm.schema import build_drop_table_statement

logger = logging.getLogger(__name__)


class Statement(NamedTuple):
    """SQL text with its ordered parameter bindings."""
    sql: str
    params: tuple = ()


def make_placeholders(count: int) -> str:
    """Positional placeholders for SQLite."""
    return ', '.join(['?'] * count)


def _bind(entity: Any, columns: Sequence[ColumnDescriptor]) -> tuple:
    return tuple(normalize_column(col, getattr(entity, col.name)) for col in columns)


def _require_primary_key(mapping: EntityMapping) -> ColumnDescriptor:
    key = mapping.primary_key
    if key is None:
        raise SchemaError(f'primary key required on {mapping.entity_type.__name__}')
    return key


def build_insert(mapping: EntityMapping, entity: Any) -> Statement:
    """INSERT over all non-ignored, non-autoincrement columns.
    """
    columns = mapping.insert_columns
    if not columns:
        raise MappingError(f'{mapping.entity_type.__name__} has no columns to insert')

    names = ', '.join(col.name for col in columns)
    sql = f'INSERT INTO {mapping.table_name} ({names}) VALUES ({make_placeholders(len(columns))})'
    return Statement(sql, _bind(entity, columns))


def build_update(mapping: EntityMapping, entity: Any) -> Statement:
    """UPDATE every non-key column of the row matched by primary key.
    """
    key = _require_primary_key(mapping)
    columns = mapping.update_columns
    if not columns:
        raise MappingError(f'{mapping.entity_type.__name__} has no columns to update')

    setters = ', '.join(f'{col.name} = ?' for col in columns)
    sql = f'UPDATE {mapping.table_name} SET {setters} WHERE {key.name} = ?'
    return Statement(sql, _bind(entity, columns) + _bind(entity, [key]))


def build_delete(mapping: EntityMapping, entity: Any) -> Statement:
    """DELETE the row matched by primary key.
    """
    key = _require_primary_key(mapping)
    sql = f'DELETE FROM {mapping.table_name} WHERE {key.name} = ?'
    return Statement(sql, _bind(entity, [key]))


def build_select(table_name: str, where: str | None = None, order_by: str | None = None,
                 limit: int | None = None) -> Statement:
    """Generate a SELECT statement.

    Args:
        table_name: Table name
        where: WHERE clause (without 'WHERE' keyword)
        order_by: ORDER BY clause (without 'ORDER BY' keywords)
        limit: LIMIT value

    Returns
        Statement without parameters
    """
    sql = f'SELECT * FROM {table_name}'

    if where:
        sql += f' WHERE {where}'

    if order_by:
        sql += f' ORDER BY {order_by}'

    if limit is not None:
        if limit < 0:
            raise ValueError(f'limit must be non-negative, got {limit}')
        sql += f' LIMIT {int(limit)}'

    return Statement(sql)


def build_drop(table_name: str) -> Statement:
    """DROP the table if it exists."""
    return Statement(build_drop_table_statement(table_name))
