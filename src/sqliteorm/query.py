"""
Fluent query construction and entity materialization.

A QueryBuilder accumulates a filter, an ordering and a row limit, lowers
them to a SELECT and turns each result row into a new entity:

    people = Table(Person, cn).query().where('Age > 30').order_by('Name').to_list()

`where()` and `order_by()` take raw SQL fragments written by the caller. They
are inserted verbatim and must not carry untrusted input.
"""
import dataclasses
import logging
from enum import Enum
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from sqliteorm.codec import materialize_row
from sqliteorm.metadata import ColumnDescriptor, EntityMapping
from sqliteorm.statements import Statement, build_select

if TYPE_CHECKING:
    from sqliteorm.gateway import Table

__all__ = ['QueryBuilder', 'build_entity']

logger = logging.getLogger(__name__)

T = TypeVar('T')

TYPE_DEFAULTS: dict[type, Any] = {
    bool: False,
    int: 0,
    float: 0.0,
    str: '',
    bytes: b'',
}


def _type_default(col: ColumnDescriptor | None) -> Any:
    """Default value for a field that has none and whose column is NULL."""
    if col is None or col.nullable:
        return None
    tp = col.python_type
    if not isinstance(tp, type) or issubclass(tp, Enum):
        return None
    for base in tp.__mro__:
        if base in TYPE_DEFAULTS:
            return TYPE_DEFAULTS[base]
    return None


def build_entity(mapping: EntityMapping, values: dict[str, Any]) -> Any:
    """Construct a new entity from materialized column values.

    Dataclass fields absent from `values` keep their declared default, or
    receive their type's default when they declare none. Other entity types
    are created with no arguments and populated attribute by attribute.
    """
    entity_type = mapping.entity_type
    if not dataclasses.is_dataclass(entity_type):
        entity = entity_type()
        for name, value in values.items():
            setattr(entity, name, value)
        return entity

    columns = {col.name: col for col in mapping.columns}
    kwargs = {}
    deferred = {}
    for f in dataclasses.fields(entity_type):
        if f.name in values:
            if f.init:
                kwargs[f.name] = values[f.name]
            else:
                deferred[f.name] = values[f.name]
        elif f.init and f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING:
            kwargs[f.name] = _type_default(columns.get(f.name))

    entity = entity_type(**kwargs)
    for name, value in deferred.items():
        setattr(entity, name, value)
    return entity


class QueryBuilder(Generic[T]):
    """Mutable SELECT over one Table.

    Each chained call replaces the corresponding clause. The state is read
    when `to_list()` runs, so one builder can be executed repeatedly and
    always reflects the current data.
    """

    def __init__(self, table: 'Table[T]') -> None:
        self._table = table
        self._where: str | None = None
        self._order: tuple[str, bool] | None = None
        self._limit: int | None = None

    def where(self, clause: str) -> 'QueryBuilder[T]':
        """Set the filter predicate, e.g. "Age > 18"."""
        self._where = clause or None
        return self

    def order_by(self, column: str, ascending: bool = True) -> 'QueryBuilder[T]':
        """Set the sort column and direction."""
        self._order = (column, ascending)
        return self

    def limit(self, count: int) -> 'QueryBuilder[T]':
        """Cap the number of rows returned."""
        if isinstance(count, bool) or not isinstance(count, int):
            raise TypeError(f'limit must be an int, got {type(count).__name__}')
        if count < 0:
            raise ValueError(f'limit must be non-negative, got {count}')
        self._limit = count
        return self

    @property
    def order_clause(self) -> str | None:
        if self._order is None:
            return None
        column, ascending = self._order
        return f"{column} {'ASC' if ascending else 'DESC'}"

    def statement(self) -> Statement:
        """Lower the current state to a SELECT statement."""
        return build_select(self._table.table_name, where=self._where,
                            order_by=self.order_clause, limit=self._limit)

    def to_list(self) -> list[T]:
        """Execute the query and return one new entity per row.
        """
        mapping = self._table.mapping
        with self._table.select(self.statement()) as cursor:
            results = [build_entity(mapping, materialize_row(mapping, row)) for row in cursor]
        logger.debug(f'Query on {mapping.table_name} returned {len(results)} rows')
        return results

    def first_or_default(self) -> T | None:
        """Return the first matching entity or None.
        """
        self.limit(1)
        results = self.to_list()
        return results[0] if results else None
