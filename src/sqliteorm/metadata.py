"""
Entity metadata: column descriptors derived from data class definitions.

An entity type is a dataclass whose fields become table columns in
declaration order. Per-field roles are attached with `column()`:

    @table('TestModels')
    @dataclass
    class TestModel:
        Id: int = column(Role.PRIMARY_KEY, Role.AUTOINCREMENT, default=0)
        Name: str = column(Role.NOT_NULL, default='')
        Value: float = 0.0
        Scratch: str = column(Role.IGNORE, default='')

Classes that are not dataclasses can be mapped with `register()` and an
explicit list of ColumnDescriptor.

Table and column names are used verbatim as SQL identifiers. They come from
class definitions, never from user input.
"""
import dataclasses
import datetime
import functools
import logging
import numbers
import operator
import types
import typing
from dataclasses import dataclass
from enum import Enum, Flag, auto
from typing import Any

from sqliteorm.cache import get_mapping_cache
from sqliteorm.exceptions import MappingError

__all__ = [
    'SemanticType',
    'Role',
    'ColumnDescriptor',
    'EntityMapping',
    'column',
    'table',
    'register',
    'get_mapping',
    'clear_mappings',
    'infer_semantic_type',
    'unwrap_optional',
]

logger = logging.getLogger(__name__)

ROLES_KEY = 'sqliteorm.roles'

TIMESTAMP_TYPES = (datetime.datetime, datetime.date, datetime.time)

# Explicit registrations; the bounded cache only holds derived mappings
_registry: dict[type, 'EntityMapping'] = {}


class SemanticType(Enum):
    """Storage-facing category an attribute value is reduced to."""
    INTEGER64 = auto()
    REAL = auto()
    BOOLEAN = auto()
    TEXT = auto()
    TIMESTAMP = auto()
    BINARY = auto()
    ENUM_INTEGER = auto()


class Role(Flag):
    """Per-column role markers."""
    NONE = 0
    PRIMARY_KEY = auto()
    AUTOINCREMENT = auto()
    IGNORE = auto()
    NOT_NULL = auto()


@dataclass(frozen=True, slots=True)
class ColumnDescriptor:
    """Static metadata describing one mapped attribute."""
    name: str
    semantic_type: SemanticType
    python_type: Any = None
    roles: Role = Role.NONE
    nullable: bool = False

    @property
    def is_primary_key(self) -> bool:
        return Role.PRIMARY_KEY in self.roles

    @property
    def is_autoincrement(self) -> bool:
        return Role.AUTOINCREMENT in self.roles

    @property
    def is_ignored(self) -> bool:
        return Role.IGNORE in self.roles

    @property
    def is_not_null(self) -> bool:
        """Recorded only; CREATE TABLE does not emit NOT NULL."""
        return Role.NOT_NULL in self.roles


@dataclass(frozen=True, slots=True)
class EntityMapping:
    """Table name and ordered columns for one entity type."""
    entity_type: type
    table_name: str
    columns: tuple[ColumnDescriptor, ...]

    @property
    def primary_key(self) -> ColumnDescriptor | None:
        return next((col for col in self.columns if col.is_primary_key), None)

    @property
    def mapped_columns(self) -> tuple[ColumnDescriptor, ...]:
        """Columns that take part in storage, in declaration order."""
        return tuple(col for col in self.columns if not col.is_ignored)

    @property
    def insert_columns(self) -> tuple[ColumnDescriptor, ...]:
        return tuple(col for col in self.mapped_columns if not col.is_autoincrement)

    @property
    def update_columns(self) -> tuple[ColumnDescriptor, ...]:
        return tuple(col for col in self.mapped_columns if not col.is_primary_key)


def column(*roles: Role, **kwargs: Any) -> Any:
    """Declare a dataclass field carrying column roles.

    Accepts every `dataclasses.field` keyword (default, default_factory, ...).
    """
    combined = functools.reduce(operator.or_, roles, Role.NONE)
    metadata = dict(kwargs.pop('metadata', None) or {})
    metadata[ROLES_KEY] = combined
    return dataclasses.field(metadata=metadata, **kwargs)


def table(name: str):
    """Class decorator overriding the table name of an entity type."""
    def decorator(cls: type) -> type:
        cls.__tablename__ = name
        get_mapping_cache().pop(cls, None)
        if cls in _registry:
            _registry[cls] = dataclasses.replace(_registry[cls], table_name=name)
        return cls
    return decorator


def unwrap_optional(tp: Any) -> Any:
    """Reduce `Optional[X]` and `X | None` to `X`.
    """
    origin = typing.get_origin(tp)
    if origin is typing.Union or origin is types.UnionType:
        args = [arg for arg in typing.get_args(tp) if arg is not type(None)]
        if len(args) == 1:
            return args[0]
    return tp


def _is_integer_enum(tp: type) -> bool:
    return all(isinstance(m.value, int) and not isinstance(m.value, bool) for m in tp)


def infer_semantic_type(tp: Any) -> SemanticType:
    """Infer the semantic type from a declared attribute type.

    Checks run in order, first match wins: bool before int because bool is an
    int subclass, enums before int because IntEnum is one too.
    """
    tp = unwrap_optional(tp)
    if not isinstance(tp, type) or typing.get_origin(tp) is not None:
        return SemanticType.BINARY
    if issubclass(tp, bool):
        return SemanticType.BOOLEAN
    if issubclass(tp, Enum):
        return SemanticType.ENUM_INTEGER if _is_integer_enum(tp) else SemanticType.TEXT
    if issubclass(tp, numbers.Integral):
        return SemanticType.INTEGER64
    if issubclass(tp, numbers.Real):
        return SemanticType.REAL
    if issubclass(tp, str):
        return SemanticType.TEXT
    if issubclass(tp, TIMESTAMP_TYPES):
        return SemanticType.TIMESTAMP
    return SemanticType.BINARY


def get_table_name(entity_type: type) -> str:
    """Return the `__tablename__` override or the class name."""
    return getattr(entity_type, '__tablename__', None) or entity_type.__name__


def read_columns(entity_type: type) -> tuple[ColumnDescriptor, ...]:
    """Read column descriptors from the fields of a dataclass.
    """
    if not dataclasses.is_dataclass(entity_type):
        raise MappingError(
            f'{entity_type.__name__} is not a dataclass; register it with explicit columns')

    try:
        hints = typing.get_type_hints(entity_type)
    except NameError as err:
        raise MappingError(f'Cannot resolve annotations of {entity_type.__name__}: {err}') from err

    columns = []
    for f in dataclasses.fields(entity_type):
        declared = hints.get(f.name, f.type)
        columns.append(ColumnDescriptor(
            name=f.name,
            semantic_type=infer_semantic_type(declared),
            python_type=unwrap_optional(declared),
            roles=f.metadata.get(ROLES_KEY, Role.NONE),
            nullable=unwrap_optional(declared) is not declared,
        ))
    return tuple(columns)


def _validate(entity_type: type, columns: tuple[ColumnDescriptor, ...]) -> None:
    name = entity_type.__name__
    keys = [col.name for col in columns if col.is_primary_key]
    if len(keys) > 1:
        raise MappingError(f'{name} declares more than one primary key: {keys}')

    for col in columns:
        if col.is_primary_key and col.is_ignored:
            raise MappingError(f'{name}.{col.name} cannot be both primary key and ignored')
        if col.is_autoincrement and not (
                col.is_primary_key and col.semantic_type is SemanticType.INTEGER64):
            raise MappingError(
                f'{name}.{col.name}: AUTOINCREMENT requires an integer primary key')


def _build_mapping(entity_type: type, columns: tuple[ColumnDescriptor, ...]) -> EntityMapping:
    _validate(entity_type, columns)
    mapping = EntityMapping(
        entity_type=entity_type,
        table_name=get_table_name(entity_type),
        columns=columns,
    )
    logger.debug(f'Mapped {entity_type.__name__} to table {mapping.table_name} '
                 f'with {len(columns)} columns')
    return mapping


def register(entity_type: type, table: str | None = None,
             columns: list[ColumnDescriptor] | None = None) -> EntityMapping:
    """Register an entity type explicitly.

    Args:
        entity_type: Class to map
        table: Table name override
        columns: Column descriptors, required for classes that are not dataclasses

    Returns
        The mapping, kept until `clear_mappings()`
    """
    if table is not None:
        entity_type.__tablename__ = table
    columns = read_columns(entity_type) if columns is None else tuple(columns)
    mapping = _build_mapping(entity_type, columns)
    _registry[entity_type] = mapping
    get_mapping_cache().pop(entity_type, None)
    return mapping


def get_mapping(entity_type: type | Any) -> EntityMapping:
    """Get the mapping for an entity type or instance.

    Registered mappings win. Others are derived on first use and cached.
    """
    if not isinstance(entity_type, type):
        entity_type = type(entity_type)

    registered = _registry.get(entity_type)
    if registered is not None:
        return registered

    cache = get_mapping_cache()
    mapping = cache.get(entity_type)
    if mapping is None:
        mapping = _build_mapping(entity_type, read_columns(entity_type))
        cache[entity_type] = mapping
    return mapping


def clear_mappings() -> None:
    """Forget every derived or registered mapping."""
    _registry.clear()
    get_mapping_cache().clear()
