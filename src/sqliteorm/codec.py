"""
Value conversion between Python attributes and SQLite storage classes.

Two directions:
- normalize_for_write: Python value -> parameter SQLite can bind
  (NULL, INTEGER, REAL, TEXT, BLOB)
- materialize: stored value -> declared attribute type

Timestamps are stored as ISO-8601 text exactly as `isoformat()` renders them.
No timezone normalization is applied: naive values stay naive and aware
values keep their offset. BINARY columns holding lists or dicts are stored
as UTF-8 JSON bytes.
"""
import datetime
import json
import logging
import numbers
import typing
from collections.abc import Callable
from enum import Enum
from typing import Any

import dateutil.parser
from sqliteorm.exceptions import ConversionError
from sqliteorm.metadata import TIMESTAMP_TYPES, ColumnDescriptor, EntityMapping
from sqliteorm.metadata import SemanticType, unwrap_optional

logger = logging.getLogger(__name__)

TRUE_STRINGS: set[str] = {'1', 'true', 't', 'yes'}
FALSE_STRINGS: set[str] = {'0', 'false', 'f', 'no'}

JSON_TYPES = (list, dict)


def normalize_for_write(value: Any) -> Any:
    """Convert a single attribute value to a bindable parameter.
    """
    if value is None:
        return None

    if isinstance(value, bool):
        return int(value)

    if isinstance(value, Enum):
        backing = value.value
        if isinstance(backing, numbers.Integral) and not isinstance(backing, bool):
            return int(backing)
        return backing

    if isinstance(value, numbers.Integral):
        return int(value)

    if isinstance(value, TIMESTAMP_TYPES):
        return value.isoformat()

    if isinstance(value, bytearray | memoryview):
        return bytes(value)

    return value


def normalize_column(col: ColumnDescriptor, value: Any) -> Any:
    """Convert an attribute value for one column.

    BINARY columns only bind bytes. Lists and dicts are encoded as JSON,
    anything else raises ConversionError naming the column.
    """
    value = normalize_for_write(value)
    if col.semantic_type is not SemanticType.BINARY or value is None or isinstance(value, bytes):
        return value
    if not isinstance(value, JSON_TYPES):
        raise ConversionError(value, type(value), bytes, column=col.name)
    try:
        return json.dumps(value).encode('utf-8')
    except (TypeError, ValueError) as err:
        raise ConversionError(value, type(value), bytes, column=col.name) from err


def _from_json(value: Any, container: type) -> Any:
    if not isinstance(value, bytes | str):
        raise TypeError(f'cannot read {type(value).__name__} as {container.__name__}')
    decoded = json.loads(value)
    if not isinstance(decoded, container):
        raise ValueError(f'stored JSON is not a {container.__name__}')
    return decoded


def _to_bool(value: Any) -> bool:
    if isinstance(value, numbers.Number):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in TRUE_STRINGS:
            return True
        if lowered in FALSE_STRINGS:
            return False
    raise ValueError(f'not a boolean: {value!r}')


def _to_int(value: Any) -> int:
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f'{value} has a fractional part')
        return int(value)
    if isinstance(value, int | str):
        return int(value)
    raise TypeError(f'cannot read {type(value).__name__} as int')


def _to_float(value: Any) -> float:
    if isinstance(value, int | float | str):
        return float(value)
    raise TypeError(f'cannot read {type(value).__name__} as float')


def _to_str(value: Any) -> str:
    if isinstance(value, bytes):
        return value.decode('utf-8')
    if isinstance(value, int | float):
        return str(value)
    raise TypeError(f'cannot read {type(value).__name__} as str')


def _to_bytes(value: Any) -> bytes:
    if isinstance(value, str):
        return value.encode('utf-8')
    if isinstance(value, bytearray | memoryview):
        return bytes(value)
    raise TypeError(f'cannot read {type(value).__name__} as bytes')


def _to_datetime(value: Any) -> datetime.datetime:
    if not isinstance(value, str):
        raise TypeError(f'cannot read {type(value).__name__} as datetime')
    return dateutil.parser.isoparse(value)


def _to_date(value: Any) -> datetime.date:
    return _to_datetime(value).date()


def _to_time(value: Any) -> datetime.time:
    if not isinstance(value, str):
        raise TypeError(f'cannot read {type(value).__name__} as time')
    return datetime.time.fromisoformat(value)


# Keyed by target type; looked up along the target's MRO
_CONVERTERS: dict[type, Callable[[Any], Any]] = {
    bool: _to_bool,
    int: _to_int,
    float: _to_float,
    str: _to_str,
    bytes: _to_bytes,
    datetime.datetime: _to_datetime,
    datetime.date: _to_date,
    datetime.time: _to_time,
}


def _find_converter(target: type) -> Callable[[Any], Any] | None:
    for base in target.__mro__:
        if base in _CONVERTERS:
            return _CONVERTERS[base]
    return None


def materialize(value: Any, target_type: Any) -> Any:
    """Convert a stored value back to the declared attribute type.

    Raises ConversionError when no coercion applies; never substitutes a default.
    """
    if value is None:
        return None

    target = unwrap_optional(target_type)
    container = typing.get_origin(target) or target
    if container in JSON_TYPES and not isinstance(value, container):
        try:
            return _from_json(value, container)
        except (TypeError, ValueError) as err:
            raise ConversionError(value, type(value), target_type) from err

    if not isinstance(target, type) or target is object:
        return value

    if type(value) is target:
        return value

    if issubclass(target, Enum):
        try:
            return target(value)
        except ValueError as err:
            raise ConversionError(value, type(value), target_type) from err

    converter = _find_converter(target)
    if converter is None:
        if isinstance(value, target):
            return value
        raise ConversionError(value, type(value), target_type)

    try:
        return converter(value)
    except (TypeError, ValueError, OverflowError) as err:
        logger.debug(f'Conversion of {value!r} to {target.__name__} failed: {err}')
        raise ConversionError(value, type(value), target_type) from err


def materialize_row(mapping: EntityMapping, row: Any) -> dict[str, Any]:
    """Convert the non-null mapped columns of a result row.

    Columns missing from the row or holding NULL are left out so the
    attribute keeps its default.
    """
    keys = set(row.keys())
    values = {}
    for col in mapping.mapped_columns:
        if col.name not in keys:
            continue
        raw = row[col.name]
        if raw is None:
            continue
        try:
            values[col.name] = materialize(raw, col.python_type)
        except ConversionError as err:
            raise ConversionError(raw, type(raw), col.python_type, column=col.name) from err
    return values
