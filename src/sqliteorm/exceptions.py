"""
ORM-specific exception classes.
"""
import re
import sqlite3

MISSING_TABLE_PATTERNS = [
    r'no such table',
]

_MISSING_TABLE_REGEX = re.compile('|'.join(MISSING_TABLE_PATTERNS), re.IGNORECASE)


def is_missing_table_error(exc: BaseException) -> bool:
    """Check if an exception was raised because a table does not exist.

    Only SQLite operational errors qualify. Syntax errors, constraint
    violations and disk failures all return False.

    :param exc: The exception to check.
    :returns: True if the statement failed on a missing table.
    """
    if not isinstance(exc, sqlite3.OperationalError):
        return False
    return bool(_MISSING_TABLE_REGEX.search(str(exc)))


class OrmError(Exception):
    """Base class for all ORM errors.
    """


class NotFoundError(OrmError):
    """Logical database name is not registered.
    """


class ConnectionError(OrmError):
    """Operation attempted on a released or absent connection.
    """


class SchemaError(OrmError):
    """Entity schema lacks something the operation requires.
    """


class MappingError(OrmError):
    """Entity type cannot be mapped to a table.
    """


class ConversionError(OrmError):
    """Stored value cannot be coerced to the attribute type.
    """

    def __init__(self, value, source_type: type, target_type, column: str | None = None) -> None:
        self.value = value
        self.source_type = source_type
        self.target_type = target_type
        self.column = column
        target_name = getattr(target_type, '__name__', repr(target_type))
        message = f"Cannot convert value '{value}' ({source_type.__name__}) to {target_name}"
        if column is not None:
            message += f' for column {column}'
        super().__init__(message)


IntegrityError = (
    sqlite3.IntegrityError,
    )

OperationalError = (
    sqlite3.OperationalError,
    )

ProgrammingError = (
    sqlite3.ProgrammingError,
    sqlite3.DatabaseError,
    )
