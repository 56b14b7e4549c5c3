import sqlite3

import pytest
from sqliteorm.exceptions import ConnectionError, ConversionError, IntegrityError
from sqliteorm.exceptions import MappingError, NotFoundError, OperationalError
from sqliteorm.exceptions import OrmError, SchemaError, is_missing_table_error


class TestIsMissingTableError:
    """Only missing-table failures trigger table creation on read."""

    def test_missing_table(self):
        assert is_missing_table_error(sqlite3.OperationalError('no such table: Samples'))

    @pytest.mark.parametrize('message', [
        'near "SELEC": syntax error',
        'database is locked',
        'disk I/O error',
        'no such column: Missing',
    ])
    def test_other_operational_errors(self, message):
        assert not is_missing_table_error(sqlite3.OperationalError(message))

    def test_other_exception_types(self):
        assert not is_missing_table_error(sqlite3.IntegrityError('no such table: X'))
        assert not is_missing_table_error(ValueError('no such table: X'))


@pytest.mark.parametrize('error', [NotFoundError, ConnectionError, SchemaError, MappingError])
def test_hierarchy(error):
    assert issubclass(error, OrmError)


def test_conversion_error_fields():
    err = ConversionError('abc', str, int)
    assert isinstance(err, OrmError)
    assert (err.value, err.source_type, err.target_type) == ('abc', str, int)
    assert str(err) == "Cannot convert value 'abc' (str) to int"


def test_driver_error_groups():
    assert sqlite3.IntegrityError in IntegrityError
    assert sqlite3.OperationalError in OperationalError


if __name__ == '__main__':
    __import__('pytest').main([__file__])
