import datetime
from decimal import Decimal

import pytest
from sqliteorm import ConversionError, get_mapping
from sqliteorm.codec import materialize, materialize_row, normalize_column
from sqliteorm.codec import normalize_for_write

from tests.fixtures.models import Color, Reading, Sample, Shape, Tagged


class TestNormalizeForWrite:
    """Python values to SQLite bindable parameters."""

    def test_none(self):
        assert normalize_for_write(None) is None

    def test_bool_to_int(self):
        assert normalize_for_write(True) == 1
        assert type(normalize_for_write(False)) is int

    def test_integer_enum_to_backing_int(self):
        value = normalize_for_write(Color.GREEN)
        assert value == 2
        assert type(value) is int

    def test_text_enum_to_backing_value(self):
        assert normalize_for_write(Shape.SQUARE) == 'square'

    def test_timestamps_to_iso_text(self):
        moment = datetime.datetime(2024, 3, 1, 12, 30, 45, 123456)
        assert normalize_for_write(moment) == '2024-03-01T12:30:45.123456'
        assert normalize_for_write(datetime.date(2024, 3, 1)) == '2024-03-01'

    def test_aware_timestamp_keeps_offset(self):
        moment = datetime.datetime(2024, 3, 1, 12, 0, tzinfo=datetime.timezone.utc)
        assert normalize_for_write(moment) == '2024-03-01T12:00:00+00:00'

    def test_binary(self):
        assert normalize_for_write(bytearray(b'ab')) == b'ab'
        assert normalize_for_write(memoryview(b'cd')) == b'cd'

    def test_passthrough(self):
        assert normalize_for_write('text') == 'text'
        assert normalize_for_write(1.5) == 1.5
        assert normalize_for_write(b'\x00') == b'\x00'


class TestMaterialize:
    """Stored values to declared attribute types."""

    def test_none_passes_through(self):
        assert materialize(None, int) is None

    def test_int_to_bool(self):
        assert materialize(1, bool) is True
        assert materialize(0, bool) is False

    def test_int_to_float(self):
        value = materialize(10, float)
        assert value == 10.0
        assert type(value) is float

    def test_whole_float_to_int(self):
        assert materialize(3.0, int) == 3

    def test_fractional_float_to_int_fails(self):
        with pytest.raises(ConversionError):
            materialize(3.5, int)

    def test_text_to_int(self):
        assert materialize('42', int) == 42

    def test_integer_enum(self):
        assert materialize(3, Color) is Color.BLUE

    def test_text_enum(self):
        assert materialize('circle', Shape) is Shape.CIRCLE

    def test_unknown_enum_value(self):
        with pytest.raises(ConversionError) as exc_info:
            materialize(9, Color)
        assert exc_info.value.value == 9
        assert exc_info.value.source_type is int
        assert exc_info.value.target_type is Color

    def test_iso_text_to_datetime(self):
        expected = datetime.datetime(2024, 3, 1, 12, 30, 45, 123456)
        assert materialize('2024-03-01T12:30:45.123456', datetime.datetime) == expected

    def test_iso_text_to_date(self):
        assert materialize('2024-03-01', datetime.date) == datetime.date(2024, 3, 1)

    def test_optional_target(self):
        assert materialize(5, int | None) == 5

    def test_malformed_timestamp(self):
        with pytest.raises(ConversionError, match='Cannot convert value'):
            materialize('not a date', datetime.datetime)

    def test_no_coercion_raises(self):
        with pytest.raises(ConversionError):
            materialize('abc', int)
        with pytest.raises(ConversionError):
            materialize(b'abc', float)
        with pytest.raises(ConversionError):
            materialize('1.5', Decimal)

    def test_unannotated_target_passes_through(self):
        assert materialize('abc', object) == 'abc'


class TestBinaryColumns:
    """BINARY columns bind bytes only; lists and dicts go through JSON."""

    def column(self, entity_type, name):
        return next(col for col in get_mapping(entity_type).columns if col.name == name)

    def test_list_encoded_as_json_bytes(self):
        tags = self.column(Tagged, 'Tags')
        assert normalize_column(tags, ['a', 'b']) == b'["a", "b"]'

    def test_bytes_and_null_untouched(self):
        payload = self.column(Reading, 'Payload')
        assert normalize_column(payload, bytearray(b'\x01')) == b'\x01'
        assert normalize_column(payload, None) is None

    def test_non_binary_columns_unchanged(self):
        tint = self.column(Reading, 'Tint')
        assert normalize_column(tint, Color.BLUE) == 3

    def test_unencodable_value_names_column(self):
        tags = self.column(Tagged, 'Tags')
        with pytest.raises(ConversionError, match='for column Tags') as exc_info:
            normalize_column(tags, [object()])
        assert exc_info.value.column == 'Tags'

        payload = self.column(Reading, 'Payload')
        with pytest.raises(ConversionError, match='for column Payload'):
            normalize_column(payload, 'not bytes')

    def test_json_bytes_to_list(self):
        assert materialize(b'["a", "b"]', list[str]) == ['a', 'b']
        assert materialize(b'{"k": 1}', dict) == {'k': 1}

    def test_json_of_wrong_shape(self):
        with pytest.raises(ConversionError):
            materialize(b'{"k": 1}', list[str])
        with pytest.raises(ConversionError):
            materialize(b'\xff\xfe', list)

    def test_row_conversion_error_names_column(self):
        with pytest.raises(ConversionError, match='for column Tags'):
            materialize_row(get_mapping(Tagged), {'Id': 1, 'Tags': b'not json'})


class TestRoundTrip:
    """normalize_for_write then materialize restores the value."""

    @pytest.mark.parametrize(('value', 'declared'), [
        (2 ** 62, int),
        (-7, int),
        (0.25, float),
        (True, bool),
        (False, bool),
        ('héllo', str),
        (datetime.datetime(2023, 12, 31, 23, 59, 59, 999999), datetime.datetime),
        (datetime.datetime(2023, 6, 1, 8, 0, tzinfo=datetime.timezone(datetime.timedelta(hours=-5))),
         datetime.datetime),
        (datetime.date(2020, 2, 29), datetime.date),
        (b'\x00\xffbinary', bytes),
        (Color.RED, Color),
        (Shape.SQUARE, Shape),
    ])
    def test_round_trip(self, value, declared):
        restored = materialize(normalize_for_write(value), declared)
        assert restored == value
        assert type(restored) is type(value)


def test_materialize_row_skips_null_and_missing():
    """NULL and absent columns are left out of the values"""
    mapping = get_mapping(Sample)
    values = materialize_row(mapping, {'Id': 4, 'Name': None})
    assert values == {'Id': 4}


if __name__ == '__main__':
    __import__('pytest').main([__file__])
