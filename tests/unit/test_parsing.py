"""
Unit tests for utils.parsing module.
"""
import pytest

from artist_sync.utils.parsing import MAX_STORED_INTEGER, parse_unsigned


@pytest.mark.parametrize("value, expected", [("0", 0), ("10", 10), ("+7", 7), ("0042", 42)])
def test_parse_unsigned(value, expected):
    assert parse_unsigned(value) == expected


def test_parse_unsigned_accepts_largest_storable_value():
    assert parse_unsigned("9223372036854775807") == MAX_STORED_INTEGER


@pytest.mark.parametrize("value", ["9223372036854775808", "18446744073709551615"])
def test_parse_unsigned_rejects_values_above_storage_range(value):
    with pytest.raises(ValueError):
        parse_unsigned(value)


def test_parse_unsigned_custom_maximum():
    assert parse_unsigned("10", maximum=10) == 10
    with pytest.raises(ValueError):
        parse_unsigned("11", maximum=10)


@pytest.mark.parametrize("value", ["", "-1", "1.5", "ten", " 10", "10 ", "1_000", "١٢", None, 10])
def test_parse_unsigned_rejects(value):
    with pytest.raises(ValueError):
        parse_unsigned(value)
