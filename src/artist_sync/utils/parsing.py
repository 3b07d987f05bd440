"""
Parsing helpers for string-encoded API values.
"""
import re
from typing import Any

_UNSIGNED_PATTERN = re.compile(r"\+?[0-9]+")

# largest value an SQLite INTEGER column holds
MAX_STORED_INTEGER = 2**63 - 1


def parse_unsigned(value: Any, maximum: int = MAX_STORED_INTEGER) -> int:
    """
    Parse a string-encoded unsigned integer.

    Stricter than int(): surrounding whitespace, underscores, signs other
    than a leading "+" and non-ASCII digits are rejected, as is anything
    above maximum.

    Raises:
        ValueError: If value is not such a string or is out of range
    """
    if not isinstance(value, str) or not _UNSIGNED_PATTERN.fullmatch(value):
        raise ValueError(f"Not an unsigned integer: {value!r}")
    number = int(value)
    if number > maximum:
        raise ValueError(f"Unsigned integer out of range: {value!r}")
    return number
