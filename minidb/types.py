"""Column types, comparison operators and value helpers."""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import List, Union

Value = Union[int, str]
Record = List[Value]

INT_MIN = -(2**31)
INT_MAX = 2**31 - 1

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


class DataType(enum.IntEnum):
    """Type of a table column; the numeric value is stored on disk."""

    INT = 0
    STRING = 1


class Operator(enum.Enum):
    """Comparison operator usable in a WHERE clause."""

    EQUAL = "="
    LESS_THAN = "<"
    GREATER_THAN = ">"


@dataclass
class ColumnDef:
    """Definition of one table column."""

    name: str
    type: DataType
    is_primary: bool = False


def string_to_value(text: str, data_type: DataType) -> Value:
    """Convert SQL text to a value of the given column type.

    Integers follow the usual leading-number rule: optional whitespace and
    sign, then digits; anything after the digits is ignored. Raises
    ValueError when no number is present or it does not fit in 32 bits.
    """
    if data_type is not DataType.INT:
        return text
    match = _LEADING_INT.match(text)
    if match is None:
        raise ValueError(f"not an integer: {text!r}")
    number = int(match.group(1))
    if not INT_MIN <= number <= INT_MAX:
        raise ValueError(f"integer out of range: {text!r}")
    return number


def value_to_string(value: Value) -> str:
    """Render a value as text."""
    return str(value)


def compare_values(left: Value, right: Value, op: Operator) -> bool:
    """Compare two values; values of different types never match."""
    if isinstance(left, int) and isinstance(right, int):
        pass
    elif isinstance(left, str) and isinstance(right, str):
        pass
    else:
        return False
    if op is Operator.EQUAL:
        return left == right
    if op is Operator.LESS_THAN:
        return left < right  # type: ignore[operator]
    return left > right  # type: ignore[operator]