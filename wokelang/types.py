"""Type annotations and runtime values for WokeLang.

Runtime values are plain Python objects wherever possible: `int` for Int,
`float` for Float, `str` for String and `bool` for Bool. Arrays and the unit
value have their own classes. Because `bool` is a subclass of `int` in
Python, every check in this module tests for `bool` before `int`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List

from .errors import WokeRuntimeError

INT_MIN = -(1 << 63)
INT_MAX = (1 << 63) - 1

TYPE_NAMES = ('String', 'Int', 'Float', 'Bool', 'Array', 'Unit')


@dataclass(frozen=True)
class TypeSpec:
    """A WokeLang type annotation.

    Annotations are symbolic: `kind` is one of String, Int, Float, Bool,
    Array or Unit. They are only enforced at function boundaries.
    """
    kind: str

    def __repr__(self) -> str:
        return self.kind


class UnitVal:
    """Marker object for the WokeLang unit value `()`."""
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return '()'


UNIT = UnitVal()


@dataclass
class ArrayVal:
    """Represents a WokeLang array value.

    Arrays are heterogeneous and tree shaped: an array owns its items and
    never contains itself.
    """
    items: List[Any]

    def __repr__(self) -> str:
        return f"Array({self.items!r})"


def type_name(value: Any) -> str:
    """Return the WokeLang type name of a runtime value."""
    if isinstance(value, bool):
        return 'Bool'
    if isinstance(value, int):
        return 'Int'
    if isinstance(value, float):
        return 'Float'
    if isinstance(value, str):
        return 'String'
    if isinstance(value, ArrayVal):
        return 'Array'
    if isinstance(value, UnitVal):
        return 'Unit'
    return type(value).__name__


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def check_int(value: int) -> int:
    """Return `value` if it fits a signed 64-bit integer."""
    if value < INT_MIN or value > INT_MAX:
        raise WokeRuntimeError('Overflow', 'integer overflow')
    return value


def format_float(value: float) -> str:
    # repr is the shortest string that round-trips
    if value != value:
        return 'NaN'
    if value == float('inf'):
        return 'inf'
    if value == float('-inf'):
        return '-inf'
    return repr(value)


def to_string(value: Any) -> str:
    """Convert a WokeLang value to its string form.

    This is the form used by string concatenation, `toString` and `print`.
    """
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return format_float(value)
    if isinstance(value, str):
        return value
    if isinstance(value, ArrayVal):
        return '[' + ', '.join(to_string(item) for item in value.items) + ']'
    if isinstance(value, UnitVal):
        return '()'
    return str(value)


def check_value(value: Any, spec: TypeSpec) -> bool:
    """Check whether a runtime value matches a type annotation.

    Returns True on a match and raises a TypeError (not a WokeLang error)
    otherwise; the caller turns it into a runtime error with context.
    """
    actual = type_name(value)
    if spec.kind not in TYPE_NAMES:
        raise TypeError(f"unknown type annotation: {spec}")
    if actual != spec.kind:
        raise TypeError(f"expected {spec.kind}, got {actual}")
    return True


def values_equal(a: Any, b: Any) -> bool:
    """Structural equality. Values of different types are never equal."""
    if type_name(a) != type_name(b):
        return False
    if isinstance(a, ArrayVal):
        if len(a.items) != len(b.items):
            return False
        return all(values_equal(x, y) for x, y in zip(a.items, b.items))
    if isinstance(a, UnitVal):
        return True
    return a == b


def compare_values(op: str, a: Any, b: Any) -> bool:
    """Apply an ordering operator.

    Numbers compare with each other (mixed int/float operands compare as
    floats) and strings compare with strings. Code point order of Python
    strings equals the byte order of their UTF-8 encoding.
    """
    if is_number(a) and is_number(b):
        if isinstance(a, float) or isinstance(b, float):
            a, b = float(a), float(b)
    elif not (isinstance(a, str) and isinstance(b, str)):
        raise WokeRuntimeError(
            'TypeError', f"cannot compare {type_name(a)} with {type_name(b)} using {op}")
    if op == '<':
        return a < b
    if op == '<=':
        return a <= b
    if op == '>':
        return a > b
    if op == '>=':
        return a >= b
    raise WokeRuntimeError('TypeError', f"unknown comparison operator {op}")


def deep_clone(value: Any) -> Any:
    """Copy a value so that the copy shares no containers with the original."""
    if isinstance(value, ArrayVal):
        return ArrayVal([deep_clone(item) for item in value.items])
    return value
