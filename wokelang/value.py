"""Boxed values handed across the embedding boundary.

A `WokeValue` is a tag plus a payload. Values exported by the interpreter
are deep copies, so a host can keep them after the interpreter that produced
them is gone.
"""

from __future__ import annotations

import enum
from typing import Any, Union

from .errors import TypeMismatch
from .types import (
    UNIT, INT_MIN, INT_MAX, deep_clone, to_string, type_name, values_equal,
)


class WokeValueType(enum.IntEnum):
    INT = 0
    FLOAT = 1
    STRING = 2
    BOOL = 3
    ARRAY = 4
    UNIT = 5


_TAGS = {
    'Int': WokeValueType.INT,
    'Float': WokeValueType.FLOAT,
    'String': WokeValueType.STRING,
    'Bool': WokeValueType.BOOL,
    'Array': WokeValueType.ARRAY,
    'Unit': WokeValueType.UNIT,
}


class WokeValue:
    """A tagged WokeLang value owned by the host."""
    __slots__ = ('tag', 'payload')

    def __init__(self, tag: WokeValueType, payload: Any):
        self.tag = tag
        self.payload = payload

    # Constructors

    @classmethod
    def from_int(cls, n: int) -> 'WokeValue':
        if isinstance(n, bool) or not isinstance(n, int):
            raise TypeError(f"expected int, got {type(n).__name__}")
        if n < INT_MIN or n > INT_MAX:
            raise OverflowError(f"{n} does not fit a signed 64-bit integer")
        return cls(WokeValueType.INT, n)

    @classmethod
    def from_float(cls, f: float) -> 'WokeValue':
        return cls(WokeValueType.FLOAT, float(f))

    @classmethod
    def from_bool(cls, b: Any) -> 'WokeValue':
        return cls(WokeValueType.BOOL, bool(b))

    @classmethod
    def from_string(cls, s: Union[str, bytes]) -> 'WokeValue':
        if isinstance(s, (bytes, bytearray)):
            s = bytes(s).decode('utf-8')
        if not isinstance(s, str):
            raise TypeError(f"expected str or bytes, got {type(s).__name__}")
        return cls(WokeValueType.STRING, s)

    @classmethod
    def unit(cls) -> 'WokeValue':
        return cls(WokeValueType.UNIT, UNIT)

    @classmethod
    def from_runtime(cls, value: Any) -> 'WokeValue':
        """Box an interpreter value, copying any arrays it contains."""
        name = type_name(value)
        if name not in _TAGS:
            raise TypeError(f"cannot box {name}")
        return cls(_TAGS[name], deep_clone(value))

    # Accessors

    def _expect(self, tag: WokeValueType) -> Any:
        if self.tag != tag:
            raise TypeMismatch(tag.name.lower(), self.tag.name.lower())
        return self.payload

    def as_int(self) -> int:
        return self._expect(WokeValueType.INT)

    def as_float(self) -> float:
        return self._expect(WokeValueType.FLOAT)

    def as_bool(self) -> bool:
        return self._expect(WokeValueType.BOOL)

    def as_string(self) -> str:
        return self._expect(WokeValueType.STRING)

    def as_bytes(self) -> bytes:
        return self.as_string().encode('utf-8')

    def clone(self) -> 'WokeValue':
        return WokeValue(self.tag, deep_clone(self.payload))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, WokeValue):
            return NotImplemented
        return self.tag == other.tag and values_equal(self.payload, other.payload)

    __hash__ = None

    def __str__(self) -> str:
        return to_string(self.payload)

    def __repr__(self) -> str:
        return f"WokeValue({self.tag.name}, {self.payload!r})"
