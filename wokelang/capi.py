"""Embedding API for WokeLang.

This module mirrors the C header `wokelang.h` one entry point per function,
for hosts that want the handle/result-code style of embedding:

    interp = woke_interpreter_new()
    woke_exec(interp, 'to greet(name: String) -> String { give back "Hello, " + name + "!"; }')
    out = Ref()
    if woke_eval(interp, 'greet("Ada")', out) == WokeResult.OK:
        print(woke_value_as_string(out.value))   # b'Hello, Ada!'
    woke_value_free(out.value)
    woke_interpreter_free(interp)

`None` stands in for a NULL pointer and `Ref` for a `T*` out-parameter.
Every free routine accepts `None`. Each handle carries its own last-error
slot: `woke_exec` and `woke_eval` clear it on entry and fill it only when
they return something other than `WokeResult.OK`.
"""

from __future__ import annotations

import enum
import logging
from typing import Any, Optional, Union

from .errors import ParseError, WokeRuntimeError, TypeMismatch
from .interpreter import Interpreter
from .value import WokeValue, WokeValueType

logger = logging.getLogger("wokelang.capi")
logger.addHandler(logging.NullHandler())

VERSION = "0.1.0"

Source = Union[str, bytes, bytearray]


class WokeResult(enum.IntEnum):
    OK = 0
    ERROR = 1
    PARSE_ERROR = 2
    RUNTIME_ERROR = 3
    NULL_POINTER = 4


class Ref:
    """Out-parameter cell, the counterpart of a `T*` argument in the header."""
    __slots__ = ('value',)

    def __init__(self, value: Any = None):
        self.value = value

    def __repr__(self) -> str:
        return f"Ref({self.value!r})"


class WokeInterpreter:
    """Opaque interpreter handle.

    Hosts should treat it as opaque and go through the `woke_*` functions.
    A handle must not be entered from two threads at once; a concurrent
    entry is rejected with `WokeResult.ERROR` rather than queued.
    """

    def __init__(self, **options):
        self._interpreter: Optional[Interpreter] = Interpreter(**options)
        self._last_error: Optional[str] = None
        self._busy = False

    @property
    def freed(self) -> bool:
        return self._interpreter is None

    @property
    def last_error(self) -> Optional[str]:
        return self._last_error

    def free(self):
        if self._interpreter is not None:
            self._interpreter.reset()
        self._interpreter = None
        self._last_error = None

    def _fail(self, code: WokeResult, message: str) -> WokeResult:
        self._last_error = message
        logger.debug("%s: %s", code.name, message)
        return code

    def _enter(self, action, source: Optional[Source], out: Optional[Ref] = None) -> WokeResult:
        if self._busy:
            return self._fail(WokeResult.ERROR, "interpreter handle is already in use")
        self._last_error = None
        if source is None:
            return self._fail(WokeResult.NULL_POINTER, "null pointer: source")
        self._busy = True
        try:
            text = _decode(source)
            result = action(text)
        except UnicodeDecodeError as e:
            return self._fail(WokeResult.ERROR, f"source is not valid UTF-8: {e}")
        except ParseError as e:
            return self._fail(WokeResult.PARSE_ERROR, str(e))
        except WokeRuntimeError as e:
            return self._fail(WokeResult.RUNTIME_ERROR, str(e))
        except MemoryError:
            return self._fail(WokeResult.ERROR, "out of memory")
        except Exception as e:
            logger.exception("internal error in WokeLang interpreter")
            return self._fail(WokeResult.ERROR, f"internal error: {e}")
        finally:
            self._busy = False
        # a rejected nested entry may have written the slot meanwhile
        self._last_error = None
        if out is not None:
            out.value = result
        return WokeResult.OK

    def exec(self, source: Optional[Source]) -> WokeResult:
        return self._enter(self._interpreter.exec_source, source)

    def eval(self, source: Optional[Source], out: Ref) -> WokeResult:
        out.value = None
        return self._enter(lambda text: WokeValue.from_runtime(self._interpreter.eval_source(text)), source, out)


def _decode(data: Source) -> str:
    if isinstance(data, (bytes, bytearray)):
        return bytes(data).decode('utf-8')
    return data


def _null(interp: Optional[WokeInterpreter]) -> bool:
    return interp is None or interp.freed


# === Interpreter lifecycle ===

def woke_interpreter_new() -> Optional[WokeInterpreter]:
    """Create a new interpreter, or return None if it cannot be allocated."""
    try:
        return WokeInterpreter()
    except MemoryError:
        return None


def woke_interpreter_free(interp: Optional[WokeInterpreter]) -> None:
    """Release a handle's functions, globals and error text. None is a no-op."""
    if interp is not None:
        interp.free()


def woke_exec(interp: Optional[WokeInterpreter], source: Optional[Source]) -> WokeResult:
    """Parse and run WokeLang source on a handle."""
    if _null(interp):
        return WokeResult.NULL_POINTER
    return interp.exec(source)


def woke_eval(interp: Optional[WokeInterpreter], source: Optional[Source],
              out_value: Optional[Ref]) -> WokeResult:
    """Evaluate one expression; on OK `out_value.value` holds a fresh WokeValue.

    On any failure `out_value.value` is set to None.
    """
    if out_value is not None:
        out_value.value = None
    if _null(interp):
        return WokeResult.NULL_POINTER
    if out_value is None:
        interp._last_error = None
        return interp._fail(WokeResult.NULL_POINTER, "null pointer: out_value")
    return interp.eval(source, out_value)


# === Value operations ===

def woke_value_free(value: Optional[WokeValue]) -> None:
    """Free a value. Values are garbage collected; None is a no-op."""
    if value is not None:
        value.payload = None


def woke_value_type(value: Optional[WokeValue]) -> WokeValueType:
    if value is None:
        return WokeValueType.UNIT
    return value.tag


def _extract(value: Optional[WokeValue], out: Optional[Ref], getter) -> WokeResult:
    if value is None or out is None:
        return WokeResult.NULL_POINTER
    try:
        result = getter(value)
    except TypeMismatch:
        return WokeResult.ERROR
    out.value = result
    return WokeResult.OK


def woke_value_as_int(value: Optional[WokeValue], out: Optional[Ref]) -> WokeResult:
    return _extract(value, out, WokeValue.as_int)


def woke_value_as_float(value: Optional[WokeValue], out: Optional[Ref]) -> WokeResult:
    return _extract(value, out, WokeValue.as_float)


def woke_value_as_bool(value: Optional[WokeValue], out: Optional[Ref]) -> WokeResult:
    """Write 1 or 0 into `out`, as the C `int` out-parameter would receive."""
    return _extract(value, out, lambda v: 1 if v.as_bool() else 0)


def woke_value_as_string(value: Optional[WokeValue]) -> Optional[bytes]:
    """Return a fresh UTF-8 copy of a string value.

    Returns None for non-string values and for strings holding a NUL
    character, which a NUL-terminated C string cannot carry.
    """
    if value is None:
        return None
    try:
        data = value.as_bytes()
    except TypeMismatch:
        return None
    if b'\0' in data:
        return None
    return data


def woke_string_free(s: Optional[bytes]) -> None:
    """Strings are garbage collected; accepted for symmetry. None is a no-op."""


# === Value creation ===

def woke_value_from_int(n: int) -> Optional[WokeValue]:
    try:
        return WokeValue.from_int(n)
    except (TypeError, OverflowError):
        return None


def woke_value_from_float(f: float) -> Optional[WokeValue]:
    try:
        return WokeValue.from_float(f)
    except (TypeError, ValueError):
        return None


def woke_value_from_bool(b: Any) -> Optional[WokeValue]:
    return WokeValue.from_bool(b)


def woke_value_from_string(s: Optional[Source]) -> Optional[WokeValue]:
    if s is None:
        return None
    try:
        return WokeValue.from_string(s)
    except (TypeError, UnicodeDecodeError):
        return None


# === Utility ===

def woke_version() -> str:
    return VERSION


def woke_last_error(interp: Optional[WokeInterpreter]) -> Optional[str]:
    """Message of the last failed call on `interp`, or None."""
    if _null(interp):
        return None
    return interp.last_error
