# WokeLang language package
# This package provides a lexer, parser and interpreter for WokeLang, plus
# the handle-based embedding API in `wokelang.capi`.
from .errors import WokeError, ParseError, WokeRuntimeError, TypeMismatch
from .lexer import tokenize
from .parser import parse_program, parse_expression
from .interpreter import Interpreter
from .value import WokeValue, WokeValueType
from .capi import (
    VERSION as __version__,
    WokeResult,
    WokeInterpreter,
    Ref,
    woke_interpreter_new,
    woke_interpreter_free,
    woke_exec,
    woke_eval,
    woke_value_free,
    woke_value_type,
    woke_value_as_int,
    woke_value_as_float,
    woke_value_as_bool,
    woke_value_as_string,
    woke_string_free,
    woke_value_from_int,
    woke_value_from_float,
    woke_value_from_bool,
    woke_value_from_string,
    woke_version,
    woke_last_error,
)

__all__ = [
    'WokeError',
    'ParseError',
    'WokeRuntimeError',
    'TypeMismatch',
    'tokenize',
    'parse_program',
    'parse_expression',
    'Interpreter',
    'WokeValue',
    'WokeValueType',
    'WokeResult',
    'WokeInterpreter',
    'Ref',
    'woke_interpreter_new',
    'woke_interpreter_free',
    'woke_exec',
    'woke_eval',
    'woke_value_free',
    'woke_value_type',
    'woke_value_as_int',
    'woke_value_as_float',
    'woke_value_as_bool',
    'woke_value_as_string',
    'woke_string_free',
    'woke_value_from_int',
    'woke_value_from_float',
    'woke_value_from_bool',
    'woke_value_from_string',
    'woke_version',
    'woke_last_error',
]
