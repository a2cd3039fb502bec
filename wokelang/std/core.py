import re
from typing import Any, Callable, Dict, List

from wokelang.errors import WokeRuntimeError
from wokelang.types import (
    ArrayVal, UNIT, INT_MIN, INT_MAX, check_int, to_string, type_name,
)

# Optional sign and ASCII digits, nothing else
DECIMAL_INT = re.compile(r'[+-]?[0-9]+')


def parse_int(text: str) -> int:
    if DECIMAL_INT.fullmatch(text) is None or len(text.lstrip('+-').lstrip('0')) > len(str(INT_MAX)):
        raise WokeRuntimeError('ValueError', f'cannot parse Int from {text!r}')
    value = int(text)
    if value < INT_MIN or value > INT_MAX:
        raise WokeRuntimeError('ValueError', f'cannot parse Int from {text!r}')
    return value


def populate_core_builtins(write: Callable[[str], None]) -> Dict[str, Any]:
    """Build the core built-in table.

    `write` receives each line produced by `print`, newline included.
    """
    from . import BuiltinFunction

    def std_print(args: List[Any]) -> Any:
        write(' '.join(to_string(a) for a in args) + '\n')
        return UNIT

    def std_len(args: List[Any]) -> Any:
        target = args[0]
        if isinstance(target, str):
            return len(target.encode('utf-8'))
        if isinstance(target, ArrayVal):
            return len(target.items)
        raise WokeRuntimeError('TypeError', f'len() requires String or Array, got {type_name(target)}')

    def std_to_string(args: List[Any]) -> Any:
        return to_string(args[0])

    def std_to_int(args: List[Any]) -> Any:
        value = args[0]
        if isinstance(value, bool):
            raise WokeRuntimeError('TypeError', 'cannot convert Bool to Int')
        if isinstance(value, int):
            return value
        if isinstance(value, float):
            if value != value or value in (float('inf'), float('-inf')):
                raise WokeRuntimeError('ValueError', f'cannot convert {to_string(value)} to Int')
            return check_int(int(value))
        if isinstance(value, str):
            return parse_int(value)
        raise WokeRuntimeError('TypeError', f'cannot convert {type_name(value)} to Int')

    return {
        'print': BuiltinFunction('print', None, std_print),
        'len': BuiltinFunction('len', 1, std_len),
        'toString': BuiltinFunction('toString', 1, std_to_string),
        'toInt': BuiltinFunction('toInt', 1, std_to_int),
    }
