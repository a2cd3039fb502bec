from typing import Any


class WokeError(Exception):
    """Base class for errors raised while lexing, parsing or running WokeLang."""


class ParseError(WokeError):
    """Lexical or syntactic failure, located at a line and column."""
    def __init__(self, line: int, column: int, reason: str):
        super().__init__(f"parse error at {line}:{column}: {reason}")
        self.line = line
        self.column = column
        self.reason = reason


class WokeRuntimeError(WokeError):
    """Exception type used to propagate WokeLang runtime errors.

    `kind` is a short category such as 'TypeError' or 'DivisionByZero';
    `message` is the human readable detail.
    """
    def __init__(self, kind: str, message: str):
        super().__init__(f"runtime error: {kind}: {message}")
        self.kind = kind
        self.message = message


class TypeMismatch(WokeError):
    """A boxed value was read as a type other than its tag."""
    def __init__(self, expected: str, actual: str):
        super().__init__(f"type mismatch: expected {expected}, got {actual}")
        self.expected = expected
        self.actual = actual


class ReturnSignal(Exception):
    """Internal signal carrying the value of a `give back` statement."""
    def __init__(self, value: Any):
        super().__init__('give back')
        self.value = value
