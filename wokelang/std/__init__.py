"""Built-in functions available to every WokeLang program."""

from dataclasses import dataclass
from typing import Any, Callable, List, Optional

from wokelang.errors import WokeRuntimeError


@dataclass
class BuiltinFunction:
    name: str
    arity: Optional[int]  # None means variadic
    fn: Callable[[List[Any]], Any]

    def __call__(self, args: List[Any]) -> Any:
        if self.arity is not None and len(args) != self.arity:
            raise WokeRuntimeError(
                'ArityError', f"{self.name} expects {self.arity} arguments, got {len(args)}")
        return self.fn(args)

    def __repr__(self) -> str:
        return f"<builtin {self.name}>"


from .core import populate_core_builtins  # noqa: E402

__all__ = ['BuiltinFunction', 'populate_core_builtins']
