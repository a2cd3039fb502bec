from typing import Any, Dict, Iterator, Optional
from wokelang.errors import WokeRuntimeError


class Environment:
    """A scope frame mapping names to values, chained to its enclosing frame."""
    def __init__(self, parent: Optional['Environment'] = None):
        self.parent = parent
        self.values: Dict[str, Any] = {}

    def frames(self) -> Iterator['Environment']:
        env: Optional[Environment] = self
        while env is not None:
            yield env
            env = env.parent

    def get(self, name: str) -> Any:
        for env in self.frames():
            if name in env.values:
                return env.values[name]
        raise WokeRuntimeError('NameError', f'undefined variable {name}')

    def set(self, name: str, value: Any):
        # Assignment updates the nearest frame that already binds the name
        for env in self.frames():
            if name in env.values:
                env.values[name] = value
                return
        raise WokeRuntimeError('NameError', f'cannot assign to undefined variable {name}')

    def declare(self, name: str, value: Any):
        # `let` always binds in this frame, shadowing outer bindings
        self.values[name] = value

    def snapshot(self) -> Dict[str, Any]:
        return dict(self.values)

    def restore(self, values: Dict[str, Any]):
        self.values = dict(values)

    def clear(self):
        self.values.clear()
