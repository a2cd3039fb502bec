"""Evaluator for the WokeLang language.

The interpreter walks the AST produced by `wokelang.parser`. It owns the
global function table, the global environment (top-level `let` bindings)
and the call stack. Functions and globals accumulate across successive
`exec_source` calls, which is what makes REPL-style embedding work; a call
that fails leaves both exactly as they were before it started.

Constructing an interpreter raises the process-wide Python recursion limit
enough for `max_call_depth` nested calls (`sys.setrecursionlimit` is never
lowered), so every interpreter in the process shares the highest limit asked
for.

Runtime values are the plain Python objects described in
`wokelang.types`. Errors are raised as `WokeRuntimeError` and never caught
here except to restore state.
"""

from __future__ import annotations

import enum
import logging
import math
import sys
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, TextIO

from .ast import (
    Program, FuncParam, FuncDecl, Block, LetStmt, Assign, IfStmt, WhileStmt,
    ReturnStmt, ExprStmt, Literal, Ident, BinaryOp, UnaryOp, Call, ArrayLit,
    Index, Conditional, Node,
)
from .environment import Environment
from .errors import WokeRuntimeError, ReturnSignal
from .parser import parse_program, parse_expression
from .std import BuiltinFunction, populate_core_builtins
from .types import (
    TypeSpec, ArrayVal, UNIT, check_int, check_value, compare_values,
    is_number, to_string, type_name, values_equal,
)

logger = logging.getLogger("wokelang.interpreter")
logger.addHandler(logging.NullHandler())

DEFAULT_MAX_CALL_DEPTH = 1024

# Upper bound on the Python frames one WokeLang call can occupy: the call
# itself, its body, nested blocks and the expressions inside them.
PY_FRAMES_PER_CALL = 32


def ensure_recursion_limit(limit: int) -> None:
    if sys.getrecursionlimit() < limit:
        sys.setrecursionlimit(limit)


class FrameState(enum.Enum):
    ENTERING = 'entering'
    RUNNING = 'running'
    RETURNING = 'returning'
    FELL_THROUGH = 'fell through'
    EXITED = 'exited'


@dataclass
class CallFrame:
    """Book-keeping for one active function call."""
    name: str
    depth: int
    state: FrameState = FrameState.ENTERING


class FunctionValue:
    """Represents a user-defined WokeLang function."""
    def __init__(self, name: str, params: List[FuncParam], return_type: Optional[TypeSpec], body: Block):
        self.name = name
        self.params = params
        self.return_type = return_type
        self.body = body

    def __repr__(self) -> str:
        return f"<function {self.name}>"


class Interpreter:
    """Core interpreter that executes WokeLang programs and expressions."""
    def __init__(self, debug_level: int = 0, max_call_depth: int = DEFAULT_MAX_CALL_DEPTH,
                 stdout: Optional[TextIO] = None):
        self.global_env = Environment()
        self.functions: Dict[str, FunctionValue] = {}
        self.builtins: Dict[str, BuiltinFunction] = populate_core_builtins(self.write_output)
        self.call_stack: List[CallFrame] = []
        self.debug_level = debug_level
        self.max_call_depth = max_call_depth
        self.stdout = stdout
        ensure_recursion_limit(max_call_depth * PY_FRAMES_PER_CALL + 1000)

    def debug(self, msg: str):
        if self.debug_level > 0:
            logger.debug(msg)

    def write_output(self, text: str):
        stream = self.stdout if self.stdout is not None else sys.stdout
        stream.write(text)
        stream.flush()

    # Public API
    def exec_source(self, source: str) -> None:
        """Parse and run a whole program."""
        program = parse_program(source)
        self.run(program)

    def eval_source(self, source: str) -> Any:
        """Parse and evaluate a single expression, returning its value."""
        expr = parse_expression(source)
        return self.evaluate_expression(expr)

    def run(self, program: Program) -> None:
        if self.debug_level >= 1:
            self.debug(f"exec: {len(program.functions)} functions, {len(program.statements)} statements")
        self.transaction(self.run_program, program)

    def evaluate_expression(self, expr: Node) -> Any:
        if self.debug_level >= 1:
            self.debug(f"eval: {type(expr).__name__} at {expr.line}:{expr.column}")
        return self.transaction(self.evaluate, expr, self.global_env)

    def reset(self):
        """Drop every function definition and global binding."""
        self.functions.clear()
        self.global_env.clear()
        self.call_stack.clear()

    def transaction(self, fn, *args) -> Any:
        functions = dict(self.functions)
        globals_ = self.global_env.snapshot()
        try:
            return fn(*args)
        except RecursionError:
            self.functions = functions
            self.global_env.restore(globals_)
            raise WokeRuntimeError(
                'StackOverflow', f'stack depth exceeded at call depth {len(self.call_stack)}') from None
        except WokeRuntimeError:
            self.functions = functions
            self.global_env.restore(globals_)
            raise
        finally:
            self.call_stack.clear()

    def run_program(self, program: Program) -> None:
        for func in program.functions:
            self.define_function(func)
        for stmt in program.statements:
            result = self.execute(stmt, self.global_env)
            if isinstance(result, ReturnSignal):
                raise WokeRuntimeError('ReturnError', 'give back is only allowed inside a function')

    def define_function(self, node: FuncDecl):
        if self.debug_level >= 2 and node.name in self.functions:
            self.debug(f"redefine function {node.name}")
        self.functions[node.name] = FunctionValue(node.name, node.params, node.return_type, node.body)
        if self.debug_level >= 2:
            self.debug(f"define function {node.name}")

    # Statements
    def execute_block(self, statements: List[Node], env: Environment) -> Any:
        for stmt in statements:
            result = self.execute(stmt, env)
            # propagate return signals
            if isinstance(result, ReturnSignal):
                return result
        return None

    def execute(self, node: Node, env: Environment) -> Any:
        if isinstance(node, LetStmt):
            value = self.evaluate(node.expr, env)
            env.declare(node.name, value)
            if self.debug_level >= 2:
                self.debug(f"let {node.name}: {type_name(value)} = {to_string(value)}")
            return None
        if isinstance(node, Assign):
            value = self.evaluate(node.value, env)
            env.set(node.name, value)
            return None
        if isinstance(node, Block):
            return self.execute_block(node.statements, Environment(parent=env))
        if isinstance(node, IfStmt):
            cond = self.condition(node.condition, env, 'if')
            if self.debug_level >= 3:
                self.debug(f"if at {node.line}:{node.column} -> {cond}")
            if cond:
                return self.execute(node.then_block, env)
            if node.else_block is not None:
                return self.execute(node.else_block, env)
            return None
        if isinstance(node, WhileStmt):
            while self.condition(node.condition, env, 'while'):
                res = self.execute(node.body, env)
                if isinstance(res, ReturnSignal):
                    return res
            return None
        if isinstance(node, ReturnStmt):
            value = self.evaluate(node.value, env) if node.value is not None else UNIT
            return ReturnSignal(value)
        if isinstance(node, ExprStmt):
            self.evaluate(node.expr, env)
            return None
        raise NotImplementedError(f"execute: unexpected node type {type(node)}")

    def condition(self, node: Node, env: Environment, context: str) -> bool:
        value = self.evaluate(node, env)
        if not isinstance(value, bool):
            raise WokeRuntimeError('TypeError', f'{context} condition must be Bool, got {type_name(value)}')
        return value

    # Expressions
    def evaluate(self, node: Node, env: Environment) -> Any:
        if isinstance(node, Literal):
            return node.value
        if isinstance(node, Ident):
            return env.get(node.name)
        if isinstance(node, BinaryOp):
            if node.op in ('&&', '||'):
                return self.logical(node, env)
            left = self.evaluate(node.left, env)
            right = self.evaluate(node.right, env)
            return self.apply_binary_op(node.op, left, right)
        if isinstance(node, UnaryOp):
            operand = self.evaluate(node.operand, env)
            return self.apply_unary_op(node.op, operand)
        if isinstance(node, Call):
            return self.call(node, env)
        if isinstance(node, ArrayLit):
            return ArrayVal([self.evaluate(el, env) for el in node.elements])
        if isinstance(node, Index):
            target = self.evaluate(node.target, env)
            index = self.evaluate(node.index, env)
            return self.index(target, index)
        if isinstance(node, Conditional):
            if self.condition(node.condition, env, 'conditional'):
                return self.evaluate(node.then_expr, env)
            return self.evaluate(node.else_expr, env)
        raise NotImplementedError(f"evaluate: unexpected node type {type(node)}")

    def logical(self, node: BinaryOp, env: Environment) -> bool:
        left = self.evaluate(node.left, env)
        if not isinstance(left, bool):
            raise WokeRuntimeError('TypeError', f'left operand of {node.op} must be Bool, got {type_name(left)}')
        # Short-circuit: the right operand is not evaluated when the left decides
        if node.op == '&&' and not left:
            return False
        if node.op == '||' and left:
            return True
        right = self.evaluate(node.right, env)
        if not isinstance(right, bool):
            raise WokeRuntimeError('TypeError', f'right operand of {node.op} must be Bool, got {type_name(right)}')
        return right

    def index(self, target: Any, index: Any) -> Any:
        if not isinstance(target, ArrayVal):
            raise WokeRuntimeError('TypeError', f'cannot index type {type_name(target)}')
        if isinstance(index, bool) or not isinstance(index, int):
            raise WokeRuntimeError('TypeError', f'array index must be Int, got {type_name(index)}')
        if index < 0 or index >= len(target.items):
            raise WokeRuntimeError('IndexError', f'array index {index} out of range for length {len(target.items)}')
        return target.items[index]

    # Calls
    def call(self, node: Call, env: Environment) -> Any:
        func = self.functions.get(node.name)
        if func is None:
            builtin = self.builtins.get(node.name)
            if builtin is None:
                raise WokeRuntimeError('NameError', f'undefined function {node.name}')
            args = [self.evaluate(arg, env) for arg in node.args]
            return builtin(args)
        if len(node.args) != len(func.params):
            raise WokeRuntimeError(
                'ArityError', f"{func.name} expects {len(func.params)} arguments, got {len(node.args)}")
        args = [self.evaluate(arg, env) for arg in node.args]
        return self.call_function(func, args)

    def call_function(self, func: FunctionValue, args: List[Any]) -> Any:
        if len(self.call_stack) >= self.max_call_depth:
            raise WokeRuntimeError(
                'StackOverflow',
                f'stack depth exceeded: calling {func.name} would go past {self.max_call_depth} frames')
        frame = CallFrame(func.name, len(self.call_stack) + 1)
        self.call_stack.append(frame)
        try:
            # Functions see their parameters and the globals, never the caller's locals
            call_env = Environment(parent=self.global_env)
            for param, arg in zip(func.params, args):
                try:
                    check_value(arg, param.type_spec)
                except TypeError as e:
                    raise WokeRuntimeError('TypeError', f"argument {param.name} of {func.name}: {e}")
                call_env.declare(param.name, arg)
            frame.state = FrameState.RUNNING
            if self.debug_level >= 3:
                self.debug(f"call {func.name} depth={frame.depth}")
            res = self.execute_block(func.body.statements, call_env)
            if isinstance(res, ReturnSignal):
                frame.state = FrameState.RETURNING
                ret_val = res.value
            else:
                frame.state = FrameState.FELL_THROUGH
                ret_val = UNIT
            if func.return_type is not None:
                try:
                    check_value(ret_val, func.return_type)
                except TypeError as e:
                    raise WokeRuntimeError('TypeError', f"return type mismatch in function {func.name}: {e}")
            if self.debug_level >= 3:
                self.debug(f"leave {func.name} depth={frame.depth}: {frame.state.value}")
            frame.state = FrameState.EXITED
            return ret_val
        finally:
            self.call_stack.pop()

    # Operators
    def apply_unary_op(self, op: str, operand: Any) -> Any:
        if op == '!':
            if not isinstance(operand, bool):
                raise WokeRuntimeError('TypeError', f'! expects Bool, got {type_name(operand)}')
            return not operand
        if op == '-':
            if not is_number(operand):
                raise WokeRuntimeError('TypeError', f'unary - expects a number, got {type_name(operand)}')
            if isinstance(operand, int):
                return check_int(-operand)
            return -operand
        raise WokeRuntimeError('TypeError', f'unsupported unary operator {op}')

    def apply_binary_op(self, op: str, a: Any, b: Any) -> Any:
        if op == '+' and (isinstance(a, str) or isinstance(b, str)):
            return to_string(a) + to_string(b)
        if op in ('+', '-', '*', '/', '%'):
            if not (is_number(a) and is_number(b)):
                raise WokeRuntimeError(
                    'TypeError', f'unsupported operand types for {op}: {type_name(a)} and {type_name(b)}')
            if isinstance(a, int) and isinstance(b, int):
                return self.int_arithmetic(op, a, b)
            return self.float_arithmetic(op, float(a), float(b))
        if op == '==':
            return values_equal(a, b)
        if op == '!=':
            return not values_equal(a, b)
        if op in ('<', '<=', '>', '>='):
            return compare_values(op, a, b)
        raise WokeRuntimeError('TypeError', f'unknown operator {op}')

    def int_arithmetic(self, op: str, a: int, b: int) -> int:
        if op == '+':
            return check_int(a + b)
        if op == '-':
            return check_int(a - b)
        if op == '*':
            return check_int(a * b)
        if b == 0:
            raise WokeRuntimeError('DivisionByZero', 'division by zero' if op == '/' else 'division by zero in modulo')
        # truncate toward zero; the remainder takes the sign of the dividend
        quotient = abs(a) // abs(b)
        if (a < 0) != (b < 0):
            quotient = -quotient
        if op == '/':
            return check_int(quotient)
        return a - b * quotient

    def float_arithmetic(self, op: str, a: float, b: float) -> float:
        if op == '+':
            return a + b
        if op == '-':
            return a - b
        if op == '*':
            return a * b
        if op == '/':
            if b == 0.0:
                if a == 0.0 or math.isnan(a):
                    return math.nan
                return math.copysign(math.inf, a) * math.copysign(1.0, b)
            return a / b
        if b == 0.0 or math.isinf(a) or math.isnan(a) or math.isnan(b):
            return math.nan
        return math.fmod(a, b)
