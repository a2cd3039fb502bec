import io
import logging
import math
import sys

import pytest

from wokelang.errors import WokeRuntimeError
from wokelang.interpreter import Interpreter, PY_FRAMES_PER_CALL
from wokelang.types import ArrayVal, UNIT


@pytest.fixture
def interp():
    return Interpreter()


def runtime_error(interp, source, exec_=False):
    with pytest.raises(WokeRuntimeError) as exc:
        if exec_:
            interp.exec_source(source)
        else:
            interp.eval_source(source)
    return exc.value


@pytest.mark.parametrize('source, expected', [
    ('1 + 2', 3),
    ('1 + 2.5', 3.5),
    ('2.5 * 2', 5.0),
    ('7 / 2', 3),
    ('-7 / 2', -3),
    ('7 % 3', 1),
    ('-7 % 2', -1),
    ('7 % -2', 1),
    ('7.5 % 2', 1.5),
    ('"a" + "b"', 'ab'),
    ('"n=" + 5', 'n=5'),
    ('1.5 + "x"', '1.5x'),
    ('"t" + true', 'ttrue'),
    ('!true', False),
    ('-(3)', -3),
    ('1 == 1', True),
    ('1 == 1.0', False),
    ('"a" != "b"', True),
    ('[1, [2]] == [1, [2]]', True),
    ('() == ()', True),
    ('1 < 1.5', True),
    ('2.0 >= 2', True),
    ('"abc" < "abd"', True),
    ('[10, 20, 30][1]', 20),
    ('if (1 < 2) { "a" } else { "b" }', 'a'),
    ('len("héllo")', 6),
    ('len([1, 2, 3])', 3),
    ('toString([1, 2.0])', '[1, 2.0]'),
    ('toInt("12")', 12),
    ('toInt("-0042")', -42),
    ('toInt("+7")', 7),
    ('toInt("9223372036854775807")', 9223372036854775807),
    ('toInt(-2.7)', -2),
])
def test_expressions(interp, source, expected):
    result = interp.eval_source(source)
    assert result == expected
    assert type(result) is type(expected)


def test_float_division_by_zero_follows_ieee(interp):
    assert interp.eval_source('1.0 / 0.0') == math.inf
    assert interp.eval_source('-1.0 / 0') == -math.inf
    assert math.isnan(interp.eval_source('0.0 / 0.0'))
    assert math.isnan(interp.eval_source('1.5 % 0.0'))


def test_unit_and_arrays(interp):
    assert interp.eval_source('()') is UNIT
    assert interp.eval_source('[1, "a", true]') == ArrayVal([1, 'a', True])


@pytest.mark.parametrize('source, kind, message', [
    ('10 / 0', 'DivisionByZero', 'division by zero'),
    ('10 % 0', 'DivisionByZero', 'division by zero in modulo'),
    ('9223372036854775807 + 1', 'Overflow', 'integer overflow'),
    ('-9223372036854775807 - 2', 'Overflow', 'integer overflow'),
    ('1 - true', 'TypeError', 'unsupported operand types for -: Int and Bool'),
    ('!1', 'TypeError', '! expects Bool, got Int'),
    ('-"s"', 'TypeError', 'unary - expects a number, got String'),
    ('1 < "a"', 'TypeError', 'cannot compare Int with String'),
    ('[1][1]', 'IndexError', 'array index 1 out of range for length 1'),
    ('[1][-1]', 'IndexError', 'out of range'),
    ('[1][true]', 'TypeError', 'array index must be Int, got Bool'),
    ('5[0]', 'TypeError', 'cannot index type Int'),
    ('missing', 'NameError', 'undefined variable missing'),
    ('missing()', 'NameError', 'undefined function missing'),
    ('1 && true', 'TypeError', 'left operand of && must be Bool'),
    ('false || 1', 'TypeError', 'right operand of || must be Bool'),
    ('if (1) { 2 } else { 3 }', 'TypeError', 'conditional condition must be Bool'),
    ('len(1)', 'TypeError', 'len() requires String or Array'),
    ('len()', 'ArityError', 'len expects 1 arguments, got 0'),
    ('toInt("abc")', 'ValueError', 'cannot parse Int'),
    ('toInt(" 7")', 'ValueError', 'cannot parse Int'),
    ('toInt("7\\n")', 'ValueError', 'cannot parse Int'),
    ('toInt("1_000")', 'ValueError', 'cannot parse Int'),
    ('toInt("١٢")', 'ValueError', 'cannot parse Int'),
    ('toInt("")', 'ValueError', 'cannot parse Int'),
    ('toInt("9223372036854775808")', 'ValueError', 'cannot parse Int'),
    ('toInt(0.0 / 0.0)', 'ValueError', 'cannot convert NaN to Int'),
])
def test_runtime_errors(interp, source, kind, message):
    err = runtime_error(interp, source)
    assert err.kind == kind
    assert message in err.message
    assert str(err).startswith(f'runtime error: {kind}: ')


def test_short_circuit_skips_right_operand(interp):
    assert interp.eval_source('false && undefined()') is False
    assert interp.eval_source('true || undefined()') is True
    assert interp.eval_source('true && (1 < 2)') is True


def test_functions_accumulate_across_exec(interp):
    interp.exec_source('to double(x: Int) -> Int { give back x * 2; }')
    interp.exec_source('to quad(x: Int) -> Int { give back double(double(x)); }')
    assert interp.eval_source('quad(3)') == 12


def test_later_definition_replaces_earlier(interp):
    interp.exec_source('to f() -> Int { give back 1; }')
    interp.exec_source('to f() -> Int { give back 2; }')
    assert interp.eval_source('f()') == 2


def test_functions_can_be_called_before_their_definition(interp):
    interp.exec_source('let r = later(); to later() -> Int { give back 5; }')
    assert interp.eval_source('r') == 5


def test_globals_persist_and_update(interp):
    interp.exec_source('let counter = 0;')
    interp.exec_source('to bump() -> Unit { counter = counter + 1; }')
    interp.exec_source('bump(); bump();')
    assert interp.eval_source('counter') == 2


def test_functions_do_not_see_caller_locals(interp):
    interp.exec_source('to peek() -> Int { give back hidden; }')
    interp.exec_source('to caller() -> Int { let hidden = 1; give back peek(); }')
    err = runtime_error(interp, 'caller()')
    assert err.kind == 'NameError'
    assert 'hidden' in err.message


def test_block_scoping_and_shadowing(interp):
    interp.exec_source("""
        let x = 1;
        let seen = 0;
        {
            let x = 10;
            seen = x;
        }
    """)
    assert interp.eval_source('x') == 1
    assert interp.eval_source('seen') == 10


def test_block_locals_do_not_leak(interp):
    interp.exec_source('if (true) { let inner = 1; }')
    err = runtime_error(interp, 'inner')
    assert err.kind == 'NameError'


def test_assignment_to_undeclared_variable(interp):
    err = runtime_error(interp, 'y = 1;', exec_=True)
    assert err.message == 'cannot assign to undefined variable y'


def test_while_loop_and_early_return(interp):
    interp.exec_source("""
        to first_over(xs: Array, limit: Int) -> Int {
            let i = 0;
            while (i < len(xs)) {
                if (xs[i] > limit) {
                    give back xs[i];
                }
                i = i + 1;
            }
            give back -1;
        }
    """)
    assert interp.eval_source('first_over([1, 5, 9, 12], 6)') == 9
    assert interp.eval_source('first_over([1, 2], 6)') == -1


def test_function_without_give_back_returns_unit(interp):
    interp.exec_source('to nothing() { let a = 1; }')
    assert interp.eval_source('nothing()') is UNIT


def test_parameter_types_are_checked(interp):
    interp.exec_source('to inc(n: Int) -> Int { give back n + 1; }')
    err = runtime_error(interp, 'inc("one")')
    assert err.kind == 'TypeError'
    assert err.message == 'argument n of inc: expected Int, got String'


def test_return_type_is_checked(interp):
    interp.exec_source('to bad() -> Int { give back "nope"; }')
    err = runtime_error(interp, 'bad()')
    assert 'return type mismatch in function bad' in err.message


def test_falling_off_a_typed_function(interp):
    interp.exec_source('to f() -> Int { let x = 1; }')
    err = runtime_error(interp, 'f()')
    assert 'expected Int, got Unit' in err.message


def test_arity_is_checked_before_arguments_run(interp):
    interp.exec_source('to one(a: Int) -> Int { give back a; }')
    err = runtime_error(interp, 'one(1, undefined())')
    assert err.kind == 'ArityError'
    assert err.message == 'one expects 1 arguments, got 2'


def test_user_functions_shadow_builtins(interp):
    interp.exec_source('to len(x: Int) -> Int { give back 99; }')
    assert interp.eval_source('len(1)') == 99


def test_give_back_outside_function(interp):
    err = runtime_error(interp, 'give back 1;', exec_=True)
    assert err.kind == 'ReturnError'


def test_failed_exec_rolls_back(interp):
    interp.exec_source('let x = 1;')
    err = runtime_error(interp, 'x = 2; to g() -> Int { give back 7; } let boom = 1 / 0;', exec_=True)
    assert err.kind == 'DivisionByZero'
    assert interp.eval_source('x') == 1
    assert 'g' not in interp.functions
    assert runtime_error(interp, 'boom').kind == 'NameError'


def test_failed_eval_rolls_back_globals(interp):
    interp.exec_source('let n = 0; to set_and_fail() -> Int { n = 5; give back 1 / 0; }')
    runtime_error(interp, 'set_and_fail()')
    assert interp.eval_source('n') == 0


def test_recursion(interp):
    interp.exec_source("""
        to fib(n: Int) -> Int {
            if (n < 2) { give back n; }
            give back fib(n - 1) + fib(n - 2);
        }
    """)
    assert interp.eval_source('fib(15)') == 610


def test_call_depth_limit(interp):
    interp.exec_source('to down(n: Int) -> Int { give back down(n + 1); }')
    err = runtime_error(interp, 'down(0)')
    assert err.kind == 'StackOverflow'
    assert 'stack depth' in err.message
    assert interp.call_stack == []
    assert interp.eval_source('1 + 1') == 2


def test_configurable_call_depth():
    interp = Interpreter(max_call_depth=10)
    interp.exec_source('to depth(n: Int) -> Int { if (n == 0) { give back 0; } give back 1 + depth(n - 1); }')
    assert interp.eval_source('depth(9)') == 9
    err = runtime_error(interp, 'depth(10)')
    assert err.message == 'stack depth exceeded: calling depth would go past 10 frames'


def test_deep_recursion_within_limit(interp):
    interp.exec_source('to count(n: Int) -> Int { if (n == 0) { give back 0; } give back 1 + count(n - 1); }')
    assert interp.eval_source('count(1000)') == 1000


def test_print_writes_to_configured_stream():
    out = io.StringIO()
    interp = Interpreter(stdout=out)
    interp.exec_source('print("a", 1, 2.5, true, [1], ()); print();')
    assert out.getvalue() == 'a 1 2.5 true [1] ()\n\n'


def test_print_defaults_to_stdout(interp, capsys):
    interp.exec_source('print("hello");')
    assert capsys.readouterr().out == 'hello\n'


def test_reset(interp):
    interp.exec_source('let x = 1; to f() -> Int { give back 1; }')
    interp.reset()
    assert runtime_error(interp, 'x').kind == 'NameError'
    assert runtime_error(interp, 'f()').kind == 'NameError'


def test_debug_logging(caplog):
    interp = Interpreter(debug_level=3)
    with caplog.at_level(logging.DEBUG, logger='wokelang.interpreter'):
        interp.exec_source('to f(a: Int) -> Int { give back a; } let y = f(1);')
    messages = [r.getMessage() for r in caplog.records]
    assert 'define function f' in messages
    assert 'call f depth=1' in messages
    assert 'let y: Int = 1' in messages


def test_no_debug_output_by_default(interp, caplog):
    with caplog.at_level(logging.DEBUG, logger='wokelang.interpreter'):
        interp.exec_source('let y = 1;')
    assert caplog.records == []


def test_to_int_rejects_huge_digit_strings(interp):
    err = runtime_error(interp, 'toInt("' + '1' * 5000 + '")')
    assert err.kind == 'ValueError'


def test_call_frame_states_are_traced(caplog):
    interp = Interpreter(debug_level=3)
    interp.exec_source("""
        to early(n: Int) -> Int { give back n; }
        to late() { let x = 1; }
    """)
    with caplog.at_level(logging.DEBUG, logger='wokelang.interpreter'):
        interp.eval_source('early(1)')
        interp.eval_source('late()')
    messages = [r.getMessage() for r in caplog.records]
    assert 'leave early depth=1: returning' in messages
    assert 'leave late depth=1: fell through' in messages
    assert interp.call_stack == []


def test_recursion_limit_is_raised_on_construction():
    Interpreter(max_call_depth=100)
    assert sys.getrecursionlimit() >= 100 * PY_FRAMES_PER_CALL + 1000
