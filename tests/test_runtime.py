"""
Execution tests for alicelang.runtime.Runtime.
"""
import io
import sys

import pytest

from alicelang.ast import Block, Push, Word
from alicelang.config import AliceConfig
from alicelang.errors import AliceRuntimeError, ProgramExit, TypeCheckError
from alicelang.runtime import Runtime
from alicelang.types import int_value


def test_hello_example(run_alice, examples_dir):
    out = run_alice(examples_dir / "hello.alice")
    assert out.splitlines() == ["Hello, world!", "3", "3", "3.5", "1024", "1", "3", "2"]


def test_functions_example(run_alice, examples_dir):
    out = run_alice(examples_dir / "functions.alice")
    assert out.splitlines() == ["144", "Hello, Alice", "120"]


def test_control_example(run_alice, examples_dir):
    out = run_alice(examples_dir / "control.alice")
    assert out.splitlines() == ["small", "big", "false", "3", "31", "2.5 apples"]


@pytest.mark.parametrize("src,expected", [
    ("0 7 - 2 / println", "-3"),
    ("0 7 - 2 % println", "-1"),
    ("7 0 2 - % println", "1"),
    ("7.5 2 % println", "1.5"),
    ("10 4.0 / println", "2.5"),
    ("2 100 ** println", str(2 ** 100)),
    ("2.0 0 1 - ** println", "0.5"),
    ("0x10 0b11 + println", "19"),
    ("1_000 1 - println", "999"),
    ("1.0 println", "1"),
    ("0.1 0.2 + println", "0.30000000000000004"),
    ("0 1.0 - 0 * println", "-0"),
    ("1 2 < println", "true"),
    ("2.5 2.5 >= println", "true"),
    ('"a" "a" == println', "true"),
    ('"a" "b" != println', "true"),
])
def test_arithmetic_and_comparison(run_alice, src, expected):
    assert run_alice(src) == expected + "\n"


@pytest.mark.parametrize("src,expected", [
    ("1.0 0 / println", "inf"),
    ("0 1.0 - 0.0 / println", "-inf"),
    ("0.0 0.0 / println", "NaN"),
    ("10.0 400 ** println", "inf"),
    ("0.0 0 1 - ** println", "inf"),
    ("0.0 0 1.0 - ** println", "inf"),
    ("0.0 0 1 - * 0 1 - ** println", "-inf"),
    ("0.0 0 1 - * 0 2 - ** println", "inf"),
    ("0 1.0 - 0.5 ** println", "NaN"),
    ("0.0 1.0 0.0 / 0 1 - * ** println", "inf"),
    ("0.00001 println", "0.00001"),
    ("1.5e-7 println", "0.00000015"),
    ("0 1.0 - 3 / println", "-0.3333333333333333"),
])
def test_float_edge_cases(run_alice, src, expected):
    assert run_alice(src) == expected + "\n"


@pytest.mark.parametrize("src,message", [
    ("1 0 / println", "divide by zero"),
    ("1 0 % println", "divisor of zero"),
    ("2 0 1 - ** println", "negative exponent"),
    ("2 99999999999 ** println", "too large"),
])
def test_integer_errors(run_alice, src, message):
    with pytest.raises(AliceRuntimeError, match=message):
        run_alice(src)


def test_stack_words(run_alice):
    assert run_alice("1 2 swap println println") == "1\n2\n"
    assert run_alice("1 2 over pstack clear") == "1\n2\n1\n"
    assert run_alice("1 dup + println") == "2\n"
    assert run_alice("1 2 drop println") == "1\n"
    assert run_alice('"a" print "b" println') == "ab\n"


def test_input(run_alice):
    assert run_alice('input " there" + println', stdin="hello\n") == "hello there\n"
    assert run_alice("input println", stdin="") == "\n"


def test_exit_codes(run_alice):
    with pytest.raises(ProgramExit) as info:
        run_alice("3 exit")
    assert info.value.code == 3
    with pytest.raises(ProgramExit) as info:
        run_alice("okexit")
    assert info.value.code == 0


def test_output_before_exit_is_kept():
    out = io.StringIO()
    rt = Runtime(stdout=out)
    with pytest.raises(ProgramExit):
        rt.run_source('"bye" println 2 exit "never" println')
    assert out.getvalue() == "bye\n"


def test_if_else(run_alice):
    src = 'fun yn: bool -> string { if { "yes" } else { "no" } } true yn() println false yn() println'
    assert run_alice(src) == "yes\nno\n"
    assert run_alice('false if { "skipped" println }') == ""


def test_function_frames_are_isolated(run_alice):
    assert run_alice("fun f { 5 drop clear } 1 2 f() + println") == "3\n"
    assert run_alice("fun f: int, int { pstack drop drop } 9 1 2 f() println") == "1\n2\n9\n"


def test_named_parameters(run_alice):
    assert run_alice("fun sub: int a, int b -> int { a b - } 10 3 sub() println") == "7\n"


def test_functions_see_enclosing_bindings(run_alice):
    assert run_alice("let k: int = 5 fun addk: int -> int { k + } 1 addk() println") == "6\n"


def test_block_scopes(run_alice):
    src = 'let x: int = 1 { let x: string = "in" x println } x println'
    assert run_alice(src) == "in\n1\n"
    assert run_alice("let x: int = 1 let x: int = 2 x println") == "2\n"


def test_call_depth_limit(run_alice):
    with pytest.raises(AliceRuntimeError, match="maximum call depth of 10"):
        run_alice("fun spin { spin() } spin()", max_call_depth=10)


def test_type_errors_stop_before_running(run_alice):
    with pytest.raises(TypeCheckError):
        run_alice('"printed?" println 1 "a" +')


def test_run_without_program(runtime):
    with pytest.raises(AliceRuntimeError, match="No program loaded"):
        runtime.run()


def test_run_resets_stack(runtime):
    runtime.load("1 println")
    runtime.run()
    runtime.run()
    assert runtime.stdout.getvalue() == "1\n1\n"
    assert runtime.stack == []


def test_bench_console():
    rt = Runtime(AliceConfig(bench=True), stdout=io.StringIO())
    rt.run_source("fun f { } f() f()")
    assert len(rt.console) == 4
    assert all(line.startswith("[bench]") for line in rt.console)
    assert rt.metrics["calls"] == 2


def test_interactive_state_persists(runtime):
    runtime.eval_interactive("1 2")
    assert runtime.stack == [int_value(1), int_value(2)]
    runtime.eval_interactive("+ let total: int")
    runtime.eval_interactive("total println")
    assert runtime.stdout.getvalue() == "3\n"


def test_interactive_resync_after_runtime_error(runtime):
    runtime.eval_interactive("1 0")
    with pytest.raises(AliceRuntimeError):
        runtime.eval_interactive("/")
    assert runtime.stack == []
    with pytest.raises(TypeCheckError):
        runtime.eval_interactive("drop")
    runtime.eval_interactive("4 println")
    assert runtime.stdout.getvalue() == "4\n"


@pytest.mark.skipif(not hasattr(sys, "get_int_max_str_digits"), reason="no int digit limit")
def test_huge_int_cannot_be_printed(run_alice):
    with pytest.raises(AliceRuntimeError, match="too large to print"):
        run_alice("2 100000 ** println")
    assert run_alice("2 100000 ** 7 % println") == "2\n"


def test_deep_nesting_in_execution(runtime):
    body = [Push(int_value(1)), Word("println")]
    for _ in range(3000):
        body = [Block(body)]
    with pytest.raises(AliceRuntimeError, match="recursion limit"):
        runtime.execute(body)
