"""
Tests for the interactive session in alicelang.repl.
"""
import io

from alicelang.config import AliceConfig
from alicelang.repl import CONTINUATION_PROMPT, Repl


def make_repl(text: str, **config):
    stdout, stderr = io.StringIO(), io.StringIO()
    repl = Repl(AliceConfig(**config), stdin=io.StringIO(text), stdout=stdout, stderr=stderr)
    return repl, stdout, stderr


def test_banner_and_prompt():
    repl, out, _ = make_repl("", prompt="> ")
    assert repl.run() == 0
    assert out.getvalue().startswith("interactive alice\n> ")


def test_stack_persists_between_lines():
    repl, out, err = make_repl("1 2\n+ println\n")
    assert repl.run() == 0
    assert "3\n" in out.getvalue()
    assert err.getvalue() == ""


def test_bindings_persist_between_lines():
    repl, out, _ = make_repl('let name: string = "alice"\nfun hi { "hi " name + println }\nhi()\n')
    repl.run()
    assert "hi alice\n" in out.getvalue()


def test_open_brace_continues_input():
    repl, out, err = make_repl("fun f -> int {\n  7\n}\nf() println\n")
    repl.run()
    assert CONTINUATION_PROMPT in out.getvalue()
    assert "7\n" in out.getvalue()
    assert err.getvalue() == ""


def test_parse_error_is_reported_and_session_continues():
    repl, out, err = make_repl("1 $\n2 println\n")
    assert repl.run() == 0
    assert "error parsing input" in err.getvalue()
    assert "2\n" in out.getvalue()


def test_type_error_rolls_back_line():
    repl, out, err = make_repl('5\n"a" +\nprintln\n')
    repl.run()
    assert "error:" in err.getvalue()
    assert "5\n" in out.getvalue()


def test_runtime_error_keeps_session_usable():
    repl, out, err = make_repl("1 0 /\n8 println\n")
    repl.run()
    assert "divide by zero" in err.getvalue()
    assert "8\n" in out.getvalue()


def test_exit_returns_code():
    repl, _, _ = make_repl("4 exit\n9 println\n")
    assert repl.run() == 4


def test_blank_lines_are_skipped():
    repl, _, err = make_repl("\n   \n")
    assert repl.run() == 0
    assert err.getvalue() == ""


def test_feed_reports_errors():
    repl, _, err = make_repl("")
    repl.feed("drop")
    assert err.getvalue().startswith("error:")


def test_deeply_nested_line_is_reported():
    depth = 2000
    line = "{ " * depth + "1 println" + " }" * depth
    repl, out, err = make_repl(line + "\n5 println\n")
    assert repl.run() == 0
    assert "nested too deep" in err.getvalue()
    assert "5\n" in out.getvalue()
