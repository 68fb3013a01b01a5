from __future__ import annotations

import sys

import pytest

from tests.support.harness import Phase, run_captured, source_diagnostics


@pytest.mark.parametrize(
    "source, offset, message",
    [
        pytest.param("print 1 + true;", 8, "Operands must be two numbers or at least one string.", id="binary-op"),
        pytest.param("print -nil;", 6, "Operand must be a number.", id="unary-op"),
        pytest.param("print nope;", 6, "Undefined variable 'nope'.", id="undefined-read"),
        pytest.param("nope = 1;", 0, "Undefined variable 'nope'.", id="undefined-assign"),
        pytest.param("fun f(a) {} f();", 14, "Expected 1 arguments but got 0.", id="arity-at-paren"),
        pytest.param("class A {} A().zz;", 15, "Undefined property 'zz'.", id="property-name"),
        pytest.param("var B = nil; class A < B {}", 23, "Superclass must be a class.", id="superclass-name"),
    ],
)
def test_runtime_error_offsets(source: str, offset: int, message: str) -> None:
    _, result = run_captured(source)

    assert result.diagnostics.as_pairs() == [(offset, message)]
    assert next(iter(result.diagnostics)).phase is Phase.RUNTIME


def test_lexical_errors_suppress_execution() -> None:
    lines, result = run_captured("print 1; @")

    assert lines == []
    assert not result.executed
    assert result.diagnostics.as_pairs() == [(9, "Unexpected character '@'.")]


def test_lexical_and_syntax_errors_accumulate() -> None:
    assert source_diagnostics("var 1 = 2; #") == [
        (Phase.LEXICAL, "Unexpected character '#'."),
        (Phase.SYNTAX, "Expect variable name."),
    ]


def test_syntax_error_skips_resolution() -> None:
    # the resolver would complain about the return, but parsing already failed
    assert source_diagnostics("return 1; print ;") == [
        (Phase.SYNTAX, "Expect expression."),
    ]


def test_runtime_error_inside_call_is_positioned() -> None:
    _, result = run_captured("fun f() { return -\"x\"; }\nf();")
    assert result.diagnostics.as_pairs() == [(17, "Operand must be a number.")]


def test_py_trace_off_by_default(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("LOX_DEBUG_PY_TRACE", raising=False)
    _, result = run_captured("print nope;")

    diag = next(iter(result.diagnostics))
    assert diag.py_trace is None


def test_py_trace_kept_when_enabled(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LOX_DEBUG_PY_TRACE", "1")
    _, result = run_captured("print nope;")

    diag = next(iter(result.diagnostics))
    assert diag.py_trace is not None


def test_deep_recursion_runs() -> None:
    lines, result = run_captured(
        "fun count(n) { if (n > 0) return count(n - 1); return n; } print count(200);"
    )

    assert result.ok
    assert lines == ["0"]


def test_unbounded_recursion_is_a_runtime_error() -> None:
    lines, result = run_captured('fun f() { f(); } f(); print "unreached";')

    assert lines == []
    assert result.diagnostics.as_pairs() == [(17, "Stack overflow.")]
    assert next(iter(result.diagnostics)).phase is Phase.RUNTIME


def test_session_survives_stack_overflow(session_out) -> None:
    session, out = session_out

    session.run("fun f() { return f(); }")
    assert [d.message for d in session.run("f();").diagnostics] == ["Stack overflow."]
    assert session.run("print 1;").ok
    assert out.getvalue() == "1\n"


def test_nested_grouping_parses_and_runs() -> None:
    depth = 150
    lines, result = run_captured("print " + "(" * depth + "1" + ")" * depth + ";")

    assert result.ok
    assert lines == ["1"]


def test_excessive_nesting_is_a_syntax_error() -> None:
    depth = 5000
    source = "print " + "(" * depth + "1" + ")" * depth + "; print 2;"

    assert source_diagnostics(source) == [(Phase.SYNTAX, "Too deeply nested.")]


def test_excessive_nesting_in_bare_expression(session_out) -> None:
    session, _ = session_out
    result = session.eval_line("(" * 5000 + "1" + ")" * 5000)

    assert [(d.phase, d.message) for d in result.diagnostics] == [
        (Phase.SYNTAX, "Too deeply nested."),
    ]


def test_recursion_limit_is_restored() -> None:
    before = sys.getrecursionlimit()
    run_captured("fun f() { f(); } f();")
    assert sys.getrecursionlimit() == before
