from __future__ import annotations

from textwrap import dedent

import pytest

from tests.support.harness import Phase, run_runtime_case

SCENARIOS = [
    pytest.param(
        dedent(
            """\
            fun makeCounter() {
              var i = 0;
              fun count() { i = i + 1; return i; }
              return count;
            }
            var c = makeCounter();
            print c();
            print c();
        """
        ),
        ["1", "2"],
        None,
        id="counter-closure",
    ),
    pytest.param(
        dedent(
            """\
            fun makeCounter() {
              var i = 0;
              fun count() { i = i + 1; return i; }
              return count;
            }
            var a = makeCounter();
            var b = makeCounter();
            a(); a();
            print b();
        """
        ),
        ["1"],
        None,
        id="independent-closures",
    ),
    pytest.param(
        dedent(
            """\
            var inc;
            var get;
            fun make() {
              var n = 0;
              fun i() { n = n + 1; }
              fun g() { return n; }
              inc = i;
              get = g;
            }
            make();
            inc();
            inc();
            print get();
        """
        ),
        ["2"],
        None,
        id="closures-share-frame",
    ),
    pytest.param(
        dedent(
            """\
            fun outer() {
              var x = "before";
              fun show() { print x; }
              x = "after";
              return show;
            }
            outer()();
        """
        ),
        ["after"],
        None,
        id="capture-by-reference",
    ),
    pytest.param(
        dedent(
            """\
            fun fib(n) { return n < 2 ? n : fib(n - 1) + fib(n - 2); }
            print fib(15);
        """
        ),
        ["610"],
        None,
        id="recursion",
    ),
    pytest.param(
        dedent(
            """\
            fun f() {
              var i = 0;
              while (true) {
                if (i == 3) return i;
                i = i + 1;
              }
            }
            print f();
        """
        ),
        ["3"],
        None,
        id="return-from-loop",
    ),
    pytest.param(
        dedent(
            """\
            var x = "global";
            fun f() { { var x = "local"; return x; } }
            print f();
            print x;
        """
        ),
        ["local", "global"],
        None,
        id="return-from-block",
    ),
    pytest.param("fun f() { return; } print f();", ["nil"], None, id="bare-return-nil"),
    pytest.param("fun f() { } print f();", ["nil"], None, id="implicit-nil"),
    pytest.param("fun f(a, b) { return a + b; } print f(1, 2);", ["3"], None, id="params-in-order"),
    pytest.param("fun f() { } print f;", ["<fn f>"], None, id="display-fn"),
    pytest.param("print clock;", ["<native fn clock>"], None, id="display-native"),
    pytest.param("print clock() > 0;", ["true"], None, id="clock"),
    pytest.param("fun f(a) { a = 2; print a; } f(1);", ["2"], None, id="assign-param"),
    pytest.param(
        "fun f(a, b) {} f(1);",
        None,
        (Phase.RUNTIME, "Expected 2 arguments but got 1."),
        id="too-few-args",
    ),
    pytest.param(
        "fun f(a, b) {} f(1, 2, 3);",
        None,
        (Phase.RUNTIME, "Expected 2 arguments but got 3."),
        id="too-many-args",
    ),
    pytest.param("clock(1);", None, (Phase.RUNTIME, "Expected 0 arguments but got 1."), id="native-arity"),
    pytest.param('"text"();', None, (Phase.RUNTIME, "Can only call functions and classes."), id="call-string"),
    pytest.param("nil();", None, (Phase.RUNTIME, "Can only call functions and classes."), id="call-nil"),
    pytest.param(
        "fun f(a) { print a; } f(g());",
        None,
        (Phase.RUNTIME, "Undefined variable 'g'."),
        id="args-evaluated-before-call",
    ),
]


@pytest.mark.parametrize("source, expected_output, expected_error", SCENARIOS)
def test_function_scenarios(source: str, expected_output, expected_error) -> None:
    run_runtime_case(source, expected_output, expected_error)
