from __future__ import annotations

from textwrap import dedent

import pytest

from tests.support.harness import Phase, run_runtime_case

SCENARIOS = [
    pytest.param('if (1) print "y"; else print "n";', ["y"], None, id="if-then"),
    pytest.param('if (nil) print "y"; else print "n";', ["n"], None, id="if-else"),
    pytest.param('if (false) print "y";', [], None, id="if-no-else"),
    pytest.param(
        dedent(
            """\
            var i = 0;
            while (i < 3) { print i; i = i + 1; }
        """
        ),
        ["0", "1", "2"],
        None,
        id="while",
    ),
    pytest.param("for (var i = 0; i < 3; i = i + 1) print i;", ["0", "1", "2"], None, id="for"),
    pytest.param(
        dedent(
            """\
            var i = 10;
            for (var i = 0; i < 1; i = i + 1) {}
            print i;
        """
        ),
        ["10"],
        None,
        id="for-var-is-scoped",
    ),
    pytest.param(
        dedent(
            """\
            var x = "outer";
            { var x = "inner"; print x; }
            print x;
        """
        ),
        ["inner", "outer"],
        None,
        id="block-shadowing",
    ),
    pytest.param(
        dedent(
            """\
            var x = "outer";
            { x = "assigned"; }
            print x;
        """
        ),
        ["assigned"],
        None,
        id="block-assigns-outer",
    ),
    pytest.param(
        dedent(
            """\
            var a = "global";
            {
              fun showA() { print a; }
              showA();
              var a = "block";
              showA();
            }
        """
        ),
        ["global", "global"],
        None,
        id="static-binding",
    ),
    pytest.param("var a = 1; var a = 2; print a;", ["2"], None, id="global-redeclare"),
    pytest.param("var a; print a;", ["nil"], None, id="var-defaults-nil"),
    pytest.param("print a = 3;", None, (Phase.RUNTIME, "Undefined variable 'a'."), id="assign-undefined"),
    pytest.param("print 1; print nope; print 2;", ["1"], (Phase.RUNTIME, "Undefined variable 'nope'."), id="error-aborts-run"),
    pytest.param(
        dedent(
            """\
            fun f() { print later; }
            var later = "ok";
            f();
        """
        ),
        ["ok"],
        None,
        id="global-used-before-declaration",
    ),
]


@pytest.mark.parametrize("source, expected_output, expected_error", SCENARIOS)
def test_control_flow_scenarios(source: str, expected_output, expected_error) -> None:
    run_runtime_case(source, expected_output, expected_error)
