from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, TextIO

from . import tree as ast
from .diagnostics import Diagnostics
from .evaluator import Interpreter
from .lexer import scan
from .parser import parse, parse_expression
from .resolver import resolve

logger = logging.getLogger(__name__)

@dataclass
class RunResult:
    diagnostics: Diagnostics = field(default_factory=Diagnostics)
    executed: bool = False

    @property
    def ok(self) -> bool:
        return not self.diagnostics

class Session:
    """One interpreter and global frame kept alive across inputs."""

    def __init__(self, out: Optional[TextIO] = None):
        self.interpreter = Interpreter(out=out)

    def run(self, source: str) -> RunResult:
        """Scan, parse, resolve and run a program.

        Any lexical, syntax or static diagnostic suppresses execution.
        """
        tokens, diagnostics = scan(source)
        stmts, syntax = parse(tokens)
        diagnostics.extend(syntax)

        if diagnostics:
            logger.debug("skipping execution: %d front-end diagnostics", len(diagnostics))
            return RunResult(diagnostics)

        table, static = resolve(stmts)
        if static:
            return RunResult(static)

        self.interpreter.set_distances(table)
        return RunResult(self.interpreter.interpret(stmts), executed=True)

    def eval_line(self, text: str) -> RunResult:
        """Interactive entry: a lone expression prints its value, anything else runs as statements."""
        tokens, diagnostics = scan(text)

        if not diagnostics:
            expr = parse_expression(tokens)
            if expr is not None:
                return self._eval_expression(expr)

        return self.run(text)

    def _eval_expression(self, expr) -> RunResult:
        table, static = resolve([ast.exprstmt(expr)])
        if static:
            return RunResult(static)

        self.interpreter.set_distances(table)
        return RunResult(self.interpreter.interpret(expr), executed=True)

def run(source: str, out: Optional[TextIO] = None) -> RunResult:
    """Run source in a fresh session"""
    return Session(out=out).run(source)
