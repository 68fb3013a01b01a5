from __future__ import annotations

import logging
from typing import List, Optional, TextIO, Union

from lark import Token, Tree

from . import tree as ast
from .diagnostics import Diagnostics, Phase
from .resolver import DistanceTable
from .runtime import install_natives
from .types import (
    Frame, LoxFunction, LoxRuntimeError, LoxValue, Returning,
)
from .utils import debug_py_trace_enabled, is_truthy, recursion_limit, stringify

from .eval.expr import eval_binary, eval_logical, eval_ternary, eval_unary
from .eval.fn import eval_call, exec_fundecl, invoke_function
from .eval.objects import eval_get, eval_set, eval_super, exec_classdecl

logger = logging.getLogger(__name__)

Outcome = Optional[Returning]

STACK_OVERFLOW = "Stack overflow."

def _maybe_attach_location(exc: LoxRuntimeError, node: Tree) -> None:
    if exc.offset is not None:
        return

    exc.attach(ast.node_offset(node))

class Interpreter:
    """Tree-walking evaluator.

    One instance owns the global frame and the accumulated distance table, so
    an interactive host can feed it statements line after line. The active
    frame is passed down explicitly; nothing is swapped in place, so every
    exit path leaves the caller's frame untouched.
    """

    def __init__(self, out: Optional[TextIO] = None):
        self.out = out
        self.globals = install_natives(Frame())
        self.locals = DistanceTable()

    # ---------------- Resolver hand-off ----------------

    def set_distances(self, table: DistanceTable) -> None:
        self.locals.update(table)

    # ---------------- Public API ----------------

    def interpret(self, target: Union[List[Tree], Tree]) -> Diagnostics:
        """Run statements (or print the value of one bare expression).

        A runtime error aborts the run and comes back as a single diagnostic.
        """
        diagnostics = Diagnostics()
        current: Optional[Tree] = None

        try:
            with recursion_limit():
                if isinstance(target, Tree) and ast.is_expr(target):
                    current = target
                    value = self.evaluate(target, self.globals)
                    self.emit(stringify(value))
                else:
                    stmts = [target] if isinstance(target, Tree) else target
                    for stmt in stmts:
                        current = stmt
                        self.execute(stmt, self.globals)
        except RecursionError:
            # positioned at the top-level statement that overflowed
            offset = ast.node_offset(current) if current is not None else None
            offset = offset if offset is not None else 0
            diagnostics.report(offset, STACK_OVERFLOW, Phase.RUNTIME)
            logger.debug("stack overflow at offset %d", offset)
        except LoxRuntimeError as e:
            trace = e.__traceback__ if debug_py_trace_enabled() else None
            offset = e.offset if e.offset is not None else 0
            diagnostics.report(offset, e.message, Phase.RUNTIME, py_trace=trace)
            logger.debug("runtime error at offset %d: %s", offset, e.message)

        return diagnostics

    def emit(self, text: str) -> None:
        print(text, file=self.out)

    # ---------------- Statements ----------------

    def execute(self, n: Tree, frame: Frame) -> Outcome:
        try:
            return self._execute_inner(n, frame)
        except LoxRuntimeError as e:
            _maybe_attach_location(e, n)
            raise

    def _execute_inner(self, n: Tree, frame: Frame) -> Outcome:
        match n.data:
            case 'exprstmt':
                self.evaluate(n.children[0], frame)
            case 'printstmt':
                self.emit(stringify(self.evaluate(n.children[0], frame)))
            case 'vardecl':
                name, initializer = n.children
                value = None
                if initializer is not None:
                    value = self.evaluate(initializer, frame)
                frame.define(name, value)
            case 'block':
                return self.execute_block(n.children, Frame(parent=frame))
            case 'ifstmt':
                cond, then_branch, else_branch = n.children
                if is_truthy(self.evaluate(cond, frame)):
                    return self.execute(then_branch, frame)
                if else_branch is not None:
                    return self.execute(else_branch, frame)
            case 'whilestmt':
                cond, body = n.children
                while is_truthy(self.evaluate(cond, frame)):
                    outcome = self.execute(body, frame)
                    if outcome is not None:
                        return outcome
            case 'fundecl':
                exec_fundecl(n, frame)
            case 'returnstmt':
                _, value_node = n.children
                value = None
                if value_node is not None:
                    value = self.evaluate(value_node, frame)
                return Returning(value)
            case 'classdecl':
                exec_classdecl(n, frame, self)
            case _:
                raise ValueError(f"unknown statement node: {n.data}")

        return None

    def execute_block(self, stmts: List[Tree], frame: Frame) -> Outcome:
        """Run stmts in frame (already created by the caller), stopping at a return."""
        for stmt in stmts:
            outcome = self.execute(stmt, frame)
            if outcome is not None:
                return outcome

        return None

    # ---------------- Expressions ----------------

    def evaluate(self, n: Tree, frame: Frame) -> LoxValue:
        try:
            return self._evaluate_inner(n, frame)
        except LoxRuntimeError as e:
            _maybe_attach_location(e, n)
            raise

    def _evaluate_inner(self, n: Tree, frame: Frame) -> LoxValue:
        match n.data:
            case 'literal':
                return n.children[0]
            case 'grouping':
                return self.evaluate(n.children[0], frame)
            case 'variable':
                return self.lookup_variable(n, n.children[0], frame)
            case 'this':
                return self.lookup_variable(n, n.children[0], frame)
            case 'assign':
                name, value_node = n.children
                value = self.evaluate(value_node, frame)
                self.assign_variable(n, name, value, frame)
                return value
            case 'unary':
                return eval_unary(n, frame, self)
            case 'binary':
                return eval_binary(n, frame, self)
            case 'logical':
                return eval_logical(n, frame, self)
            case 'ternary':
                return eval_ternary(n, frame, self)
            case 'call':
                return eval_call(n, frame, self)
            case 'get':
                return eval_get(n, frame, self)
            case 'set':
                return eval_set(n, frame, self)
            case 'super':
                return eval_super(n, frame, self)
            case _:
                raise ValueError(f"unknown expression node: {n.data}")

    # ---------------- Variables ----------------

    def lookup_variable(self, n: Tree, name: Token, frame: Frame) -> LoxValue:
        distance = self.locals.get(n)

        if distance is None:
            return self.globals.get(name)
        return frame.get_at(distance, name)

    def assign_variable(self, n: Tree, name: Token, value: LoxValue, frame: Frame) -> None:
        distance = self.locals.get(n)

        if distance is None:
            self.globals.assign(name, value)
        else:
            frame.assign_at(distance, name, value)

    # ---------------- Calls ----------------

    def call_function(self, fn: LoxFunction, closure: Frame, args: List[LoxValue]) -> LoxValue:
        return invoke_function(fn, closure, args, self)

# ---------------- Module entry point ----------------

def interpret(
    target: Union[List[Tree], Tree],
    distances: Optional[DistanceTable] = None,
    out: Optional[TextIO] = None,
) -> Diagnostics:
    """Run target against a fresh global frame using a resolver distance table"""
    interp = Interpreter(out=out)

    if distances is not None:
        interp.set_distances(distances)
    return interp.interpret(target)
