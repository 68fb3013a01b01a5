from __future__ import annotations

from typing import TYPE_CHECKING, List

from lark import Tree

from .. import tree as ast
from ..runtime import call_value
from ..types import Frame, LoxFunction, LoxValue, Returning

if TYPE_CHECKING:
    from ..evaluator import Interpreter

def exec_fundecl(n: Tree, frame: Frame) -> None:
    fn_value = LoxFunction(declaration=n, closure=frame)
    frame.define(fn_value.name, fn_value)

def eval_call(n: Tree, frame: Frame, interp: 'Interpreter') -> LoxValue:
    callee_node, paren, _ = n.children
    callee = interp.evaluate(callee_node, frame)
    args = [interp.evaluate(arg, frame) for arg in ast.call_args(n)]
    return call_value(interp, callee, args, paren)

def invoke_function(fn: LoxFunction, closure: Frame, args: List[LoxValue], interp: 'Interpreter') -> LoxValue:
    """Run fn's body in a fresh frame chained to closure.

    Arity has already been checked by the caller. An initializer always
    yields the instance bound as `this` in closure.
    """
    call_frame = Frame(parent=closure)

    for param, arg in zip(ast.fn_params(fn.declaration), args):
        call_frame.define(param, arg)

    outcome = interp.execute_block(ast.fn_body(fn.declaration), call_frame)

    if fn.is_initializer:
        return closure.get_at(0, "this")

    if isinstance(outcome, Returning):
        return outcome.value
    return None
