from __future__ import annotations

import math
from typing import TYPE_CHECKING, Callable, Dict, Tuple

from lark import Token, Tree

from ..types import Frame, LoxTypeError, LoxValue
from ..utils import is_truthy, lox_equals, stringify

if TYPE_CHECKING:
    from ..evaluator import Interpreter

def require_number(op: Token, value: LoxValue) -> float:
    # bools are ints, never floats
    if not isinstance(value, float):
        raise LoxTypeError("Operand must be a number.", op)
    return value

def require_numbers(op: Token, lhs: LoxValue, rhs: LoxValue) -> Tuple[float, float]:
    if not isinstance(lhs, float) or not isinstance(rhs, float):
        raise LoxTypeError("Operands must be numbers.", op)
    return lhs, rhs

def _divide(lhs: float, rhs: float) -> float:
    # IEEE-754 rather than ZeroDivisionError
    if rhs == 0.0:
        if lhs == 0.0 or math.isnan(lhs):
            return math.nan
        return math.copysign(math.inf, lhs) * math.copysign(1.0, rhs)
    return lhs / rhs

_ARITH: Dict[str, Callable[[float, float], LoxValue]] = {
    'MINUS': lambda a, b: a - b,
    'STAR': lambda a, b: a * b,
    'SLASH': _divide,
    'GREATER': lambda a, b: a > b,
    'GREATER_EQUAL': lambda a, b: a >= b,
    'LESS': lambda a, b: a < b,
    'LESS_EQUAL': lambda a, b: a <= b,
}

def apply_plus(op: Token, lhs: LoxValue, rhs: LoxValue) -> LoxValue:
    match (lhs, rhs):
        case (float(), float()):
            return lhs + rhs
        case (str(), _) | (_, str()):
            return stringify(lhs) + stringify(rhs)
        case _:
            raise LoxTypeError("Operands must be two numbers or at least one string.", op)

def apply_binary(op: Token, lhs: LoxValue, rhs: LoxValue) -> LoxValue:
    match op.type:
        case 'PLUS':
            return apply_plus(op, lhs, rhs)
        case 'EQUAL_EQUAL':
            return lox_equals(lhs, rhs)
        case 'BANG_EQUAL':
            return not lox_equals(lhs, rhs)
        case _:
            fn = _ARITH.get(op.type)
            if fn is None:
                raise LoxTypeError(f"Unsupported operator '{op}'.", op)
            a, b = require_numbers(op, lhs, rhs)
            return fn(a, b)

def eval_unary(n: Tree, frame: Frame, interp: 'Interpreter') -> LoxValue:
    op, rhs_node = n.children
    rhs = interp.evaluate(rhs_node, frame)

    match op.type:
        case 'MINUS':
            return -require_number(op, rhs)
        case 'BANG':
            return not is_truthy(rhs)
        case _:
            raise LoxTypeError(f"Unsupported unary operator '{op}'.", op)

def eval_binary(n: Tree, frame: Frame, interp: 'Interpreter') -> LoxValue:
    lhs_node, op, rhs_node = n.children
    lhs = interp.evaluate(lhs_node, frame)
    rhs = interp.evaluate(rhs_node, frame)
    return apply_binary(op, lhs, rhs)

def eval_logical(n: Tree, frame: Frame, interp: 'Interpreter') -> LoxValue:
    lhs_node, op, rhs_node = n.children
    lhs = interp.evaluate(lhs_node, frame)

    if op.type == 'OR':
        if is_truthy(lhs):
            return lhs
    elif not is_truthy(lhs):
        return lhs

    return interp.evaluate(rhs_node, frame)

def eval_ternary(n: Tree, frame: Frame, interp: 'Interpreter') -> LoxValue:
    cond, then_node, else_node = n.children

    if is_truthy(interp.evaluate(cond, frame)):
        return interp.evaluate(then_node, frame)
    return interp.evaluate(else_node, frame)
