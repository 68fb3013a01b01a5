from __future__ import annotations

import importlib
from typing import TYPE_CHECKING, Dict, List, Optional

from lark import Token

from .types import (
    BoundMethod, Frame, LoxArityError, LoxCallable, LoxClass, LoxFunction,
    LoxInstance, LoxTypeError, LoxValue, NativeFn, NativeFunction,
)

if TYPE_CHECKING:
    from .evaluator import Interpreter

__all__ = [
    "BoundMethod", "Frame", "LoxClass", "LoxFunction", "LoxInstance",
    "NativeFunction", "call_value", "init_stdlib", "install_natives",
    "register_stdlib",
]

_STDLIB_INITIALIZED = False

class Builtins:
    stdlib_functions: Dict[str, NativeFunction] = {}

def register_stdlib(name: str, *, arity: int = 0):
    def dec(fn: NativeFn):
        Builtins.stdlib_functions[name] = NativeFunction(name=name, fn=fn, arity_=arity)
        return fn

    return dec

def init_stdlib() -> None:
    """Load stdlib modules (idempotent) so register_stdlib hooks run."""
    global _STDLIB_INITIALIZED

    if _STDLIB_INITIALIZED:
        return

    importlib.import_module("lox_ref.stdlib")
    _STDLIB_INITIALIZED = True

def install_natives(frame: Frame) -> Frame:
    """Bind every registered native function in frame (the global frame)."""
    init_stdlib()

    for name, native in Builtins.stdlib_functions.items():
        frame.define(name, native)

    return frame

def call_value(interp: 'Interpreter', callee: LoxValue, args: List[LoxValue], paren: Optional[Token] = None) -> LoxValue:
    """Invoke callee with already-evaluated args after the callable/arity checks."""
    if not isinstance(callee, LoxCallable):
        raise LoxTypeError("Can only call functions and classes.", paren)

    expected = callee.arity()
    if len(args) != expected:
        raise LoxArityError(expected, len(args), paren)

    return callee.call(interp, args)
