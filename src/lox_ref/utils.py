from __future__ import annotations

import math
import os as _os
import sys
from contextlib import contextmanager
from typing import Iterator, Optional

from .types import LoxValue

DEBUG_PY_TRACE_ENV = "LOX_DEBUG_PY_TRACE"
RECURSION_LIMIT_ENV = "LOX_RECURSION_LIMIT"

DEFAULT_RECURSION_LIMIT = 6000

# Integral doubles at or above this print in exponent form
_EXPONENT_THRESHOLD = 1e21

_TRUTHY_ENV = {"1", "true", "yes", "on"}


def debug_py_trace_enabled() -> bool:
    """True when runtime diagnostics should keep the Python traceback."""
    return _os.environ.get(DEBUG_PY_TRACE_ENV, "").strip().lower() in _TRUTHY_ENV


def configured_recursion_limit() -> int:
    raw = _os.environ.get(RECURSION_LIMIT_ENV, "").strip()

    try:
        return max(int(raw), 100)
    except ValueError:
        return DEFAULT_RECURSION_LIMIT


@contextmanager
def recursion_limit(limit: Optional[int] = None) -> Iterator[None]:
    """Raise the interpreter recursion limit for the duration of one pass.

    Scanning aside, every pass recurses once per nesting level (and the
    evaluator several frames per Lox call). Never lowers an existing limit.
    """
    wanted = limit if limit is not None else configured_recursion_limit()
    previous = sys.getrecursionlimit()

    if wanted > previous:
        sys.setrecursionlimit(wanted)
    try:
        yield
    finally:
        sys.setrecursionlimit(previous)


def is_truthy(value: LoxValue) -> bool:
    # Only nil and false are falsy; 0 and "" are truthy
    if value is None:
        return False

    if isinstance(value, bool):
        return value

    return True


def lox_equals(lhs: LoxValue, rhs: LoxValue) -> bool:
    match (lhs, rhs):
        case (None, None):
            return True
        case (bool(), bool()):
            return lhs is rhs
        case (float(), float()):
            # nan equals nan, as a value
            return lhs == rhs or (math.isnan(lhs) and math.isnan(rhs))
        case (str(), str()):
            return lhs == rhs
        case _:
            # nil, booleans, numbers and strings never equal another kind;
            # functions, classes and instances compare by identity
            return lhs is rhs


def format_number(value: float) -> str:
    if math.isnan(value):
        return "nan"

    if math.isinf(value):
        return "inf" if value > 0 else "-inf"

    if value.is_integer() and abs(value) < _EXPONENT_THRESHOLD:
        return str(int(value))

    return repr(value)


def stringify(value: LoxValue) -> str:
    if value is None:
        return "nil"

    if isinstance(value, bool):
        return "true" if value else "false"

    if isinstance(value, float):
        return format_number(value)

    if isinstance(value, str):
        return value

    return repr(value)
