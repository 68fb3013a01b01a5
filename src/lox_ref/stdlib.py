"""Built-in native functions registered via lox_ref.runtime."""

from __future__ import annotations

import time
from typing import List

from .runtime import register_stdlib
from .types import LoxValue

@register_stdlib("clock", arity=0)
def std_clock(_interp, args: List[LoxValue]) -> float:
    """Wall-clock time in milliseconds."""
    return time.time() * 1000.0
