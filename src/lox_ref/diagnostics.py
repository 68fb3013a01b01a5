"""Diagnostics collected across scanning, parsing, resolving and running.

Every stage reports into a `Diagnostics` value instead of a process-wide
error flag. Positions are absolute source offsets; turning an offset into a
line/column (and drawing a caret) is left to whatever front-end hosts the
interpreter.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Optional
from types import TracebackType


class Phase(Enum):
    LEXICAL = "lexical"
    SYNTAX = "syntax"
    STATIC = "static"
    RUNTIME = "runtime"


@dataclass(frozen=True)
class Diagnostic:
    offset: int
    message: str
    phase: Phase
    py_trace: Optional[TracebackType] = field(default=None, compare=False, repr=False)

    def __str__(self) -> str:
        return f"[{self.phase.value} @{self.offset}] {self.message}"


class Diagnostics:
    """Ordered collector of `Diagnostic` records."""

    def __init__(self, items: Optional[List[Diagnostic]] = None):
        self.items: List[Diagnostic] = list(items or [])

    def report(self, offset: int, message: str, phase: Phase, py_trace: Optional[TracebackType] = None) -> Diagnostic:
        diag = Diagnostic(offset=offset, message=message, phase=phase, py_trace=py_trace)
        self.items.append(diag)
        return diag

    def extend(self, other: Diagnostics) -> None:
        self.items.extend(other.items)

    def as_pairs(self) -> List[tuple[int, str]]:
        """`(offset, message)` pairs, the shape front-ends consume."""
        return [(d.offset, d.message) for d in self.items]

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def __bool__(self) -> bool:
        return bool(self.items)

    def __repr__(self) -> str:
        return f"Diagnostics({self.items!r})"
