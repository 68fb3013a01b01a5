from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Callable, Dict, List, Mapping, Optional, Union
from typing_extensions import Protocol, TypeAlias, runtime_checkable

from lark import Token, Tree

from . import tree as ast

if TYPE_CHECKING:
    from .evaluator import Interpreter

INIT_METHOD = "init"

# ---------- Exceptions ----------

class LoxRuntimeError(Exception):
    """A runtime failure in user code; aborts the current interpret() call."""
    token: Optional[Token]
    offset: Optional[int]

    def __init__(self, message: str, token: Optional[Token] = None):
        super().__init__(message)
        self.message = message
        self.token = token
        self.offset = token.start_pos if token is not None else None

    def attach(self, offset: Optional[int]) -> None:
        """Position an error raised without a token (first attach wins)."""
        if self.offset is None:
            self.offset = offset

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        if self.offset is None:
            return self.message

        return f"{self.message} (offset {self.offset})"

class LoxTypeError(LoxRuntimeError):
    pass

class LoxNameError(LoxRuntimeError):
    def __init__(self, name: Union[str, Token]):
        super().__init__(f"Undefined variable '{name}'.", name if isinstance(name, Token) else None)
        self.name = str(name)

class LoxAttributeError(LoxRuntimeError):
    def __init__(self, name: Token):
        super().__init__(f"Undefined property '{name}'.", name)
        self.name = str(name)

class LoxArityError(LoxRuntimeError):
    def __init__(self, expected: int, got: int, token: Optional[Token] = None):
        super().__init__(f"Expected {expected} arguments but got {got}.", token)
        self.expected = expected
        self.got = got

class ResolutionDivergence(Exception):
    """Resolver and interpreter disagree about a frame; an internal bug."""

# ---------- Environment frames ----------

class Frame:
    """One scope of the runtime environment chain.

    The parent link is fixed at construction. Frames are shared by reference
    between every closure created while they were active.
    """

    def __init__(self, parent: Optional[Frame] = None):
        self.parent = parent
        self.vars: Dict[str, LoxValue] = {}

    def define(self, name: str, val: LoxValue) -> None:
        self.vars[str(name)] = val

    def get(self, name: Union[str, Token]) -> LoxValue:
        frame: Optional[Frame] = self

        while frame is not None:
            if name in frame.vars:
                return frame.vars[name]
            frame = frame.parent

        raise LoxNameError(name)

    def assign(self, name: Union[str, Token], val: LoxValue) -> None:
        frame: Optional[Frame] = self

        while frame is not None:
            if name in frame.vars:
                frame.vars[name] = val
                return
            frame = frame.parent

        raise LoxNameError(name)

    def ancestor(self, distance: int) -> Frame:
        frame = self

        for _ in range(distance):
            if frame.parent is None:
                raise ResolutionDivergence(f"no frame {distance} levels out")
            frame = frame.parent

        return frame

    def get_at(self, distance: int, name: Union[str, Token]) -> LoxValue:
        frame = self.ancestor(distance)

        if name not in frame.vars:
            raise ResolutionDivergence(f"'{name}' is not bound {distance} frames out")
        return frame.vars[name]

    def assign_at(self, distance: int, name: Union[str, Token], val: LoxValue) -> None:
        frame = self.ancestor(distance)

        if name not in frame.vars:
            raise ResolutionDivergence(f"'{name}' is not bound {distance} frames out")
        frame.vars[name] = val

    def __repr__(self) -> str:
        return f"Frame({list(self.vars)!r})"

# ---------- Value Model ----------

@runtime_checkable
class LoxCallable(Protocol):
    """Anything a call expression may invoke."""

    def arity(self) -> int: ...

    def call(self, interp: 'Interpreter', args: List['LoxValue']) -> 'LoxValue': ...

NativeFn = Callable[['Interpreter', List['LoxValue']], 'LoxValue']

@dataclass(frozen=True)
class NativeFunction:
    name: str
    fn: NativeFn
    arity_: int = 0

    def arity(self) -> int:
        return self.arity_

    def call(self, interp: 'Interpreter', args: List['LoxValue']) -> 'LoxValue':
        return self.fn(interp, args)

    def __repr__(self) -> str:
        return f"<native fn {self.name}>"

@dataclass(eq=False)
class LoxFunction:
    declaration: Tree              # fundecl node
    closure: Frame                 # frame active at definition
    is_initializer: bool = False

    @property
    def name(self) -> str:
        return str(self.declaration.children[0])

    def arity(self) -> int:
        return len(ast.fn_params(self.declaration))

    def call(self, interp: 'Interpreter', args: List['LoxValue']) -> 'LoxValue':
        return interp.call_function(self, self.closure, args)

    def bind(self, instance: 'LoxInstance') -> 'BoundMethod':
        frame = Frame(parent=self.closure)
        frame.define("this", instance)
        return BoundMethod(fn=self, frame=frame)

    def __repr__(self) -> str:
        return f"<fn {self.name}>"

@dataclass(eq=False)
class BoundMethod:
    """A method fixed to one receiver; `frame` defines `this`."""
    fn: LoxFunction
    frame: Frame

    def arity(self) -> int:
        return self.fn.arity()

    def call(self, interp: 'Interpreter', args: List['LoxValue']) -> 'LoxValue':
        return interp.call_function(self.fn, self.frame, args)

    def __repr__(self) -> str:
        return f"<fn {self.fn.name}>"

@dataclass(eq=False)
class LoxClass:
    name: str
    superclass: Optional['LoxClass']
    methods: Mapping[str, LoxFunction] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Built once at class-statement execution; read-only from here on
        self.methods = MappingProxyType(dict(self.methods))

    def find_method(self, name: str) -> Optional[LoxFunction]:
        klass: Optional[LoxClass] = self

        while klass is not None:
            method = klass.methods.get(name)
            if method is not None:
                return method
            klass = klass.superclass

        return None

    def arity(self) -> int:
        init = self.find_method(INIT_METHOD)
        return init.arity() if init is not None else 0

    def call(self, interp: 'Interpreter', args: List['LoxValue']) -> 'LoxValue':
        instance = LoxInstance(self)
        init = self.find_method(INIT_METHOD)

        if init is not None:
            init.bind(instance).call(interp, args)

        return instance

    def __repr__(self) -> str:
        return self.name

@dataclass(eq=False)
class LoxInstance:
    klass: LoxClass
    fields: Dict[str, 'LoxValue'] = field(default_factory=dict)

    def get(self, name: Token) -> 'LoxValue':
        if name in self.fields:
            return self.fields[name]

        method = self.klass.find_method(name)
        if method is not None:
            return method.bind(self)

        raise LoxAttributeError(name)

    def set(self, name: Token, value: 'LoxValue') -> None:
        self.fields[str(name)] = value

    def __repr__(self) -> str:
        return f"{self.klass.name} instance"

LoxValue: TypeAlias = Union[
    None,
    bool,
    float,
    str,
    NativeFunction,
    LoxFunction,
    BoundMethod,
    LoxClass,
    LoxInstance,
]

@dataclass(frozen=True)
class Returning:
    """Statement outcome: a `return` is unwinding to the nearest call."""
    value: LoxValue = None
