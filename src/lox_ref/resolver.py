"""Static scope resolution.

Walks the statement list once, before execution, and records for every
local variable occurrence how many frames out its binding lives. Global
occurrences are left unrecorded and looked up in the global frame at run
time. Scope misuse (`return` outside a function, `this` outside a class and
so on) is reported as a static diagnostic.
"""

from __future__ import annotations

import logging
from enum import Enum, auto
from typing import Dict, List, Optional, Set, Tuple

from lark import Token, Tree

from . import tree as ast
from .diagnostics import Diagnostics, Phase
from .types import INIT_METHOD
from .utils import recursion_limit

logger = logging.getLogger(__name__)

class FunctionType(Enum):
    NONE = auto()
    FUNCTION = auto()
    METHOD = auto()
    INITIALIZER = auto()

class ClassType(Enum):
    NONE = auto()
    CLASS = auto()
    SUBCLASS = auto()

class DistanceTable:
    """Node-identity keyed distances.

    `lark.Tree` compares and hashes structurally, so two `a` occurrences in
    different scopes would collide as dict keys. Keys are `id(node)`; the node
    itself is held alongside so the id stays valid while the table lives.
    """

    def __init__(self) -> None:
        self._entries: Dict[int, Tuple[Tree, int]] = {}

    def record(self, node: Tree, distance: int) -> None:
        self._entries[id(node)] = (node, distance)

    def get(self, node: Tree) -> Optional[int]:
        entry = self._entries.get(id(node))
        if entry is None:
            return None
        return entry[1]

    def update(self, other: DistanceTable) -> None:
        self._entries.update(other._entries)

    def __contains__(self, node: object) -> bool:
        return id(node) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

class Resolver:
    def __init__(self, diagnostics: Optional[Diagnostics] = None):
        self.diagnostics = diagnostics if diagnostics is not None else Diagnostics()
        self.locals = DistanceTable()
        # name -> defined? (False while its initializer is being resolved)
        self.scopes: List[Dict[str, bool]] = []
        # top-level `var` names whose initializer is being resolved
        self.pending_globals: Set[str] = set()
        self.current_function = FunctionType.NONE
        self.current_class = ClassType.NONE

    def resolve(self, stmts: List[Tree]) -> DistanceTable:
        for stmt in stmts:
            try:
                self.resolve_stmt(stmt)
            except RecursionError:
                offset = ast.node_offset(stmt)
                self.diagnostics.report(offset if offset is not None else 0, "Too deeply nested.", Phase.STATIC)
                self.scopes.clear()
                self.pending_globals.clear()
                self.current_function = FunctionType.NONE
                self.current_class = ClassType.NONE

        logger.debug("resolved %d local occurrences, %d static errors", len(self.locals), len(self.diagnostics))
        return self.locals

    # ---------------- Statements ----------------

    def resolve_stmt(self, n: Tree) -> None:
        match n.data:
            case 'block':
                self.begin_scope()
                for stmt in n.children:
                    self.resolve_stmt(stmt)
                self.end_scope()
            case 'vardecl':
                self._resolve_var_decl(n)
            case 'fundecl':
                name = n.children[0]
                self.declare(name)
                self.define(name)
                self.resolve_function(n, FunctionType.FUNCTION)
            case 'classdecl':
                self._resolve_class_decl(n)
            case 'exprstmt' | 'printstmt':
                self.resolve_expr(n.children[0])
            case 'ifstmt':
                cond, then_branch, else_branch = n.children
                self.resolve_expr(cond)
                self.resolve_stmt(then_branch)
                if else_branch is not None:
                    self.resolve_stmt(else_branch)
            case 'whilestmt':
                cond, body = n.children
                self.resolve_expr(cond)
                self.resolve_stmt(body)
            case 'returnstmt':
                self._resolve_return(n)
            case _:
                raise ValueError(f"unknown statement node: {n.data}")

    def _resolve_var_decl(self, n: Tree) -> None:
        name, initializer = n.children
        self.declare(name)

        if initializer is not None:
            top_level = not self.scopes
            if top_level:
                self.pending_globals.add(str(name))
            try:
                self.resolve_expr(initializer)
            finally:
                if top_level:
                    self.pending_globals.discard(str(name))

        self.define(name)

    def _resolve_class_decl(self, n: Tree) -> None:
        name, superclass, _ = n.children
        enclosing_class = self.current_class
        self.current_class = ClassType.CLASS

        self.declare(name)
        self.define(name)

        if superclass is not None:
            super_name = superclass.children[0]
            if str(super_name) == str(name):
                self.error(super_name, "A class can't inherit from itself.")

            self.current_class = ClassType.SUBCLASS
            self.resolve_expr(superclass)

            self.begin_scope()
            self.scopes[-1]["super"] = True

        self.begin_scope()
        self.scopes[-1]["this"] = True

        for method in ast.class_methods(n):
            kind = FunctionType.METHOD
            if str(method.children[0]) == INIT_METHOD:
                kind = FunctionType.INITIALIZER
            self.resolve_function(method, kind)

        self.end_scope()

        if superclass is not None:
            self.end_scope()

        self.current_class = enclosing_class

    def _resolve_return(self, n: Tree) -> None:
        keyword, value = n.children

        if self.current_function is FunctionType.NONE:
            self.error(keyword, "Can't return from top-level code.")

        if value is not None:
            if self.current_function is FunctionType.INITIALIZER:
                self.error(keyword, "Can't return a value from an initializer.")
            self.resolve_expr(value)

    def resolve_function(self, fn: Tree, kind: FunctionType) -> None:
        enclosing = self.current_function
        self.current_function = kind

        self.begin_scope()
        for param in ast.fn_params(fn):
            self.declare(param)
            self.define(param)
        for stmt in ast.fn_body(fn):
            self.resolve_stmt(stmt)
        self.end_scope()

        self.current_function = enclosing

    # ---------------- Expressions ----------------

    def resolve_expr(self, n: Tree) -> None:
        match n.data:
            case 'literal':
                pass
            case 'variable':
                self._resolve_variable(n)
            case 'assign':
                name, value = n.children
                self.resolve_expr(value)
                self.resolve_local(n, name)
            case 'grouping':
                self.resolve_expr(n.children[0])
            case 'unary':
                self.resolve_expr(n.children[1])
            case 'binary' | 'logical':
                left, _, right = n.children
                self.resolve_expr(left)
                self.resolve_expr(right)
            case 'ternary':
                for child in n.children:
                    self.resolve_expr(child)
            case 'call':
                self.resolve_expr(n.children[0])
                for arg in ast.call_args(n):
                    self.resolve_expr(arg)
            case 'get':
                # property names are dynamic; only the object resolves
                self.resolve_expr(n.children[0])
            case 'set':
                obj, _, value = n.children
                self.resolve_expr(value)
                self.resolve_expr(obj)
            case 'this':
                keyword = n.children[0]
                if self.current_class is ClassType.NONE:
                    self.error(keyword, "Can't use 'this' outside of a class.")
                    return
                self.resolve_local(n, keyword)
            case 'super':
                keyword = n.children[0]
                if self.current_class is ClassType.NONE:
                    self.error(keyword, "Can't use 'super' outside of a class.")
                elif self.current_class is not ClassType.SUBCLASS:
                    self.error(keyword, "Can't use 'super' in a class with no superclass.")
                self.resolve_local(n, keyword)
            case _:
                raise ValueError(f"unknown expression node: {n.data}")

    def _resolve_variable(self, n: Tree) -> None:
        name = n.children[0]

        if self.scopes:
            if self.scopes[-1].get(str(name)) is False:
                self.error(name, "Can't read local variable in its own initializer.")
        elif str(name) in self.pending_globals:
            self.error(name, "Can't read local variable in its own initializer.")

        self.resolve_local(n, name)

    # ---------------- Scopes ----------------

    def begin_scope(self) -> None:
        self.scopes.append({})

    def end_scope(self) -> None:
        self.scopes.pop()

    def declare(self, name: Token) -> None:
        if not self.scopes:
            return

        scope = self.scopes[-1]
        if str(name) in scope:
            self.error(name, "Already a variable with this name in this scope.")
        scope[str(name)] = False

    def define(self, name: Token) -> None:
        if not self.scopes:
            return
        self.scopes[-1][str(name)] = True

    def resolve_local(self, node: Tree, name: Token) -> None:
        for depth, scope in enumerate(reversed(self.scopes)):
            if str(name) in scope:
                self.locals.record(node, depth)
                return
        # not found: global

    def error(self, token: Token, message: str) -> None:
        self.diagnostics.report(token.start_pos, message, Phase.STATIC)


def resolve(stmts: List[Tree]) -> Tuple[DistanceTable, Diagnostics]:
    """Resolve a program; return its distance table and any static diagnostics"""
    diagnostics = Diagnostics()
    with recursion_limit():
        table = Resolver(diagnostics).resolve(stmts)
    return table, diagnostics
