"""Shared helpers for working with the Tree/Token AST used across the project.

The parser emits `lark.Tree` nodes whose `data` is the node kind and whose
children are sub-nodes, `lark.Token` names/operators (positioned by
`start_pos`) or plain Python literal values. Each pass dispatches on the
node label.
"""
from __future__ import annotations
from typing import Any, List, Optional, Sequence
from typing_extensions import TypeGuard

from lark import Token, Tree

from .token_types import Tok

EXPR_LABELS = frozenset({
    'literal', 'grouping', 'unary', 'binary', 'logical', 'ternary',
    'variable', 'assign', 'call', 'get', 'set', 'this', 'super',
})


def is_tree(node: Any) -> TypeGuard[Tree]:
    return isinstance(node, Tree)

def is_token(node: Any) -> TypeGuard[Token]:
    return isinstance(node, Token)

def is_expr(node: Any) -> bool:
    return is_tree(node) and node.data in EXPR_LABELS

def tree_label(node: Any) -> Optional[str]:
    return node.data if is_tree(node) else None

def tree_children(node: Any) -> List[Any]:
    if not is_tree(node):
        return []

    return list(node.children)

def node_offset(node: Any) -> Optional[int]:
    """Offset of the first positioned token inside node, if any."""
    if is_token(node):
        return node.start_pos

    for child in tree_children(node):
        found = node_offset(child)
        if found is not None:
            return found

    return None

def lark_token(tok: Tok) -> Token:
    """Convert a scanner token into the positioned Token stored in the tree."""
    return Token(tok.type.name, tok.lexeme, start_pos=tok.offset)
# ---------------- Node constructors ----------------
#
# Child layout per label (None marks an absent optional child):
#   literal     [value]
#   grouping    [expr]
#   unary       [op, right]
#   binary      [left, op, right]
#   logical     [left, op, right]
#   ternary     [cond, then, else]
#   variable    [name]
#   assign      [name, value]
#   call        [callee, paren, arguments]
#   get         [object, name]
#   set         [object, name, value]
#   this        [keyword]
#   super       [keyword, method]
#   exprstmt    [expr]
#   printstmt   [expr]
#   vardecl     [name, initializer|None]
#   block       [stmt*]
#   ifstmt      [cond, then, else|None]
#   whilestmt   [cond, body]
#   fundecl     [name, params, body]
#   returnstmt  [keyword, value|None]
#   classdecl   [name, superclass variable|None, methods]

def literal(value: Any) -> Tree:
    return Tree('literal', [value])

def grouping(expr: Tree) -> Tree:
    return Tree('grouping', [expr])

def unary(op: Token, right: Tree) -> Tree:
    return Tree('unary', [op, right])

def binary(left: Tree, op: Token, right: Tree) -> Tree:
    return Tree('binary', [left, op, right])

def logical(left: Tree, op: Token, right: Tree) -> Tree:
    return Tree('logical', [left, op, right])

def ternary(cond: Tree, then: Tree, otherwise: Tree) -> Tree:
    return Tree('ternary', [cond, then, otherwise])

def variable(name: Token) -> Tree:
    return Tree('variable', [name])

def assign(name: Token, value: Tree) -> Tree:
    return Tree('assign', [name, value])

def call(callee: Tree, paren: Token, args: Sequence[Tree]) -> Tree:
    return Tree('call', [callee, paren, Tree('arguments', list(args))])

def get(obj: Tree, name: Token) -> Tree:
    return Tree('get', [obj, name])

def set_(obj: Tree, name: Token, value: Tree) -> Tree:
    return Tree('set', [obj, name, value])

def this(keyword: Token) -> Tree:
    return Tree('this', [keyword])

def super_(keyword: Token, method: Token) -> Tree:
    return Tree('super', [keyword, method])

def exprstmt(expr: Tree) -> Tree:
    return Tree('exprstmt', [expr])

def printstmt(expr: Tree) -> Tree:
    return Tree('printstmt', [expr])

def vardecl(name: Token, initializer: Optional[Tree]) -> Tree:
    return Tree('vardecl', [name, initializer])

def block(stmts: Sequence[Tree]) -> Tree:
    return Tree('block', list(stmts))

def ifstmt(cond: Tree, then: Tree, otherwise: Optional[Tree]) -> Tree:
    return Tree('ifstmt', [cond, then, otherwise])

def whilestmt(cond: Tree, body: Tree) -> Tree:
    return Tree('whilestmt', [cond, body])

def fundecl(name: Token, params: Sequence[Token], body: Sequence[Tree]) -> Tree:
    return Tree('fundecl', [name, Tree('params', list(params)), Tree('body', list(body))])

def returnstmt(keyword: Token, value: Optional[Tree]) -> Tree:
    return Tree('returnstmt', [keyword, value])

def classdecl(name: Token, superclass: Optional[Tree], methods: Sequence[Tree]) -> Tree:
    return Tree('classdecl', [name, superclass, Tree('methods', list(methods))])

# ---------------- Accessors for compound nodes ----------------

def fn_params(fn: Tree) -> List[Token]:
    return list(fn.children[1].children)

def fn_body(fn: Tree) -> List[Tree]:
    return list(fn.children[2].children)

def call_args(node: Tree) -> List[Tree]:
    return list(node.children[2].children)

def class_methods(node: Tree) -> List[Tree]:
    return list(node.children[2].children)
