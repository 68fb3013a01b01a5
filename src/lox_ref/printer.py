"""Parenthesized prefix rendering of the AST, for debugging and tests.

    (* (- 123) (grouping 45.67))
"""

from __future__ import annotations

from typing import Any, Iterable

from lark import Tree

from . import tree as ast
from .utils import stringify

def parenthesize(name: str, *parts: Any) -> str:
    pieces = [name]
    pieces.extend(print_ast(p) if ast.is_tree(p) else str(p) for p in parts)
    return "(" + " ".join(pieces) + ")"

def _print_all(nodes: Iterable[Tree]) -> str:
    return " ".join(print_ast(n) for n in nodes)

def print_ast(node: Tree) -> str:
    match node.data:
        # expressions
        case 'literal':
            return stringify(node.children[0])
        case 'grouping':
            return parenthesize("grouping", node.children[0])
        case 'unary':
            op, right = node.children
            return parenthesize(str(op), right)
        case 'binary' | 'logical':
            left, op, right = node.children
            return parenthesize(str(op), left, right)
        case 'ternary':
            return parenthesize("?:", *node.children)
        case 'variable':
            return str(node.children[0])
        case 'assign':
            name, value = node.children
            return parenthesize(f"= {name}", value)
        case 'call':
            return parenthesize("call", node.children[0], *ast.call_args(node))
        case 'get':
            obj, name = node.children
            return parenthesize(".", obj, name)
        case 'set':
            obj, name, value = node.children
            return parenthesize(f"= .{name}", obj, value)
        case 'this':
            return "this"
        case 'super':
            return parenthesize("super", node.children[1])

        # statements
        case 'exprstmt':
            return f"{print_ast(node.children[0])};"
        case 'printstmt':
            return f"print {print_ast(node.children[0])};"
        case 'vardecl':
            name, initializer = node.children
            if initializer is None:
                return f"var {name};"
            return f"var {name} = {print_ast(initializer)};"
        case 'block':
            if not node.children:
                return "{ }"
            return "{ " + _print_all(node.children) + " }"
        case 'ifstmt':
            cond, then_branch, else_branch = node.children
            if else_branch is None:
                return parenthesize("if", cond, then_branch)
            return parenthesize("if", cond, then_branch, else_branch)
        case 'whilestmt':
            return parenthesize("while", *node.children)
        case 'fundecl':
            params = " ".join(str(p) for p in ast.fn_params(node))
            body = ast.block(ast.fn_body(node))
            return f"(fun {node.children[0]} ({params}) {print_ast(body)})"
        case 'returnstmt':
            value = node.children[1]
            return "(return)" if value is None else parenthesize("return", value)
        case 'classdecl':
            name, superclass, _ = node.children
            head = f"class {name}" if superclass is None else f"class {name} < {superclass.children[0]}"
            return parenthesize(head, *ast.class_methods(node))
        case _:
            raise ValueError(f"cannot print node: {node.data}")
