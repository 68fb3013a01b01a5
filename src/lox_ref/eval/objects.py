from __future__ import annotations

from typing import TYPE_CHECKING, Dict

from lark import Tree

from .. import tree as ast
from ..types import (
    INIT_METHOD, Frame, LoxAttributeError, LoxClass, LoxFunction, LoxInstance,
    LoxTypeError,
    LoxValue, ResolutionDivergence,
)

if TYPE_CHECKING:
    from ..evaluator import Interpreter

def exec_classdecl(n: Tree, frame: Frame, interp: 'Interpreter') -> None:
    name, superclass_node, _ = n.children
    superclass = None

    if superclass_node is not None:
        superclass = interp.evaluate(superclass_node, frame)
        if not isinstance(superclass, LoxClass):
            raise LoxTypeError("Superclass must be a class.", superclass_node.children[0])

    frame.define(name, None)

    method_frame = frame
    if superclass is not None:
        method_frame = Frame(parent=frame)
        method_frame.define("super", superclass)

    methods: Dict[str, LoxFunction] = {}
    for method in ast.class_methods(n):
        method_name = str(method.children[0])
        methods[method_name] = LoxFunction(
            declaration=method,
            closure=method_frame,
            is_initializer=method_name == INIT_METHOD,
        )

    klass = LoxClass(name=str(name), superclass=superclass, methods=methods)
    frame.assign(name, klass)

def eval_get(n: Tree, frame: Frame, interp: 'Interpreter') -> LoxValue:
    obj_node, name = n.children
    obj = interp.evaluate(obj_node, frame)

    if not isinstance(obj, LoxInstance):
        raise LoxTypeError("Only instances have properties.", name)
    return obj.get(name)

def eval_set(n: Tree, frame: Frame, interp: 'Interpreter') -> LoxValue:
    obj_node, name, value_node = n.children
    obj = interp.evaluate(obj_node, frame)

    if not isinstance(obj, LoxInstance):
        raise LoxTypeError("Only instances have fields.", name)

    value = interp.evaluate(value_node, frame)
    obj.set(name, value)
    return value

def eval_super(n: Tree, frame: Frame, interp: 'Interpreter') -> LoxValue:
    """`super.method` bound to the current `this`.

    The `this` frame always sits one level inside the `super` frame.
    """
    keyword, method_name = n.children
    distance = interp.locals.get(n)

    if distance is None:
        raise ResolutionDivergence("unresolved 'super'")

    superclass = frame.get_at(distance, "super")
    instance = frame.get_at(distance - 1, "this")

    method = superclass.find_method(method_name)
    if method is None:
        raise LoxAttributeError(method_name)
    return method.bind(instance)
