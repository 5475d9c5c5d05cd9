"""
Expression visitors.

ExprFunctor dispatches on ``expr.kind`` to a ``visit_<kind>`` method, so a
pass handles exactly the closed set of kinds in ExprKind. ExprMutator
rebuilds a node only when one of its children changed; untouched subtrees
are shared with the input.
"""

from dataclasses import replace
from typing import Any, Dict

from .expr import (
    Call,
    Expr,
    ExprKind,
    Function,
    Let,
    OnDevice,
    Tuple,
    TupleGetItem,
)
from .op_registry import is_device_polymorphic_op


class ExprFunctor:
    """Base visitor. Subclasses implement ``visit_<kind>`` per ExprKind."""

    def visit(self, expr: Expr) -> Any:
        method = getattr(self, f"visit_{expr.kind.value}", None)
        if method is None:
            raise NotImplementedError(
                f"{type(self).__name__} does not handle {expr.kind.value} nodes"
            )
        return method(expr)


class ExprMutator(ExprFunctor):
    """Identity rewrite with structural sharing and memoization."""

    def __init__(self):
        self._memo: Dict[int, Expr] = {}

    def visit(self, expr: Expr) -> Expr:
        key = id(expr)
        if key in self._memo:
            return self._memo[key]
        result = super().visit(expr)
        self._memo[key] = result
        return result

    # Leaves
    def visit_var(self, expr):
        return expr

    def visit_global_var(self, expr):
        return expr

    def visit_constant(self, expr):
        return expr

    def visit_op(self, expr):
        return expr

    def visit_constructor(self, expr):
        return expr

    # Interior nodes
    def visit_call(self, expr: Call):
        op = self.visit(expr.op)
        args = tuple(self.visit(a) for a in expr.args)
        if op is expr.op and all(a is b for a, b in zip(args, expr.args)):
            return expr
        return replace(expr, op=op, args=args)

    def visit_tuple(self, expr: Tuple):
        fields = tuple(self.visit(f) for f in expr.fields)
        if all(a is b for a, b in zip(fields, expr.fields)):
            return expr
        return replace(expr, fields=fields)

    def visit_tuple_get_item(self, expr: TupleGetItem):
        value = self.visit(expr.tuple_value)
        if value is expr.tuple_value:
            return expr
        return replace(expr, tuple_value=value)

    def visit_let(self, expr: Let):
        value = self.visit(expr.value)
        body = self.visit(expr.body)
        if value is expr.value and body is expr.body:
            return expr
        return replace(expr, value=value, body=body)

    def visit_function(self, expr: Function):
        body = self.visit(expr.body)
        if body is expr.body:
            return expr
        return replace(expr, body=body)

    def visit_on_device(self, expr: OnDevice):
        body = self.visit(expr.body)
        if body is expr.body:
            return expr
        return replace(expr, body=body)


_POLYMORPHIC_KINDS = frozenset(
    {ExprKind.CONSTRUCTOR, ExprKind.GLOBAL_VAR, ExprKind.VAR, ExprKind.FUNCTION}
)


def is_device_polymorphic(expr: Expr) -> bool:
    """Whether ``expr`` never needs a placement annotation of its own.

    Operators and constructors take their device from each call site, a
    variable's device is recovered from its binding site, and a function's
    device lives in its own FunctionPlacement record.
    """
    if expr.kind == ExprKind.OP:
        return is_device_polymorphic_op(expr)
    return expr.kind in _POLYMORPHIC_KINDS


class _OnDeviceStripper(ExprMutator):
    def visit_on_device(self, expr: OnDevice):
        return self.visit(expr.body)


def strip_on_device(expr: Expr) -> Expr:
    """Remove every on_device annotation from ``expr``."""
    return _OnDeviceStripper().visit(expr)
