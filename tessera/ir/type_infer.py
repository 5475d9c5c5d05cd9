"""
Type inference driven by operator type relations.

Annotations are transparent: an on_device node is typed through the
registered ``on_device`` identity relation, so placing an expression never
changes its type.
"""

from typing import Dict

from .errors import TypeRelationError
from .expr import (
    Call,
    Constant,
    Constructor,
    Expr,
    ExprKind,
    Function,
    GlobalVar,
    Let,
    OnDevice,
    Op,
    Tuple,
    TupleGetItem,
    Var,
)
from .ops import ON_DEVICE
from .types import FuncType, TupleType, Type
from .visitor import ExprFunctor


class TypeInferencer(ExprFunctor):
    """Computes the type of an expression tree."""

    def __init__(self):
        self._memo: Dict[int, Type] = {}
        self._bindings: Dict[int, Type] = {}

    def visit(self, expr: Expr) -> Type:
        key = id(expr)
        if key not in self._memo:
            self._memo[key] = super().visit(expr)
        return self._memo[key]

    def visit_var(self, expr: Var) -> Type:
        if id(expr) in self._bindings:
            return self._bindings[id(expr)]
        if expr.type_annotation is None:
            raise TypeRelationError("var", f"cannot infer type of unannotated variable {expr}")
        return expr.type_annotation

    def visit_global_var(self, expr: GlobalVar) -> Type:
        raise TypeRelationError("global_var", f"no module to look up {expr}")

    def visit_constant(self, expr: Constant) -> Type:
        return expr.checked_type

    def visit_op(self, expr: Op) -> Type:
        raise TypeRelationError(expr.name, "bare operator reference has no concrete type")

    def visit_constructor(self, expr: Constructor) -> Type:
        raise TypeRelationError(expr.name, "constructor types require an ADT definition")

    def visit_call(self, expr: Call) -> Type:
        if expr.op.kind != ExprKind.OP:
            callee = self.visit(expr.op)
            if not isinstance(callee, FuncType):
                raise TypeRelationError(str(expr.op), "callee is not a function")
            return callee.ret_type
        return self._apply_relation(expr.op, [self.visit(a) for a in expr.args], expr.attrs, expr)

    def visit_tuple(self, expr: Tuple) -> Type:
        return TupleType(tuple(self.visit(f) for f in expr.fields))

    def visit_tuple_get_item(self, expr: TupleGetItem) -> Type:
        tuple_type = self.visit(expr.tuple_value)
        if not isinstance(tuple_type, TupleType):
            raise TypeRelationError("tuple_get_item", f"{tuple_type} is not a tuple type")
        if not 0 <= expr.index < len(tuple_type):
            raise TypeRelationError(
                "tuple_get_item", f"index {expr.index} out of range for {tuple_type}"
            )
        return tuple_type[expr.index]

    def visit_let(self, expr: Let) -> Type:
        self._bindings[id(expr.var)] = self.visit(expr.value)
        return self.visit(expr.body)

    def visit_function(self, expr: Function) -> Type:
        arg_types = tuple(self.visit(p) for p in expr.params)
        ret_type = self.visit(expr.body)
        if expr.ret_type is not None and expr.ret_type != ret_type:
            raise TypeRelationError(
                "function", f"declared return type {expr.ret_type} but body has type {ret_type}"
            )
        return FuncType(arg_types, ret_type)

    def visit_on_device(self, expr: OnDevice) -> Type:
        return self._apply_relation(ON_DEVICE, [self.visit(expr.body)], None, expr)

    def _apply_relation(self, op: Op, input_types, attrs, expr: Expr) -> Type:
        spec = op.spec
        if len(input_types) != spec.num_inputs:
            raise TypeRelationError(
                op.name,
                f"expected {spec.num_inputs} inputs, got {len(input_types)}",
                expr.span,
            )
        try:
            out = spec.type_rel(input_types, attrs, spec.num_inputs)
        except TypeRelationError as e:
            if e.location is None and expr.span is not None:
                raise TypeRelationError(e.op_name, e.detail, expr.span) from e
            raise
        if out is None:
            raise TypeRelationError(op.name, "not enough type information to infer output", expr.span)
        if len(out) == 1:
            return out[0]
        return TupleType(tuple(out))


def infer_type(expr: Expr) -> Type:
    """Infer the type of ``expr``."""
    return TypeInferencer().visit(expr)
