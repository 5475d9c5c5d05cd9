"""
Expression IR

A small, closed set of immutable expression nodes. Every node class sets
``kind`` to one member of ExprKind; passes dispatch on that tag (see
visitor.py) rather than on the class hierarchy.

Nodes are frozen and compare by identity: two ``Var("x")`` objects are two
different variables. "Rewriting" a node means building a new one, usually
with ``dataclasses.replace``, and sharing every unchanged child.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Optional, Tuple as TupleT

from .errors import InvalidScopeError, SourceLocation
from .scope import PlacementScope, unconstrained
from .types import Type


class ExprKind(str, Enum):
    """Tag for every expression node kind."""

    VAR = "var"
    GLOBAL_VAR = "global_var"
    CONSTANT = "constant"
    OP = "op"
    CONSTRUCTOR = "constructor"
    CALL = "call"
    TUPLE = "tuple"
    TUPLE_GET_ITEM = "tuple_get_item"
    LET = "let"
    FUNCTION = "function"
    ON_DEVICE = "on_device"


class Expr:
    """Base class for expression nodes."""

    kind: ClassVar[ExprKind]
    span: Optional[SourceLocation]


@dataclass(frozen=True, eq=False)
class Var(Expr):
    """Local variable."""

    kind: ClassVar[ExprKind] = ExprKind.VAR

    name: str
    type_annotation: Optional[Type] = None
    span: Optional[SourceLocation] = None

    def __str__(self) -> str:
        return f"%{self.name}"


@dataclass(frozen=True, eq=False)
class GlobalVar(Expr):
    """Reference to a module-level function."""

    kind: ClassVar[ExprKind] = ExprKind.GLOBAL_VAR

    name: str
    span: Optional[SourceLocation] = None

    def __str__(self) -> str:
        return f"@{self.name}"


@dataclass(frozen=True, eq=False)
class Constant(Expr):
    """Constant tensor. ``data`` is opaque to this layer."""

    kind: ClassVar[ExprKind] = ExprKind.CONSTANT

    data: Any
    checked_type: Type
    span: Optional[SourceLocation] = None

    def __str__(self) -> str:
        return f"meta[Constant]({self.checked_type})"


@dataclass(frozen=True, eq=False)
class Op(Expr):
    """Bare reference to a registered operator. Obtain via ``get_op``."""

    kind: ClassVar[ExprKind] = ExprKind.OP

    name: str
    spec: Any = field(repr=False)
    span: Optional[SourceLocation] = None

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True, eq=False)
class Constructor(Expr):
    """Bare reference to an algebraic data type constructor."""

    kind: ClassVar[ExprKind] = ExprKind.CONSTRUCTOR

    name: str
    tag: int = 0
    arity: int = 0
    span: Optional[SourceLocation] = None

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True, eq=False)
class Call(Expr):
    """Application of an operator, function or constructor."""

    kind: ClassVar[ExprKind] = ExprKind.CALL

    op: Expr
    args: TupleT[Expr, ...]
    attrs: Any = None
    span: Optional[SourceLocation] = None

    def __str__(self) -> str:
        args = ", ".join(str(a) for a in self.args)
        return f"{self.op}({args})"


@dataclass(frozen=True, eq=False)
class Tuple(Expr):
    kind: ClassVar[ExprKind] = ExprKind.TUPLE

    fields: TupleT[Expr, ...]
    span: Optional[SourceLocation] = None

    def __str__(self) -> str:
        return "(" + ", ".join(str(f) for f in self.fields) + ")"


@dataclass(frozen=True, eq=False)
class TupleGetItem(Expr):
    kind: ClassVar[ExprKind] = ExprKind.TUPLE_GET_ITEM

    tuple_value: Expr
    index: int
    span: Optional[SourceLocation] = None

    def __str__(self) -> str:
        return f"{self.tuple_value}.{self.index}"


@dataclass(frozen=True, eq=False)
class Let(Expr):
    kind: ClassVar[ExprKind] = ExprKind.LET

    var: Var
    value: Expr
    body: Expr
    span: Optional[SourceLocation] = None

    def __str__(self) -> str:
        return f"let {self.var} = {self.value}; {self.body}"


@dataclass(frozen=True)
class FunctionPlacement:
    """Placement recorded on a function: one scope per parameter, one for the result."""

    param_scopes: TupleT[PlacementScope, ...] = ()
    result_scope: PlacementScope = field(default_factory=unconstrained)


@dataclass(frozen=True, eq=False)
class Function(Expr):
    """Function value.

    ``placement`` holds the FunctionPlacement record, if any; it is replaced
    wholesale by ``attach`` and never updated in place.
    """

    kind: ClassVar[ExprKind] = ExprKind.FUNCTION

    params: TupleT[Var, ...]
    body: Expr
    ret_type: Optional[Type] = None
    placement: Optional[FunctionPlacement] = None
    span: Optional[SourceLocation] = None

    @property
    def arity(self) -> int:
        return len(self.params)

    def __str__(self) -> str:
        params = ", ".join(str(p) for p in self.params)
        return f"fn ({params}) {{ {self.body} }}"


@dataclass(frozen=True, eq=False)
class OnDevice(Expr):
    """Placement annotation around ``body``.

    ``constrain_result``: the value this node produces lives in ``scope``.
    ``constrain_body``: ``body`` itself is computed in ``scope``.
    A node asserting neither always carries the unconstrained scope; one
    asserting either needs a concrete scope.
    Passes build these with ``on_device`` / ``maybe_annotate``.
    """

    kind: ClassVar[ExprKind] = ExprKind.ON_DEVICE

    body: Expr
    scope: PlacementScope
    constrain_result: bool = False
    constrain_body: bool = True
    span: Optional[SourceLocation] = None

    def __post_init__(self) -> None:
        if not (self.constrain_result or self.constrain_body):
            object.__setattr__(self, "scope", unconstrained())
        elif self.scope.is_fully_unconstrained():
            raise InvalidScopeError(
                "on_device constrains a position but its scope is unconstrained",
                self.span,
                hint="pass a concrete scope, or clear both constrain flags",
            )

    def __str__(self) -> str:
        return (
            f"on_device({self.body}, {self.scope}, "
            f"constrain_result={self.constrain_result}, "
            f"constrain_body={self.constrain_body})"
        )
