"""
Built-in Operators

Registers the operators this package relies on, together with their type
relations:

- on_device: the placement annotation, typed as identity on its body
- add / multiply: broadcasting elementwise arithmetic
- contrib.npu.identity: NPU identity with requantization
"""

from dataclasses import dataclass
from typing import Optional, Sequence

from .errors import TypeRelationError
from .expr import Call, Expr
from .op_registry import register_op
from .types import ConcreteDim, Dtype, Shape, TensorType, Type


# =============================================================================
# Type Relations
# =============================================================================


def identity_rel(types: Sequence[Type], attrs, num_inputs: int) -> Optional[list]:
    """Output type equals the single input type."""
    if len(types) != num_inputs or num_inputs != 1:
        raise TypeRelationError("identity", f"expected 1 input type, got {len(types)}")
    return [types[0]]


def _broadcast_dim(op_name: str, a, b):
    if a == b:
        return a
    if isinstance(a, ConcreteDim) and a.value == 1:
        return b
    if isinstance(b, ConcreteDim) and b.value == 1:
        return a
    raise TypeRelationError(op_name, f"incompatible broadcast dimensions {a} and {b}")


def _make_elemwise_rel(op_name: str):
    def elemwise_rel(types: Sequence[Type], attrs, num_inputs: int) -> Optional[list]:
        if len(types) != num_inputs:
            raise TypeRelationError(op_name, f"expected {num_inputs} inputs, got {len(types)}")
        lhs, rhs = types
        if not isinstance(lhs, TensorType) or not isinstance(rhs, TensorType):
            return None
        if lhs.dtype != rhs.dtype:
            raise TypeRelationError(
                op_name, f"dtype mismatch: {lhs.dtype.value} vs {rhs.dtype.value}"
            )
        if lhs.shape.rank != rhs.shape.rank:
            raise TypeRelationError(op_name, f"rank mismatch: {lhs.shape} vs {rhs.shape}")
        dims = tuple(_broadcast_dim(op_name, a, b) for a, b in zip(lhs.shape, rhs.shape))
        return [TensorType(Shape(dims), lhs.dtype)]

    return elemwise_rel


NPU_ACTIVATIONS = ("NONE", "TANH", "SIGMOID", "LUT")


@dataclass(frozen=True)
class NpuIdentityAttrs:
    """Attributes of the NPU identity operator."""

    ifm_scale: float
    ifm_zero_point: int
    ofm_scale: float
    ofm_zero_point: int
    # NONE, TANH, SIGMOID, or LUT (use the look-up table input)
    activation: str = "NONE"


def npu_identity_rel(types: Sequence[Type], attrs, num_inputs: int) -> Optional[list]:
    """The ifm (input feature map) must be int8/uint8 and at most 4-D."""
    op_name = "contrib.npu.identity"
    if len(types) != num_inputs:
        raise TypeRelationError(op_name, f"expected {num_inputs} inputs, got {len(types)}")
    if not isinstance(attrs, NpuIdentityAttrs):
        raise TypeRelationError(op_name, "NpuIdentityAttrs cannot be None")

    ifm = types[0]
    if not isinstance(ifm, TensorType):
        return None
    if ifm.dtype not in (Dtype.UINT8, Dtype.INT8):
        raise TypeRelationError(
            op_name, f"expected type(uint8) or type(int8) for ifm but was {ifm.dtype.value}"
        )
    if ifm.shape.rank > 4:
        raise TypeRelationError(
            op_name, f"input feature map should be at most 4 dimensional, but was {ifm.shape}"
        )
    if attrs.activation not in NPU_ACTIVATIONS:
        raise TypeRelationError(op_name, f"unknown activation '{attrs.activation}'")
    return [TensorType(ifm.shape, ifm.dtype)]


# =============================================================================
# Registrations
# =============================================================================

ON_DEVICE = register_op(
    "on_device",
    1,
    identity_rel,
    arguments=[("body", "Expr", "The sub-expression to be annotated.")],
    description="Annotate an expression with a placement scope.",
    non_computational=True,
)

ADD = register_op(
    "add",
    2,
    _make_elemwise_rel("add"),
    arguments=[("lhs", "Tensor", "Left operand."), ("rhs", "Tensor", "Right operand.")],
    description="Elementwise addition with broadcasting.",
    support_level=1,
)

MULTIPLY = register_op(
    "multiply",
    2,
    _make_elemwise_rel("multiply"),
    arguments=[("lhs", "Tensor", "Left operand."), ("rhs", "Tensor", "Right operand.")],
    description="Elementwise multiplication with broadcasting.",
    support_level=1,
)

NPU_IDENTITY = register_op(
    "contrib.npu.identity",
    2,
    npu_identity_rel,
    arguments=[
        ("ifm", "Tensor", "The Input Feature Map tensor (IFM)."),
        ("lut", "Tensor", "The look-up table values to use if activation = 'LUT'."),
    ],
    description=(
        "NPU identity operator. Performs identity pooling on the NPU with the "
        "ability to requantize the data. Accepts inputs of 4 dimensions or less."
    ),
    attrs_type=NpuIdentityAttrs,
)


def make_npu_identity(
    ifm: Expr,
    lut: Expr,
    ifm_scale: float = 1.0,
    ifm_zero_point: int = 0,
    ofm_scale: float = 1.0,
    ofm_zero_point: int = 0,
    activation: str = "NONE",
) -> Call:
    """Build a call to the NPU identity operator."""
    attrs = NpuIdentityAttrs(ifm_scale, ifm_zero_point, ofm_scale, ofm_zero_point, activation)
    return Call(NPU_IDENTITY, (ifm, lut), attrs)
