"""
IR Type System

Defines:
- Dtype: Element data types (float32, int8, uint8, etc.)
- Shape: Tensor shape with symbolic and concrete dimensions
- TensorType: Shape plus dtype
- TupleType: Fixed-size tuple of types
- FuncType: Function signature
"""

from dataclasses import dataclass
from enum import Enum
from typing import Tuple, Union


class Dtype(str, Enum):
    """Element data types."""

    FP32 = "float32"
    FP16 = "float16"
    BF16 = "bfloat16"
    INT8 = "int8"
    UINT8 = "uint8"
    INT32 = "int32"
    BOOL = "bool"

    @property
    def bits(self) -> int:
        """Number of bits for this dtype."""
        return {
            Dtype.FP32: 32,
            Dtype.FP16: 16,
            Dtype.BF16: 16,
            Dtype.INT8: 8,
            Dtype.UINT8: 8,
            Dtype.INT32: 32,
            Dtype.BOOL: 1,
        }[self]

    @classmethod
    def from_string(cls, s: str) -> "Dtype":
        """Parse dtype from string."""
        s = s.lower()
        for dtype in cls:
            if dtype.value == s:
                return dtype
        raise ValueError(f"Unknown dtype: {s}")

    def is_float(self) -> bool:
        return self in (Dtype.FP32, Dtype.FP16, Dtype.BF16)

    def is_int(self) -> bool:
        return self in (Dtype.INT8, Dtype.UINT8, Dtype.INT32)


@dataclass(frozen=True)
class SymbolicDim:
    """A dimension only known at runtime, e.g. SymbolicDim("batch")."""

    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class ConcreteDim:
    """A dimension known at compile time."""

    value: int

    def __str__(self) -> str:
        return str(self.value)


Dim = Union[SymbolicDim, ConcreteDim]


@dataclass(frozen=True)
class Shape:
    """Tensor shape.

    Examples:
        Shape.of(1, 16, 16, 8)
        Shape.of("batch", 224, 224, 3)
    """

    dims: Tuple[Dim, ...]

    @classmethod
    def of(cls, *dims: Union[int, str]) -> "Shape":
        parsed = []
        for d in dims:
            if isinstance(d, bool):
                raise TypeError(f"Invalid dimension type: {type(d)}")
            if isinstance(d, int):
                parsed.append(ConcreteDim(d))
            elif isinstance(d, str):
                parsed.append(SymbolicDim(d))
            else:
                raise TypeError(f"Invalid dimension type: {type(d)}")
        return cls(tuple(parsed))

    def __str__(self) -> str:
        return "[" + ", ".join(str(d) for d in self.dims) + "]"

    def __len__(self) -> int:
        return len(self.dims)

    def __getitem__(self, idx: int) -> Dim:
        return self.dims[idx]

    def __iter__(self):
        return iter(self.dims)

    @property
    def rank(self) -> int:
        return len(self.dims)


@dataclass(frozen=True)
class TensorType:
    """Tensor type: shape plus element dtype."""

    shape: Shape
    dtype: Dtype = Dtype.FP32

    def __str__(self) -> str:
        return f"Tensor{self.shape}, {self.dtype.value}"

    @classmethod
    def from_dims(cls, dims, dtype: Union[str, Dtype] = Dtype.FP32) -> "TensorType":
        if isinstance(dtype, str) and not isinstance(dtype, Dtype):
            dtype = Dtype.from_string(dtype)
        return cls(Shape.of(*dims), dtype)


@dataclass(frozen=True)
class TupleType:
    """Tuple of types."""

    fields: Tuple["Type", ...]

    def __str__(self) -> str:
        return "(" + ", ".join(str(f) for f in self.fields) + ")"

    def __len__(self) -> int:
        return len(self.fields)

    def __getitem__(self, idx: int) -> "Type":
        return self.fields[idx]


@dataclass(frozen=True)
class FuncType:
    """Function signature."""

    arg_types: Tuple["Type", ...]
    ret_type: "Type"

    def __str__(self) -> str:
        args = ", ".join(str(a) for a in self.arg_types)
        return f"fn ({args}) -> {self.ret_type}"


Type = Union[TensorType, TupleType, FuncType]
