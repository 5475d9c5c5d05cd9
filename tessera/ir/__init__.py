"""
Placement IR - device/target placement for a heterogeneous tensor IR

Lets earlier compiler stages mark which sub-expressions and function
boundaries must run on which device, and lets later stages (device
planning, code generation) read those constraints back reliably even
after repeated, possibly redundant, annotation.

Key components:
- Scope: PlacementScope values and the unconstrained sentinel
- Expr: Immutable IR nodes, including the on_device annotation
- on_device: Building, decomposing and merging annotations
- Function placement: Per-parameter and result scopes on functions
- Op registry: Operators, their type relations and device polymorphism
- Config: Named scopes and logging from YAML

Example usage:
    from tessera.ir import PlacementScope, maybe_annotate, decompose

    accel = PlacementScope.for_device("accel", 0)
    y = maybe_annotate(call, accel, constrain_result=True, constrain_body=False)
    props = decompose(y)
"""

from .errors import (
    ErrorCode,
    WarningCode,
    SourceLocation,
    PlacementError,
    PlacementContradictionError,
    ArityError,
    InvalidScopeError,
    TypeRelationError,
    UnknownOperatorError,
    RegistryError,
    WarningCollector,
)

from .scope import (
    DeviceKind,
    PlacementScope,
    unconstrained,
)

from .types import (
    Dtype,
    SymbolicDim,
    ConcreteDim,
    Shape,
    TensorType,
    TupleType,
    FuncType,
)

from .expr import (
    ExprKind,
    Expr,
    Var,
    GlobalVar,
    Constant,
    Op,
    Constructor,
    Call,
    Tuple,
    TupleGetItem,
    Let,
    Function,
    FunctionPlacement,
    OnDevice,
)

from .op_registry import (
    OpSpec,
    OpRegistry,
    registry,
    register_op,
    get_op,
)

from .ops import (
    NpuIdentityAttrs,
    make_npu_identity,
)

from .visitor import (
    ExprFunctor,
    ExprMutator,
    is_device_polymorphic,
    strip_on_device,
)

from .on_device import (
    OnDeviceProps,
    on_device,
    decompose,
    maybe_annotate,
)

from .function_placement import (
    attach,
    maybe_attach,
    result_scope,
    param_scope,
)

from .type_infer import (
    TypeInferencer,
    infer_type,
)

from .config import (
    PlacementConfig,
    load_config,
    configure_logging,
)

# Built-in operators are registered above; nothing registers after startup.
registry.freeze()
