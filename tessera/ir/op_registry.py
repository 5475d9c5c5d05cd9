"""
Operator Registry

Process-wide table of operator specifications. Operators are registered at
import time (see ops.py) and the registry is frozen before any compilation
starts; after that it is only read, so concurrent compilations may share it.

Each operator supplies a type relation:

    type_rel(input_types, attrs, num_inputs) -> list of output types | None

returning None when the inputs are not yet known well enough, and raising
TypeRelationError when they are known to be invalid.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Sequence

from .errors import RegistryError, UnknownOperatorError
from .expr import Op
from .types import Type


logger = logging.getLogger(__name__)


TypeRelation = Callable[[Sequence[Type], Any, int], Optional[list]]


@dataclass
class OpSpec:
    """Specification for a registered operator."""

    name: str
    num_inputs: int
    type_rel: TypeRelation

    # (name, type, description) per argument
    arguments: list[tuple[str, str, str]] = field(default_factory=list)
    description: str = ""
    attrs_type: Optional[type] = None
    support_level: int = 10

    # Operators carry no device of their own; the call site decides.
    device_polymorphic: bool = True
    non_computational: bool = False
    stateful: bool = False


class OpRegistry:
    """Registry of operator specifications."""

    def __init__(self):
        self._specs: dict[str, OpSpec] = {}
        self._ops: dict[str, Op] = {}
        self._frozen = False
        self._lock = threading.Lock()

    # =========================================================================
    # Registration
    # =========================================================================

    def register(self, spec: OpSpec) -> Op:
        """Register an operator and return its canonical ``Op`` node."""
        with self._lock:
            if self._frozen:
                raise RegistryError(
                    f"cannot register operator '{spec.name}': registry is frozen"
                )
            if spec.name in self._specs:
                raise RegistryError(f"operator '{spec.name}' is already registered")
            self._specs[spec.name] = spec
            op = Op(spec.name, spec)
            self._ops[spec.name] = op
        logger.debug("Registered operator %s", spec.name)
        return op

    def freeze(self) -> None:
        """Make the registry read-only."""
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    # =========================================================================
    # Lookup
    # =========================================================================

    def get(self, name: str) -> Op:
        """Get the canonical ``Op`` node for a registered operator."""
        op = self._ops.get(name)
        if op is None:
            raise UnknownOperatorError(name)
        return op

    def get_spec(self, name: str) -> OpSpec | None:
        return self._specs.get(name)

    def list_ops(self) -> list[str]:
        """List all registered operator names."""
        return list(self._specs.keys())

    def __contains__(self, name: str) -> bool:
        return name in self._specs

    def __len__(self) -> int:
        return len(self._specs)


# Global registry instance
registry = OpRegistry()


def register_op(
    name: str,
    num_inputs: int,
    type_rel: TypeRelation,
    **kwargs: Any,
) -> Op:
    """Register an operator in the global registry."""
    return registry.register(OpSpec(name, num_inputs, type_rel, **kwargs))


def get_op(name: str) -> Op:
    """Get an operator from the global registry."""
    return registry.get(name)


def is_device_polymorphic_op(op: Op) -> bool:
    """Whether ``op`` carries no device of its own."""
    return bool(op.spec.device_polymorphic)
