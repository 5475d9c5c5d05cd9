"""
Placement Scopes

A PlacementScope says where a value lives or where a computation runs:
a device kind, a device index and an optional memory-scope tag. The
distinguished fully unconstrained scope (see ``unconstrained()``) means
"no constraint" and is what every unset field collapses to.

Scopes are immutable values and are shared freely between IR nodes.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Union

from .errors import InvalidScopeError


class DeviceKind(str, Enum):
    """Device kinds a scope can name."""

    CPU = "cpu"
    CUDA = "cuda"
    ROCM = "rocm"
    OPENCL = "opencl"
    VULKAN = "vulkan"
    METAL = "metal"
    HEXAGON = "hexagon"
    NPU = "npu"
    ACCEL = "accel"

    @classmethod
    def from_string(cls, s: str) -> "DeviceKind":
        """Parse a device kind from its name."""
        s = s.lower()
        for kind in cls:
            if kind.value == s:
                return kind
        raise InvalidScopeError(
            f"unknown device kind: {s}",
            hint="expected one of " + ", ".join(k.value for k in cls),
        )


@dataclass(frozen=True)
class PlacementScope:
    """A device/target binding.

    Examples:
        PlacementScope(DeviceKind.ACCEL, 0)
        PlacementScope("cpu", 0, memory_scope="global")
        unconstrained()  # no constraint at all
    """

    device_kind: Optional[DeviceKind] = None
    device_id: Optional[int] = None
    memory_scope: str = ""

    def __post_init__(self) -> None:
        if isinstance(self.device_kind, str) and not isinstance(self.device_kind, DeviceKind):
            object.__setattr__(self, "device_kind", DeviceKind.from_string(self.device_kind))
        if self.device_id is not None and self.device_id < 0:
            raise InvalidScopeError(f"device id must be non-negative, got {self.device_id}")

    @classmethod
    def for_device(
        cls,
        kind: Union[str, DeviceKind],
        device_id: int = 0,
        memory_scope: str = "",
    ) -> "PlacementScope":
        """Scope pinned to a single device."""
        return cls(kind, device_id, memory_scope)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "PlacementScope":
        """Build a scope from ``{"device": ..., "id": ..., "memory_scope": ...}``."""
        unknown = set(d) - {"device", "id", "memory_scope"}
        if unknown:
            raise InvalidScopeError(f"unknown scope fields: {', '.join(sorted(unknown))}")
        if not d:
            return unconstrained()
        device_id = d.get("id")
        if device_id is not None and not isinstance(device_id, int):
            raise InvalidScopeError(f"device id must be an integer, got {device_id!r}")
        return cls(d.get("device"), device_id, d.get("memory_scope") or "")

    def is_fully_unconstrained(self) -> bool:
        return self.device_kind is None and self.device_id is None and not self.memory_scope

    def is_fully_constrained(self) -> bool:
        return self.device_kind is not None and self.device_id is not None and bool(self.memory_scope)

    def __str__(self) -> str:
        if self.is_fully_unconstrained():
            return "scope(unconstrained)"
        parts = []
        if self.device_kind is not None:
            parts.append(f"device={self.device_kind.value}")
        if self.device_id is not None:
            parts.append(f"id={self.device_id}")
        if self.memory_scope:
            parts.append(f"memory_scope={self.memory_scope}")
        return "scope(" + ", ".join(parts) + ")"


_FULLY_UNCONSTRAINED = PlacementScope()


def unconstrained() -> PlacementScope:
    """The canonical fully unconstrained scope."""
    return _FULLY_UNCONSTRAINED
