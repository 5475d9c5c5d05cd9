"""
Placement error definitions and error codes.

Error codes:
- P001-P006: Fatal errors raised while building or querying placement IR
- W001: Warnings
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ErrorCode(str, Enum):
    """Error codes raised by the placement layer."""

    P001 = "P001"  # Placement contradiction
    P002 = "P002"  # Arity violation
    P003 = "P003"  # Invalid placement scope
    P004 = "P004"  # Type relation failure
    P005 = "P005"  # Unknown operator
    P006 = "P006"  # Operator registry frozen or duplicate registration


class WarningCode(str, Enum):
    """Warning codes."""

    W001 = "W001"  # Unresolved environment variable in config


@dataclass
class SourceLocation:
    """Source location for error reporting."""

    file: Optional[str]
    line: int
    column: int
    end_line: Optional[int] = None
    end_column: Optional[int] = None

    def __str__(self) -> str:
        if self.file:
            return f"{self.file}:{self.line}:{self.column}"
        return f"line {self.line}, column {self.column}"


class PlacementError(Exception):
    """Base exception for all placement errors."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
    ):
        self.code = code
        self.message = message
        self.location = location
        self.hint = hint
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        parts = [f"[{self.code.value}]"]
        if self.location:
            parts.append(f" at {self.location}:")
        parts.append(f" {self.message}")
        if self.hint:
            parts.append(f"\n  hint: {self.hint}")
        return "".join(parts)


class PlacementContradictionError(PlacementError):
    """Two constraints on the same IR position name different scopes."""

    def __init__(
        self,
        position: str,
        outer_scope,
        inner_scope,
        location: Optional[SourceLocation] = None,
    ):
        self.position = position
        self.outer_scope = outer_scope
        self.inner_scope = inner_scope
        super().__init__(
            ErrorCode.P001,
            f"cannot constrain {position} of nested on_device annotations to "
            f"different scopes: {outer_scope} vs {inner_scope}",
            location,
        )


class ArityError(PlacementError):
    """Parameter index or parameter-scope list disagrees with function arity."""

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
    ):
        super().__init__(ErrorCode.P002, message, location, hint)


class InvalidScopeError(PlacementError):
    """Malformed placement scope description."""

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
    ):
        super().__init__(ErrorCode.P003, message, location, hint)


class TypeRelationError(PlacementError):
    """An operator's type relation rejected its inputs."""

    def __init__(
        self,
        op_name: str,
        message: str,
        location: Optional[SourceLocation] = None,
    ):
        self.op_name = op_name
        self.detail = message
        super().__init__(
            ErrorCode.P004,
            f"invalid operator '{op_name}': {message}",
            location,
        )


class UnknownOperatorError(PlacementError):
    """Lookup of an operator that was never registered."""

    def __init__(self, name: str, location: Optional[SourceLocation] = None):
        super().__init__(
            ErrorCode.P005,
            f"operator '{name}' is not registered",
            location,
        )


class RegistryError(PlacementError):
    """Registration after freezing, or duplicate registration."""

    def __init__(self, message: str):
        super().__init__(ErrorCode.P006, message)


@dataclass
class PlacementWarning:
    """Warning message emitted while building placement IR."""

    code: WarningCode
    message: str
    location: Optional[SourceLocation] = None

    def __str__(self) -> str:
        loc_str = f" at {self.location}" if self.location else ""
        return f"[{self.code.value}]{loc_str}: {self.message}"


class WarningCollector:
    """Collects warnings emitted while building placement IR."""

    def __init__(self):
        self.warnings: list[PlacementWarning] = []

    def warn(
        self,
        code: WarningCode,
        message: str,
        location: Optional[SourceLocation] = None,
    ):
        self.warnings.append(PlacementWarning(code, message, location))

    def clear(self):
        self.warnings.clear()

    def has_warnings(self) -> bool:
        return len(self.warnings) > 0

    def __iter__(self):
        return iter(self.warnings)
