"""
Function placement

Records where a function's parameters and result live, as a
FunctionPlacement attached to the Function value. Device planning reads it
back through ``result_scope`` and ``param_scope``. A function without a
record behaves as if every scope were unconstrained.
"""

import logging
from dataclasses import replace
from typing import Sequence

from .errors import ArityError
from .expr import Function, FunctionPlacement
from .scope import PlacementScope, unconstrained


logger = logging.getLogger(__name__)


def _check_function(function) -> None:
    if not isinstance(function, Function):
        raise TypeError(f"expected a Function, got {type(function).__name__}")


def attach(
    function: Function,
    param_scopes: Sequence[PlacementScope],
    result_scope: PlacementScope,
) -> Function:
    """Return a copy of ``function`` carrying the given placement.

    Any previous record is replaced as a whole.

    Raises:
        ArityError: ``param_scopes`` does not have one entry per parameter.
    """
    _check_function(function)
    param_scopes = tuple(param_scopes)
    if len(param_scopes) != function.arity:
        raise ArityError(
            f"{len(param_scopes)} parameter scopes given for function of arity {function.arity}",
            function.span,
        )
    logger.debug(
        "Attaching placement to function of arity %d: result %s", function.arity, result_scope
    )
    return replace(function, placement=FunctionPlacement(param_scopes, result_scope))


def maybe_attach(
    function: Function,
    param_scopes: Sequence[PlacementScope],
    result_scope: PlacementScope,
) -> Function:
    """Like ``attach``, but returns ``function`` untouched when every scope is unconstrained."""
    _check_function(function)
    param_scopes = tuple(param_scopes)
    if all(s.is_fully_unconstrained() for s in param_scopes) and result_scope.is_fully_unconstrained():
        return function
    return attach(function, param_scopes, result_scope)


def result_scope(function: Function) -> PlacementScope:
    """Scope of the function's result; unconstrained when no record is attached."""
    _check_function(function)
    if function.placement is None:
        return unconstrained()
    return function.placement.result_scope


def param_scope(function: Function, index: int) -> PlacementScope:
    """Scope of parameter ``index``; unconstrained when no record is attached.

    Raises:
        ArityError: ``index`` is out of range, or the attached record does not
            match the function's arity.
    """
    _check_function(function)
    if index < 0 or index >= function.arity:
        raise ArityError(
            f"param index {index} out of range for function of arity {function.arity}",
            function.span,
        )
    if function.placement is None:
        return unconstrained()
    param_scopes = function.placement.param_scopes
    if len(param_scopes) != function.arity:
        raise ArityError(
            f"annotation has {len(param_scopes)} parameter scopes but function arity is "
            f"{function.arity}",
            function.span,
            hint="the function's placement record is inconsistent with its parameters",
        )
    return param_scopes[index]
