"""
on_device annotations

Helpers for building, inspecting and folding the ``on_device`` annotation,
which pins an expression (its result, its body, or both) to a placement
scope.

Passes should go through ``maybe_annotate`` rather than building nodes
directly: it skips annotations that carry no information and folds an
annotation applied to another annotation into one node.

Example:
    x = add(a, b)
    y = maybe_annotate(x, accel, constrain_result=True, constrain_body=False)
    props = decompose(y)   # OnDeviceProps(body=x, scope=accel, True, False)
"""

import logging
from typing import NamedTuple, Optional

from .errors import PlacementContradictionError
from .expr import Expr, ExprKind, OnDevice
from .scope import PlacementScope
from .visitor import is_device_polymorphic


logger = logging.getLogger(__name__)


class OnDeviceProps(NamedTuple):
    """Fields of an on_device annotation, as returned by ``decompose``."""

    body: Expr
    scope: PlacementScope
    constrain_result: bool
    constrain_body: bool


def on_device(
    body: Expr,
    scope: PlacementScope,
    constrain_result: bool = False,
    constrain_body: bool = True,
) -> OnDevice:
    """Wrap ``body`` in an annotation, unconditionally.

    If neither flag is set the annotation asserts nothing and its scope is
    forced to the unconstrained scope.
    """
    return OnDevice(body, scope, constrain_result, constrain_body, span=body.span)


def decompose(expr: Expr) -> Optional[OnDeviceProps]:
    """Return the annotation's fields, or None if ``expr`` is not an on_device."""
    if expr.kind != ExprKind.ON_DEVICE:
        return None
    return OnDeviceProps(expr.body, expr.scope, expr.constrain_result, expr.constrain_body)


def maybe_annotate(
    body: Expr,
    scope: PlacementScope,
    constrain_result: bool = False,
    constrain_body: bool = True,
) -> Expr:
    """Return the expression to use in place of ``body`` once annotated.

    Either ``body`` unchanged (nothing to say, or ``body`` is device
    polymorphic), a fresh annotation, or ``body``'s own annotation merged
    with this one into a single node.

    Raises:
        PlacementContradictionError: the merged annotations pin one position
            to two different scopes.
    """
    if scope.is_fully_unconstrained():
        return body
    if is_device_polymorphic(body):
        logger.debug("Not annotating device polymorphic %s node", body.kind.value)
        return body

    inner = decompose(body)
    if inner is None:
        return on_device(body, scope, constrain_result, constrain_body)
    return _merge(body, inner, scope, constrain_result, constrain_body)


def _merge(
    body: Expr,
    inner: OnDeviceProps,
    outer_scope: PlacementScope,
    constrain_result: bool,
    constrain_body: bool,
) -> Expr:
    # The request is
    #   on_device(on_device(inner.body, inner.scope), outer_scope)
    #   ^         ^         ^
    #   outer     middle    innermost
    # The outer result and the innermost body each have one source. The
    # middle value has two: this call's constrain_body and the inner
    # annotation's constrain_result.
    if constrain_result and inner.constrain_body and outer_scope != inner.scope:
        logger.error("Contradictory result/body constraints: %s vs %s", outer_scope, inner.scope)
        raise PlacementContradictionError(
            "result and body", outer_scope, inner.scope, body.span
        )
    if constrain_body and inner.constrain_result and outer_scope != inner.scope:
        logger.error("Contradictory intermediate constraints: %s vs %s", outer_scope, inner.scope)
        raise PlacementContradictionError(
            "intermediate result", outer_scope, inner.scope, body.span
        )

    if constrain_body:
        scope = outer_scope
    elif inner.constrain_result:
        scope = inner.scope
    elif constrain_result and not inner.constrain_body:
        # Only the outer result is pinned.
        scope = outer_scope
    else:
        scope = inner.scope
    merged_result = constrain_result or inner.constrain_result
    merged_body = constrain_body or inner.constrain_body
    logger.debug("Merged nested on_device into %s", scope)

    if decompose(inner.body) is not None:
        return maybe_annotate(inner.body, scope, merged_result, merged_body)
    return on_device(inner.body, scope, merged_result, merged_body)
