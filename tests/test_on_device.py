"""Tests for building, decomposing and merging on_device annotations."""

import logging

import pytest

from tessera.ir import (
    Call,
    Constant,
    Constructor,
    ErrorCode,
    Function,
    GlobalVar,
    InvalidScopeError,
    OnDevice,
    PlacementContradictionError,
    PlacementScope,
    SourceLocation,
    Tuple,
    Var,
    decompose,
    get_op,
    maybe_annotate,
    on_device,
    unconstrained,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _fields(expr):
    props = decompose(expr)
    assert props is not None, f"expected an on_device annotation, got {expr}"
    return props.scope, props.constrain_result, props.constrain_body


def _npu(device_id=0):
    return PlacementScope.for_device("npu", device_id)


# ---------------------------------------------------------------------------
# on_device / decompose
# ---------------------------------------------------------------------------

class TestBuild:
    def test_fields_are_kept(self, add_call, accel):
        node = on_device(add_call, accel, constrain_result=True, constrain_body=False)
        assert isinstance(node, OnDevice)
        assert node.body is add_call
        assert node.scope == accel
        assert node.constrain_result is True
        assert node.constrain_body is False

    def test_defaults_constrain_body_only(self, add_call, accel):
        node = on_device(add_call, accel)
        assert _fields(node) == (accel, False, True)

    def test_no_flags_forces_unconstrained_scope(self, add_call, accel):
        node = on_device(add_call, accel, constrain_result=False, constrain_body=False)
        assert node.scope == unconstrained()
        assert node.scope is unconstrained()

    def test_direct_construction_enforces_invariant(self, add_call, accel):
        node = OnDevice(add_call, accel, False, False)
        assert node.scope is unconstrained()

    @pytest.mark.parametrize("flags", [(True, False), (False, True), (True, True)])
    def test_flag_with_unconstrained_scope_rejected(self, add_call, flags):
        with pytest.raises(InvalidScopeError) as excinfo:
            on_device(add_call, unconstrained(), *flags)
        assert excinfo.value.code == ErrorCode.P003

    def test_direct_construction_rejects_unconstrained_scope(self, add_call):
        with pytest.raises(InvalidScopeError):
            OnDevice(add_call, unconstrained(), True, False)

    def test_span_copied_from_body(self, tensor_type, accel):
        loc = SourceLocation("model.py", 3, 7)
        a = Var("a", tensor_type)
        call = Call(get_op("add"), (a, a), span=loc)
        assert on_device(call, accel).span == loc


class TestDecompose:
    def test_round_trip_fields(self, add_call, accel):
        node = on_device(add_call, accel, True, False)
        props = decompose(node)
        assert props == (add_call, accel, True, False)
        assert props.body is add_call

    @pytest.mark.parametrize(
        "expr",
        [
            Var("x"),
            GlobalVar("main"),
            Constructor("Cons", 1, 2),
            Tuple(()),
        ],
    )
    def test_non_annotation_returns_none(self, expr):
        assert decompose(expr) is None

    def test_call_and_op_return_none(self, add_call):
        assert decompose(add_call) is None
        assert decompose(get_op("add")) is None


# ---------------------------------------------------------------------------
# maybe_annotate: skip rules
# ---------------------------------------------------------------------------

class TestMaybeAnnotateSkips:
    def test_unconstrained_scope_is_noop(self, add_call):
        assert maybe_annotate(add_call, unconstrained(), False, False) is add_call

    @pytest.mark.parametrize("flags", [(False, False), (True, False), (False, True), (True, True)])
    def test_unconstrained_scope_any_flags(self, add_call, flags):
        assert maybe_annotate(add_call, unconstrained(), *flags) is add_call

    @pytest.mark.parametrize("flags", [(False, True), (True, False), (True, True)])
    def test_device_polymorphic_nodes_unchanged(self, tensor_type, accel, flags):
        x = Var("x", tensor_type)
        polymorphic = [
            x,
            GlobalVar("main"),
            get_op("add"),
            get_op("contrib.npu.identity"),
            Constructor("Nil"),
            Function((x,), x),
        ]
        for expr in polymorphic:
            assert maybe_annotate(expr, accel, *flags) is expr

    def test_constant_is_annotated(self, tensor_type, accel):
        c = Constant(0.0, tensor_type)
        assert _fields(maybe_annotate(c, accel)) == (accel, False, True)

    def test_call_is_wrapped(self, add_call, accel):
        node = maybe_annotate(add_call, accel, True, False)
        assert decompose(node) == (add_call, accel, True, False)


# ---------------------------------------------------------------------------
# maybe_annotate: merging nested annotations
# ---------------------------------------------------------------------------

@pytest.mark.merge
class TestMerge:
    @pytest.mark.parametrize("flags", [(False, True), (True, False), (True, True)])
    def test_identical_rewrap_is_idempotent(self, add_call, accel, flags):
        once = maybe_annotate(add_call, accel, *flags)
        twice = maybe_annotate(once, accel, *flags)
        assert decompose(twice).body is add_call
        assert decompose(twice) == decompose(once)

    def test_result_then_body_agree(self, add_call, accel):
        n = maybe_annotate(add_call, accel, True, False)
        assert decompose(n) == (add_call, accel, True, False)

        merged = maybe_annotate(n, accel, False, True)
        assert decompose(merged).body is add_call
        assert _fields(merged) == (accel, True, True)

    def test_body_then_result_agree(self, add_call, accel):
        inner = maybe_annotate(add_call, accel, False, True)
        merged = maybe_annotate(inner, accel, True, False)
        assert decompose(merged).body is add_call
        assert merged.scope == accel
        assert _fields(merged) == (accel, True, True)

    def test_result_body_contradiction(self, add_call, accel, cpu):
        inner = maybe_annotate(add_call, accel, False, True)
        with pytest.raises(PlacementContradictionError) as excinfo:
            maybe_annotate(inner, cpu, True, False)
        err = excinfo.value
        assert err.code == ErrorCode.P001
        assert err.outer_scope == cpu
        assert err.inner_scope == accel
        assert "device=accel" in str(err) and "device=cpu" in str(err)

    def test_intermediate_contradiction(self, add_call, accel, cpu):
        inner = maybe_annotate(add_call, accel, True, False)
        with pytest.raises(PlacementContradictionError) as excinfo:
            maybe_annotate(inner, cpu, False, True)
        assert excinfo.value.position == "intermediate result"

    def test_contradiction_leaves_input_untouched(self, add_call, accel, cpu):
        inner = maybe_annotate(add_call, accel, False, True)
        with pytest.raises(PlacementContradictionError):
            maybe_annotate(inner, cpu, True, True)
        assert decompose(inner) == (add_call, accel, False, True)

    def test_contradiction_is_logged(self, add_call, accel, cpu, caplog):
        inner = maybe_annotate(add_call, accel, False, True)
        with caplog.at_level(logging.ERROR, logger="tessera.ir.on_device"):
            with pytest.raises(PlacementContradictionError):
                maybe_annotate(inner, cpu, True, False)
        assert any("Contradictory" in r.getMessage() for r in caplog.records)

    def test_outer_without_flags_keeps_inner(self, add_call, accel, cpu):
        inner = maybe_annotate(add_call, accel, True, False)
        merged = maybe_annotate(inner, cpu, False, False)
        assert decompose(merged).body is add_call
        assert _fields(merged) == (accel, True, False)

    def test_outer_over_no_op_annotation(self, add_call, accel):
        inner = on_device(add_call, accel, False, False)
        merged = maybe_annotate(inner, accel, True, False)
        assert decompose(merged).body is add_call
        assert _fields(merged) == (accel, True, False)

    def test_result_chain_collapses_to_inner_scope(self, add_call, accel, cpu):
        # inner result pins the middle value, which wins over the outer result
        inner = maybe_annotate(add_call, accel, True, False)
        outer = maybe_annotate(inner, cpu, True, False)
        assert decompose(outer) == (add_call, accel, True, False)
        assert decompose(decompose(outer).body) is None

    def test_body_chain_collapses_to_outer_scope(self, add_call, accel, cpu):
        inner = maybe_annotate(add_call, accel, False, True)
        outer = maybe_annotate(inner, cpu, False, True)
        assert decompose(outer) == (add_call, cpu, False, True)
        assert decompose(decompose(outer).body) is None

    def test_triple_nesting_normalizes(self, add_call, accel):
        # Built directly so the inner pair is not already folded.
        nested = on_device(on_device(add_call, accel, True, False), accel, False, True)
        merged = maybe_annotate(nested, accel, True, True)
        assert decompose(merged).body is add_call
        assert _fields(merged) == (accel, True, True)

    def test_triple_nesting_detects_contradiction(self, add_call, accel):
        npu = _npu()
        nested = on_device(on_device(add_call, accel, False, True), accel, False, True)
        with pytest.raises(PlacementContradictionError):
            maybe_annotate(nested, npu, True, False)

    def test_merge_preserves_memory_scope_distinction(self, add_call):
        a = PlacementScope("npu", 0, memory_scope="global")
        b = PlacementScope("npu", 0, memory_scope="shared")
        inner = maybe_annotate(add_call, a, False, True)
        with pytest.raises(PlacementContradictionError):
            maybe_annotate(inner, b, True, False)
