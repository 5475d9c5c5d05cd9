import pytest

from tessera.ir import (
    PlacementScope,
    TensorType,
    Var,
    get_op,
    Call,
)


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "merge: tests of nested on_device folding"
    )


@pytest.fixture
def accel():
    return PlacementScope.for_device("accel", 0)


@pytest.fixture
def cpu():
    return PlacementScope.for_device("cpu", 0)


@pytest.fixture
def tensor_type():
    return TensorType.from_dims([1, 16, 16, 8], "float32")


@pytest.fixture
def add_call(tensor_type):
    """A call expression: add(%a, %b)."""
    a = Var("a", tensor_type)
    b = Var("b", tensor_type)
    return Call(get_op("add"), (a, b))
