"""Tests for dectrees._registry.py."""
import pytest

from dectrees._registry import Registry
from dectrees._splitter import ClassifierSplitters, RegressorSplitters
from dectrees._threshold_method import ThresholdMethods

pytestmark = pytest.mark.other


def test_registry() -> None:
    """Test Registry functionality."""
    registry = Registry("Test")
    assert registry.name == "Test", f"Wrong name, got ({registry.name}) but expected (Test)"

    @registry.register("double")
    def double(x: int) -> int:
        return 2 * x

    assert registry.keys() == ["double"], f"Wrong keys, got ({registry.keys()}) but expected (['double'])"
    assert "double" in registry
    assert registry["double"](2) == 4

    # Failures
    with pytest.raises(KeyError):
        registry["triple"]

    with pytest.raises(KeyError):
        registry.register("double")(double)


@pytest.mark.parametrize(
    "registry,expected",
    [
        (ClassifierSplitters, ["gini", "entropy"]),
        (RegressorSplitters, ["mse", "mae"]),
        (ThresholdMethods, ["exact", "random", "percentile", "histogram"]),
    ],
)
def test_registered_callables(registry: Registry, expected: list) -> None:
    """Test callables registered on import."""
    assert registry.keys() == expected, f"Wrong keys, got ({registry.keys()}) but expected ({expected})"
