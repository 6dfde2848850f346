"""Tests for dectrees._threshold_method.py."""
import numpy as np
import pytest

from dectrees._threshold_method import exact, histogram, percentile, random

pytestmark = pytest.mark.other


def test_exact() -> None:
    """Test exact function."""
    x = np.array([3.0, 1.0, 2.0, 2.0])
    thresholds = exact(x, 10, 0)
    assert np.allclose(thresholds, [1.5, 2.5]), f"Wrong thresholds, got ({thresholds}) but expected ([1.5, 2.5])"

    # Constant feature has no midpoints
    assert len(exact(np.ones(5), 10, 0)) == 0


def test_random() -> None:
    """Test random function."""
    x = np.arange(100, dtype=float)
    thresholds = random(x, 10, 1718)
    assert len(thresholds) == 10, f"Wrong number of thresholds, got ({len(thresholds)}) but expected (10)"
    assert set(thresholds).issubset(set(exact(x, 10, 1718)))
    assert np.all(thresholds == random(x, 10, 1718)), "Thresholds should be reproducible with the same random state"

    # Never more thresholds than midpoints
    assert len(random(np.array([1.0, 2.0, 3.0]), 10, 1718)) == 2


def test_percentile() -> None:
    """Test percentile function."""
    x = np.arange(101, dtype=float)
    thresholds = percentile(x, 5, 0)
    assert np.allclose(thresholds, [0.0, 25.0, 50.0, 75.0, 100.0]), f"Wrong thresholds, got ({thresholds})"


def test_histogram() -> None:
    """Test histogram function."""
    x = np.arange(11, dtype=float)
    thresholds = histogram(x, 5, 0)
    assert np.allclose(thresholds, [0.0, 2.0, 4.0, 6.0, 8.0, 10.0]), f"Wrong thresholds, got ({thresholds})"
