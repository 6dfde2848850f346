import numpy as np
from numba import njit

from ._registry import ThresholdMethods


@njit(cache=True, fastmath=True, nogil=True)
def _midpoints(x: np.ndarray) -> np.ndarray:
    values = np.unique(x)
    return (values[:-1] + values[1:]) / 2


@ThresholdMethods.register("exact")
def exact(x: np.ndarray, max_thresholds: int, random_state: int) -> np.ndarray:
    """Unique midpoints in array.

    Parameters
    ----------
    x : np.ndarray
        Input data.

    max_thresholds : int
        Maximum number of thresholds to generate. Kept here for API compatibility with other threshold methods.

    random_state : int
        Random seed. Kept here for API compatibility with other threshold methods.

    Returns
    -------
    np.ndarray
        Thresholds in array.
    """
    if x.ndim > 1:
        x = x.ravel()

    return _midpoints(x)


@ThresholdMethods.register("random")
def random(x: np.ndarray, max_thresholds: int, random_state: int) -> np.ndarray:
    """Random sample of unique midpoints in array.

    Parameters
    ----------
    x : np.ndarray
        Input data.

    max_thresholds : int
        Maximum number of thresholds to generate.

    random_state : int
        Random seed.

    Returns
    -------
    np.ndarray
        Thresholds in array.
    """
    prng = np.random.RandomState(random_state)

    if x.ndim > 1:
        x = x.ravel()

    midpoints = _midpoints(x)
    max_thresholds = min(len(midpoints), max_thresholds)

    return np.sort(prng.choice(midpoints, size=max_thresholds, replace=False))


@njit(cache=True, fastmath=True, nogil=True)
def _percentile(x: np.ndarray, max_thresholds: int) -> np.ndarray:
    q = np.linspace(0, 100, max_thresholds)
    return np.unique(np.percentile(x, q))


@ThresholdMethods.register("percentile")
def percentile(x: np.ndarray, max_thresholds: int, random_state: int) -> np.ndarray:
    """Percentiles of array.

    Parameters
    ----------
    x : np.ndarray
        Input data.

    max_thresholds : int
        Maximum number of thresholds to generate.

    random_state : int
        Random seed. Kept here for API compatibility with other threshold methods.

    Returns
    -------
    np.ndarray
        Thresholds in array.
    """
    if x.ndim > 1:
        x = x.ravel()

    return _percentile(x, max_thresholds)


@njit(cache=True, fastmath=True, nogil=True)
def _histogram(x: np.ndarray, max_thresholds: int) -> np.ndarray:
    return np.unique(np.histogram(x, max_thresholds)[1])


@ThresholdMethods.register("histogram")
def histogram(x: np.ndarray, max_thresholds: int, random_state: int) -> np.ndarray:
    """Histogram bin edges of array.

    Parameters
    ----------
    x : np.ndarray
        Input data.

    max_thresholds : int
        Maximum number of thresholds to generate.

    random_state : int
        Random seed. Kept here for API compatibility with other threshold methods.

    Returns
    -------
    np.ndarray
        Thresholds in array.
    """
    if x.ndim > 1:
        x = x.ravel()

    return _histogram(x, max_thresholds)
