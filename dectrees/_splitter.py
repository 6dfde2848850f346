import numpy as np
from numba import njit
from scipy.stats import entropy as _shannon_entropy

from ._registry import ClassifierSplitters, RegressorSplitters


def _class_counts(y: np.ndarray) -> np.ndarray:
    """Count occurrences of each class label.

    Parameters
    ----------
    y : np.ndarray
        Class labels, numeric or categorical.

    Returns
    -------
    np.ndarray
        Number of samples per class, in sorted class order.
    """
    if y.ndim > 1:
        y = y.ravel()

    _, counts = np.unique(y, return_counts=True)
    return counts.astype(np.float64)


@njit(cache=True, fastmath=True, nogil=True)
def _gini_from_counts(counts: np.ndarray) -> float:
    n = counts.sum()
    p = counts / n
    return 1.0 - np.sum(p * p)


@njit(cache=True, fastmath=True, nogil=True)
def _variance(y: np.ndarray) -> float:
    dev = y - y.mean()
    dev *= dev

    return dev.mean()


@ClassifierSplitters.register("gini")
def gini_index(y: np.ndarray) -> float:
    """Calculate gini index.

    Parameters
    ----------
    y : np.ndarray
        Class labels.

    Returns
    -------
    float
        Gini index, 0 for a pure or empty set of labels.
    """
    if not len(y):
        return 0.0

    return float(_gini_from_counts(_class_counts(y)))


@ClassifierSplitters.register("entropy")
def entropy(y: np.ndarray) -> float:
    """Calculate Shannon entropy (in bits) of the class distribution.

    Parameters
    ----------
    y : np.ndarray
        Class labels.

    Returns
    -------
    float
        Entropy, 0 for a pure or empty set of labels.
    """
    if not len(y):
        return 0.0

    return float(_shannon_entropy(_class_counts(y), base=2))


@RegressorSplitters.register("mse")
def mean_squared_error(y: np.ndarray) -> float:
    """Mean squared deviation from the mean, i.e. the variance of the target.

    Parameters
    ----------
    y : np.ndarray
        Continuous target.

    Returns
    -------
    float
        Variance, 0 for an empty target.
    """
    if y.ndim > 1:
        y = y.ravel()

    if not len(y):
        return 0.0

    return float(_variance(y.astype(np.float64)))


@RegressorSplitters.register("mae")
def mean_absolute_error(y: np.ndarray) -> float:
    """Mean absolute deviation from the mean.

    Parameters
    ----------
    y : np.ndarray
        Continuous target.

    Returns
    -------
    float
        Mean absolute deviation, 0 for an empty target.
    """
    if y.ndim > 1:
        y = y.ravel()

    if not len(y):
        return 0.0

    y = y.astype(np.float64)
    return float(np.mean(np.abs(y - y.mean())))
