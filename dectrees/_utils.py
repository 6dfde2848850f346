from math import ceil
from typing import Any, Dict, Optional, Tuple, Union

import numpy as np
from numba import njit


def estimate_proba(y: np.ndarray) -> Tuple[Any, Dict[Any, float]]:
    """Estimate class probabilities and the most probable class.

    Ties are broken in favor of the class that sorts first.

    Parameters
    ----------
    y : np.ndarray
        Class labels.

    Returns
    -------
    Any
        Most frequent class label.

    Dict[Any, float]
        Estimated probability for each class present in y.
    """
    classes, counts = np.unique(y, return_counts=True)
    proba = counts / counts.sum()
    best = classes[np.argmax(counts)]

    return _to_python(best), {_to_python(c): float(p) for c, p in zip(classes, proba)}


@njit(cache=True, fastmath=True, nogil=True)
def estimate_mean(y: np.ndarray) -> float:
    """Estimate the mean.

    Parameters
    ----------
    y : np.ndarray
        Input data.

    Returns
    -------
    float
        Estimate mean.
    """
    return np.mean(y)


def calculate_max_value(*, n_values: int, desired_max: Optional[Union[str, float, int]] = None) -> int:
    """Calculate the maximum desired value based on a fixed input size.

    Parameters
    ----------
    n_values : int
        Total number of values.

    desired_max : Union[str, float, int], default=None
        Desired number of values.

    Returns
    -------
    int
        Maximum value.
    """
    if type(desired_max) is int:
        total = min(desired_max, n_values)
    elif desired_max == "sqrt":
        total = ceil(np.sqrt(n_values))
    elif desired_max == "log2":
        total = ceil(np.log2(n_values)) if n_values > 1 else 1
    elif type(desired_max) is float:
        total = ceil(n_values * desired_max)
    else:
        total = n_values

    return max(1, min(n_values, total))


def brightness(color: str) -> int:
    """Brightness of a hex color (without the leading #) between 0 and 255.

    Parameters
    ----------
    color : str
        Six digit hex color, e.g. "ff00aa".

    Returns
    -------
    int
        Average of the red, green and blue channels, rounded half up.
    """
    total = int(color[0:2], 16) + int(color[2:4], 16) + int(color[4:6], 16)

    return int(total / 3 + 0.5)


def _to_python(value: Any) -> Any:
    """Convert numpy scalars to their builtin Python equivalent."""
    return value.item() if isinstance(value, np.generic) else value
