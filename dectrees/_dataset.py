"""Labeled dataset container consumed by the tree growing engine."""
from typing import Any, List, Literal, Optional, Sequence, Tuple, Union

import numpy as np

ColumnType = Literal["continuous", "categorical"]


def _infer_column_types(samples: np.ndarray) -> List[ColumnType]:
    """Infer the type of each feature column.

    A column is categorical when it holds strings, otherwise continuous.

    Parameters
    ----------
    samples : np.ndarray
        2d array of samples.

    Returns
    -------
    List[ColumnType]
        Type of each column.
    """
    if samples.dtype.kind in "biuf":
        return ["continuous"] * samples.shape[1]
    if samples.dtype.kind in "US":
        return ["categorical"] * samples.shape[1]

    return [
        "categorical" if any(isinstance(v, str) for v in samples[:, j]) else "continuous"
        for j in range(samples.shape[1])
    ]


class Labeled:
    """Ordered samples paired one to one with labels.

    Parameters
    ----------
    samples : array-like of shape (n_samples, n_features)
        Feature vectors. Numeric columns are compared against thresholds, string columns against categories.

    labels : array-like of shape (n_samples,)
        Class labels or continuous targets.

    column_types : List[ColumnType], default=None
        Type of each feature column, inferred from the samples when not given.
    """

    def __init__(
        self, samples: Any, labels: Any, column_types: Optional[Sequence[ColumnType]] = None
    ) -> None:
        samples = samples if isinstance(samples, np.ndarray) else np.array(samples, dtype=object)
        if samples.dtype.kind in "US":
            samples = samples.astype(object)
        labels = labels if isinstance(labels, np.ndarray) else np.array(labels)

        if samples.ndim != 2:
            if samples.ndim == 1 and not len(samples):
                samples = samples.reshape(0, len(column_types) if column_types else 0)
            else:
                raise ValueError(f"Samples should be a 2d array, detected ({samples.ndim}) dimensions")

        if labels.ndim != 1:
            raise ValueError(f"Labels should be a 1d array, detected ({labels.ndim}) dimensions")

        if len(samples) != len(labels):
            raise ValueError(f"Different number of samples ({len(samples)}) and labels ({len(labels)})")

        if column_types is None:
            column_types = _infer_column_types(samples)
            if samples.dtype == object and "categorical" not in column_types and len(samples):
                samples = samples.astype(float)
        elif len(column_types) != samples.shape[1]:
            raise ValueError(f"Expected ({samples.shape[1]}) column types, got ({len(column_types)})")

        self._samples = samples
        self._labels = labels
        self._column_types: List[ColumnType] = list(column_types)

    @property
    def samples(self) -> np.ndarray:
        """2d array of feature vectors."""
        return self._samples

    @property
    def labels(self) -> np.ndarray:
        """1d array of labels."""
        return self._labels

    @property
    def column_types(self) -> List[ColumnType]:
        """Type of each feature column."""
        return list(self._column_types)

    @property
    def n_samples(self) -> int:
        """Number of samples."""
        return self._samples.shape[0]

    @property
    def n_features(self) -> int:
        """Number of feature columns."""
        return self._samples.shape[1]

    @property
    def empty(self) -> bool:
        """Whether the dataset holds no samples."""
        return self.n_samples == 0

    def __len__(self) -> int:
        return self.n_samples

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(n_samples={self.n_samples}, n_features={self.n_features})"

    def column(self, column: int) -> np.ndarray:
        """Return the values of a feature column.

        Parameters
        ----------
        column : int
            Index of feature column.

        Returns
        -------
        np.ndarray
            Column values.
        """
        return self._samples[:, column]

    def categorical(self, column: int) -> bool:
        """Whether a feature column holds categories."""
        return self._column_types[column] == "categorical"

    def take(self, indices: Union[Sequence[int], np.ndarray]) -> "Labeled":
        """Subset of the dataset by row indices.

        Parameters
        ----------
        indices : array-like of int
            Row indices, in the order they should appear.

        Returns
        -------
        Labeled
            New dataset with the selected rows.
        """
        idx = np.asarray(indices, dtype=int)
        return Labeled(self._samples[idx], self._labels[idx], column_types=self._column_types)

    def partition(self, column: int, value: Union[str, float]) -> Tuple["Labeled", "Labeled"]:
        """Split the dataset in two with a binary test on a feature column.

        Parameters
        ----------
        column : int
            Index of feature column to test.

        value : Union[str, float]
            Category tested for equality when a string, otherwise threshold tested with <=.

        Returns
        -------
        left : Labeled
            Samples passing the test.

        right : Labeled
            Remaining samples.
        """
        x = self._samples[:, column]
        if isinstance(value, str):
            idx = np.array([v == value for v in x], dtype=bool)
        else:
            idx = x.astype(float) <= value

        left = Labeled(self._samples[idx], self._labels[idx], column_types=self._column_types)
        right = Labeled(self._samples[~idx], self._labels[~idx], column_types=self._column_types)

        return left, right

    def merge(self, dataset: "Labeled") -> "Labeled":
        """Merge another dataset with this one, this dataset's samples first.

        Parameters
        ----------
        dataset : Labeled
            Dataset with the same feature columns.

        Returns
        -------
        Labeled
            Combined dataset.
        """
        if dataset.n_features != self.n_features:
            raise ValueError(f"Dataset should have ({self.n_features}) features, got ({dataset.n_features})")

        samples = np.concatenate([self._samples, dataset.samples])
        labels = np.concatenate([self._labels, dataset.labels])

        return Labeled(samples, labels, column_types=self._column_types)
