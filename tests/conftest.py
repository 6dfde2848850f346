"""Shared fixtures and a minimal tree for exercising the growth engine."""
from typing import Optional

import numpy as np
import pytest

from dectrees import Average, DecisionTree, Labeled, Outcome, Split


class MedianTree(DecisionTree):
    """Tree that always splits the first column at its lower median.

    Parameters
    ----------
    purity_increase : float, default=None
        Purity increase reported by every split, the variance reduction when None.
    """

    def __init__(
        self,
        *,
        max_height: Optional[int] = None,
        max_leaf_size: int = 1,
        min_purity_increase: float = 0.0,
        verbose: int = 0,
        purity_increase: Optional[float] = None,
    ) -> None:
        self.purity_increase = purity_increase
        super().__init__(
            max_height=max_height,
            max_leaf_size=max_leaf_size,
            min_purity_increase=min_purity_increase,
            verbose=verbose,
        )

    def split(self, dataset: Labeled) -> Split:
        values = np.unique(dataset.column(0).astype(float))
        value = float(values[(len(values) - 1) // 2])
        groups = dataset.partition(0, value)
        impurity = self.impurity(dataset.labels)
        if self.purity_increase is None:
            purity_increase = max(0.0, impurity - self.split_impurity(groups))
        else:
            purity_increase = self.purity_increase

        return Split(
            column=0,
            value=value,
            impurity=impurity,
            purity_increase=purity_increase,
            n_samples=dataset.n_samples,
            candidates=groups,
        )

    def terminate(self, dataset: Labeled) -> Outcome:
        return Average(
            outcome=float(np.mean(dataset.labels)),
            impurity=self.impurity(dataset.labels),
            n_samples=dataset.n_samples,
        )

    def impurity(self, labels: np.ndarray) -> float:
        return float(np.var(labels)) if len(labels) else 0.0


@pytest.fixture
def eight() -> Labeled:
    """Eight samples with two features, target equal to the first feature."""
    X = np.column_stack([np.arange(8, dtype=float), np.zeros(8)])
    return Labeled(X, np.arange(8, dtype=float))
