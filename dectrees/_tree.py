import warnings
from abc import ABCMeta, abstractmethod
from typing import Annotated, Any, List, Literal, Optional, Tuple, Union

import numpy as np
from pydantic import Field, NonNegativeInt, PositiveInt, ValidationInfo, field_validator
from sklearn.base import ClassifierMixin, RegressorMixin

from ._base import DecisionTree, DecisionTreeParameters
from ._dataset import Labeled
from ._encoding import Encoding
from ._nodes import Average, Best, Outcome, Split
from ._splitter import ClassifierSplitters, RegressorSplitters
from ._threshold_method import ThresholdMethods
from ._utils import calculate_max_value, estimate_mean, estimate_proba
from .exceptions import TreeNotGrownError

# Type aliases
ProbabilityFloat = Annotated[float, Field(gt=0.0, le=1.0)]
MaxValuesOption = Optional[Union[Literal["sqrt", "log2"], PositiveInt, ProbabilityFloat]]


class BaseTreeEstimatorParameters(DecisionTreeParameters):
    """Model for BaseTreeEstimator parameters."""

    estimator_type: Literal["classifier", "regressor"]
    splitter: str
    threshold_method: str
    max_thresholds: MaxValuesOption
    max_features: MaxValuesOption
    random_state: Optional[NonNegativeInt]

    @field_validator("splitter")
    @classmethod
    def validate_splitter(cls, v: str, info: ValidationInfo) -> str:
        """Validate splitter."""
        estimator_type = info.data.get("estimator_type")
        registry = ClassifierSplitters if estimator_type == "classifier" else RegressorSplitters
        supported = registry.keys()
        if v not in supported:
            raise ValueError(
                f"splitter ({v}) not supported for ({estimator_type}) estimator, expected one of: {supported}"
            )

        return v

    @field_validator("threshold_method")
    @classmethod
    def validate_threshold_method(cls, v: str) -> str:
        """Validate threshold_method."""
        supported = ThresholdMethods.keys()
        if v not in supported:
            raise ValueError(f"threshold_method ({v}) not supported, expected one of: {supported}")

        return v


class BaseTreeEstimator(DecisionTree, metaclass=ABCMeta):
    """Base class for trees grown with a greedy search over every feature column and candidate split value.

    Warning: This class should not be used directly. Use derived classes instead.
    """

    _task: str

    @abstractmethod
    def __init__(
        self,
        *,
        max_height: Optional[int],
        max_leaf_size: int,
        min_purity_increase: float,
        max_features: Optional[Union[str, float, int]],
        splitter: str,
        threshold_method: str,
        max_thresholds: Optional[Union[str, float, int]],
        random_state: Optional[int],
        verbose: int,
    ) -> None:
        self.max_features = max_features
        self.splitter = splitter
        self.threshold_method = threshold_method
        self.max_thresholds = max_thresholds
        self.random_state = random_state

        super().__init__(
            max_height=max_height,
            max_leaf_size=max_leaf_size,
            min_purity_increase=min_purity_increase,
            verbose=verbose,
        )

    @property
    def _parameter_model(self) -> Any:
        """Model for hyperparameter validation."""
        return BaseTreeEstimatorParameters

    def _validate_parameters(self, params: dict) -> None:
        """Validate hyperparameters.

        Parameters
        ----------
        params : dict
            Hyperparameters.
        """
        self._parameter_model(**params, estimator_type=self._task)

    @property
    def _criterion(self) -> Any:
        """Impurity function selected with the splitter hyperparameter."""
        registry = ClassifierSplitters if self._task == "classifier" else RegressorSplitters
        return registry[self.splitter]

    def impurity(self, labels: np.ndarray) -> float:
        """Calculate the impurity of a set of labels.

        Parameters
        ----------
        labels : np.ndarray
            Labels.

        Returns
        -------
        float
            Impurity of the labels.
        """
        return self._criterion(labels)

    def _candidate_values(self, dataset: Labeled, column: int) -> List[Union[str, float]]:
        """Values to test when splitting on a feature column.

        Parameters
        ----------
        dataset : Labeled
            Samples at the node.

        column : int
            Index of feature column.

        Returns
        -------
        List[Union[str, float]]
            Unique categories of a categorical column, thresholds of a continuous column.
        """
        x = dataset.column(column)

        if dataset.categorical(column):
            return sorted({v for v in x if isinstance(v, str)})

        x = x.astype(float)
        n_unique = len(np.unique(x))
        max_thresholds = (
            calculate_max_value(n_values=n_unique, desired_max=self.max_thresholds) if self.max_thresholds else n_unique
        )
        thresholds = self._threshold_method(x, max_thresholds, self._random_state)

        return [float(threshold) for threshold in thresholds]

    def _select_best_split(
        self, dataset: Labeled, columns: np.ndarray
    ) -> Tuple[Optional[int], Optional[Union[str, float]], Optional[Tuple[Labeled, Labeled]], float]:
        """Select the binary split with the lowest split impurity.

        Parameters
        ----------
        dataset : Labeled
            Samples at the node.

        columns : np.ndarray
            Feature columns to search.

        Returns
        -------
        best_column : int
            Index of best feature column, None if no test separates the samples.

        best_value : Union[str, float]
            Best category or threshold.

        best_groups : Tuple[Labeled, Labeled]
            Groups produced by the best split.

        best_impurity : float
            Split impurity of the best split.
        """
        best_column = None
        best_value = None
        best_groups = None
        best_impurity = np.inf

        for column in columns:
            for value in self._candidate_values(dataset, column):
                groups = dataset.partition(column, value)
                if groups[0].empty or groups[1].empty:
                    continue

                impurity = self.split_impurity(groups)
                if impurity < best_impurity:
                    best_column = int(column)
                    best_value = value
                    best_groups = groups
                    best_impurity = impurity

                # Nothing beats a perfect split
                if impurity <= 0.0:
                    return best_column, best_value, best_groups, best_impurity

        return best_column, best_value, best_groups, best_impurity

    def split(self, dataset: Labeled) -> Split:
        """Find the best split point for a subset of the training set.

        A pure subset, or one no test can separate, gets a split with an empty right group.

        Parameters
        ----------
        dataset : Labeled
            Samples at the node.

        Returns
        -------
        Split
            Decision node carrying its candidate groups.
        """
        impurity = self.impurity(dataset.labels)
        n = dataset.n_samples

        best_column = None
        if impurity > 0.0:
            p = dataset.n_features
            columns = (
                self._prng.choice(p, size=self._max_features, replace=False) if self._max_features < p else np.arange(p)
            )
            best_column, best_value, best_groups, best_impurity = self._select_best_split(dataset, columns)

        if best_column is None:
            value = dataset.column(0)[0]
            value = str(value) if dataset.categorical(0) else float(value)

            return Split(
                column=0,
                value=value,
                impurity=impurity,
                purity_increase=0.0,
                n_samples=n,
                candidates=(dataset, dataset.take([])),
            )

        return Split(
            column=best_column,
            value=best_value,
            impurity=impurity,
            purity_increase=max(0.0, impurity - best_impurity),
            n_samples=n,
            candidates=best_groups,
        )

    def grow(self, dataset: Labeled) -> None:
        """Grow the tree on a labeled dataset.

        Parameters
        ----------
        dataset : Labeled
            Training samples and labels.
        """
        p = dataset.n_features
        self._random_state = int(np.random.randint(1, 1_000_000)) if self.random_state is None else self.random_state
        self._prng = np.random.RandomState(self._random_state)
        self._threshold_method: Any = ThresholdMethods[self.threshold_method]
        self._max_features = calculate_max_value(n_values=p, desired_max=self.max_features) if self.max_features else p

        if self.threshold_method != "exact" and self.max_thresholds is None:
            warnings.warn(
                f"Using threshold_method='{self.threshold_method}' with max_thresholds=None is not recommended, "
                "consider reducing max_thresholds to speed up split selection."
            )

        super().grow(dataset)

    def _validate_data_fit(self, *, X: Any, y: Any) -> Tuple[np.ndarray, np.ndarray]:
        """Validate data for training by checking types and casting.

        Parameters
        ----------
        X : array-like of shape (n_samples, n_features)
            Training features, numeric or categorical (strings).

        y : array-like of shape (n_samples,)
            Training target.

        Returns
        -------
        np.ndarray
            Training features.

        np.ndarray
            Training target.
        """
        feature_names_in = None
        if not isinstance(X, np.ndarray):
            if isinstance(X, (list, tuple)):
                X = np.array(X, dtype=object)
            elif hasattr(X, "values"):
                if hasattr(X, "columns"):
                    feature_names_in = [str(column) for column in X.columns]
                X = X.values
            else:
                raise ValueError(
                    f"Unsupported type for X ({type(X)}), expected np.ndarray, list, tuple, or pandas data structure"
                )

        if X.ndim == 1:
            X = X[:, None]
        elif X.ndim > 2:
            raise ValueError(
                f"Arrays with more than 2 dimensions are not supported for X, detected ({X.ndim}) dimensions"
            )

        if feature_names_in is None:
            feature_names_in = [f"f{j}" for j in range(X.shape[1])]
        self.feature_names_in_ = feature_names_in

        if not isinstance(y, np.ndarray):
            if isinstance(y, (list, tuple)):
                y = np.array(y)
            elif hasattr(y, "values"):
                y = y.values
            else:
                raise ValueError(
                    f"Unsupported type for y ({type(y)}), expected np.ndarray, list, tuple, or pandas data structure"
                )

        if y.ndim == 2:
            y = y.ravel()
        elif y.ndim > 2:
            raise ValueError(f"Multi-output labels are not supported for y, detected ({y.ndim - 1}) outputs")

        if len(X) != len(y):
            raise ValueError(f"Different number of samples between X ({len(X)}) and y ({len(y)})")

        if self._task == "regressor":
            y = y.astype(float)

        return X, y

    def _validate_data_predict(self, X: Any) -> np.ndarray:
        """Validate data for inference by checking types and casting.

        Parameters
        ----------
        X : array-like of shape (n_samples, n_features)
            Inference features.

        Returns
        -------
        np.ndarray
            Inference features.
        """
        if self.bare():
            raise TreeNotGrownError("Estimator not trained, must call fit() method before predict()")

        if not isinstance(X, np.ndarray):
            if isinstance(X, (list, tuple)):
                X = np.array(X, dtype=object)
            elif hasattr(X, "values"):
                X = X.values
            else:
                raise ValueError(
                    f"Unsupported type for X ({type(X)}), expected np.ndarray, list, tuple, or pandas data structure"
                )

        if X.ndim == 1:
            X = X[:, None]
        elif X.ndim > 2:
            raise ValueError(
                f"Arrays with more than 2 dimensions are not supported for X, detected ({X.ndim}) dimensions"
            )

        if X.shape[1] != self.feature_count:
            raise ValueError(f"X should have ({self.feature_count}) features, got ({X.shape[1]})")

        return X

    def fit(self, X: Any, y: Any) -> "BaseTreeEstimator":
        """Train estimator.

        Parameters
        ----------
        X : array-like of shape (n_samples, n_features)
            Training features.

        y : array-like of shape (n_samples,)
            Training target.

        Returns
        -------
        self
            Fitted estimator.
        """
        X, y = self._validate_data_fit(X=X, y=y)

        if self._task == "classifier":
            self.classes_ = np.unique(y)
            self.n_classes_ = len(self.classes_)

        self.grow(Labeled(X, y))
        self.n_features_in_ = X.shape[1]

        # Normalize feature importances
        importances = self.feature_importances()
        total = importances.sum()
        self.feature_importances_ = importances / total if total else importances

        return self

    def _leaves(self, X: Any) -> List[Outcome]:
        """Leaf reached by each sample."""
        X = self._validate_data_predict(X)

        return [self.search(x) for x in X]

    def export_graphviz(
        self, feature_names: Optional[List[str]] = None, max_depth: Optional[int] = None
    ) -> Encoding:
        """Describe the tree in "dot" format, naming columns with the feature names seen during fit by default.

        Parameters
        ----------
        feature_names : List[str], default=None
            Name of each feature column.

        max_depth : int, default=None
            Depth at which nodes are rendered as a placeholder instead of being expanded.

        Returns
        -------
        Encoding
            Graph in dot format.
        """
        if feature_names is None:
            feature_names = getattr(self, "feature_names_in_", None)

        return super().export_graphviz(feature_names=feature_names, max_depth=max_depth)

    @abstractmethod
    def predict(self, X: Any) -> np.ndarray:
        """Predict target."""
        pass


class ClassificationTree(ClassifierMixin, BaseTreeEstimator):
    """Binary decision tree classifier.

    Parameters
    ----------
    max_height : int, default=None
        Maximum height of the tree, unbounded when None.

    max_leaf_size : int, default=3
        Maximum number of samples a leaf node can hold.

    min_purity_increase : float, default=1e-7
        Minimum purity increase a split must achieve for its children to be split further.

    max_features : {"sqrt", "log2"}, int, or float, default=None
        Maximum number of feature columns randomly chosen to search at each split.

    splitter : {"gini", "entropy"}, default="gini"
        Impurity measure used to select splits.

    threshold_method : {"exact", "random", "histogram", "percentile"}, default="exact"
        Method to calculate thresholds on a continuous feature column.

    max_thresholds : {"sqrt", "log2"}, int, or float, default=None
        Maximum number of thresholds to use for split selection.

    random_state : int, default=None
        Random seed.

    verbose : int, default=1
        Controls verbosity when fitting.

    Attributes
    ----------
    classes_ : np.ndarray
        Unique class labels.

    n_classes_ : int
        Number of classes.

    feature_importances_ : np.ndarray
        Normalized feature importances for each feature.

    n_features_in_ : int
        Number of features seen during fit.

    feature_names_in_ : List[str]
        List of feature names seen during fit.
    """

    _task = "classifier"

    def __init__(
        self,
        *,
        max_height: Optional[int] = None,
        max_leaf_size: int = 3,
        min_purity_increase: float = 1e-7,
        max_features: Optional[Union[str, float, int]] = None,
        splitter: str = "gini",
        threshold_method: str = "exact",
        max_thresholds: Optional[Union[str, float, int]] = None,
        random_state: Optional[int] = None,
        verbose: int = 1,
    ) -> None:
        super().__init__(
            max_height=max_height,
            max_leaf_size=max_leaf_size,
            min_purity_increase=min_purity_increase,
            max_features=max_features,
            splitter=splitter,
            threshold_method=threshold_method,
            max_thresholds=max_thresholds,
            random_state=random_state,
            verbose=verbose,
        )

    def terminate(self, dataset: Labeled) -> Best:
        """Terminate a branch with the most probable class.

        Parameters
        ----------
        dataset : Labeled
            Samples at the leaf.

        Returns
        -------
        Best
            Leaf with class probabilities.
        """
        outcome, probabilities = estimate_proba(dataset.labels)

        return Best(
            outcome=outcome,
            impurity=self.impurity(dataset.labels),
            n_samples=dataset.n_samples,
            probabilities=probabilities,
        )

    def predict_proba(self, X: Any) -> np.ndarray:
        """Predict class probabilities.

        Parameters
        ----------
        X : array-like of shape (n_samples, n_features)
            Features.

        Returns
        -------
        np.ndarray
            Predicted class probabilities, columns ordered as classes_.
        """
        return np.array(
            [[leaf.probabilities.get(c, 0.0) for c in self.classes_] for leaf in self._leaves(X)]  # type: ignore
        )

    def predict(self, X: Any) -> np.ndarray:
        """Predict target.

        Parameters
        ----------
        X : array-like of shape (n_samples, n_features)
            Features.

        Returns
        -------
        np.ndarray
            Predicted class labels.
        """
        return np.array([leaf.outcome for leaf in self._leaves(X)])


class RegressionTree(RegressorMixin, BaseTreeEstimator):
    """Binary decision tree regressor.

    Parameters
    ----------
    max_height : int, default=None
        Maximum height of the tree, unbounded when None.

    max_leaf_size : int, default=3
        Maximum number of samples a leaf node can hold.

    min_purity_increase : float, default=1e-7
        Minimum purity increase a split must achieve for its children to be split further.

    max_features : {"sqrt", "log2"}, int, or float, default=None
        Maximum number of feature columns randomly chosen to search at each split.

    splitter : {"mse", "mae"}, default="mse"
        Impurity measure used to select splits.

    threshold_method : {"exact", "random", "histogram", "percentile"}, default="exact"
        Method to calculate thresholds on a continuous feature column.

    max_thresholds : {"sqrt", "log2"}, int, or float, default=None
        Maximum number of thresholds to use for split selection.

    random_state : int, default=None
        Random seed.

    verbose : int, default=1
        Controls verbosity when fitting.

    Attributes
    ----------
    feature_importances_ : np.ndarray
        Normalized feature importances for each feature.

    n_features_in_ : int
        Number of features seen during fit.

    feature_names_in_ : List[str]
        List of feature names seen during fit.
    """

    _task = "regressor"

    def __init__(
        self,
        *,
        max_height: Optional[int] = None,
        max_leaf_size: int = 3,
        min_purity_increase: float = 1e-7,
        max_features: Optional[Union[str, float, int]] = None,
        splitter: str = "mse",
        threshold_method: str = "exact",
        max_thresholds: Optional[Union[str, float, int]] = None,
        random_state: Optional[int] = None,
        verbose: int = 1,
    ) -> None:
        super().__init__(
            max_height=max_height,
            max_leaf_size=max_leaf_size,
            min_purity_increase=min_purity_increase,
            max_features=max_features,
            splitter=splitter,
            threshold_method=threshold_method,
            max_thresholds=max_thresholds,
            random_state=random_state,
            verbose=verbose,
        )

    def terminate(self, dataset: Labeled) -> Average:
        """Terminate a branch with the mean of the targets.

        Parameters
        ----------
        dataset : Labeled
            Samples at the leaf.

        Returns
        -------
        Average
            Leaf with the mean target.
        """
        return Average(
            outcome=float(estimate_mean(dataset.labels.astype(float))),
            impurity=self.impurity(dataset.labels),
            n_samples=dataset.n_samples,
        )

    def predict(self, X: Any) -> np.ndarray:
        """Predict target.

        Parameters
        ----------
        X : array-like of shape (n_samples, n_features)
            Features.

        Returns
        -------
        np.ndarray
            Predicted target.
        """
        return np.array([leaf.outcome for leaf in self._leaves(X)], dtype=float)
