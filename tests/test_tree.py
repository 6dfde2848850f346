"""Tests for dectrees._tree.py."""
from typing import Any, Dict

import numpy as np
import pandas as pd
import pytest
from pydantic import ValidationError
from sklearn.base import clone
from sklearn.datasets import load_diabetes, load_iris

from dectrees import Best, ClassificationTree, Outcome, RegressionTree, Split, TreeNotGrownError
from dectrees._tree import BaseTreeEstimatorParameters

pytestmark = pytest.mark.tree


@pytest.fixture(scope="module")
def iris():
    """Iris features and labels."""
    return load_iris(return_X_y=True)


def _separable():
    """Ten samples with class A below five and class B otherwise."""
    X = np.arange(10, dtype=float).reshape(-1, 1)
    y = np.array(["A"] * 5 + ["B"] * 5)
    return X, y


def test_base_tree_estimator_parameters() -> None:
    """Test BaseTreeEstimatorParameters functionality."""
    # Failure
    with pytest.raises(ValidationError) as e:
        BaseTreeEstimatorParameters()
    assert e.type is ValidationError, f"Wrong exception, got ({e.type}) but expected ({ValidationError})"

    # Success
    params = BaseTreeEstimatorParameters(
        estimator_type="classifier",
        splitter="entropy",
        threshold_method="percentile",
        max_thresholds=0.5,
        max_features="sqrt",
        max_height=None,
        max_leaf_size=1,
        min_purity_increase=0.0,
        random_state=None,
        verbose=0,
    )
    assert (
        type(params) is BaseTreeEstimatorParameters
    ), f"Wrong class, got ({type(params)}) but expected ({BaseTreeEstimatorParameters})"


@pytest.mark.parametrize(
    "estimator,kwargs",
    [
        (ClassificationTree, {"splitter": "mse"}),
        (RegressionTree, {"splitter": "gini"}),
        (ClassificationTree, {"threshold_method": "quantum"}),
        (ClassificationTree, {"max_features": 0}),
        (ClassificationTree, {"max_features": 1.5}),
        (ClassificationTree, {"max_thresholds": "cbrt"}),
        (RegressionTree, {"max_height": 0}),
        (RegressionTree, {"max_leaf_size": 0}),
        (RegressionTree, {"min_purity_increase": -0.1}),
        (RegressionTree, {"random_state": -1}),
        (RegressionTree, {"verbose": -1}),
    ],
)
def test_estimator_parameters_failure(estimator: Any, kwargs: Dict[str, Any]) -> None:
    """Test invalid hyperparameters fail at construction."""
    with pytest.raises(ValidationError):
        estimator(**kwargs)


def test_single_class() -> None:
    """Test identical labels collapse the tree into a single leaf."""
    X = np.random.RandomState(0).normal(size=(20, 3))
    clf = ClassificationTree().fit(X, ["A"] * 20)

    assert isinstance(clf.root, Best), f"Wrong root, got ({type(clf.root)}) but expected ({Best})"
    assert clf.height() == 0
    assert clf.root.outcome == "A"
    assert clf.root.probabilities == {"A": 1.0}
    np.testing.assert_array_equal(clf.feature_importances_, np.zeros(3))
    np.testing.assert_array_equal(clf.predict(X[:2]), ["A", "A"])


def test_separable() -> None:
    """Test a perfectly separable dataset grows a single split."""
    X, y = _separable()
    clf = ClassificationTree(max_leaf_size=5, min_purity_increase=0.0).fit(X, y)

    assert clf.height() == 1, f"Wrong height, got ({clf.height()}) but expected (1)"
    assert isinstance(clf.root, Split)
    assert clf.root.column == 0 and clf.root.value == 4.5
    assert clf.root.operator == "<="
    assert clf.root.purity_increase == pytest.approx(0.5)
    np.testing.assert_array_equal(clf.predict([[2], [7]]), ["A", "B"])
    np.testing.assert_allclose(clf.feature_importances_, [1.0])
    np.testing.assert_allclose(clf.feature_importances(), [0.5])


@pytest.mark.parametrize("splitter", ["gini", "entropy"])
def test_classification_tree(iris, splitter: str) -> None:
    """Test ClassificationTree fits the training data."""
    X, y = iris
    clf = ClassificationTree(splitter=splitter, random_state=0).fit(X, y)

    score = clf.score(X, y)
    assert score > 0.95, f"Training accuracy too low, got ({score})"
    np.testing.assert_array_equal(clf.classes_, [0, 1, 2])
    assert clf.n_classes_ == 3
    assert clf.n_features_in_ == 4
    assert clf.feature_names_in_ == ["f0", "f1", "f2", "f3"]

    proba = clf.predict_proba(X)
    assert proba.shape == (150, 3), f"Wrong shape, got ({proba.shape}) but expected ((150, 3))"
    np.testing.assert_allclose(proba.sum(axis=1), 1.0)
    np.testing.assert_array_equal(clf.classes_[proba.argmax(axis=1)], clf.predict(X))


@pytest.mark.parametrize("max_height", [1, 2, 3])
def test_max_height(iris, max_height: int) -> None:
    """Test trees never grow beyond max_height."""
    X, y = iris
    clf = ClassificationTree(max_height=max_height, max_leaf_size=1, min_purity_increase=0.0).fit(X, y)

    assert clf.height() <= max_height, f"Tree too tall, got ({clf.height()}) but expected <= ({max_height})"
    if max_height == 1:
        assert all(isinstance(child, Outcome) for child in clf.root.children())


def test_min_purity_increase(iris) -> None:
    """Test every split keeping a split child increased purity enough."""
    X, y = iris
    min_purity_increase = 0.05
    clf = ClassificationTree(max_leaf_size=1, min_purity_increase=min_purity_increase).fit(X, y)

    for node in clf:
        if isinstance(node, Split) and any(isinstance(child, Split) for child in node.children()):
            assert node.purity_increase >= min_purity_increase


def test_feature_importances(iris) -> None:
    """Test normalized feature importances."""
    X, y = iris
    X = np.column_stack([X, np.ones(len(X))])
    clf = ClassificationTree(random_state=0).fit(X, y)

    importances = clf.feature_importances_
    assert len(importances) == 5
    assert importances.sum() == pytest.approx(1.0)
    assert np.all(importances >= 0)
    assert importances[-1] == 0.0, f"Constant feature should have no importance, got ({importances[-1]})"


def test_categorical_features() -> None:
    """Test categorical feature columns split with equality tests."""
    X = [["red", 1.0], ["red", 2.0], ["blue", 1.0], ["blue", 2.0], ["green", 1.0], ["green", 2.0]]
    y = ["warm", "warm", "cold", "cold", "cold", "cold"]
    clf = ClassificationTree(max_leaf_size=4, min_purity_increase=0.0).fit(X, y)

    assert clf.root.operator == "==", f"Wrong operator, got ({clf.root.operator}) but expected (==)"
    assert clf.root.column == 0 and clf.root.value == "red"
    assert clf.height() == 1
    np.testing.assert_array_equal(clf.predict([["red", 5.0], ["green", 0.0]]), ["warm", "cold"])


@pytest.mark.parametrize("splitter", ["mse", "mae"])
def test_regression_tree(splitter: str) -> None:
    """Test RegressionTree fits a smooth target."""
    X = np.linspace(0, 10, 200).reshape(-1, 1)
    y = np.sin(X).ravel()
    reg = RegressionTree(splitter=splitter).fit(X, y)

    score = reg.score(X, y)
    assert score > 0.9, f"Training R^2 too low, got ({score})"

    y_pred = reg.predict(X)
    assert y_pred.dtype == float
    assert y_pred.shape == y.shape


def test_regression_tree_diabetes() -> None:
    """Test RegressionTree with sampled thresholds."""
    X, y = load_diabetes(return_X_y=True)
    reg = RegressionTree(threshold_method="histogram", max_thresholds=32, max_features="sqrt", random_state=0)
    reg.fit(X, y)

    assert reg.score(X, y) > 0.5
    assert reg.feature_importances_.sum() == pytest.approx(1.0)


def test_max_leaf_size() -> None:
    """Test leaves never hold more than max_leaf_size samples."""
    X = np.arange(50, dtype=float).reshape(-1, 1)
    y = 2.0 * np.arange(50)
    reg = RegressionTree(max_leaf_size=4, min_purity_increase=0.0).fit(X, y)

    leaves = [node for node in reg if isinstance(node, Outcome)]
    assert all(leaf.n_samples <= 4 for leaf in leaves)
    assert sum(leaf.n_samples for leaf in leaves) == 50


def test_predict_failure(iris) -> None:
    """Test predicting before fit or with the wrong number of features."""
    X, y = iris
    clf = ClassificationTree()
    with pytest.raises(TreeNotGrownError):
        clf.predict(X)

    with pytest.raises(TreeNotGrownError):
        clf.export_graphviz()

    clf.fit(X, y)
    with pytest.raises(ValueError):
        clf.predict(X[:, :3])

    with pytest.raises(ValueError):
        clf.fit(X, y[:-1])

    with pytest.raises(ValueError):
        clf.predict("not an array")


def test_pandas() -> None:
    """Test pandas inputs keep their feature names."""
    data = load_iris(as_frame=True)
    X, y = data.data, data.target
    clf = ClassificationTree(max_height=2).fit(X, y)

    assert clf.feature_names_in_ == list(X.columns)
    assert clf.predict(X).shape == (len(X),)
    assert any(name in str(clf.export_graphviz()) for name in X.columns)


def test_threshold_methods(iris) -> None:
    """Test sampled threshold methods."""
    X, y = iris
    with pytest.warns(UserWarning):
        ClassificationTree(threshold_method="random", random_state=0).fit(X, y)

    clf = ClassificationTree(threshold_method="percentile", max_thresholds=10, random_state=0).fit(X, y)
    assert clf.score(X, y) > 0.9


def test_random_state(iris) -> None:
    """Test trees grown with the same random_state are identical."""
    X, y = iris
    kwargs = {"max_features": "sqrt", "threshold_method": "random", "max_thresholds": 5, "random_state": 1}
    dot1 = ClassificationTree(**kwargs).fit(X, y).export_graphviz()
    dot2 = ClassificationTree(**kwargs).fit(X, y).export_graphviz()

    assert dot1 == dot2


def test_sklearn_api(iris) -> None:
    """Test cloning and parameter access."""
    clf = ClassificationTree(max_height=3, splitter="entropy")
    params = clf.get_params()
    assert params["max_height"] == 3 and params["splitter"] == "entropy"

    cloned = clone(clf)
    assert cloned.get_params() == params
    assert cloned.bare()

    cloned.set_params(max_height=2).fit(*iris)
    assert cloned.height() <= 2
    assert clf.bare()


def test_verbose(capsys: Any) -> None:
    """Test growth progress is printed."""
    X, y = _separable()
    ClassificationTree(max_leaf_size=5, min_purity_increase=0.0, verbose=3).fit(X, y)

    out = capsys.readouterr().out
    assert "Growing tree with (10) samples and (1) features" in out
    assert "Splitting node at depth (1) with (10) samples" in out

    ClassificationTree(max_leaf_size=5, min_purity_increase=0.0).fit(X, y)
    assert capsys.readouterr().out == ""
