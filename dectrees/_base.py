import zlib
from abc import ABCMeta, abstractmethod
from itertools import count
from numbers import Real
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

import numpy as np
from pydantic import BaseModel, NonNegativeFloat, NonNegativeInt, PositiveInt
from sklearn.base import BaseEstimator

from ._dataset import Labeled
from ._encoding import Encoding
from ._nodes import BinaryNode, Outcome, Split
from ._utils import brightness
from .exceptions import TreeNotGrownError


def _format_value(value: Any) -> str:
    """Format a node value for a graph label, numbers with 14 significant digits."""
    if isinstance(value, Real) and not isinstance(value, (bool, np.bool_)):
        return f"{value:.14g}"

    return f"{value}"


class DecisionTreeParameters(BaseModel):
    """Model for DecisionTree parameters."""

    max_height: Optional[PositiveInt]
    max_leaf_size: PositiveInt
    min_purity_increase: NonNegativeFloat
    verbose: NonNegativeInt


class DecisionTree(BaseEstimator, metaclass=ABCMeta):
    """Binary decision tree grown iteratively from a labeled dataset.

    Subclasses decide how a dataset is split, how a branch is terminated, and how impurity is measured by
    implementing split(), terminate() and impurity().

    Warning: This class should not be used directly. Use derived classes instead.

    Parameters
    ----------
    max_height : int, default=None
        Maximum height of the tree, unbounded when None.

    max_leaf_size : int
        Maximum number of samples a leaf node can hold before the branch is split further.

    min_purity_increase : float
        Minimum purity increase a split must achieve for its children to be split further.

    verbose : int
        Controls verbosity when growing.
    """

    # Maximum number of characters in a feature name before it gets truncated in graph exports
    MAX_NODE_LABEL_LENGTH = 30

    # Number of colors representable in 24 bits
    MAX_COLORS = 16_777_216

    @abstractmethod
    def __init__(
        self,
        *,
        max_height: Optional[int],
        max_leaf_size: int,
        min_purity_increase: float,
        verbose: int,
    ) -> None:
        self.max_height = max_height
        self.max_leaf_size = max_leaf_size
        self.min_purity_increase = min_purity_increase
        self.verbose = verbose

        self._validate_parameters(self.get_params())

        self._root: Optional[BinaryNode] = None
        self._feature_count: Optional[int] = None

    @property
    def _parameter_model(self) -> Any:
        """Model for hyperparameter validation."""
        return DecisionTreeParameters

    def _validate_parameters(self, params: Dict[str, Any]) -> None:
        """Validate hyperparameters.

        Parameters
        ----------
        params : Dict[str, Any]
            Hyperparameters.
        """
        self._parameter_model(**params)

    @abstractmethod
    def split(self, dataset: Labeled) -> Split:
        """Find a split point for a subset of the training set.

        The returned Split must carry its two candidate groups.
        """
        pass

    @abstractmethod
    def terminate(self, dataset: Labeled) -> Outcome:
        """Terminate a branch with an outcome node."""
        pass

    @abstractmethod
    def impurity(self, labels: np.ndarray) -> float:
        """Calculate the impurity of a set of labels."""
        pass

    def split_impurity(self, groups: Sequence[Labeled]) -> float:
        """Calculate split impurity as the weighted sum of group impurities.

        Groups with at most one sample do not contribute.

        Parameters
        ----------
        groups : Sequence[Labeled]
            Groups produced by a binary split.

        Returns
        -------
        float
            Weighted impurity metric.
        """
        n = sum(dataset.n_samples for dataset in groups)

        impurity = 0.0
        for dataset in groups:
            n_hat = dataset.n_samples
            if n_hat <= 1:
                continue

            impurity += (n_hat / n) * self.impurity(dataset.labels)

        return impurity

    @property
    def root(self) -> Optional[BinaryNode]:
        """Root node, None when the tree is bare."""
        return self._root

    @property
    def feature_count(self) -> Optional[int]:
        """Number of feature columns in the dataset the tree was grown on."""
        return self._feature_count

    def height(self) -> int:
        """Number of levels in the tree."""
        return self._root.height() if self._root is not None else 0

    def balance(self) -> int:
        """Skewness of the distribution of nodes at the root, positive when left heavy."""
        return self._root.balance() if self._root is not None else 0

    def bare(self) -> bool:
        """Whether the tree has not been grown."""
        return self._root is None

    def grow(self, dataset: Labeled) -> None:
        """Insert a root node and split the dataset until a terminating condition is met.

        Nodes pending expansion are kept on an explicit stack together with their depth, each iteration consumes
        the candidate groups of one split and attaches its two children.

        Parameters
        ----------
        dataset : Labeled
            Training samples and labels.
        """
        if dataset.empty:
            raise ValueError("Unable to grow a tree from an empty dataset")

        if not dataset.n_features:
            raise ValueError("Unable to grow a tree from a dataset without feature columns")

        max_height = self.max_height if self.max_height is not None else np.inf

        self._feature_count = dataset.n_features

        if self.verbose > 1:
            print(f"Growing tree with ({dataset.n_samples}) samples and ({dataset.n_features}) features")

        root = self.split(dataset)
        left, right = root.groups()

        # A root split that does not separate the samples leaves a single outcome
        if left.empty or right.empty:
            root.cleanup()
            self._root = self.terminate(left.merge(right))
            return

        self._root = root

        stack: List[Tuple[Split, int]] = [(root, 0)]

        while stack:
            current, depth = stack.pop()

            left, right = current.groups()
            current.cleanup()

            depth += 1

            if self.verbose > 2:
                print(f"Splitting node at depth ({depth}) with ({current.n_samples}) samples")

            if left.empty or right.empty:
                node = self.terminate(left.merge(right))

                current.attach_left(node)
                current.attach_right(node)

                continue

            if depth >= max_height:
                current.attach_left(self.terminate(left))
                current.attach_right(self.terminate(right))

                continue

            left_node = self.split(left) if left.n_samples > self.max_leaf_size else self.terminate(left)
            right_node = self.split(right) if right.n_samples > self.max_leaf_size else self.terminate(right)

            current.attach_left(left_node)
            current.attach_right(right_node)

            if current.purity_increase >= self.min_purity_increase:
                if isinstance(left_node, Split):
                    stack.append((left_node, depth))

                if isinstance(right_node, Split):
                    stack.append((right_node, depth))
            else:
                if self.verbose > 2:
                    print(
                        f"Pruning children at depth ({depth}), purity increase ({current.purity_increase}) < "
                        f"({self.min_purity_increase})"
                    )

                if isinstance(left_node, Split):
                    left_node.cleanup()
                    current.attach_left(self.terminate(left))

                if isinstance(right_node, Split):
                    right_node.cleanup()
                    current.attach_right(self.terminate(right))

    def search(self, sample: Sequence[Any]) -> Optional[Outcome]:
        """Search the tree for the leaf node a sample falls into.

        Parameters
        ----------
        sample : Sequence[Any]
            Feature vector with one value per feature column.

        Returns
        -------
        Outcome
            Leaf reached by the sample, None if the tree is bare.
        """
        current = self._root

        while current is not None:
            if isinstance(current, Split):
                current = current.left if current.goes_left(sample) else current.right
                continue

            if isinstance(current, Outcome):
                return current

        return None

    def feature_importances(self) -> np.ndarray:
        """Importance score of each feature column, the total purity increase of the splits on the column.

        Returns
        -------
        np.ndarray
            Importance of each feature column.
        """
        if self._root is None or not self._feature_count:
            raise TreeNotGrownError()

        importances = np.zeros(self._feature_count, dtype=float)

        for node in self:
            if isinstance(node, Split):
                importances[node.column] += node.purity_increase

        return importances

    def __iter__(self) -> Iterator[BinaryNode]:
        """Traverse every node depth first starting at the root."""
        stack = [self._root] if self._root is not None else []

        while stack:
            current = stack.pop()

            yield current

            stack.extend(current.children())

    def export_graphviz(
        self, feature_names: Optional[Sequence[str]] = None, max_depth: Optional[int] = None
    ) -> Encoding:
        """Describe the tree in "dot" format suitable to render with graphviz.

        Parameters
        ----------
        feature_names : Sequence[str], default=None
            Name of each feature column, columns are rendered by index when None.

        max_depth : int, default=None
            Depth at which nodes are rendered as a placeholder instead of being expanded.

        Returns
        -------
        Encoding
            Graph in dot format.
        """
        if self._root is None:
            raise TreeNotGrownError()

        lines = [
            "digraph Tree {\n",
            "  node [shape=box, fontname=helvetica];\n",
            "  edge [fontname=helvetica];\n",
        ]

        self._export_graphviz(lines, count(), self._root, max_depth, feature_names)

        lines.append("}")

        return Encoding("".join(lines))

    def _export_graphviz(
        self,
        lines: List[str],
        counter: Iterator[int],
        node: BinaryNode,
        max_depth: Optional[int] = None,
        feature_names: Optional[Sequence[str]] = None,
        parent_id: Optional[int] = None,
        left_right: Optional[int] = None,
        depth: int = 0,
    ) -> None:
        """Write the decision rule at each node with a preorder traversal.

        Parameters
        ----------
        lines : List[str]
            Statements written so far.

        counter : Iterator[int]
            Source of node ids.

        node : BinaryNode
            Node to write.

        max_depth : int, default=None
            Depth rendered as a placeholder.

        feature_names : Sequence[str], default=None
            Name of each feature column.

        parent_id : int, default=None
            Id of the parent node, None for the root.

        left_right : int, default=None
            1 when node is the left child of its parent, 2 when it is the right child.

        depth : int, default=0
            Depth of the parent node.
        """
        depth += 1

        this_node = next(counter)

        if depth == max_depth:
            lines.append(f'  N{this_node} [label="..."];\n')
        elif isinstance(node, Split):
            if feature_names is not None:
                name = str(feature_names[node.column])
                if len(name) > self.MAX_NODE_LABEL_LENGTH:
                    name = name[: self.MAX_NODE_LABEL_LENGTH] + "..."
            else:
                name = f"Column {node.column}"

            lines.append(f'  N{this_node} [label="{name} {node.operator} {_format_value(node.value)}"];\n')

            if node.left is not None:
                self._export_graphviz(lines, counter, node.left, max_depth, feature_names, this_node, 1, depth)

            if node.right is not None:
                self._export_graphviz(lines, counter, node.right, max_depth, feature_names, this_node, 2, depth)
        elif isinstance(node, Outcome):
            label = _format_value(node.outcome)
            if node.impurity > 0.0:
                label += f"\\nImpurity={_format_value(node.impurity)}"

            if isinstance(node.outcome, str):
                fill_color = f"{zlib.crc32(node.outcome.encode('utf-8')) % self.MAX_COLORS:06x}"
                font_color = "000000" if brightness(fill_color) > 128 else "ffffff"
            else:
                fill_color = "cccccc"
                font_color = "000000"

            lines.append(
                f'  N{this_node} [label="{label}",style="rounded,filled",'
                f'fontcolor="#{font_color}",fillcolor="#{fill_color}"]\n'
            )

        if parent_id is not None:
            edge = f"  N{parent_id} -> N{this_node}"

            if parent_id == 0:
                edge += " [labeldistance=2.5, "
                edge += 'labelangle=45,headlabel="True"]' if left_right == 1 else 'labelangle=-45,headlabel="False"]'

            lines.append(edge + ";\n")
