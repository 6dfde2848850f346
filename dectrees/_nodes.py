"""Nodes of a binary decision tree."""
from dataclasses import InitVar, dataclass, field
from typing import Any, Dict, Iterator, Optional, Sequence, Tuple, Union

from ._dataset import Labeled


class BinaryNode:
    """Node with at most two children."""

    left: Optional["BinaryNode"] = None
    right: Optional["BinaryNode"] = None

    def children(self) -> Iterator["BinaryNode"]:
        """Yield the immediate children, left then right, skipping missing ones."""
        if self.left is not None:
            yield self.left
        if self.right is not None:
            yield self.right

    def height(self) -> int:
        """Number of levels below this node, 0 for a childless node."""
        height = 0
        stack = [(self, 0)]

        while stack:
            current, level = stack.pop()

            height = max(height, level)

            stack.extend((child, level + 1) for child in current.children())

        return height

    def balance(self) -> int:
        """Height of the left subtree minus the height of the right subtree, positive when left heavy."""
        if self.left is None and self.right is None:
            return 0

        left = self.left.height() if self.left is not None else 0
        right = self.right.height() if self.right is not None else 0

        return left - right

    def leaf(self) -> bool:
        """Whether the node has no children."""
        return self.left is None and self.right is None


@dataclass(eq=False)
class Split(BinaryNode):
    """Decision node testing one feature column.

    Parameters
    ----------
    column : int
        Index of the feature column tested.

    value : Union[str, float]
        Category for an equality test or threshold for a <= test.

    impurity : float
        Impurity of the samples reaching the node.

    purity_increase : float
        Decrease in impurity achieved by the split.

    n_samples : int
        Number of samples reaching the node.

    candidates : Tuple[Labeled, Labeled], optional
        Candidate left and right groups produced by the split, held until the children are grown.
    """

    column: int
    value: Union[str, float]
    impurity: float
    purity_increase: float
    n_samples: int
    candidates: InitVar[Optional[Tuple[Labeled, Labeled]]] = None
    left: Optional[BinaryNode] = field(default=None, repr=False)
    right: Optional[BinaryNode] = field(default=None, repr=False)

    def __post_init__(self, candidates: Optional[Tuple[Labeled, Labeled]]) -> None:
        if self.column < 0:
            raise ValueError(f"column ({self.column}) should be >= 0")
        if self.purity_increase < 0.0:
            raise ValueError(f"purity_increase ({self.purity_increase}) should be >= 0")

        self.categorical = isinstance(self.value, str)
        self._groups = candidates

    @property
    def operator(self) -> str:
        """Comparison used by the test."""
        return "==" if self.categorical else "<="

    def goes_left(self, sample: Sequence[Any]) -> bool:
        """Whether a sample passes the test and follows the left branch.

        Parameters
        ----------
        sample : Sequence[Any]
            Feature vector.

        Returns
        -------
        bool
            True for the left branch, False for the right branch.
        """
        if self.categorical:
            return sample[self.column] == self.value

        return sample[self.column] <= self.value

    def groups(self) -> Tuple[Labeled, Labeled]:
        """Return the candidate left and right groups."""
        if self._groups is None:
            raise RuntimeError("Candidate groups have been released or were never set")

        return self._groups

    def cleanup(self) -> None:
        """Release the candidate groups."""
        self._groups = None

    def attach_left(self, node: BinaryNode) -> None:
        self.left = node

    def attach_right(self, node: BinaryNode) -> None:
        self.right = node


@dataclass(eq=False, frozen=True)
class Outcome(BinaryNode):
    """Terminal node holding a prediction.

    Parameters
    ----------
    outcome : Any
        Predicted class label or continuous value.

    impurity : float
        Impurity of the samples reaching the leaf.

    n_samples : int
        Number of samples reaching the leaf.
    """

    outcome: Any
    impurity: float
    n_samples: int

    def children(self) -> Iterator[BinaryNode]:
        return iter(())

    def height(self) -> int:
        return 0

    def balance(self) -> int:
        return 0


@dataclass(eq=False, frozen=True)
class Best(Outcome):
    """Classification leaf, the outcome is the most probable class."""

    probabilities: Dict[Any, float] = field(default_factory=dict)


@dataclass(eq=False, frozen=True)
class Average(Outcome):
    """Regression leaf, the outcome is the mean of the targets."""
