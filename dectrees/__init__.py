# flake8: noqa
from ._base import DecisionTree
from ._dataset import Labeled
from ._encoding import Encoding
from ._nodes import Average, Best, BinaryNode, Outcome, Split
from ._tree import ClassificationTree, RegressionTree
from .exceptions import TreeNotGrownError

__version__ = "0.1.0"
