"""Exceptions raised by dectrees.

- TreeNotGrownError: Raised when an operation needs a grown tree but the tree is bare.
"""


class TreeNotGrownError(RuntimeError):
    """Raised when an operation requires a tree that has been grown.

    Examples:
        >>> raise TreeNotGrownError()
        Traceback (most recent call last):
        ...
        dectrees.exceptions.TreeNotGrownError: Tree has not been constructed, call grow() or fit() first
    """

    def __init__(self, message: str = "Tree has not been constructed, call grow() or fit() first") -> None:
        super().__init__(message)
