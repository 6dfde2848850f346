from pathlib import Path
from typing import Any, Union


class Encoding:
    """Text produced by exporting a tree.

    Parameters
    ----------
    data : str
        Encoded text.
    """

    def __init__(self, data: str) -> None:
        self.data = data

    def __str__(self) -> str:
        return self.data

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(bytes={len(self)})"

    def __len__(self) -> int:
        return len(self.data.encode("utf-8"))

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, Encoding):
            return self.data == other.data
        if isinstance(other, str):
            return self.data == other

        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.data)

    def write(self, path: Union[str, Path]) -> None:
        """Write the encoded text to a file.

        Parameters
        ----------
        path : Union[str, Path]
            Destination file, overwritten if it exists.
        """
        Path(path).write_text(self.data, encoding="utf-8")
