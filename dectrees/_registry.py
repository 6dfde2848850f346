from typing import Any, Dict, List, TypeVar

T = TypeVar("T")


class Registry:
    """Register callables by alias so they can be selected with a string hyperparameter.

    Parameters
    ----------
    name : str
        Name of registry.
    """

    def __init__(self, name: str) -> None:
        self._name = name
        self._registry: Dict[str, Any] = dict()

    @property
    def name(self) -> str:
        """Get registry name.

        Returns
        -------
        str
            Name of registry.
        """
        return self._name

    def keys(self) -> List[str]:
        """Return aliases in registry.

        Returns
        -------
        List[str]
            List of aliases.
        """
        return list(self._registry.keys())

    def __contains__(self, key: str) -> bool:
        return key in self._registry

    def __getitem__(self, key: str) -> T:  # type: ignore
        """Get callable in registry.

        Parameters
        ----------
        key : str
            Alias in registry.

        Returns
        -------
        T
            Registered callable.
        """
        entry = self._registry.get(key, None)
        if entry is None:
            raise KeyError(f"({key}) not found in registry ({self._name}), expected one of: {self.keys()}")

        return entry

    def register(self, alias: str) -> Any:
        """Register callable.

        Parameters
        ----------
        alias : str
            Alias for callable.

        Returns
        -------
        T
            Callable to be registered.
        """

        def wrapper(f: T) -> T:
            # Alias must be unique
            if alias in self._registry:
                raise KeyError(f"alias ({alias}) already exists in registry ({self._name})")

            self._registry[alias] = f
            return f

        return wrapper


# Define registries
ClassifierSplitters = Registry("ClassifierSplitters")
RegressorSplitters = Registry("RegressorSplitters")
ThresholdMethods = Registry("ThresholdMethods")
