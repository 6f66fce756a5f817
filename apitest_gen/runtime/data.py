"""Test data providers for generated tests.

Generated tests call ``get_data("<provider>")`` to load their request
data. Providers are registered by name, either in code with the
``data_provider`` decorator or as YAML/JSON files in a data directory.

Example:
    >>> @data_provider("client")
    ... class ClientData:
    ...     def load(self):
    ...         return {"client_id": 42, "name": "John Doe"}
    >>> get_data("client")["name"]
    'John Doe'
"""

import dataclasses
import logging
import threading
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Callable, Optional, Protocol, runtime_checkable

import yaml

from apitest_gen.exceptions import DataProviderException

logger = logging.getLogger(__name__)

DATA_FILE_SUFFIXES = (".yaml", ".yml", ".json")


@runtime_checkable
class DataLoader(Protocol):
    """Anything that can load a mapping of test data."""

    def load(self) -> Mapping[str, Any]: ...


class FunctionLoader:
    """Adapt a zero-argument function to the DataLoader protocol."""

    def __init__(self, func: Callable[[], Mapping[str, Any]]) -> None:
        self.func = func

    def load(self) -> Mapping[str, Any]:
        return self.func()


class YamlFileLoader:
    """Load test data from a YAML (or JSON) file."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def load(self) -> Mapping[str, Any]:
        with open(self.path, encoding="utf-8") as f:
            return yaml.safe_load(f) or {}


class DataProviderRegistry:
    """Name -> DataLoader lookup table.

    Names not registered in code fall back to ``<data_dir>/<name>.yaml``
    (or ``.yml`` / ``.json``) when a data directory is set.
    """

    def __init__(self, data_dir: Optional[Path] = None) -> None:
        self.data_dir = data_dir
        self._loaders: dict[str, DataLoader] = {}
        self._lock = threading.Lock()

    def register(self, name: str, loader: DataLoader, replace: bool = False) -> None:
        """Register a loader under a provider name.

        Raises:
            DataProviderException: If the loader has no ``load()`` or the
                name is taken and ``replace`` is False
        """
        if not isinstance(loader, DataLoader):
            raise DataProviderException(
                f"Data provider '{name}' must implement load(), got {type(loader).__name__}"
            )
        with self._lock:
            if name in self._loaders and not replace:
                raise DataProviderException(f"Data provider '{name}' is already registered")
            self._loaders[name] = loader

    def unregister(self, name: str) -> None:
        with self._lock:
            self._loaders.pop(name, None)

    def clear(self) -> None:
        with self._lock:
            self._loaders.clear()

    def names(self) -> list[str]:
        with self._lock:
            return sorted(self._loaders)

    def get(self, name: str) -> Optional[DataLoader]:
        """Return the loader for a provider name, or None if unknown."""
        with self._lock:
            loader = self._loaders.get(name)
        if loader is not None or self.data_dir is None:
            return loader
        for suffix in DATA_FILE_SUFFIXES:
            candidate = Path(self.data_dir) / f"{name}{suffix}"
            if candidate.is_file():
                return YamlFileLoader(candidate)
        return None

    def load(self, name: str) -> dict[str, Any]:
        """Load data for a provider; any failure degrades to an empty mapping.

        Args:
            name: Provider name ("" means no data)

        Returns:
            Copy of the loaded data, or {} with a logged warning
        """
        if not name:
            return {}

        loader = self.get(name)
        if loader is None:
            logger.warning(f"Data provider '{name}' is not registered; using empty data")
            return {}

        try:
            data = loader.load()
        except Exception as e:
            logger.warning(f"Data provider '{name}' failed to load: {e}; using empty data")
            return {}

        if not isinstance(data, Mapping):
            logger.warning(
                f"Data provider '{name}' returned {type(data).__name__}, "
                f"expected a mapping; using empty data"
            )
            return {}
        return dict(data)


default_registry = DataProviderRegistry()


def data_provider(name: Optional[str] = None, registry: Optional[DataProviderRegistry] = None):
    """Register a class or function as a data provider.

    Classes are instantiated without arguments and must implement
    ``load()``; functions are called with no arguments.

    Args:
        name: Provider name (defaults to the class or function name)
        registry: Target registry (the default registry if omitted)
    """
    target_registry = registry or default_registry

    def decorator(obj):
        provider_name = name or obj.__name__
        try:
            loader = obj() if isinstance(obj, type) else FunctionLoader(obj)
            target_registry.register(provider_name, loader, replace=True)
        except (TypeError, DataProviderException) as e:
            # Unusable providers load as empty data
            logger.warning(f"Cannot register data provider '{provider_name}': {e}")
        return obj

    return decorator


def get_data(name: str, registry: Optional[DataProviderRegistry] = None) -> dict[str, Any]:
    """Load test data by provider name (empty dict if unavailable)."""
    return (registry or default_registry).load(name)


def safe_string(value: Any) -> str:
    """Render a data value for a URI, header or cookie.

    Example:
        >>> safe_string(None), safe_string(True), safe_string(42)
        ('', 'true', '42')
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def format_body(value: Any) -> Any:
    """Convert a body value to something JSON serializable.

    Dataclasses become dicts; objects with ``model_dump()`` (pydantic) or
    ``to_dict()`` are converted through those methods.
    """
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if hasattr(value, "model_dump"):
        return value.model_dump(mode="json")
    if hasattr(value, "to_dict"):
        return value.to_dict()
    return value
