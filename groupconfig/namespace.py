"""
Namespace (group) of configuration settings.

A namespace is an ordered key/value store whose values are either opaque
scalars supplied by the caller or nested namespaces. Namespaces are built
incrementally: setting a key twice overwrites it, and re-opening a group
extends the existing sub-namespace instead of replacing it.
"""

import logging
import threading
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple, Union
from pathlib import Path

from errors import (
    ConfigError,
    ErrorCode,
    KeyNotFoundError,
    UndefinedVariableError,
)

logger = logging.getLogger(__name__)

Body = Callable[["Namespace"], Any]


class Namespace:
    """
    Ordered container of settings with nested sub-namespaces.

    Settings are read either with ``get`` or as attributes::

        db = namespace.group("db", lambda g: g.set("host", "localhost"))
        namespace.db.host            # "localhost"
        namespace.resolve("db.host") # "localhost"

    Keys that collide with method names (``get``, ``keys`` ...) can only be
    read through ``get`` or item access.
    """

    def __init__(
        self,
        name: str,
        parent: Optional["Namespace"] = None,
        loader: Optional[Any] = None
    ):
        """
        Initialize an empty namespace.

        Args:
            name: Name of this namespace within its parent (or the
                configuration name for a root)
            parent: Owning namespace, None for a root
            loader: ScriptLoader used by ``load``; inherited from the parent
                when omitted
        """
        self._name = name
        self._parent = parent
        self._values: Dict[str, Any] = {}
        self._lock = threading.RLock()
        self._loader = loader

    @property
    def name(self) -> str:
        return self._name

    @property
    def parent(self) -> Optional["Namespace"]:
        return self._parent

    @property
    def path(self) -> str:
        """Dotted path of this namespace, starting at the root's name."""
        if self._parent is None:
            return self._name
        return f"{self._parent.path}.{self._name}"

    def set(self, key: str, value: Any) -> Any:
        """
        Store ``value`` under ``key``, overwriting any previous value.

        Args:
            key: Setting name
            value: Any value; it is stored as-is

        Returns:
            The stored value
        """
        self._check_key(key)
        with self._lock:
            self._values[key] = value
        return value

    def unset(self, key: str) -> Any:
        """
        Remove ``key`` and return the value it held.

        Raises:
            KeyNotFoundError: If ``key`` is not present in this namespace
        """
        with self._lock:
            if key not in self._values:
                raise KeyNotFoundError(
                    f"Cannot unset '{key}': not present in '{self.path}'",
                    details={"key": key, "namespace": self.path}
                )
            return self._values.pop(key)

    def exists(self, key: str) -> bool:
        """Check whether ``key`` is set directly in this namespace."""
        return key in self._values

    def get(self, key: str) -> Any:
        """
        Get the value stored under ``key``.

        Raises:
            UndefinedVariableError: If ``key`` was never set here
        """
        try:
            return self._values[key]
        except KeyError:
            raise UndefinedVariableError(
                f"Undefined setting '{key}' in '{self.path}'",
                details={"key": key, "namespace": self.path}
            ) from None

    def resolve(self, dotted_key: str) -> Any:
        """
        Resolve a dotted path such as ``"db.primary.host"``.

        Every segment but the last must name a nested namespace.

        Raises:
            UndefinedVariableError: If any segment cannot be resolved
        """
        current: Any = self
        segments = dotted_key.split(".")
        for index, segment in enumerate(segments):
            if not isinstance(current, Namespace):
                walked = ".".join(segments[:index])
                raise UndefinedVariableError(
                    f"Undefined setting '{dotted_key}' in '{self.path}': "
                    f"'{walked}' is not a group",
                    details={"key": dotted_key, "namespace": self.path}
                )
            current = current.get(segment)
        return current

    def group(self, name: str, body: Optional[Body] = None) -> "Namespace":
        """
        Open the sub-namespace ``name``, creating it on first use.

        Re-opening a group reuses the existing sub-namespace, so settings
        from earlier calls stay visible.

        Args:
            name: Name of the sub-namespace
            body: Optional callable run with the sub-namespace as argument

        Returns:
            The sub-namespace

        Raises:
            ConfigError: If ``name`` already holds a non-group value
        """
        self._check_key(name)
        with self._lock:
            existing = self._values.get(name)
            if existing is None and name not in self._values:
                existing = Namespace(name, parent=self)
                self._values[name] = existing
                logger.debug(f"Created group '{existing.path}'")
            elif not isinstance(existing, Namespace):
                raise ConfigError(
                    f"Cannot open group '{name}' in '{self.path}': key holds a "
                    f"{type(existing).__name__} value",
                    ErrorCode.NAMESPACE_CONFLICT,
                    {"key": name, "namespace": self.path}
                )

        if body is not None:
            body(existing)
        return existing

    def load(self, source: Union[str, Path], if_exists: bool = False) -> bool:
        """
        Apply the statements of ``source`` to this namespace, in order.

        Args:
            source: Source reference understood by the loader's resolver
            if_exists: Silently skip the source when it does not exist

        Returns:
            True if the source was applied, False if it was skipped

        Raises:
            SourceNotFoundError: If the source is missing and ``if_exists``
                is false
            ScriptExecutionError: If the source cannot be parsed or a
                statement fails
        """
        return self.loader.load(self, source, if_exists=if_exists)

    @property
    def loader(self):
        """
        ScriptLoader shared by the whole tree.

        Found through the nearest ancestor that has one; a tree without any
        gets a default loader attached to its root on first use.
        """
        namespace = self
        while namespace._loader is None and namespace._parent is not None:
            namespace = namespace._parent
        if namespace._loader is None:
            from groupconfig.script import ScriptLoader
            with namespace._lock:
                if namespace._loader is None:
                    namespace._loader = ScriptLoader()
        return namespace._loader

    def keys(self) -> List[str]:
        return list(self._values)

    def items(self) -> List[Tuple[str, Any]]:
        return list(self._values.items())

    def as_dict(self) -> Dict[str, Any]:
        """Snapshot of this namespace as nested plain dictionaries."""
        return {
            key: value.as_dict() if isinstance(value, Namespace) else value
            for key, value in self._values.items()
        }

    def __getattr__(self, name: str) -> Any:
        # Private and dunder lookups must not hit the settings table
        if name.startswith("_"):
            raise AttributeError(name)
        return self.get(name)

    def __getitem__(self, key: str) -> Any:
        return self.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._values))

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"<Namespace '{self.path}' keys={self.keys()!r}>"

    def _check_key(self, key: Any) -> None:
        if not isinstance(key, str) or not key or "." in key:
            raise ConfigError(
                f"Invalid setting name {key!r} in '{self.path}': names must be "
                "non-empty strings without dots",
                ErrorCode.INVALID_CONFIG,
                {"key": repr(key), "namespace": self.path}
            )
