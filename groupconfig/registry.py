"""
Configuration registry module.

This module provides the registry that maps configuration names to their
root namespaces. Each name resolves to exactly one namespace for the
lifetime of the registry: asking for the same name again returns the same
object, and passing a body extends it instead of replacing it.
"""

import logging
import threading
from typing import Any, Callable, Dict, List, Optional

from groupconfig.namespace import Body, Namespace
from groupconfig.script import ScriptLoader
from groupconfig.sources import SourceResolver

logger = logging.getLogger(__name__)


class ConfigStore:
    """
    Registry of named configurations.

    Roots are created lazily on first reference and never removed, except
    through ``reset`` which exists so test suites can isolate themselves.
    """

    def __init__(self, resolver: Optional[SourceResolver] = None):
        """
        Args:
            resolver: Resolver used by ``load`` in every namespace of this
                registry (files relative to the working directory if omitted)
        """
        self.loader = ScriptLoader(resolver)
        self._registry: Dict[str, Namespace] = {}
        self._lock = threading.RLock()

    @property
    def resolver(self) -> SourceResolver:
        return self.loader.resolver

    def config_for(self, name: str, body: Optional[Body] = None) -> Namespace:
        """
        Get the root namespace for ``name``, creating it if needed.

        Args:
            name: The configuration name
            body: Optional callable run with the root namespace as argument;
                repeated calls accumulate settings

        Returns:
            The root namespace (the same object on every call)
        """
        with self._lock:
            namespace = self._registry.get(name)
            if namespace is None:
                logger.debug(f"Creating configuration: {name}")
                namespace = Namespace(name, loader=self.loader)
                self._registry[name] = namespace

        if body is not None:
            body(namespace)
        return namespace

    def get(self, name: str) -> Optional[Namespace]:
        """
        Get a registered configuration without creating it.

        Returns:
            The root namespace, or None if ``name`` was never referenced
        """
        return self._registry.get(name)

    def accessor(self, name: str) -> Callable[[], Namespace]:
        """
        Build a zero-argument provider for one configuration.

        Web frameworks can register the result as a dependency so request
        handlers receive the root namespace without importing the registry.
        """
        def provide() -> Namespace:
            return self.config_for(name)

        provide.__name__ = f"provide_{name}_config"
        return provide

    def list_registered(self) -> List[str]:
        """List configuration names in creation order."""
        return list(self._registry)

    def reset(self) -> None:
        """Forget every configuration. Intended for test isolation."""
        with self._lock:
            logger.debug(f"Resetting registry with: {list(self._registry)}")
            self._registry.clear()

    def __contains__(self, name: Any) -> bool:
        return name in self._registry

    def __len__(self) -> int:
        return len(self._registry)


# Global singleton instance
registry = ConfigStore()


def config_for(name: str, body: Optional[Body] = None) -> Namespace:
    """Shortcut for ``registry.config_for`` on the global registry."""
    return registry.config_for(name, body)
