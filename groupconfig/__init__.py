"""
Hierarchical, namespaced configuration registry.

Named configurations are built incrementally from scripts (or callables)
that set, group and unset settings. Later loads override earlier ones.

Usage:
    from groupconfig import registry

    app = registry.config_for("app")
    app.load("app.conf")
    app.load("app.local.conf", if_exists=True)

    # Access using attribute notation
    host = app.db.host

    # Or using dotted paths
    host = app.resolve("db.host")

    # Extending an existing configuration from code
    registry.config_for("app", lambda c: c.group("db", lambda db: db.set("port", 5432)))
"""

# The registry has no dependency on settings, so it is imported first
from groupconfig.namespace import Namespace
from groupconfig.registry import ConfigStore, config_for, registry
from groupconfig.script import ScriptLoader, parse_script
from groupconfig.sources import (
    DictSourceResolver,
    FileSourceResolver,
    SourceResolver,
    candidate_sources,
    load_sources,
)
from groupconfig.settings import RegistrySettings, initialize_registry

__all__ = [
    "ConfigStore",
    "DictSourceResolver",
    "FileSourceResolver",
    "Namespace",
    "RegistrySettings",
    "ScriptLoader",
    "SourceResolver",
    "candidate_sources",
    "config_for",
    "initialize_registry",
    "load_sources",
    "parse_script",
    "registry",
]
