"""
Pytest configuration and fixtures for the configuration registry tests.

This module provides shared fixtures and configuration for all tests.
"""
import os
import tempfile
from pathlib import Path

import pytest

from groupconfig import ConfigStore, DictSourceResolver, FileSourceResolver, registry


@pytest.fixture
def temp_dir():
    """Provide a temporary directory for configuration sources."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def write_source(temp_dir):
    """Write a configuration source below temp_dir and return its path."""
    def write(relative_path, text):
        path = temp_dir / relative_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text)
        return path
    return write


@pytest.fixture
def store(temp_dir):
    """Provide a fresh registry reading sources from temp_dir."""
    return ConfigStore(FileSourceResolver(temp_dir))


@pytest.fixture
def memory_store():
    """Provide a fresh registry backed by in-memory sources."""
    return ConfigStore(DictSourceResolver())


@pytest.fixture
def namespace(store):
    """Provide the root namespace of a fresh 'app' configuration."""
    return store.config_for("app")


@pytest.fixture(autouse=True)
def reset_global_registry():
    """Keep the process-wide registry isolated between tests."""
    resolver = registry.loader.resolver
    registry.reset()
    yield
    registry.reset()
    registry.loader.resolver = resolver


@pytest.fixture
def clean_env(monkeypatch):
    """Remove GROUPCONFIG_ variables so settings start from defaults."""
    for key in list(os.environ):
        if key.startswith("GROUPCONFIG_"):
            monkeypatch.delenv(key)
    monkeypatch.setattr("groupconfig.settings.load_dotenv", lambda *args, **kwargs: False)
    return monkeypatch
