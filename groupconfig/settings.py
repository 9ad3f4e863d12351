"""
Settings for the registry itself and startup wiring.

Provides validated settings loaded from environment variables (and a
``.env`` file when present) plus ``initialize_registry`` which loads the
standard source chain for a named configuration.
"""

import os
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator
from dotenv import load_dotenv

from errors import ConfigError, ErrorCode
from groupconfig.namespace import Namespace
from groupconfig.registry import ConfigStore, registry
from groupconfig.sources import DEFAULT_SUFFIX, FileSourceResolver, candidate_sources, load_sources
from utils.error_logging import setup_error_logger

ENV_PREFIX = "GROUPCONFIG_"

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class RegistrySettings(BaseModel):
    """Settings controlling where and how configurations are loaded."""

    config_dir: str = Field(
        default="config",
        description="Directory containing configuration sources"
    )
    environment: str = Field(
        default="development",
        description="Deployment environment; selects <config_dir>/<environment>/<name> sources"
    )
    suffix: str = Field(
        default=DEFAULT_SUFFIX,
        description="File suffix of configuration sources"
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level for the application"
    )
    log_dir: Optional[str] = Field(
        default=None,
        description="Directory for the configuration error log (disabled if unset)"
    )

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        value = value.upper()
        if value not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {LOG_LEVELS}")
        return value

    @classmethod
    def load(cls, **overrides: Any) -> "RegistrySettings":
        """
        Load settings from the environment.

        Variables are prefixed with ``GROUPCONFIG_``, e.g.
        ``GROUPCONFIG_ENVIRONMENT=production``. Explicit keyword overrides
        win over the environment.

        Raises:
            ConfigError: If a value fails validation
        """
        load_dotenv()

        settings_data: Dict[str, Any] = cls._load_from_env()
        settings_data.update(overrides)

        try:
            return cls(**settings_data)
        except ValidationError as e:
            raise ConfigError(
                f"Invalid registry settings: {e}",
                ErrorCode.CONFIG_VALIDATION_ERROR,
                {"errors": e.errors(include_url=False)}
            ) from e

    @classmethod
    def _load_from_env(cls) -> Dict[str, Any]:
        """
        Collect prefixed environment variables for known fields.

        Values are decoded as JSON when possible and kept as strings
        otherwise.
        """
        settings_data: Dict[str, Any] = {}

        for key, value in os.environ.items():
            if not key.startswith(ENV_PREFIX):
                continue
            field_name = key[len(ENV_PREFIX):].lower()
            if field_name not in cls.model_fields:
                continue
            try:
                parsed_value = json.loads(value)
            except json.JSONDecodeError:
                parsed_value = value
            annotation = cls.model_fields[field_name].annotation
            if parsed_value is None and annotation == Optional[str]:
                settings_data[field_name] = None
                continue
            # Plain strings in JSON-looking variables ("1", "true") stay strings
            if annotation in (str, Optional[str]) and not isinstance(parsed_value, str):
                parsed_value = value
            settings_data[field_name] = parsed_value

        return settings_data


def initialize_registry(
    name: str,
    settings: Optional[RegistrySettings] = None,
    store: Optional[ConfigStore] = None
) -> Namespace:
    """
    Load the standard source chain for a configuration.

    Applies, in order: ``<name><suffix>`` (required),
    ``<environment>/<name><suffix>`` and ``<name>.local<suffix>`` (both
    optional), all relative to ``settings.config_dir``.

    Args:
        name: Configuration name
        settings: Registry settings (loaded from the environment if None)
        store: Registry to populate (the global registry if None)

    Returns:
        The populated root namespace

    Raises:
        SourceNotFoundError: If the base source is missing
        ScriptExecutionError: If a source is malformed
    """
    settings = settings or RegistrySettings.load()
    store = store if store is not None else registry

    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    setup_error_logger(settings.log_dir)

    store.loader.resolver = FileSourceResolver(Path(settings.config_dir))

    namespace = store.config_for(name)
    applied = load_sources(
        namespace,
        candidate_sources(name, settings.environment, settings.suffix)
    )

    logging.info(f"Configuration '{name}' loaded from: {applied}")
    return namespace
