"""Application configuration helpers."""

from __future__ import annotations

from .env import optional_flag, optional_positive_int, require_env_var, require_env_vars
from .errors import ConfigurationError, InvalidConfigurationError, MissingConfigurationError
from .push import DEFAULT_PUSH_VERSION, PushConfig, get_push_config, get_registry_reference
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "DEFAULT_PUSH_VERSION",
    "ConfigurationError",
    "DatabaseConfig",
    "InvalidConfigurationError",
    "MissingConfigurationError",
    "PushConfig",
    "StorageConfig",
    "get_database_config",
    "get_push_config",
    "get_registry_reference",
    "get_storage_config",
    "optional_flag",
    "optional_positive_int",
    "require_env_var",
    "require_env_vars",
]
