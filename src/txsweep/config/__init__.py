"""Application configuration helpers."""

from __future__ import annotations

from .env import decode_secret, optional_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .sectigo import SectigoConfig, SectigoCredentials, get_sectigo_config
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config
from .sweep import get_sweep_config
from .trigger import TriggerConfig, get_trigger_config

__all__ = [
    "ConfigurationError",
    "DatabaseConfig",
    "MissingConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "SectigoConfig",
    "SectigoCredentials",
    "StorageConfig",
    "TriggerConfig",
    "configure_logging",
    "decode_secret",
    "get_database_config",
    "get_sectigo_config",
    "get_storage_config",
    "get_sweep_config",
    "get_trigger_config",
    "optional_env_var",
    "require_env_vars",
]
