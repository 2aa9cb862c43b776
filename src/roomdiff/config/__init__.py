"""Application configuration helpers."""

from __future__ import annotations

from .endpoints import (
    ComparisonConfig,
    EndpointConfig,
    load_comparison_config,
    parse_comparison_config,
)
from .env import CONFIG_PATH_ENV_VAR, DEFAULT_CONFIG_PATH, default_config_path, token_from_env
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import NO_RETRY, RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging

__all__ = [
    "CONFIG_PATH_ENV_VAR",
    "DEFAULT_CONFIG_PATH",
    "ComparisonConfig",
    "ConfigurationError",
    "EndpointConfig",
    "MissingConfigurationError",
    "NO_RETRY",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "configure_logging",
    "default_config_path",
    "load_comparison_config",
    "parse_comparison_config",
    "token_from_env",
]
