"""Environment lookups: access tokens and the config file location."""

from __future__ import annotations

import os

from .errors import MissingConfigurationError

CONFIG_PATH_ENV_VAR = "ROOMDIFF_CONFIG"
DEFAULT_CONFIG_PATH = "./config.json"


def _env_value(name: str) -> str | None:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def token_from_env(name: str) -> str:
    """Return the access token stored in ``name``; a blank value counts as missing."""

    token = _env_value(name)
    if token is None:
        raise MissingConfigurationError(name)
    return token


def default_config_path() -> str:
    return _env_value(CONFIG_PATH_ENV_VAR) or DEFAULT_CONFIG_PATH
