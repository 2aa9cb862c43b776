"""Errors raised while loading the homeserver configuration."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path


class ConfigurationError(RuntimeError):
    """The config file, or a value derived from it, cannot be used."""

    def __init__(self, message: str, *, path: Path | None = None) -> None:
        super().__init__(message)
        self.path = path


class MissingConfigurationError(ConfigurationError):
    """An access token environment variable is unset or blank."""

    def __init__(self, variable: str) -> None:
        super().__init__(f"Environment variable {variable} holds no access token")
        self.variable = variable
