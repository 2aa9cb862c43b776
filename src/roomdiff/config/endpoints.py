"""Endpoint configuration loaded from the JSON config file."""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Self
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .env import token_from_env
from .errors import ConfigurationError
from .http_resilience import DEFAULT_TIMEOUT_SECONDS, RateLimit, ResilienceConfig


class _ConfigFileModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class RateLimitEntry(_ConfigFileModel):
    max_calls: int = Field(alias="maxCalls", gt=0)
    per_seconds: float = Field(alias="perSeconds", gt=0)


class HomeserverEntry(_ConfigFileModel):
    url: str
    access_token: str | None = Field(default=None, alias="accessToken")
    access_token_env: str | None = Field(default=None, alias="accessTokenEnv")
    name: str | None = None
    rate_limit: RateLimitEntry | None = Field(default=None, alias="rateLimit")

    @field_validator("url")
    @classmethod
    def _check_url(cls, value: str) -> str:
        stripped = value.strip().rstrip("/")
        parts = urlsplit(stripped)
        if parts.scheme not in {"http", "https"} or not parts.netloc:
            raise ValueError(f"Homeserver url must be an absolute http(s) URL: {value!r}")
        return stripped

    @model_validator(mode="after")
    def _check_token_source(self) -> Self:
        has_token = bool(self.access_token and self.access_token.strip())
        has_env = bool(self.access_token_env and self.access_token_env.strip())
        if has_token == has_env:
            raise ValueError("Exactly one of accessToken or accessTokenEnv must be set")
        return self


class ConfigFile(_ConfigFileModel):
    homeservers: list[HomeserverEntry] = Field(min_length=1)
    timeout_seconds: float = Field(default=DEFAULT_TIMEOUT_SECONDS, alias="timeoutSeconds", gt=0)


@dataclass(frozen=True, slots=True)
class EndpointConfig:
    """Connection details for one homeserver."""

    url: str
    access_token: str = field(repr=False)
    name: str | None = None
    ratelimit: RateLimit | None = None

    @property
    def label(self) -> str:
        return self.name or urlsplit(self.url).netloc or self.url

    def resilience(self, *, timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS) -> ResilienceConfig:
        return ResilienceConfig(
            name=self.label,
            base_url=self.url,
            access_token=self.access_token,
            timeout_seconds=timeout_seconds,
            ratelimit=self.ratelimit,
        )


@dataclass(frozen=True, slots=True)
class ComparisonConfig:
    """Everything a comparison run needs besides the room ids."""

    endpoints: tuple[EndpointConfig, ...]
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS

    def with_timeout(self, timeout_seconds: float | None) -> ComparisonConfig:
        if timeout_seconds is None:
            return self
        if timeout_seconds <= 0:
            raise ConfigurationError("Timeout must be positive")
        return replace(self, timeout_seconds=timeout_seconds)


def _endpoint_from_entry(entry: HomeserverEntry) -> EndpointConfig:
    if entry.access_token_env:
        token = token_from_env(entry.access_token_env.strip())
    else:
        token = (entry.access_token or "").strip()
    ratelimit = (
        RateLimit(max_calls=entry.rate_limit.max_calls, per_seconds=entry.rate_limit.per_seconds)
        if entry.rate_limit
        else None
    )
    return EndpointConfig(url=entry.url, access_token=token, name=entry.name, ratelimit=ratelimit)


def parse_comparison_config(payload: object) -> ComparisonConfig:
    """Validate an already-decoded config payload."""

    try:
        config_file = ConfigFile.model_validate(payload)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration: {exc}") from exc
    return ComparisonConfig(
        endpoints=tuple(_endpoint_from_entry(entry) for entry in config_file.homeservers),
        timeout_seconds=config_file.timeout_seconds,
    )


def load_comparison_config(path: str | Path) -> ComparisonConfig:
    """Read and validate the JSON config file at ``path``."""

    config_path = Path(path).expanduser()
    try:
        raw = config_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(
            f"Config {config_path} failed to load: {exc}", path=config_path
        ) from exc
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigurationError(
            f"Config {config_path} is not valid JSON: {exc}", path=config_path
        ) from exc
    return parse_comparison_config(payload)
