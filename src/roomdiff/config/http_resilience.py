"""Retry, rate limit and timeout settings for homeserver connections."""

from __future__ import annotations

from dataclasses import dataclass, field

import httpx

DEFAULT_TIMEOUT_SECONDS = 30.0


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    """When, and how often, a homeserver request is sent again.

    POST is included: the only POST issued is a room join, and joining a room
    the user is already in is a no-op on the server.
    """

    attempts: int = 2
    backoff_factor: float = 0.5
    max_backoff_wait: float = 10.0
    methods: frozenset[str] = frozenset({"GET", "POST"})
    statuses: frozenset[int] = frozenset({429, 500, 502, 503, 504})
    exceptions: tuple[type[httpx.HTTPError], ...] = (
        httpx.TimeoutException,
        httpx.NetworkError,
        httpx.RemoteProtocolError,
    )


NO_RETRY = RetryPolicy(attempts=0)


@dataclass(slots=True, frozen=True)
class RateLimit:
    """At most ``max_calls`` requests in any ``per_seconds`` window."""

    max_calls: int
    per_seconds: float


@dataclass(slots=True, frozen=True)
class ResilienceConfig:
    name: str
    base_url: str
    access_token: str = field(repr=False)
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    ratelimit: RateLimit | None = None

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.access_token}"}
