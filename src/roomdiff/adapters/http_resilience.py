"""Shared async HTTP client with retries and client-side rate limiting."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from aiolimiter import AsyncLimiter
from httpx_retries import Retry, RetryTransport

from roomdiff.config.http_resilience import (
    NO_RETRY,
    RateLimit,
    ResilienceConfig,
    RetryPolicy,
)

if TYPE_CHECKING:
    from types import TracebackType

__all__ = [
    "NO_RETRY",
    "RateLimit",
    "ResilienceConfig",
    "ResilientClient",
    "RetryPolicy",
    "build_retry",
]

log = getLogger(__name__)


def build_retry(policy: RetryPolicy) -> Retry:
    return Retry(
        total=policy.attempts,
        backoff_factor=policy.backoff_factor,
        max_backoff_wait=policy.max_backoff_wait,
        respect_retry_after_header=True,
        allowed_methods=tuple(policy.methods),
        status_forcelist=tuple(policy.statuses),
        retry_on_exceptions=policy.exceptions,
    )


class ResilientClient:
    """One ``httpx.AsyncClient`` per homeserver, shared by concurrent tasks.

    Requests pass through the rate limiter and then a ``RetryTransport``.
    ``transport`` replaces the network transport underneath the retries.
    """

    def __init__(
        self,
        config: ResilienceConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self._limiter: AsyncLimiter | None = (
            AsyncLimiter(config.ratelimit.max_calls, config.ratelimit.per_seconds)
            if config.ratelimit
            else None
        )
        self._client = httpx.AsyncClient(
            base_url=config.base_url,
            headers=config.headers,
            timeout=config.timeout_seconds,
            transport=RetryTransport(transport=transport, retry=build_retry(config.retry)),
            event_hooks={"response": [self._log_throttled]},
        )

    async def __aenter__(self) -> ResilientClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request(self, method: str, path: str, *, json: object = None) -> httpx.Response:
        if self._limiter is None:
            return await self._client.request(method, path, json=json)
        async with self._limiter:
            return await self._client.request(method, path, json=json)

    async def _log_throttled(self, response: httpx.Response) -> None:
        if response.status_code == httpx.codes.TOO_MANY_REQUESTS:
            log.warning(
                "%s is still rate limiting after retries (Retry-After: %s)",
                self.config.name,
                response.headers.get("Retry-After", "unset"),
            )
