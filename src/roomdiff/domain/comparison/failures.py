"""Timeout bounding and failure descriptions for endpoint calls."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from roomdiff.domain.ports.endpoint import EndpointError

if TYPE_CHECKING:
    from collections.abc import Awaitable

RECOVERABLE_ERRORS: tuple[type[Exception], ...] = (EndpointError, TimeoutError)


async def bounded[T](awaitable: Awaitable[T], timeout: float | None) -> T:
    """Await ``awaitable`` but give up after ``timeout`` seconds (``None`` waits forever)."""

    async with asyncio.timeout(timeout):
        return await awaitable


def describe_failure(exc: BaseException, *, timeout: float | None = None) -> str:
    if isinstance(exc, TimeoutError) and not isinstance(exc, EndpointError):
        if timeout is None:
            return "timed out"
        return f"timed out after {timeout:g}s"
    message = str(exc)
    name = type(exc).__name__
    return f"{name}: {message}" if message else name
